"""Configuration and logging helpers shared by the CLI and the API layer."""
