"""
This __init__.py file makes the 'commands' directory a Python package.

Each module defines the handlers for one group of CLI commands. A handler
takes an ``args`` namespace built by thingscli.py, calls ThingsClient and
prints the result as JSON.
"""
