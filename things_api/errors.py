"""Error kinds raised by the Things3 API layer."""
from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class ErrorType(str, Enum):
    THINGS_NOT_RUNNING = "THINGS_NOT_RUNNING"
    APPLESCRIPT_ERROR = "APPLESCRIPT_ERROR"
    INVALID_PARAMETER = "INVALID_PARAMETER"
    NOT_FOUND = "NOT_FOUND"
    TIMEOUT = "TIMEOUT"
    UNKNOWN = "UNKNOWN"
    INVALID_REFERENCE = "INVALID_REFERENCE"


class Things3Error(RuntimeError):
    """Base error for Things3 operations."""

    def __init__(self, error_type: ErrorType, message: str, details: Any = None):
        super().__init__(message)
        self.type = error_type
        self.details = details

    def __str__(self) -> str:
        return f"[{self.type.value}] {super().__str__()}"


class EncodingError(Things3Error):
    """Raised for malformed write intents, before anything is sent to the host."""

    def __init__(self, message: str, details: Any = None):
        super().__init__(ErrorType.INVALID_PARAMETER, message, details)


class ChannelError(Things3Error):
    """Raised when one of the host channels (osascript / URL open) fails."""

    def __init__(
        self,
        channel: str,
        message: str,
        error_type: ErrorType = ErrorType.APPLESCRIPT_ERROR,
        details: Any = None,
    ):
        super().__init__(error_type, f"{channel}: {message}", details)
        self.channel = channel


class ChannelSpawnError(ChannelError):
    """The channel process could not be started."""


class ChannelExitError(ChannelError):
    """The channel process exited with a non-zero status."""

    def __init__(self, channel: str, returncode: int, stderr: Optional[str] = None):
        stderr = (stderr or "").strip()
        super().__init__(channel, f"exited with code {returncode}: {stderr}")
        self.returncode = returncode
        self.stderr = stderr


class ChannelTimeoutError(ChannelError):
    """The channel process did not finish before the configured timeout."""

    def __init__(self, channel: str, timeout: float):
        super().__init__(channel, f"timed out after {timeout:g}s", error_type=ErrorType.TIMEOUT)
        self.timeout = timeout
