"""
Things3 API layer package.
Drives Things3 through AppleScript (reads, deletes, status changes) and the
things:/// URL scheme (creates and updates).
"""

from .client import UNSET, ThingsClient
from .data_models import UNKNOWN_ID, BatchResult, CreateResult
from .errors import (
    ChannelError,
    ChannelExitError,
    ChannelSpawnError,
    ChannelTimeoutError,
    EncodingError,
    ErrorType,
    Things3Error,
)

__all__ = [
    'ThingsClient',
    'UNSET',
    'UNKNOWN_ID',
    'BatchResult',
    'CreateResult',
    'ErrorType',
    'Things3Error',
    'EncodingError',
    'ChannelError',
    'ChannelSpawnError',
    'ChannelExitError',
    'ChannelTimeoutError',
]
