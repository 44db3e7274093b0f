"""Common utilities for hubsend."""

from hubsend.common.errors import ErrorCode, HubsendError
from hubsend.common.settings import Settings, get_settings

__all__ = [
    "ErrorCode",
    "HubsendError",
    "Settings",
    "get_settings",
]
