"""
Data models for the blacklist sync engine.
"""

from .document import (
    EPOCH,
    BlacklistDocument,
    SyncedFile,
    parse_iso_string,
    to_iso_string,
    utcnow,
)
from .token import AccessTokenGrant, CloudToken, RefreshedToken
from .result import SyncInterval, SyncResult, SyncResultType

__all__ = [
    "EPOCH",
    "BlacklistDocument",
    "SyncedFile",
    "parse_iso_string",
    "to_iso_string",
    "utcnow",
    "AccessTokenGrant",
    "CloudToken",
    "RefreshedToken",
    "SyncInterval",
    "SyncResult",
    "SyncResultType",
]
