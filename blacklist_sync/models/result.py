"""
Sync result model stored after every sync attempt.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from .document import parse_iso_string, to_iso_string, utcnow


class SyncResultType(str, Enum):
    """Outcome of a sync attempt."""
    SUCCESS = "success"
    ERROR = "error"


class SyncInterval(int, Enum):
    """Minutes between periodic syncs."""
    FIVE_MINUTES = 5
    FIFTEEN_MINUTES = 15
    THIRTY_MINUTES = 30
    ONE_HOUR = 60
    TWO_HOURS = 120
    FIVE_HOURS = 300


@dataclass
class SyncResult:
    """Either ``success`` with a timestamp or ``error`` with a message."""
    type: SyncResultType
    timestamp: Optional[datetime] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, timestamp: Optional[datetime] = None) -> "SyncResult":
        return cls(type=SyncResultType.SUCCESS, timestamp=timestamp or utcnow())

    @classmethod
    def error(cls, message: str) -> "SyncResult":
        return cls(type=SyncResultType.ERROR, message=message)

    @property
    def is_success(self) -> bool:
        return self.type == SyncResultType.SUCCESS

    @property
    def is_error(self) -> bool:
        return self.type == SyncResultType.ERROR

    def to_dict(self) -> Dict[str, Any]:
        if self.is_success:
            return {"type": self.type.value, "timestamp": to_iso_string(self.timestamp)}
        return {"type": self.type.value, "message": self.message}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SyncResult":
        result_type = SyncResultType(data["type"])
        if result_type == SyncResultType.SUCCESS:
            return cls.success(parse_iso_string(data["timestamp"]))
        return cls.error(data.get("message", ""))
