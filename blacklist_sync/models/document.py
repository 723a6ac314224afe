"""
Blacklist document model and timestamp helpers.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_FRACTION = re.compile(r"\.(\d+)")


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_iso_string(value: datetime) -> str:
    """Format a datetime as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC."""
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_iso_string(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if value.endswith("Z") or value.endswith("z"):
        value = value[:-1] + "+00:00"
    # fromisoformat before 3.11 only takes 3 or 6 fraction digits
    value = _FRACTION.sub(lambda m: "." + (m.group(1) + "000000")[:6], value, count=1)
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass
class BlacklistDocument:
    """The synchronized blacklist text and its last modification time."""
    blacklist: str
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "blacklist": self.blacklist,
            "timestamp": to_iso_string(self.timestamp),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BlacklistDocument":
        return cls(
            blacklist=data.get("blacklist", ""),
            timestamp=parse_iso_string(data["timestamp"]) if data.get("timestamp") else EPOCH,
        )


@dataclass
class SyncedFile:
    """Content pulled from the cloud that must replace the local document."""
    content: str
    modified_time: datetime
