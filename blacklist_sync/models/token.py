"""
OAuth token models.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from .document import parse_iso_string, to_iso_string, utcnow


@dataclass
class AccessTokenGrant:
    """Result of exchanging an authorization code."""
    access_token: str
    expires_in: int
    refresh_token: str


@dataclass
class RefreshedToken:
    """Result of refreshing an access token."""
    access_token: str
    expires_in: int


@dataclass
class CloudToken:
    """Credentials of the active connection."""
    access_token: str
    refresh_token: str
    expires_at: datetime

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Check if the access token is past its expiry."""
        return (now or utcnow()) > self.expires_at

    def refreshed(self, token: RefreshedToken, now: Optional[datetime] = None) -> "CloudToken":
        """Return a copy carrying the new access token and expiry."""
        return CloudToken(
            access_token=token.access_token,
            refresh_token=self.refresh_token,
            expires_at=(now or utcnow()) + timedelta(seconds=token.expires_in),
        )

    @classmethod
    def from_grant(cls, grant: AccessTokenGrant, now: Optional[datetime] = None) -> "CloudToken":
        return cls(
            access_token=grant.access_token,
            refresh_token=grant.refresh_token,
            expires_at=(now or utcnow()) + timedelta(seconds=grant.expires_in),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expires_at": to_iso_string(self.expires_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CloudToken":
        return cls(
            access_token=data["access_token"],
            refresh_token=data["refresh_token"],
            expires_at=parse_iso_string(data["expires_at"]),
        )

    def __repr__(self) -> str:
        return f"CloudToken(expires_at={self.expires_at.isoformat()})"
