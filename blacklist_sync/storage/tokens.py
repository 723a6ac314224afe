"""
Encrypted token storage for the active cloud connection.

The connection id and its OAuth token live in local storage. Tokens are
encrypted at rest using Fernet symmetric encryption.
"""

import base64
import hashlib
import json
import logging
import os
from pathlib import Path
from typing import Optional, Tuple

from cryptography.fernet import Fernet, InvalidToken

from ..models import CloudToken
from .base import LocalStorage

logger = logging.getLogger(__name__)


def load_or_create_key(path: str) -> str:
    """Read the token key file, generating it on first use.

    Args:
        path: Location of the key file

    Returns:
        A Fernet key
    """
    key_path = Path(path)
    if key_path.exists():
        return key_path.read_text(encoding="utf-8").strip()

    key_path.parent.mkdir(parents=True, exist_ok=True)
    key = Fernet.generate_key().decode()
    key_path.write_text(key, encoding="utf-8")
    os.chmod(key_path, 0o600)
    logger.warning(
        f"BLACKLIST_SYNC_TOKEN_KEY not set. Generated a token key at {key_path}; "
        "keep it next to the database."
    )
    return key


def make_cipher(key: Optional[str], key_file: Optional[str] = None) -> Fernet:
    """Build a Fernet cipher from a configured key.

    Args:
        key: A Fernet key, any other secret string, or None
        key_file: Where to keep a generated key when ``key`` is unset

    Returns:
        Cipher; an ephemeral one when neither a key nor a key file is given
    """
    if not key and key_file:
        key = load_or_create_key(key_file)

    if not key:
        logger.warning(
            "BLACKLIST_SYNC_TOKEN_KEY not set. "
            "Using ephemeral key - tokens will be lost on restart."
        )
        return Fernet(Fernet.generate_key())

    # Fernet keys are 44 chars base64; derive one from anything else
    if len(key) != 44:
        key = base64.urlsafe_b64encode(hashlib.sha256(key.encode()).digest()).decode()
    return Fernet(key.encode())


class TokenStore:
    """
    Reads and writes the connection id and token.

    Holds no state between calls; every read goes to local storage.
    """

    def __init__(self, storage: LocalStorage, cipher: Fernet):
        self.storage = storage
        self._cipher = cipher

    def _encrypt(self, token: CloudToken) -> str:
        return self._cipher.encrypt(json.dumps(token.to_dict()).encode()).decode()

    def _decrypt(self, value: str) -> Optional[CloudToken]:
        try:
            data = json.loads(self._cipher.decrypt(value.encode()).decode())
            return CloudToken.from_dict(data)
        except (InvalidToken, ValueError, KeyError) as e:
            logger.error(f"Failed to decrypt stored token: {type(e).__name__}")
            return None

    async def load(self) -> Tuple[Optional[str], Optional[CloudToken]]:
        """Load the connected cloud id and its token."""
        items = await self.storage.load(["cloud_storage_id", "cloud_storage_token"])
        encrypted = items["cloud_storage_token"]
        token = self._decrypt(encrypted) if encrypted else None
        return items["cloud_storage_id"], token

    async def load_cloud_id(self) -> Optional[str]:
        items = await self.storage.load(["cloud_storage_id"])
        return items["cloud_storage_id"]

    async def save_connection(self, cloud_id: str, token: CloudToken) -> None:
        """Store a new connection and its token in one write."""
        await self.storage.store({
            "cloud_storage_id": cloud_id,
            "cloud_storage_token": self._encrypt(token),
        })
        logger.info(f"Stored connection to {cloud_id}")

    async def save_token(self, token: CloudToken) -> None:
        await self.storage.store({"cloud_storage_token": self._encrypt(token)})
        logger.debug("Stored refreshed token")

    async def clear_token(self) -> None:
        """Drop the token but keep the connection id."""
        await self.storage.store({"cloud_storage_token": None})
        logger.info("Cleared stored token")

    async def clear_connection(self) -> None:
        await self.storage.store({"cloud_storage_id": None, "cloud_storage_token": None})
        logger.info("Cleared connection")
