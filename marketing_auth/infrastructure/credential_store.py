# marketing_auth/infrastructure/credential_store.py
import json
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional

import structlog
from pydantic import ValidationError

from marketing_auth.infrastructure.token_cipher import DecryptionError, TokenCipher
from marketing_auth.models.credential_entry import CredentialEntry, normalize_expiry

logger = structlog.get_logger(__name__)


class PersistenceError(Exception):
    pass


class CredentialStore:
    """
    Encrypted OAuth credentials keyed by (platform, user_id), kept in memory and
    written whole to a single JSON file after every mutation.

    Each write goes to a temporary file in the same directory and is renamed
    over the store file, so a failed write leaves the previous file intact. When
    a write fails the in-memory change is undone before PersistenceError is
    raised.

    Mutations do not await between changing the in-memory map and writing the
    file, so overlapping requests in one process cannot drop each other's
    entries. Nothing coordinates separate processes sharing the same file: the
    last writer wins. The write and fsync run on the event loop and block it
    for their duration; with a few OAuth connections per user the file stays
    small and that stall is accepted.
    """

    def __init__(self, path, cipher: TokenCipher):
        self.path = Path(path)
        self.cipher = cipher
        self.tokens: Dict[str, Dict[str, CredentialEntry]] = {}
        self._load()

    def _load(self) -> None:
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            self.tokens = {
                platform: {user_id: CredentialEntry.model_validate(entry) for user_id, entry in users.items()}
                for platform, users in raw.items()
            }
            logger.info("credential_store_loaded", path=str(self.path), platforms=len(self.tokens))
            return
        except FileNotFoundError:
            logger.info("credential_store_created", path=str(self.path))
        except (OSError, ValueError, AttributeError, ValidationError) as e:
            logger.error("credential_store_read_failed", path=str(self.path), error=str(e))

        self.tokens = {}
        try:
            self._save()
        except PersistenceError:
            # already logged; the store still works in memory
            pass

    def _save(self) -> None:
        data = {
            platform: {user_id: entry.to_json() for user_id, entry in users.items()}
            for platform, users in self.tokens.items()
        }
        temp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                mode="w",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
                encoding="utf-8",
            ) as tf:
                temp_path = Path(tf.name)
                json.dump(data, tf, indent=2)
                tf.flush()
                os.fsync(tf.fileno())
            os.replace(temp_path, self.path)
        except OSError as e:
            if temp_path is not None and temp_path.exists():
                temp_path.unlink()
            logger.error("credential_store_write_failed", path=str(self.path), error=str(e))
            raise PersistenceError(f"could not write {self.path}: {e}") from e

    async def store_token(self, platform: str, user_id: str, token_data: dict) -> bool:
        if not isinstance(platform, str) or not platform:
            raise ValueError("platform must be a non-empty string")
        if not isinstance(user_id, str) or not user_id:
            raise ValueError("user_id must be a non-empty string")

        expires_at = normalize_expiry(token_data.get("expiresAt"))

        entry = CredentialEntry(
            user_id=user_id,
            platform=platform,
            encrypted_data=self.cipher.encrypt(json.dumps(token_data, default=str)),
            expires_at=expires_at,
        )
        users = self.tokens.setdefault(platform, {})
        previous = users.get(user_id)
        users[user_id] = entry
        try:
            self._save()
        except PersistenceError:
            if previous is not None:
                users[user_id] = previous
            else:
                del users[user_id]
                if not users:
                    del self.tokens[platform]
            raise
        logger.info("token_stored", platform=platform, user_id=user_id, expires_at=expires_at)
        return True

    async def get_token(self, platform: str, user_id: str) -> Optional[dict]:
        entry = self.tokens.get(platform, {}).get(user_id)
        if entry is None:
            return None

        if entry.is_expired():
            logger.debug("token_expired", platform=platform, user_id=user_id, expires_at=entry.expires_at)
            return None

        try:
            return json.loads(self.cipher.decrypt(entry.encrypted_data))
        except (DecryptionError, ValueError) as e:
            logger.error("token_decrypt_failed", platform=platform, user_id=user_id, error=str(e))
            return None

    async def remove_token(self, platform: str, user_id: str) -> bool:
        users = self.tokens.get(platform)
        if not users or user_id not in users:
            return False
        entry = users.pop(user_id)
        try:
            self._save()
        except PersistenceError:
            users[user_id] = entry
            raise
        logger.info("token_removed", platform=platform, user_id=user_id)
        return True

    async def get_connected_platforms(self) -> Dict[str, List[dict]]:
        # structural listing: expired entries are still reported
        return {
            platform: [entry.summary() for entry in users.values()]
            for platform, users in self.tokens.items()
            if users
        }

    async def verify_token(self, platform: str, user_id: str) -> bool:
        return await self.get_token(platform, user_id) is not None

    async def get_profile(self, platform: str) -> Optional[dict]:
        for user_id in list(self.tokens.get(platform, {})):
            token = await self.get_token(platform, user_id)
            if token is not None and token.get("profile"):
                return token["profile"]
        return None
