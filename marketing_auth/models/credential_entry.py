# marketing_auth/models/credential_entry.py
from datetime import datetime, timezone
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(dt: datetime) -> str:
    # millisecond precision with a "Z" suffix, the format existing stores use.
    # Naive datetimes are UTC, never local time.
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def normalize_expiry(value: Union[None, str, int, float, datetime]) -> Optional[str]:
    """
    Turn a caller-supplied expiresAt into the stored ISO string.

    Numbers are epoch milliseconds. Strings are kept as given.
    """
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError("expiresAt must be a datetime, an ISO string or epoch milliseconds")
    if isinstance(value, datetime):
        return to_iso(value)
    if isinstance(value, (int, float)):
        try:
            return to_iso(datetime.fromtimestamp(value / 1000, tz=timezone.utc))
        except (OverflowError, OSError, ValueError) as e:
            raise ValueError(f"expiresAt out of range: {value}") from e
    if isinstance(value, str):
        return value
    raise ValueError(f"unsupported expiresAt type: {type(value).__name__}")


def parse_iso(value: str) -> Optional[datetime]:
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


class CredentialEntry(BaseModel):
    """One encrypted OAuth credential, stored under tokens[platform][user_id]."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId")
    platform: str
    encrypted_data: str = Field(alias="encryptedData")
    connected_at: str = Field(default_factory=lambda: to_iso(utc_now()), alias="connectedAt")
    expires_at: Optional[str] = Field(default=None, alias="expiresAt")

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if not self.expires_at:
            return False
        expires = parse_iso(self.expires_at)
        if expires is None:
            # unparseable expiry never compares as past
            return False
        return expires < (now or utc_now())

    def summary(self) -> dict:
        return {"userId": self.user_id, "connectedAt": self.connected_at, "expiresAt": self.expires_at}

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True)
