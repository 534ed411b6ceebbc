"""
Domain entities persisted by the session store.

Both entities are immutable value objects. Attributes are open-ended
mappings of JSON-like values that the schema mapper flattens onto the
stored item.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional


def as_utc(value: datetime) -> datetime:
    """Normalize to an aware UTC datetime (naive means UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_utc_seconds(value: datetime) -> datetime:
    return as_utc(value).replace(microsecond=0)


def epoch_seconds(value: datetime) -> int:
    return int(to_utc_seconds(value).timestamp())


@dataclass(frozen=True)
class User:
    """
    A user record as seen by the session store.

    The store only ever reads users; they are written elsewhere.
    """

    id: str
    attributes: dict[str, Any] = field(default_factory=dict)

    # Attributes are a mutable dict
    __hash__ = None


@dataclass(frozen=True)
class Session:
    """
    An authentication session belonging to a user.

    expires_at is kept with second precision in UTC. Naive datetimes are
    interpreted as UTC.
    """

    id: str
    user_id: str  # Weak reference, no cascading
    expires_at: datetime
    attributes: dict[str, Any] = field(default_factory=dict)

    # Attributes are a mutable dict
    __hash__ = None

    def __post_init__(self):
        object.__setattr__(self, "expires_at", to_utc_seconds(self.expires_at))

    @property
    def expires(self) -> int:
        """Expiry as integer epoch seconds."""
        return epoch_seconds(self.expires_at)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return self.expires_at <= now
