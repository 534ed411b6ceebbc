"""
Session store configuration.

The configuration is built once and shared by reference between the
schema mapper, the executors and the facade. It is never mutated after
construction.
"""

from dataclasses import dataclass, field
from typing import Iterable

# Hard per-request ceiling of BatchWriteItem.
MAX_BATCH_WRITE_ITEMS = 25


@dataclass(frozen=True)
class KeySchema:
    """Names of a partition/sort key attribute pair."""

    partition_key: str
    sort_key: str


@dataclass(frozen=True)
class IndexSchema(KeySchema):
    """A global secondary index and its key attribute names."""

    name: str = ""


@dataclass(frozen=True)
class SessionStoreConfig:
    """
    Configuration for the DynamoDB session store.

    Default layout (one table, two GSIs):

        Pk / Sk         "Session#<id>" / "Session"   or   "User#<id>" / "User"
        Gs1Pk / Gs1Sk   "User#<user_id>" / "Session#<expires>"
        Gs2Pk / Gs2Sk   "Session" / "<expires>"
        expires         epoch seconds, register as the table TTL attribute

    Usage:
        config = SessionStoreConfig(
            table_name="AuthTable",
            excluded_user_attributes={"HashedPassword"},
            consistent_read=True,
        )
    """

    table_name: str = "SessionTable"

    primary: KeySchema = field(default_factory=lambda: KeySchema("Pk", "Sk"))
    user_index: IndexSchema = field(
        default_factory=lambda: IndexSchema("Gs1Pk", "Gs1Sk", name="Gs1")
    )
    expiry_index: IndexSchema = field(
        default_factory=lambda: IndexSchema("Gs2Pk", "Gs2Sk", name="Gs2")
    )
    expires_attribute: str = "expires"

    # Key value patterns
    user_prefix: str = "User#"
    session_prefix: str = "Session#"
    user_type: str = "User"
    session_type: str = "Session"

    # Columns that must never surface in entity attributes
    excluded_user_attributes: frozenset[str] = frozenset()
    excluded_session_attributes: frozenset[str] = frozenset()

    consistent_read: bool = False
    max_batch_size: int = MAX_BATCH_WRITE_ITEMS

    def __post_init__(self):
        object.__setattr__(
            self,
            "excluded_user_attributes",
            _as_frozenset(self.excluded_user_attributes),
        )
        object.__setattr__(
            self,
            "excluded_session_attributes",
            _as_frozenset(self.excluded_session_attributes),
        )
        if not 1 <= self.max_batch_size <= MAX_BATCH_WRITE_ITEMS:
            raise ValueError(
                f"max_batch_size must be between 1 and {MAX_BATCH_WRITE_ITEMS}, "
                f"got {self.max_batch_size}"
            )
        if not self.table_name:
            raise ValueError("table_name must not be empty")
        for index in (self.user_index, self.expiry_index):
            if not index.name:
                raise ValueError(
                    f"Index keyed by '{index.partition_key}' must have a name"
                )

    @property
    def key_attributes(self) -> frozenset[str]:
        """Every attribute name the schema reserves on an item."""
        return frozenset(
            {
                self.primary.partition_key,
                self.primary.sort_key,
                self.user_index.partition_key,
                self.user_index.sort_key,
                self.expiry_index.partition_key,
                self.expiry_index.sort_key,
                self.expires_attribute,
            }
        )


def _as_frozenset(names: Iterable[str]) -> frozenset[str]:
    if isinstance(names, str):
        return frozenset({names})
    return frozenset(names)
