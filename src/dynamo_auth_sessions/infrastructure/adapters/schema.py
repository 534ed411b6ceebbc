"""
Schema Mapper.

Converts User and Session entities to and from the flat typed items
stored in the single table. Pure and side-effect free.

A session item carries its primary key, both secondary index key pairs
and the numeric TTL attribute, so one put_item keeps them consistent:

    Pk      "Session#<id>"          Sk      "Session"
    Gs1Pk   "User#<user_id>"        Gs1Sk   "Session#<expires>"
    Gs2Pk   "Session"               Gs2Sk   "<expires>"
    expires <epoch seconds>

Every other attribute of the item is a flattened entity attribute.
"""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from dynamo_auth_sessions.config import SessionStoreConfig
from dynamo_auth_sessions.domain.entities import Session, User
from dynamo_auth_sessions.domain.errors import MalformedRecordError
from dynamo_auth_sessions.infrastructure.adapters.serialization import (
    from_attribute_value,
    to_attribute_value,
)

# Zero-padded width of the expiry in sort keys. 20 digits hold any
# non-negative 64-bit epoch, so string order always matches time order.
EXPIRY_SORT_KEY_WIDTH = 20

Item = dict[str, dict[str, Any]]


def encode_expiry(expires: int) -> str:
    """Encode epoch seconds as an order-preserving sort key string."""
    return str(max(0, int(expires))).zfill(EXPIRY_SORT_KEY_WIDTH)


class SchemaMapper:
    """
    Maps entities onto items for a given SessionStoreConfig.

    Usage:
        mapper = SchemaMapper(SessionStoreConfig(table_name="AuthTable"))
        item = mapper.session_to_item(session)
        assert mapper.item_to_session(item) == session
    """

    def __init__(self, config: SessionStoreConfig):
        self.config = config

    # ═══════════════════════════════════════════════════════════════
    # KEYS
    # ═══════════════════════════════════════════════════════════════

    def session_key(self, session_id: str) -> Item:
        primary = self.config.primary
        return {
            primary.partition_key: {"S": f"{self.config.session_prefix}{session_id}"},
            primary.sort_key: {"S": self.config.session_type},
        }

    def user_key(self, user_id: str) -> Item:
        primary = self.config.primary
        return {
            primary.partition_key: {"S": f"{self.config.user_prefix}{user_id}"},
            primary.sort_key: {"S": self.config.user_type},
        }

    def key_from_item(self, item: Item) -> Item:
        """Extract the primary key pair from a (possibly projected) item."""
        primary = self.config.primary
        key = {}
        for name in (primary.partition_key, primary.sort_key):
            if name not in item:
                raise MalformedRecordError(
                    f"Item is missing key attribute '{name}'", attribute=name
                )
            key[name] = item[name]
        return key

    def user_partition(self, user_id: str) -> str:
        """Partition value of the user index for a user's items."""
        return f"{self.config.user_prefix}{user_id}"

    def user_index_sort(self, expires: int) -> str:
        return f"{self.config.session_prefix}{encode_expiry(expires)}"

    # ═══════════════════════════════════════════════════════════════
    # SESSIONS
    # ═══════════════════════════════════════════════════════════════

    def session_to_item(self, session: Session) -> Item:
        config = self.config
        expires = session.expires
        item = self._attribute_item(session.attributes)
        item.update(self.session_key(session.id))
        item[config.user_index.partition_key] = {
            "S": self.user_partition(session.user_id)
        }
        item[config.user_index.sort_key] = {"S": self.user_index_sort(expires)}
        item[config.expiry_index.partition_key] = {"S": config.session_type}
        item[config.expiry_index.sort_key] = {"S": encode_expiry(expires)}
        item[config.expires_attribute] = {"N": str(expires)}
        return item

    def item_to_session(self, item: Item) -> Session:
        config = self.config
        session_id = self._prefixed_string(
            item, config.primary.partition_key, config.session_prefix
        )
        user_id = self._prefixed_string(
            item, config.user_index.partition_key, config.user_prefix
        )
        expires = self._epoch_seconds(item, config.expires_attribute)
        return Session(
            id=session_id,
            user_id=user_id,
            expires_at=datetime.fromtimestamp(expires, tz=timezone.utc),
            attributes=self._attributes(
                item, config.key_attributes | config.excluded_session_attributes
            ),
        )

    # ═══════════════════════════════════════════════════════════════
    # USERS
    # ═══════════════════════════════════════════════════════════════

    def user_to_item(self, user: User) -> Item:
        config = self.config
        item = self._attribute_item(user.attributes)
        item.update(self.user_key(user.id))
        item[config.user_index.partition_key] = {"S": self.user_partition(user.id)}
        item[config.user_index.sort_key] = {"S": config.user_type}
        return item

    def item_to_user(self, item: Item) -> User:
        config = self.config
        user_id = self._prefixed_string(
            item, config.primary.partition_key, config.user_prefix
        )
        return User(
            id=user_id,
            attributes=self._attributes(
                item, config.key_attributes | config.excluded_user_attributes
            ),
        )

    # ═══════════════════════════════════════════════════════════════
    # HELPERS
    # ═══════════════════════════════════════════════════════════════

    def _attribute_item(self, attributes: dict[str, Any]) -> Item:
        reserved = sorted(self.config.key_attributes.intersection(attributes))
        if reserved:
            raise ValueError(
                f"Attribute names reserved by the table schema: {', '.join(reserved)}"
            )
        return {name: to_attribute_value(value) for name, value in attributes.items()}

    @staticmethod
    def _prefixed_string(item: Item, name: str, prefix: str) -> str:
        attribute = item.get(name)
        if attribute is None:
            raise MalformedRecordError(
                f"Item is missing key attribute '{name}'", attribute=name
            )
        value = attribute.get("S")
        if not isinstance(value, str) or not value.startswith(prefix):
            raise MalformedRecordError(
                f"Key attribute '{name}' is not a string starting with '{prefix}'",
                attribute=name,
            )
        return value[len(prefix) :]

    @staticmethod
    def _epoch_seconds(item: Item, name: str) -> int:
        attribute = item.get(name)
        if attribute is None:
            raise MalformedRecordError(
                f"Item is missing expiry attribute '{name}'", attribute=name
            )
        raw = attribute.get("N")
        if not isinstance(raw, str):
            raise MalformedRecordError(
                f"Expiry attribute '{name}' is not a number attribute", attribute=name
            )
        try:
            value = Decimal(raw)
        except (InvalidOperation, TypeError, ValueError):
            raise MalformedRecordError(
                f"Expiry attribute '{name}' is not a number: {raw!r}", attribute=name
            ) from None
        if not value.is_finite() or value != value.to_integral_value():
            raise MalformedRecordError(
                f"Expiry attribute '{name}' is not an integer: {raw!r}",
                attribute=name,
            )
        return int(value)

    @staticmethod
    def _attributes(item: Item, excluded: frozenset[str]) -> dict[str, Any]:
        return {
            name: from_attribute_value(value)
            for name, value in item.items()
            if name not in excluded
        }
