"""
Errors raised by the session store.

Absence of an item is never an error: lookups return None or an empty
list. Transport and throttling failures from the store client are
propagated unmodified and are not wrapped by these classes.
"""

from typing import Optional, Any


class SessionStoreError(Exception):
    """Base class for all session store errors."""

    def __init__(
        self,
        message: str,
        code: str = "SESSION_STORE_ERROR",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}


class MalformedRecordError(SessionStoreError):
    """
    Raised when an item read from the table is missing a required key
    attribute or carries one of the wrong type.

    Items written by this package never trigger it; it indicates schema
    drift or a foreign writer.
    """

    def __init__(
        self,
        message: str = "Malformed record",
        attribute: Optional[str] = None,
        code: str = "MALFORMED_RECORD",
    ):
        details = {"attribute": attribute} if attribute is not None else None
        super().__init__(message, code, details)
        self.attribute = attribute


class UnprocessedItemsError(SessionStoreError):
    """Raised when a batch delete leaves keys the store did not process."""

    def __init__(
        self,
        keys: list[dict[str, Any]],
        message: Optional[str] = None,
        code: str = "UNPROCESSED_ITEMS",
    ):
        super().__init__(
            message or f"{len(keys)} key(s) were left unprocessed by batch delete",
            code,
            {"count": len(keys)},
        )
        self.keys = keys
