"""
Session Store Port.

Defines the port interface for persisting and retrieving sessions and
reading the users they belong to.

Backends: DynamoDB single-table (prod) or in-memory (dev/tests).
"""

from datetime import datetime
from typing import Protocol, Optional, runtime_checkable

from dynamo_auth_sessions.domain.entities import Session, User


@runtime_checkable
class SessionStorePort(Protocol):
    """
    Port for session persistence.

    A session moves between two states only:
    1. absent → active via set_session
    2. active → active via update_session_expiration (future expiry)
    3. active → absent via any delete, an update with a past expiry,
       or the store's own TTL eviction

    Usage:
        store = DynamoDBSessionAdapter(client, config)

        await store.set_session(session)
        session, user = await store.get_session_and_user(session.id)
        await store.delete_expired_sessions()
    """

    async def get_session_and_user(
        self, session_id: str
    ) -> tuple[Optional[Session], Optional[User]]:
        """
        Get a session and the user it references.

        Returns:
            (None, None) if the session is absent,
            (session, None) if its user does not exist
        """
        ...

    async def get_user_sessions(self, user_id: str) -> list[Session]:
        """
        Get all sessions of a user, ordered by expiry ascending.

        Returns:
            Possibly empty list of sessions
        """
        ...

    async def set_session(self, session: Session) -> None:
        """Create or fully overwrite a session."""
        ...

    async def update_session_expiration(
        self, session_id: str, expires_at: datetime
    ) -> None:
        """
        Move a session's expiry.

        An expiry that is not in the future deletes the session. A session
        deleted concurrently is never recreated.
        """
        ...

    async def delete_session(self, session_id: str) -> None:
        """Delete a session. Deleting an absent session is not an error."""
        ...

    async def delete_user_sessions(self, user_id: str) -> int:
        """
        Delete every session of a user.

        Returns:
            Number of sessions submitted for deletion
        """
        ...

    async def delete_expired_sessions(self) -> int:
        """
        Delete every session whose expiry is before now.

        Returns:
            Number of sessions submitted for deletion
        """
        ...
