from typing import Any, Optional, Protocol, runtime_checkable

from dynamo_auth_sessions.domain.entities import User


@runtime_checkable
class UserRetrievalStrategy(Protocol):
    """
    Strategy used by the session store to resolve a session's user.

    The default reads the user item from the session table. Supplying an
    external strategy lets user records live in another store entirely;
    the session store then never performs its own user lookup.
    """

    async def get_user(self, user_id: str, client: Any) -> Optional[User]:
        """Return the user, or None if it does not exist."""
        ...
