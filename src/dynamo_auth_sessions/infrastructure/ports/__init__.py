"""Port interfaces (Protocols) for infrastructure adapters."""

from dynamo_auth_sessions.infrastructure.ports.session import SessionStorePort
from dynamo_auth_sessions.infrastructure.ports.users import UserRetrievalStrategy

__all__ = [
    "SessionStorePort",
    "UserRetrievalStrategy",
]
