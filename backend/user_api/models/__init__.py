"""Record types held by the storage backends."""
from .user import Role, UserRecord

__all__ = ["Role", "UserRecord"]
