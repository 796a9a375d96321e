"""Route modules for the user API."""
from . import health, users

__all__ = ["health", "users"]
