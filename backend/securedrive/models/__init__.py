"""
SQLAlchemy database models.
"""
from securedrive.models.state import StateEntry
from securedrive.models.user import User, UserRole

__all__ = [
    "StateEntry",
    "User",
    "UserRole",
]
