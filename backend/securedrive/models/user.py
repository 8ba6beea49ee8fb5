"""
User database model.
"""
import enum
from datetime import datetime

from sqlalchemy import Column, Date, DateTime, Enum, String

from securedrive.core.database import Base


class UserRole(str, enum.Enum):
    """User role enumeration."""
    INSURER = "insurer"
    CLIENT = "client"


class User(Base):
    """
    Platform account. The user name doubles as the owner identity that key
    material, vehicles and contracts refer to.
    """

    __tablename__ = "users"

    name = Column(String(100), primary_key=True)
    hashed_password = Column(String(255), nullable=False)
    role = Column(Enum(UserRole), default=UserRole.CLIENT, nullable=False)

    # Client profile
    date_of_birth = Column(Date, nullable=True)
    address = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<User(name='{self.name}', role={self.role})>"
