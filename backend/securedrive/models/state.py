"""
World-state database model.
"""
from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, LargeBinary, String

from securedrive.core.database import Base


class StateEntry(Base):
    """
    One key/value document of the world state.
    The value is the record's JSON encoding; version increments on every write.
    """

    __tablename__ = "state_entries"

    key = Column(String(255), primary_key=True)
    value = Column(LargeBinary, nullable=False)
    version = Column(Integer, default=1, nullable=False)

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<StateEntry(key='{self.key}', version={self.version})>"
