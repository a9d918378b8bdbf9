import uuid
import datetime
from typing import List, TYPE_CHECKING

from sqlalchemy import func, String, DateTime, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base

if TYPE_CHECKING:
    from .user import User

class Organization(Base):
    """組織（テナント境界）"""
    __tablename__ = 'organizations'
    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Organization -> User (one-to-many)
    users: Mapped[List["User"]] = relationship(back_populates="organization")
