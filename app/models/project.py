import uuid
import datetime
from typing import Optional

from sqlalchemy import func, String, DateTime, UUID, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base

class Project(Base):
    """工事プロジェクト"""
    __tablename__ = 'projects'
    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(ForeignKey('organizations.id', ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    project_manager_id: Mapped[Optional[uuid.UUID]] = mapped_column(ForeignKey('users.id', ondelete="SET NULL"), nullable=True, index=True)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
