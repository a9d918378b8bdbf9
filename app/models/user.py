import uuid
import datetime
from typing import Optional, TYPE_CHECKING

from sqlalchemy import func, String, DateTime, UUID, ForeignKey, Enum as SQLAlchemyEnum, Boolean
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.enums import UserRole

if TYPE_CHECKING:
    from .organization import Organization

class User(Base):
    """ユーザープロフィール（組織に1つだけ所属する）"""
    __tablename__ = 'users'
    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(ForeignKey('organizations.id', ondelete="CASCADE"), index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(SQLAlchemyEnum(UserRole), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    trade: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)  # 下請業者の職種（電気、配管など）

    # アクセス状態（オフボーディングで無効化、復元で再有効化）
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    deactivated_at: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # User -> Organization (many-to-one)
    organization: Mapped["Organization"] = relationship(back_populates="users")
