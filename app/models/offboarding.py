"""
オフボーディング記録モデル

退職・契約終了したメンバーの利用停止ワークフロー1回分を表す集約ルート。
実行時のオプションはスナップショットとして保存され、作成後は変更しない。
"""

import uuid
import datetime
from typing import Optional

from sqlalchemy import func, String, DateTime, UUID, ForeignKey, Enum as SQLAlchemyEnum, Index, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, JSONVariant
from app.models.enums import OffboardingStatus, UserRole

# 同一ユーザーに対して進行中のオフボーディングは1件まで
ACTIVE_OFFBOARDING_CONDITION = text("status IN ('pending', 'in_progress')")


class OffboardingRecord(Base):
    """オフボーディング記録"""
    __tablename__ = 'offboarding_records'

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey('organizations.id', ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # 対象ユーザー（作成時のスナップショット）
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    user_name: Mapped[str] = mapped_column(String(255), nullable=False)
    user_email: Mapped[str] = mapped_column(String(255), nullable=False)
    user_role: Mapped[UserRole] = mapped_column(SQLAlchemyEnum(UserRole), nullable=False)

    status: Mapped[OffboardingStatus] = mapped_column(
        SQLAlchemyEnum(OffboardingStatus),
        nullable=False,
        default=OffboardingStatus.pending,
        index=True
    )
    options: Mapped[dict] = mapped_column(
        JSONVariant,
        nullable=False,
        comment="OffboardingOptionsのスナップショット（作成後は不変）"
    )

    initiated_by: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    initiated_by_name: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    started_at: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # status == completed の場合のみ設定。復元後はクリアされる
    restorable_until: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    restored_at: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    restored_by: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)

    report: Mapped[Optional[dict]] = mapped_column(
        JSONVariant,
        nullable=True,
        comment="OffboardingReport（アクションログを含む）"
    )

    __table_args__ = (
        Index(
            'uq_offboarding_records_active_user',
            'organization_id',
            'user_id',
            unique=True,
            postgresql_where=ACTIVE_OFFBOARDING_CONDITION,
            sqlite_where=ACTIVE_OFFBOARDING_CONDITION,
        ),
    )
