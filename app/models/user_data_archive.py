"""
コンプライアンス目的のユーザーデータアーカイブモデル

オフボーディング時に作成され、以後は更新しない。
保存期限（作成日時 + 7年）を過ぎたものは別の保存期間管理の仕組みで削除される。
"""

import uuid
from datetime import datetime
from dateutil.relativedelta import relativedelta
from sqlalchemy import String, DateTime, UUID, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base, JSONVariant


class UserDataArchive(Base):
    """
    オフボーディングされたユーザーのデータアーカイブ

    プロフィールのスナップショットと、ユーザーに紐づく
    各コレクションの件数を記録する。
    """
    __tablename__ = 'user_data_archives'

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey('organizations.id', ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        nullable=False,
        index=True,
        comment="元のユーザーID（参照整合性なし）"
    )
    user_name: Mapped[str] = mapped_column(String(255), nullable=False)
    user_email: Mapped[str] = mapped_column(String(255), nullable=False)
    profile_snapshot: Mapped[dict] = mapped_column(
        JSONVariant,
        nullable=False,
        comment="アーカイブ時点のプロフィール（一部項目）"
    )
    activity_summary: Mapped[dict] = mapped_column(
        JSONVariant,
        nullable=False,
        comment="タスク・プロジェクト・作業時間・経費・写真の件数"
    )
    archived_collections: Mapped[list] = mapped_column(
        JSONVariant,
        nullable=False,
        comment="コレクションごとのドキュメント件数"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now()
    )
    created_by: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    retain_until: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
        comment="保存期限（作成日時 + 7年）"
    )

    __table_args__ = (
        Index('idx_user_data_archives_org_user', 'organization_id', 'user_id'),
    )

    @classmethod
    def calculate_retain_until(cls, created_at: datetime, years: int = 7) -> datetime:
        """
        保存期限を計算（作成日時 + 7年）

        Args:
            created_at: アーカイブ作成日時
            years: 保存年数（デフォルト7年）

        Returns:
            保存期限日時
        """
        return created_at + relativedelta(years=years)
