"""
ユーザーデータアーカイブのCRUD操作

コンプライアンス目的のアーカイブを作成する。
アーカイブは作成後に更新しない。
"""
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.user_data_archive import UserDataArchive
from app.schemas.user_data_archive import UserDataArchiveCreate


class CRUDUserDataArchive:
    """ユーザーデータアーカイブのCRUD操作"""

    async def create(
        self,
        db: AsyncSession,
        *,
        obj_in: UserDataArchiveCreate,
        created_at: Optional[datetime] = None
    ) -> UserDataArchive:
        """
        アーカイブを作成

        Args:
            db: データベースセッション
            obj_in: アーカイブ内容
            created_at: 作成日時（省略時は現在時刻）

        Returns:
            作成されたアーカイブレコード
        """
        created_at = created_at or datetime.now(timezone.utc)

        # 保存期限を計算（作成日時 + 7年）
        retain_until = UserDataArchive.calculate_retain_until(
            created_at,
            years=settings.USER_ARCHIVE_RETENTION_YEARS
        )

        archive = UserDataArchive(
            organization_id=obj_in.organization_id,
            user_id=obj_in.user_id,
            user_name=obj_in.user_name,
            user_email=obj_in.user_email,
            profile_snapshot=obj_in.profile_snapshot,
            activity_summary=obj_in.activity_summary.model_dump(),
            archived_collections=[c.model_dump() for c in obj_in.archived_collections],
            created_at=created_at,
            created_by=obj_in.created_by,
            retain_until=retain_until,
        )

        db.add(archive)
        await db.flush()
        await db.refresh(archive)

        return archive


# グローバルインスタンス
user_data_archive = CRUDUserDataArchive()
