import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User


class CRUDUser:
    async def get(self, db: AsyncSession, *, id: uuid.UUID) -> User | None:
        query = select(User).where(User.id == id)
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_in_organization(
        self,
        db: AsyncSession,
        *,
        organization_id: uuid.UUID,
        user_id: uuid.UUID
    ) -> User | None:
        """
        組織に所属するユーザーを取得します。
        他の組織のユーザーは見つからない扱いにします。
        """
        query = select(User).where(
            User.id == user_id,
            User.organization_id == organization_id
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def set_active_state(
        self,
        db: AsyncSession,
        *,
        organization_id: uuid.UUID,
        user_id: uuid.UUID,
        is_active: bool,
        changed_at: datetime
    ) -> bool:
        """
        ユーザーの有効/無効を切り替える

        アクセス停止と復元は必ずこのメソッドを経由して行う。

        Args:
            db: データベースセッション
            organization_id: 組織ID（テナント境界）
            user_id: 対象ユーザーID
            is_active: 有効にする場合True
            changed_at: 変更日時（無効化の場合はdeactivated_atに記録）

        Returns:
            対象ユーザーが存在し更新された場合True

        Note:
            - commitは呼び出し側で行う
        """
        stmt = (
            update(User)
            .where(
                User.id == user_id,
                User.organization_id == organization_id
            )
            .values(
                is_active=is_active,
                deactivated_at=None if is_active else changed_at,
                updated_at=changed_at
            )
            .execution_options(synchronize_session="fetch")
        )
        result = await db.execute(stmt)
        await db.flush()
        return result.rowcount > 0


user = CRUDUser()
