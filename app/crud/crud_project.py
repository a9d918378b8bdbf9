import uuid
from datetime import datetime
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.project import Project


class CRUDProject:
    async def get_managed_by_user(
        self,
        db: AsyncSession,
        *,
        organization_id: uuid.UUID,
        user_id: uuid.UUID
    ) -> List[Project]:
        """ユーザーがプロジェクトマネージャーを務める組織内のプロジェクトを取得します。"""
        query = (
            select(Project)
            .where(
                Project.organization_id == organization_id,
                Project.project_manager_id == user_id
            )
            .order_by(Project.created_at)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    async def transfer_manager(
        self,
        db: AsyncSession,
        *,
        projects: List[Project],
        to_user_id: uuid.UUID,
        updated_at: datetime
    ) -> int:
        """
        プロジェクトマネージャーを付け替える

        Returns:
            更新したプロジェクト数

        Note:
            - commitは呼び出し側で行う
        """
        for project_obj in projects:
            project_obj.project_manager_id = to_user_id
            project_obj.updated_at = updated_at
            db.add(project_obj)

        await db.flush()
        return len(projects)


project = CRUDProject()
