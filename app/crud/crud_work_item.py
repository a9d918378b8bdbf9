"""
ユーザーに紐づく作業データ（タスク・プロジェクト・作業時間・経費・写真）の集計
"""
import uuid
from typing import Dict

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.project import Project
from app.models.task import Task, TaskAssignee
from app.models.work_log import TimeEntry, Expense, Photo


class CRUDWorkItem:
    """組織内でユーザーを参照している作業データの件数を集計する（読み取り専用）"""

    async def count_user_impact(
        self,
        db: AsyncSession,
        *,
        organization_id: uuid.UUID,
        user_id: uuid.UUID,
        include_photos: bool = False
    ) -> Dict[str, int]:
        """
        ユーザーを参照している作業データの件数を取得

        各コレクションの件数は互いに独立しているため、スカラーサブクエリとして
        1つのSELECTにまとめ、DB側でまとめて評価させる（往復1回）。

        Args:
            db: データベースセッション
            organization_id: 組織ID
            user_id: 対象ユーザーID
            include_photos: 写真の件数も含めるか（アーカイブ用）

        Returns:
            {"task_count", "project_count", "time_entry_count", "expense_count"[, "photo_count"]}
        """
        task_count = (
            select(func.count(func.distinct(TaskAssignee.task_id)))
            .join(Task, Task.id == TaskAssignee.task_id)
            .where(
                Task.organization_id == organization_id,
                TaskAssignee.user_id == user_id
            )
            .scalar_subquery()
        )
        project_count = (
            select(func.count(Project.id))
            .where(
                Project.organization_id == organization_id,
                Project.project_manager_id == user_id
            )
            .scalar_subquery()
        )
        time_entry_count = (
            select(func.count(TimeEntry.id))
            .where(
                TimeEntry.organization_id == organization_id,
                TimeEntry.user_id == user_id
            )
            .scalar_subquery()
        )
        expense_count = (
            select(func.count(Expense.id))
            .where(
                Expense.organization_id == organization_id,
                Expense.submitted_by == user_id
            )
            .scalar_subquery()
        )

        columns = [
            task_count.label("task_count"),
            project_count.label("project_count"),
            time_entry_count.label("time_entry_count"),
            expense_count.label("expense_count"),
        ]
        if include_photos:
            photo_count = (
                select(func.count(Photo.id))
                .where(
                    Photo.organization_id == organization_id,
                    Photo.uploaded_by == user_id
                )
                .scalar_subquery()
            )
            columns.append(photo_count.label("photo_count"))

        result = await db.execute(select(*columns))
        row = result.one()
        return {key: int(value or 0) for key, value in row._mapping.items()}


work_item = CRUDWorkItem()
