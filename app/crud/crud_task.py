import uuid
from datetime import datetime
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.task import Task, TaskAssignee


class CRUDTask:
    async def get_assigned_to_user(
        self,
        db: AsyncSession,
        *,
        organization_id: uuid.UUID,
        user_id: uuid.UUID
    ) -> List[Task]:
        """
        担当者にユーザーが含まれる組織内のタスクを取得します。
        担当者リスト（assignees）も合わせて読み込みます。
        """
        query = (
            select(Task)
            .join(TaskAssignee, TaskAssignee.task_id == Task.id)
            .where(
                Task.organization_id == organization_id,
                TaskAssignee.user_id == user_id
            )
            .order_by(Task.created_at)
        )
        result = await db.execute(query)
        return list(result.scalars().unique().all())

    async def replace_assignee(
        self,
        db: AsyncSession,
        *,
        tasks: List[Task],
        from_user_id: uuid.UUID,
        to_user_id: uuid.UUID,
        updated_at: datetime
    ) -> int:
        """
        タスクの担当者を入れ替える

        担当者リスト内の from_user_id を同じ位置で to_user_id に置き換え、
        他の担当者はそのまま残す。to_user_id が既に担当者に含まれている場合は
        重複させずに from_user_id の割り当てだけを外す。

        Args:
            db: データベースセッション
            tasks: 対象タスク（assigneesを読み込み済み）
            from_user_id: 元の担当者
            to_user_id: 新しい担当者
            updated_at: 更新日時

        Returns:
            更新したタスク数

        Note:
            - commitは呼び出し側で行う
        """
        for task_obj in tasks:
            current_ids = set(task_obj.assigned_to)
            for assignee in list(task_obj.assignees):
                if assignee.user_id != from_user_id:
                    continue
                if to_user_id != from_user_id and to_user_id in current_ids:
                    task_obj.assignees.remove(assignee)
                else:
                    assignee.user_id = to_user_id
            task_obj.updated_at = updated_at
            db.add(task_obj)

        await db.flush()
        return len(tasks)


task = CRUDTask()
