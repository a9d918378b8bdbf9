import uuid
import datetime
from typing import List, Optional

from sqlalchemy import func, String, DateTime, UUID, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base

class Task(Base):
    """タスク"""
    __tablename__ = 'tasks'
    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(ForeignKey('organizations.id', ondelete="CASCADE"), index=True)
    project_id: Mapped[Optional[uuid.UUID]] = mapped_column(ForeignKey('projects.id', ondelete="CASCADE"), nullable=True, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Task -> TaskAssignee (one-to-many, 担当者の並び順を保持)
    assignees: Mapped[List["TaskAssignee"]] = relationship(
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="TaskAssignee.position",
        lazy="selectin"
    )

    @property
    def assigned_to(self) -> List[uuid.UUID]:
        """担当者IDのリスト（並び順どおり）"""
        return [assignee.user_id for assignee in self.assignees]

class TaskAssignee(Base):
    """タスクと担当ユーザーの中間テーブル"""
    __tablename__ = 'task_assignees'
    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    task_id: Mapped[uuid.UUID] = mapped_column(ForeignKey('tasks.id', ondelete="CASCADE"), index=True)
    user_id: Mapped[uuid.UUID] = mapped_column(ForeignKey('users.id', ondelete="CASCADE"), index=True)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # TaskAssignee -> Task (many-to-one)
    task: Mapped["Task"] = relationship(back_populates="assignees")

    __table_args__ = (
        UniqueConstraint('task_id', 'user_id', name='uq_task_assignees_task_user'),
    )
