"""
オフボーディングの各アクション

- アクセス停止（revoke_access）
- タスクの引き継ぎ（reassign_task）
- プロジェクトの移管（transfer_project）
- ユーザーデータのアーカイブ（archive_data）

各アクションは例外を送出せず、結果を OffboardingAction として返す。
1つのアクションが失敗しても後続のアクションを実行できるよう、
書き込みはアクションごとにセーブポイント内でまとめて適用する。
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.crud_project import project as crud_project
from app.crud.crud_task import task as crud_task
from app.crud.crud_user import user as crud_user
from app.crud.crud_user_data_archive import user_data_archive as crud_user_data_archive
from app.crud.crud_work_item import work_item as crud_work_item
from app.models.enums import OffboardingActionType
from app.schemas.offboarding import OffboardingAction
from app.schemas.user_data_archive import (
    ActivitySummary,
    ArchivedCollection,
    UserDataArchiveCreate,
)

logger = logging.getLogger(__name__)


def _error_message(e: Exception, fallback: str) -> str:
    """
    アクションログに残すエラーメッセージ

    SQLAlchemy の例外は SQL 文とパラメータ（個人情報を含む）を文字列に含むため、
    ドライバのメッセージの1行目だけを使う。
    """
    if isinstance(e, DBAPIError) and e.orig is not None:
        message = str(e.orig)
    elif isinstance(e, SQLAlchemyError):
        return fallback
    else:
        message = str(e)
    lines = message.strip().splitlines()
    return lines[0] if lines else fallback


def _failed(
    action_type: OffboardingActionType,
    description: str,
    timestamp: datetime,
    error: str,
    metadata: Optional[Dict[str, Any]] = None
) -> OffboardingAction:
    return OffboardingAction(
        action=action_type,
        description=description,
        timestamp=timestamp,
        success=False,
        error=error,
        metadata=metadata,
    )


async def revoke_access(
    db: AsyncSession,
    *,
    organization_id: UUID,
    user_id: UUID
) -> OffboardingAction:
    """
    ユーザーを無効化してアクセスを停止する

    発行済みのセッション（トークン）は失効させない。
    無効化されたユーザーはリクエストごとの is_active チェックで拒否される。
    """
    timestamp = datetime.now(timezone.utc)
    description = "Deactivating user account and revoking access"

    try:
        async with db.begin_nested():
            updated = await crud_user.set_active_state(
                db,
                organization_id=organization_id,
                user_id=user_id,
                is_active=False,
                changed_at=timestamp
            )
    except Exception as e:
        logger.error(f"Error revoking access: user_id={user_id}, org={organization_id}, error={e}", exc_info=True)
        return _failed(OffboardingActionType.revoke_access, description, timestamp, _error_message(e, "Unknown error revoking access"))

    if not updated:
        logger.error(f"Error revoking access: user not found, user_id={user_id}, org={organization_id}")
        return _failed(OffboardingActionType.revoke_access, description, timestamp, "User not found")

    logger.info(
        f"User deactivated: user_id={user_id}, org={organization_id} "
        f"(issued session tokens remain valid until they expire)"
    )

    return OffboardingAction(
        action=OffboardingActionType.revoke_access,
        description="User account deactivated successfully",
        timestamp=timestamp,
        success=True,
    )


async def reassign_tasks(
    db: AsyncSession,
    *,
    organization_id: UUID,
    from_user_id: UUID,
    to_user_id: UUID
) -> OffboardingAction:
    """担当タスクを別のユーザーに引き継ぐ（一括適用）"""
    timestamp = datetime.now(timezone.utc)
    metadata: Dict[str, Any] = {
        "from_user_id": str(from_user_id),
        "to_user_id": str(to_user_id),
        "count": 0
    }

    try:
        tasks = await crud_task.get_assigned_to_user(
            db,
            organization_id=organization_id,
            user_id=from_user_id
        )

        if not tasks:
            return OffboardingAction(
                action=OffboardingActionType.reassign_task,
                description="No tasks to reassign",
                timestamp=timestamp,
                success=True,
                metadata=metadata,
            )

        async with db.begin_nested():
            count = await crud_task.replace_assignee(
                db,
                tasks=tasks,
                from_user_id=from_user_id,
                to_user_id=to_user_id,
                updated_at=timestamp
            )
    except Exception as e:
        logger.error(f"Error reassigning tasks: from={from_user_id}, to={to_user_id}, error={e}", exc_info=True)
        return _failed(
            OffboardingActionType.reassign_task,
            "Reassigning tasks to new owner",
            timestamp,
            _error_message(e, "Unknown error reassigning tasks"),
            metadata
        )

    logger.info(f"Tasks reassigned: count={count}, from={from_user_id}, to={to_user_id}")

    return OffboardingAction(
        action=OffboardingActionType.reassign_task,
        description=f"Reassigned {count} task(s) to new owner",
        timestamp=timestamp,
        success=True,
        metadata={**metadata, "count": count},
    )


async def transfer_projects(
    db: AsyncSession,
    *,
    organization_id: UUID,
    from_user_id: UUID,
    to_user_id: UUID
) -> OffboardingAction:
    """プロジェクトマネージャーを別のユーザーに移管する（一括適用）"""
    timestamp = datetime.now(timezone.utc)
    metadata: Dict[str, Any] = {
        "from_user_id": str(from_user_id),
        "to_user_id": str(to_user_id),
        "count": 0
    }

    try:
        projects = await crud_project.get_managed_by_user(
            db,
            organization_id=organization_id,
            user_id=from_user_id
        )

        if not projects:
            return OffboardingAction(
                action=OffboardingActionType.transfer_project,
                description="No projects to transfer",
                timestamp=timestamp,
                success=True,
                metadata=metadata,
            )

        async with db.begin_nested():
            count = await crud_project.transfer_manager(
                db,
                projects=projects,
                to_user_id=to_user_id,
                updated_at=timestamp
            )
    except Exception as e:
        logger.error(f"Error transferring projects: from={from_user_id}, to={to_user_id}, error={e}", exc_info=True)
        return _failed(
            OffboardingActionType.transfer_project,
            "Transferring project ownership",
            timestamp,
            _error_message(e, "Unknown error transferring projects"),
            metadata
        )

    logger.info(f"Projects transferred: count={count}, from={from_user_id}, to={to_user_id}")

    return OffboardingAction(
        action=OffboardingActionType.transfer_project,
        description=f"Transferred {count} project(s) to new owner",
        timestamp=timestamp,
        success=True,
        metadata={**metadata, "count": count},
    )


async def archive_user_data(
    db: AsyncSession,
    *,
    organization_id: UUID,
    user_id: UUID,
    created_by: UUID
) -> OffboardingAction:
    """
    コンプライアンス目的でユーザーデータをアーカイブする

    件数は影響プレビューを流用せずに取り直す（引き継ぎ後の件数になる）。
    """
    timestamp = datetime.now(timezone.utc)
    description = "Archiving user data for compliance"

    try:
        profile = await crud_user.get_in_organization(
            db,
            organization_id=organization_id,
            user_id=user_id
        )
        if not profile:
            logger.error(f"Error archiving user data: user not found, user_id={user_id}, org={organization_id}")
            return _failed(OffboardingActionType.archive_data, description, timestamp, "User not found")

        counts = await crud_work_item.count_user_impact(
            db,
            organization_id=organization_id,
            user_id=user_id,
            include_photos=True
        )

        summary = ActivitySummary(
            total_tasks=counts["task_count"],
            total_projects=counts["project_count"],
            total_time_entries=counts["time_entry_count"],
            total_expenses=counts["expense_count"],
            total_photos=counts["photo_count"],
        )
        obj_in = UserDataArchiveCreate(
            organization_id=organization_id,
            user_id=user_id,
            user_name=profile.display_name or "Unknown",
            user_email=profile.email or "",
            profile_snapshot={
                "id": str(profile.id),
                "email": profile.email,
                "display_name": profile.display_name,
                "role": profile.role.value,
                "phone": profile.phone,
                "trade": profile.trade,
                "created_at": profile.created_at.isoformat() if profile.created_at else None,
            },
            activity_summary=summary,
            archived_collections=[
                ArchivedCollection(collection="tasks", document_count=summary.total_tasks),
                ArchivedCollection(collection="projects", document_count=summary.total_projects),
                ArchivedCollection(collection="time_entries", document_count=summary.total_time_entries),
                ArchivedCollection(collection="expenses", document_count=summary.total_expenses),
                ArchivedCollection(collection="photos", document_count=summary.total_photos),
            ],
            created_by=created_by,
        )

        async with db.begin_nested():
            archive = await crud_user_data_archive.create(db, obj_in=obj_in, created_at=timestamp)
    except Exception as e:
        logger.error(f"Error archiving user data: user_id={user_id}, org={organization_id}, error={e}", exc_info=True)
        return _failed(OffboardingActionType.archive_data, description, timestamp, _error_message(e, "Unknown error archiving data"))

    logger.info(
        f"User data archived: user_id={user_id}, archive_id={archive.id}, "
        f"retain_until={archive.retain_until}"
    )

    return OffboardingAction(
        action=OffboardingActionType.archive_data,
        description="User data archived successfully",
        timestamp=timestamp,
        success=True,
        metadata={**summary.model_dump(), "archive_id": str(archive.id)},
    )
