"""
オフボーディングAPIエンドポイント

オーナーが組織のユーザーをオフボーディング（アクセス停止・引き継ぎ・アーカイブ）し、
復元期限内であれば復元するためのAPI

サービス層との連携:
- offboarding_service: 影響範囲プレビュー、作成・実行、復元
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app import crud
from app.api import deps
from app.core.exceptions import (
    BadRequestException,
    ConflictException,
    GoneException,
    InternalServerException,
    InvalidOffboardingStatusError,
    NotFoundException,
    OffboardingAlreadyInProgressError,
    OffboardingAlreadyRestoredError,
    OffboardingNotFoundError,
    OffboardingNotRestorableError,
    RestoreWindowExpiredError,
)
from app.messages import ja
from app.models.enums import OffboardingStatus, UserRole
from app.models.user import User
from app.schemas.offboarding import (
    ImpactPreview,
    OffboardingCreate,
    OffboardingExecuteResponse,
    OffboardingListResponse,
    OffboardingRead,
)
from app.services.offboarding_service import offboarding_service

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_target_user(
    db: AsyncSession,
    *,
    current_user: User,
    user_id: UUID
) -> User:
    """オフボーディング対象のユーザーを検証して取得"""
    target = await crud.user.get_in_organization(
        db,
        organization_id=current_user.organization_id,
        user_id=user_id
    )
    if not target:
        raise NotFoundException(ja.OFFBOARDING_USER_NOT_FOUND)
    if target.id == current_user.id:
        raise BadRequestException(ja.OFFBOARDING_CANNOT_OFFBOARD_SELF)
    if target.role == UserRole.owner:
        raise BadRequestException(ja.OFFBOARDING_CANNOT_OFFBOARD_OWNER)
    return target


@router.get("/users/{user_id}/impact-preview", response_model=ImpactPreview)
async def get_impact_preview(
    user_id: UUID,
    db: AsyncSession = Depends(deps.get_db),
    current_user: User = Depends(deps.require_owner)
) -> ImpactPreview:
    """
    オフボーディングの影響範囲を取得

    - ownerのみ
    - 404: 組織内にユーザーが存在しない
    """
    target = await _get_target_user(db, current_user=current_user, user_id=user_id)
    return await offboarding_service.get_offboarding_impact_preview(
        db,
        organization_id=current_user.organization_id,
        user_id=target.id
    )


@router.post("", response_model=OffboardingExecuteResponse, status_code=status.HTTP_201_CREATED)
async def create_offboarding(
    *,
    db: AsyncSession = Depends(deps.get_db),
    obj_in: OffboardingCreate,
    current_user: User = Depends(deps.require_owner)
) -> OffboardingExecuteResponse:
    """
    オフボーディングを作成して実行

    - ownerのみ
    - 400: 自分自身・オーナー・無効化済みユーザー、または不正な引き継ぎ先
    - 404: 組織内にユーザーが存在しない
    - 409: 同じユーザーのオフボーディングが進行中
    """
    target = await _get_target_user(db, current_user=current_user, user_id=obj_in.user_id)
    if not target.is_active:
        raise BadRequestException(ja.OFFBOARDING_USER_ALREADY_INACTIVE)

    reassign_to = obj_in.options.reassign_tasks_to
    if reassign_to:
        if reassign_to == target.id:
            raise BadRequestException(ja.OFFBOARDING_REASSIGN_TARGET_SAME_USER)
        new_owner = await crud.user.get_in_organization(
            db,
            organization_id=current_user.organization_id,
            user_id=reassign_to
        )
        if not new_owner or not new_owner.is_active:
            raise BadRequestException(ja.OFFBOARDING_REASSIGN_TARGET_INVALID)

    # commitの前に値をキャッシュ
    organization_id = current_user.organization_id
    initiated_by = current_user.id
    initiated_by_name = current_user.display_name or current_user.email

    try:
        offboarding_id = await offboarding_service.initiate_offboarding(
            db,
            organization_id=organization_id,
            user_id=target.id,
            user_name=target.display_name or "Unknown",
            user_email=target.email,
            user_role=target.role,
            options=obj_in.options,
            initiated_by=initiated_by,
            initiated_by_name=initiated_by_name
        )
    except OffboardingAlreadyInProgressError as e:
        raise ConflictException(str(e))

    try:
        report = await offboarding_service.execute_offboarding(
            db,
            offboarding_id=offboarding_id,
            organization_id=organization_id
        )
    except (OffboardingNotFoundError, InvalidOffboardingStatusError) as e:
        raise BadRequestException(str(e))
    except Exception as e:
        logger.error(f"Offboarding execution aborted: offboarding_id={offboarding_id}, error={e}", exc_info=True)
        raise InternalServerException(ja.OFFBOARDING_EXECUTION_FAILED)

    has_errors = any(not action.success for action in report.action_log)
    final_status = OffboardingStatus.failed if has_errors else OffboardingStatus.completed
    return OffboardingExecuteResponse(
        offboarding_id=offboarding_id,
        status=final_status,
        report=report
    )


@router.get("", response_model=OffboardingListResponse)
async def list_offboardings(
    db: AsyncSession = Depends(deps.get_db),
    current_user: User = Depends(deps.require_owner)
) -> OffboardingListResponse:
    """組織のオフボーディング記録一覧（pending / in_progress / completed）"""
    records = await offboarding_service.get_offboarding_records(
        db,
        organization_id=current_user.organization_id
    )
    items: List[OffboardingRead] = [OffboardingRead.model_validate(r) for r in records]
    return OffboardingListResponse(items=items, total=len(items))


@router.get("/restorable", response_model=OffboardingListResponse)
async def list_restorable_offboardings(
    db: AsyncSession = Depends(deps.get_db),
    current_user: User = Depends(deps.require_owner)
) -> OffboardingListResponse:
    """復元期限内のオフボーディング記録一覧"""
    records = await offboarding_service.get_restorable_users(
        db,
        organization_id=current_user.organization_id
    )
    items: List[OffboardingRead] = [OffboardingRead.model_validate(r) for r in records]
    return OffboardingListResponse(items=items, total=len(items))


@router.get("/{offboarding_id}", response_model=OffboardingRead)
async def get_offboarding(
    offboarding_id: UUID,
    db: AsyncSession = Depends(deps.get_db),
    current_user: User = Depends(deps.require_owner)
) -> OffboardingRead:
    """
    オフボーディング記録を取得

    - 404: 記録が存在しない（他組織の記録を含む）
    """
    try:
        record = await offboarding_service.get_offboarding(
            db,
            offboarding_id=offboarding_id,
            organization_id=current_user.organization_id
        )
    except OffboardingNotFoundError as e:
        raise NotFoundException(str(e))
    return OffboardingRead.model_validate(record)


@router.post("/{offboarding_id}/restore", response_model=OffboardingRead)
async def restore_offboarded_user(
    offboarding_id: UUID,
    db: AsyncSession = Depends(deps.get_db),
    current_user: User = Depends(deps.require_owner)
) -> OffboardingRead:
    """
    オフボーディングされたユーザーを復元

    アクセスのみ復元し、引き継いだタスク・プロジェクトは元に戻さない。

    - 400: 完了していない、または復元済み
    - 404: 記録が存在しない
    - 410: 復元期限切れ
    """
    organization_id = current_user.organization_id
    restored_by = current_user.id

    try:
        record = await offboarding_service.get_offboarding(
            db,
            offboarding_id=offboarding_id,
            organization_id=organization_id
        )
        record = await offboarding_service.restore_user(
            db,
            offboarding_id=offboarding_id,
            organization_id=organization_id,
            user_id=record.user_id,
            restored_by=restored_by
        )
    except OffboardingNotFoundError as e:
        raise NotFoundException(str(e))
    except RestoreWindowExpiredError as e:
        raise GoneException(str(e))
    except (OffboardingNotRestorableError, OffboardingAlreadyRestoredError) as e:
        raise BadRequestException(str(e))

    return OffboardingRead.model_validate(record)
