"""
オフボーディングサービス層

ビジネスロジック:
- 影響範囲プレビューの算出
- オフボーディング記録の作成と実行（ステータス遷移の管理）
- 復元期限内のユーザー復元
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    InvalidOffboardingStatusError,
    OffboardingAlreadyInProgressError,
    OffboardingAlreadyRestoredError,
    OffboardingNotFoundError,
    OffboardingNotRestorableError,
    RestoreWindowExpiredError,
)
from app.crud.crud_offboarding import offboarding as crud_offboarding
from app.crud.crud_user import user as crud_user
from app.crud.crud_work_item import work_item as crud_work_item
from app.messages import ja
from app.models.enums import OffboardingStatus, UserRole
from app.models.offboarding import OffboardingRecord
from app.schemas.offboarding import (
    ImpactPreview,
    OffboardingAction,
    OffboardingOptions,
    OffboardingReport,
)
from app.services import offboarding_actions
from app.services.offboarding_report import generate_offboarding_report
from app.utils.datetime_utils import ensure_utc

logger = logging.getLogger(__name__)


class OffboardingService:
    """オフボーディングのワークフローを管理するサービス"""

    # =====================================================
    # 影響範囲プレビュー
    # =====================================================

    async def get_offboarding_impact_preview(
        self,
        db: AsyncSession,
        *,
        organization_id: UUID,
        user_id: UUID
    ) -> ImpactPreview:
        """
        オフボーディングで影響を受ける作業データの件数を取得（読み取り専用）

        Args:
            db: データベースセッション
            organization_id: 組織ID
            user_id: 対象ユーザーID

        Returns:
            タスク・担当プロジェクト・作業時間・経費の件数
        """
        counts = await crud_work_item.count_user_impact(
            db,
            organization_id=organization_id,
            user_id=user_id
        )
        return ImpactPreview(**counts)

    # =====================================================
    # オフボーディング作成
    # =====================================================

    async def initiate_offboarding(
        self,
        db: AsyncSession,
        *,
        organization_id: UUID,
        user_id: UUID,
        user_name: str,
        user_email: str,
        user_role: UserRole,
        options: OffboardingOptions,
        initiated_by: UUID,
        initiated_by_name: str
    ) -> UUID:
        """
        オフボーディング記録を pending で作成

        オプションはこの時点のスナップショットとして保存し、以後は変更しない。

        Args:
            db: データベースセッション
            organization_id: 組織ID
            user_id: 対象ユーザーID
            user_name: 対象ユーザー名
            user_email: 対象ユーザーのメールアドレス
            user_role: 対象ユーザーのロール
            options: 実行オプション
            initiated_by: 実行者のユーザーID
            initiated_by_name: 実行者の名前

        Returns:
            作成されたオフボーディング記録のID

        Raises:
            OffboardingAlreadyInProgressError: 同じユーザーの進行中の記録がある場合
        """
        if await crud_offboarding.has_active_for_user(
            db,
            organization_id=organization_id,
            user_id=user_id
        ):
            logger.warning(
                f"Offboarding already in progress: user_id={user_id}, org={organization_id}"
            )
            raise OffboardingAlreadyInProgressError()

        try:
            record = await crud_offboarding.create(
                db,
                obj_in={
                    "organization_id": organization_id,
                    "user_id": user_id,
                    "user_name": user_name,
                    "user_email": user_email,
                    "user_role": user_role,
                    "status": OffboardingStatus.pending,
                    "options": options.model_dump(mode="json"),
                    "initiated_by": initiated_by,
                    "initiated_by_name": initiated_by_name,
                    "created_at": datetime.now(timezone.utc),
                }
            )
        except IntegrityError:
            # 同時実行で先に作成された場合は部分ユニークインデックスで弾かれる
            await db.rollback()
            if await crud_offboarding.has_active_for_user(
                db,
                organization_id=organization_id,
                user_id=user_id
            ):
                raise OffboardingAlreadyInProgressError()
            raise

        offboarding_id = record.id
        await db.commit()

        logger.info(
            f"Offboarding initiated: offboarding_id={offboarding_id}, "
            f"user_id={user_id}, org={organization_id}, initiated_by={initiated_by}"
        )

        return offboarding_id

    # =====================================================
    # オフボーディング実行
    # =====================================================

    async def execute_offboarding(
        self,
        db: AsyncSession,
        *,
        offboarding_id: UUID,
        organization_id: UUID
    ) -> OffboardingReport:
        """
        オフボーディングを実行

        実行順:
        1. アクセス停止（revoke_sessions_immediately が False でない場合）
        2. タスクの引き継ぎ → プロジェクトの移管（reassign_tasks_to がある場合）
        3. データのアーカイブ（archive_data が True の場合）

        個々のアクションの失敗はアクションログに記録して処理を続け、
        最後に1件でも失敗があれば failed、なければ completed とする。

        Args:
            db: データベースセッション
            offboarding_id: オフボーディング記録ID
            organization_id: 組織ID

        Returns:
            オフボーディングレポート

        Raises:
            OffboardingNotFoundError: 記録が存在しない場合
            InvalidOffboardingStatusError: 記録が pending でない場合
            Exception: アクション以外の予期しないエラー（記録は failed になる）
        """
        record = await crud_offboarding.get_in_organization(
            db,
            offboarding_id=offboarding_id,
            organization_id=organization_id
        )
        if not record:
            raise OffboardingNotFoundError()
        if record.status != OffboardingStatus.pending:
            logger.warning(
                f"Offboarding is not pending: offboarding_id={offboarding_id}, status={record.status.value}"
            )
            raise InvalidOffboardingStatusError()

        # 作成時のスナップショットのみを使用する
        options = OffboardingOptions.model_validate(record.options)
        user_id = record.user_id
        user_name = record.user_name
        user_email = record.user_email
        initiated_by = record.initiated_by

        claimed = await crud_offboarding.mark_in_progress(
            db,
            offboarding_id=offboarding_id,
            organization_id=organization_id,
            started_at=datetime.now(timezone.utc)
        )
        if not claimed:
            # 他のリクエストが先に実行を開始した
            logger.warning(f"Offboarding already claimed: offboarding_id={offboarding_id}")
            raise InvalidOffboardingStatusError()
        await db.commit()

        logger.info(f"Offboarding started: offboarding_id={offboarding_id}, user_id={user_id}")

        actions: List[OffboardingAction] = []

        try:
            # Step 1: アクセス停止
            if options.revoke_sessions_immediately is not False:
                actions.append(await offboarding_actions.revoke_access(
                    db,
                    organization_id=organization_id,
                    user_id=user_id
                ))
                await db.commit()

            # Step 2: タスクの引き継ぎとプロジェクトの移管（同じ引き継ぎ先）
            if options.reassign_tasks_to:
                actions.append(await offboarding_actions.reassign_tasks(
                    db,
                    organization_id=organization_id,
                    from_user_id=user_id,
                    to_user_id=options.reassign_tasks_to
                ))
                await db.commit()

                actions.append(await offboarding_actions.transfer_projects(
                    db,
                    organization_id=organization_id,
                    from_user_id=user_id,
                    to_user_id=options.reassign_tasks_to
                ))
                await db.commit()

            # Step 3: データのアーカイブ
            if options.archive_data:
                actions.append(await offboarding_actions.archive_user_data(
                    db,
                    organization_id=organization_id,
                    user_id=user_id,
                    created_by=initiated_by
                ))
                await db.commit()

            completed_at = datetime.now(timezone.utc)
            report = generate_offboarding_report(
                user_id=user_id,
                user_name=user_name,
                user_email=user_email,
                options=options,
                actions=actions,
                initiated_by=initiated_by,
                completed_at=completed_at
            )

            has_errors = any(not action.success for action in actions)
            status = OffboardingStatus.failed if has_errors else OffboardingStatus.completed
            restorable_until = None
            if not has_errors:
                restorable_until = completed_at + timedelta(days=settings.OFFBOARDING_RESTORE_WINDOW_DAYS)

            await crud_offboarding.mark_finished(
                db,
                db_obj=record,
                status=status,
                completed_at=completed_at,
                restorable_until=restorable_until,
                report=report.model_dump(mode="json")
            )
            await db.commit()
        except Exception as e:
            logger.error(f"Offboarding execution failed: offboarding_id={offboarding_id}, error={e}")
            await db.rollback()
            await self._mark_failed(
                db,
                offboarding_id=offboarding_id,
                organization_id=organization_id
            )
            raise

        logger.info(
            f"Offboarding finished: offboarding_id={offboarding_id}, status={status.value}, "
            f"tasks_reassigned={report.tasks_reassigned}, projects_transferred={report.projects_transferred}, "
            f"errors={len(report.errors or [])}"
        )

        return report

    async def _mark_failed(
        self,
        db: AsyncSession,
        *,
        offboarding_id: UUID,
        organization_id: UUID
    ) -> None:
        """予期しないエラーで中断した記録を failed にする"""
        record = await crud_offboarding.get_in_organization(
            db,
            offboarding_id=offboarding_id,
            organization_id=organization_id
        )
        if not record:
            return
        await crud_offboarding.mark_finished(
            db,
            db_obj=record,
            status=OffboardingStatus.failed,
            completed_at=datetime.now(timezone.utc)
        )
        await db.commit()

    # =====================================================
    # 復元
    # =====================================================

    async def restore_user(
        self,
        db: AsyncSession,
        *,
        offboarding_id: UUID,
        organization_id: UUID,
        user_id: UUID,
        restored_by: UUID,
        now: Optional[datetime] = None
    ) -> OffboardingRecord:
        """
        オフボーディングされたユーザーを復元（アクセスのみ）

        タスクの引き継ぎとプロジェクトの移管は元に戻さない。

        Args:
            db: データベースセッション
            offboarding_id: オフボーディング記録ID
            organization_id: 組織ID
            user_id: 復元するユーザーID
            restored_by: 復元を実行したユーザーID
            now: 判定に使う現在時刻（省略時は現在時刻）

        Returns:
            更新されたオフボーディング記録

        Raises:
            OffboardingNotFoundError: 記録が存在しない場合
            OffboardingNotRestorableError: 記録が completed でない場合
            RestoreWindowExpiredError: 復元期限を過ぎている場合
            OffboardingAlreadyRestoredError: 既に復元済みの場合
        """
        now = now or datetime.now(timezone.utc)

        record = await crud_offboarding.get_in_organization(
            db,
            offboarding_id=offboarding_id,
            organization_id=organization_id
        )
        if not record or record.user_id != user_id:
            raise OffboardingNotFoundError()

        if record.status != OffboardingStatus.completed:
            logger.warning(
                f"Restore rejected (status={record.status.value}): offboarding_id={offboarding_id}"
            )
            raise OffboardingNotRestorableError()

        restorable_until = ensure_utc(record.restorable_until)
        if restorable_until is not None and now > restorable_until:
            logger.warning(
                f"Restore rejected (window expired at {restorable_until}): offboarding_id={offboarding_id}"
            )
            raise RestoreWindowExpiredError()

        if record.restored_at is not None:
            raise OffboardingAlreadyRestoredError()

        reactivated = await crud_user.set_active_state(
            db,
            organization_id=organization_id,
            user_id=user_id,
            is_active=True,
            changed_at=now
        )
        if not reactivated:
            await db.rollback()
            raise OffboardingNotFoundError(ja.OFFBOARDING_USER_NOT_FOUND)

        await crud_offboarding.mark_restored(
            db,
            db_obj=record,
            restored_at=now,
            restored_by=restored_by
        )
        await db.commit()

        logger.info(
            f"User restored: offboarding_id={offboarding_id}, user_id={user_id}, restored_by={restored_by}"
        )

        return record

    # =====================================================
    # 取得系メソッド
    # =====================================================

    async def get_offboarding(
        self,
        db: AsyncSession,
        *,
        offboarding_id: UUID,
        organization_id: UUID
    ) -> OffboardingRecord:
        """
        オフボーディング記録を取得

        Raises:
            OffboardingNotFoundError: 記録が存在しない場合
        """
        record = await crud_offboarding.get_in_organization(
            db,
            offboarding_id=offboarding_id,
            organization_id=organization_id
        )
        if not record:
            raise OffboardingNotFoundError()
        return record

    async def get_offboarding_records(
        self,
        db: AsyncSession,
        *,
        organization_id: UUID
    ) -> List[OffboardingRecord]:
        """組織のオフボーディング記録一覧（pending / in_progress / completed）"""
        return await crud_offboarding.get_by_statuses(
            db,
            organization_id=organization_id,
            statuses=[
                OffboardingStatus.completed,
                OffboardingStatus.in_progress,
                OffboardingStatus.pending,
            ]
        )

    async def get_restorable_users(
        self,
        db: AsyncSession,
        *,
        organization_id: UUID,
        now: Optional[datetime] = None
    ) -> List[OffboardingRecord]:
        """
        復元期限内の完了済みオフボーディング記録を取得

        復元済み・期限切れの記録は除外する。
        """
        now = now or datetime.now(timezone.utc)
        records = await crud_offboarding.get_by_statuses(
            db,
            organization_id=organization_id,
            statuses=[OffboardingStatus.completed]
        )
        return [
            r for r in records
            if r.restored_at is None
            and r.restorable_until is not None
            and ensure_utc(r.restorable_until) > now
        ]


# サービスインスタンスをエクスポート
offboarding_service = OffboardingService()
