"""
オフボーディング記録のCRUD操作
"""
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.base import CRUDBase
from app.models.enums import OffboardingStatus
from app.models.offboarding import OffboardingRecord

ACTIVE_STATUSES = (OffboardingStatus.pending, OffboardingStatus.in_progress)


class CRUDOffboarding(CRUDBase[OffboardingRecord, Dict[str, Any], Dict[str, Any]]):

    async def get_in_organization(
        self,
        db: AsyncSession,
        *,
        offboarding_id: uuid.UUID,
        organization_id: uuid.UUID
    ) -> Optional[OffboardingRecord]:
        """組織内のオフボーディング記録を取得（他組織の記録は返さない）"""
        result = await db.execute(
            select(self.model).where(
                self.model.id == offboarding_id,
                self.model.organization_id == organization_id
            )
        )
        return result.scalar_one_or_none()

    async def has_active_for_user(
        self,
        db: AsyncSession,
        *,
        organization_id: uuid.UUID,
        user_id: uuid.UUID
    ) -> bool:
        """ユーザーに対して pending / in_progress の記録が存在するか"""
        result = await db.execute(
            select(func.count(self.model.id)).where(
                self.model.organization_id == organization_id,
                self.model.user_id == user_id,
                self.model.status.in_(ACTIVE_STATUSES)
            )
        )
        count = result.scalar()
        return bool(count)

    async def get_by_statuses(
        self,
        db: AsyncSession,
        *,
        organization_id: uuid.UUID,
        statuses: Sequence[OffboardingStatus]
    ) -> List[OffboardingRecord]:
        """指定ステータスの記録を新しい順に取得"""
        result = await db.execute(
            select(self.model)
            .where(
                self.model.organization_id == organization_id,
                self.model.status.in_(list(statuses))
            )
            .order_by(self.model.created_at.desc())
        )
        return list(result.scalars().all())

    async def mark_in_progress(
        self,
        db: AsyncSession,
        *,
        offboarding_id: uuid.UUID,
        organization_id: uuid.UUID,
        started_at: datetime
    ) -> bool:
        """
        pending の記録を in_progress にする

        status = pending を条件にした UPDATE で遷移させるため、
        同じ記録を同時に実行した場合は1件だけが成功する。

        Returns:
            遷移できた場合True
        """
        result = await db.execute(
            update(self.model)
            .where(
                self.model.id == offboarding_id,
                self.model.organization_id == organization_id,
                self.model.status == OffboardingStatus.pending
            )
            .values(status=OffboardingStatus.in_progress, started_at=started_at)
        )
        return result.rowcount == 1

    async def mark_finished(
        self,
        db: AsyncSession,
        *,
        db_obj: OffboardingRecord,
        status: OffboardingStatus,
        completed_at: datetime,
        restorable_until: Optional[datetime] = None,
        report: Optional[Dict[str, Any]] = None
    ) -> OffboardingRecord:
        """
        実行結果を記録する

        restorable_until は completed の場合のみ保存する。
        """
        return await self.update(
            db,
            db_obj=db_obj,
            obj_in={
                "status": status,
                "completed_at": completed_at,
                "restorable_until": restorable_until if status == OffboardingStatus.completed else None,
                "report": report
            }
        )

    async def mark_restored(
        self,
        db: AsyncSession,
        *,
        db_obj: OffboardingRecord,
        restored_at: datetime,
        restored_by: uuid.UUID
    ) -> OffboardingRecord:
        return await self.update(
            db,
            db_obj=db_obj,
            obj_in={
                "restored_at": restored_at,
                "restored_by": restored_by,
                "restorable_until": None
            }
        )


offboarding = CRUDOffboarding(OffboardingRecord)
