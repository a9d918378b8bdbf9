"""
オフボーディング結果レポートの生成

アクションログとオプションだけからレポートを導出する純粋関数。
保存済みのアクションログからいつでも同じレポートを再生成できる。
"""

from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from app.models.enums import OffboardingActionType
from app.schemas.offboarding import OffboardingAction, OffboardingOptions, OffboardingReport


def _sum_counts(actions: List[OffboardingAction], action_type: OffboardingActionType) -> int:
    """成功したアクションの metadata.count を合計する"""
    total = 0
    for action in actions:
        if action.action == action_type and action.success:
            total += int((action.metadata or {}).get("count") or 0)
    return total


def _any_success(actions: List[OffboardingAction], action_type: OffboardingActionType) -> bool:
    return any(a.action == action_type and a.success for a in actions)


def generate_offboarding_report(
    *,
    user_id: UUID,
    user_name: str,
    user_email: str,
    options: OffboardingOptions,
    actions: List[OffboardingAction],
    initiated_by: UUID,
    completed_at: Optional[datetime] = None
) -> OffboardingReport:
    """
    アクションログからオフボーディングレポートを生成

    Args:
        user_id: 対象ユーザーID
        user_name: 対象ユーザー名
        user_email: 対象ユーザーのメールアドレス
        options: 実行時のオプション（スナップショット）
        actions: 実行順のアクションログ
        initiated_by: 実行者のユーザーID
        completed_at: 完了日時（省略時は現在時刻）

    Returns:
        OffboardingReport
    """
    errors = [a.error for a in actions if not a.success and a.error]

    return OffboardingReport(
        user_id=user_id,
        user_name=user_name,
        user_email=user_email,
        initiated_by=initiated_by,
        tasks_reassigned=_sum_counts(actions, OffboardingActionType.reassign_task),
        projects_transferred=_sum_counts(actions, OffboardingActionType.transfer_project),
        data_archived=_any_success(actions, OffboardingActionType.archive_data),
        access_revoked=_any_success(actions, OffboardingActionType.revoke_access),
        errors=errors or None,
        completed_at=completed_at or datetime.now(timezone.utc),
        effective_date=options.effective_date,
        action_log=list(actions),
    )
