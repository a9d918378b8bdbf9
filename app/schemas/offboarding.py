"""
オフボーディングのスキーマ定義
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID
from pydantic import BaseModel, Field, ConfigDict

from app.models.enums import OffboardingActionType, OffboardingStatus, UserRole


class OffboardingOptions(BaseModel):
    """
    オフボーディングの実行オプション

    作成時に一度だけ確定し、以後は変更しない（frozen）。
    実行時は記録に保存されたスナップショットのみを使用する。
    """
    effective_date: datetime = Field(..., description="退職・契約終了の効力発生日")
    reassign_tasks_to: Optional[UUID] = Field(None, description="タスク・プロジェクトの引き継ぎ先ユーザーID（未指定なら未割当のまま）")
    archive_data: bool = Field(..., description="ユーザーデータをアーカイブするか")
    send_notification: bool = Field(..., description="関係者へ通知するか")
    revoke_sessions_immediately: Optional[bool] = Field(True, description="即時にアクセスを停止するか")
    reason: Optional[str] = Field(None, max_length=1000, description="オフボーディング理由")

    model_config = ConfigDict(frozen=True)


class OffboardingAction(BaseModel):
    """アクションログの1件（実行されたアクションの結果）"""
    action: OffboardingActionType = Field(..., description="アクション種別")
    description: str = Field(..., description="結果の説明")
    timestamp: datetime = Field(..., description="実行日時")
    success: bool = Field(..., description="成功したか")
    error: Optional[str] = Field(None, description="失敗時のエラーメッセージ")
    metadata: Optional[Dict[str, Any]] = Field(None, description="件数などの付加情報")


class OffboardingReport(BaseModel):
    """アクションログから導出されるオフボーディング結果の要約"""
    user_id: UUID
    user_name: str
    user_email: str
    initiated_by: UUID
    tasks_reassigned: int = Field(..., ge=0)
    projects_transferred: int = Field(..., ge=0)
    data_archived: bool
    access_revoked: bool
    errors: Optional[List[str]] = None
    completed_at: datetime
    effective_date: datetime
    action_log: List[OffboardingAction]


class ImpactPreview(BaseModel):
    """オフボーディング前に表示する影響範囲（永続化しない）"""
    task_count: int = Field(0, ge=0)
    project_count: int = Field(0, ge=0)
    time_entry_count: int = Field(0, ge=0)
    expense_count: int = Field(0, ge=0)


class OffboardingCreate(BaseModel):
    """オフボーディング開始リクエスト"""
    user_id: UUID = Field(..., description="オフボーディング対象のユーザーID")
    options: OffboardingOptions


class OffboardingRead(BaseModel):
    """オフボーディング記録の読み取り用スキーマ"""
    id: UUID
    organization_id: UUID
    user_id: UUID
    user_name: str
    user_email: str
    user_role: UserRole
    status: OffboardingStatus
    options: OffboardingOptions
    initiated_by: UUID
    initiated_by_name: str
    created_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    restorable_until: Optional[datetime] = None
    restored_at: Optional[datetime] = None
    restored_by: Optional[UUID] = None
    report: Optional[OffboardingReport] = None

    model_config = ConfigDict(from_attributes=True)


class OffboardingListResponse(BaseModel):
    """オフボーディング記録リストレスポンス"""
    items: List[OffboardingRead] = Field(..., description="オフボーディング記録リスト")
    total: int = Field(..., description="総件数")


class OffboardingExecuteResponse(BaseModel):
    """オフボーディング実行結果レスポンス"""
    offboarding_id: UUID
    status: OffboardingStatus
    report: OffboardingReport
