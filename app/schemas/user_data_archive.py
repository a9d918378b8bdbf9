"""
ユーザーデータアーカイブのスキーマ定義
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID
from pydantic import BaseModel, Field, ConfigDict


class ArchivedCollection(BaseModel):
    """コレクションごとのアーカイブ件数"""
    collection: str = Field(..., description="コレクション名")
    document_count: int = Field(..., ge=0, description="ドキュメント件数")


class ActivitySummary(BaseModel):
    """ユーザーに紐づくデータの件数"""
    total_tasks: int = Field(0, ge=0)
    total_projects: int = Field(0, ge=0)
    total_time_entries: int = Field(0, ge=0)
    total_expenses: int = Field(0, ge=0)
    total_photos: int = Field(0, ge=0)


class UserDataArchiveCreate(BaseModel):
    """アーカイブ作成用スキーマ"""
    organization_id: UUID
    user_id: UUID
    user_name: str
    user_email: str
    profile_snapshot: Dict[str, Any]
    activity_summary: ActivitySummary
    archived_collections: List[ArchivedCollection]
    created_by: UUID


class UserDataArchiveRead(BaseModel):
    """アーカイブ読み取り用スキーマ"""
    id: UUID = Field(..., description="アーカイブID")
    organization_id: UUID
    user_id: UUID
    user_name: str
    user_email: str
    profile_snapshot: Dict[str, Any]
    activity_summary: ActivitySummary
    archived_collections: List[ArchivedCollection]
    created_at: Optional[datetime] = None
    created_by: UUID
    retain_until: datetime = Field(..., description="保存期限")

    model_config = ConfigDict(from_attributes=True)
