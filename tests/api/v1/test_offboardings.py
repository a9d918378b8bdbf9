"""
オフボーディングAPIのテスト
"""
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import create_access_token
from app.main import app
from app.api.deps import get_current_user
from app.messages import ja
from app.models.enums import OffboardingStatus, UserRole
from app.models.offboarding import OffboardingRecord
from app.models.user import User
from app.services import offboarding_actions

pytestmark = pytest.mark.asyncio

BASE_URL = "/api/v1/offboardings"


def _payload(user_id: uuid.UUID, reassign_tasks_to=None, archive_data: bool = True) -> dict:
    return {
        "user_id": str(user_id),
        "options": {
            "effective_date": "2026-03-31T00:00:00Z",
            "reassign_tasks_to": str(reassign_tasks_to) if reassign_tasks_to else None,
            "archive_data": archive_data,
            "send_notification": True,
            "reason": "契約終了",
        },
    }


class TestOffboardingPermissions:
    """権限のテスト"""

    async def test_non_owner_is_forbidden(
        self,
        async_client: AsyncClient,
        organization_factory,
        user_factory
    ):
        """オーナー以外は403"""
        org = await organization_factory()
        pm = await user_factory(organization_id=org.id, role=UserRole.pm)
        target = await user_factory(organization_id=org.id)

        async def override_get_current_user():
            return pm

        app.dependency_overrides[get_current_user] = override_get_current_user
        try:
            response = await async_client.post(BASE_URL, json=_payload(target.id))
        finally:
            app.dependency_overrides.pop(get_current_user, None)

        assert response.status_code == 403
        assert response.json()["detail"] == ja.PERM_OWNER_REQUIRED

    async def test_unauthenticated_request_is_rejected(self, async_client: AsyncClient):
        """トークンなしは401"""
        response = await async_client.get(BASE_URL)

        assert response.status_code == 401

    async def test_bearer_token_is_accepted(
        self,
        async_client: AsyncClient,
        organization_factory,
        user_factory
    ):
        """有効なBearerトークンでアクセスできる"""
        org = await organization_factory()
        owner = await user_factory(organization_id=org.id, role=UserRole.owner)
        token = create_access_token(owner.id)

        response = await async_client.get(BASE_URL, headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json() == {"items": [], "total": 0}

    async def test_deactivated_user_token_is_rejected(
        self,
        async_client: AsyncClient,
        organization_factory,
        user_factory
    ):
        """無効化されたユーザーは有効なトークンを持っていても403"""
        org = await organization_factory()
        owner = await user_factory(organization_id=org.id, role=UserRole.owner, is_active=False)
        token = create_access_token(owner.id)

        response = await async_client.get(BASE_URL, headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 403
        assert response.json()["detail"] == ja.PERM_ACCOUNT_DEACTIVATED


class TestOffboardingValidation:
    """作成時の入力検証のテスト"""

    async def test_cannot_offboard_self(self, async_client: AsyncClient, owner_user: User):
        response = await async_client.post(BASE_URL, json=_payload(owner_user.id))

        assert response.status_code == 400
        assert response.json()["detail"] == ja.OFFBOARDING_CANNOT_OFFBOARD_SELF

    async def test_cannot_offboard_owner(
        self,
        async_client: AsyncClient,
        owner_user: User,
        user_factory
    ):
        co_owner = await user_factory(organization_id=owner_user.organization_id, role=UserRole.owner)

        response = await async_client.post(BASE_URL, json=_payload(co_owner.id))

        assert response.status_code == 400
        assert response.json()["detail"] == ja.OFFBOARDING_CANNOT_OFFBOARD_OWNER

    async def test_target_in_other_organization_is_not_found(
        self,
        async_client: AsyncClient,
        owner_user: User,
        organization_factory,
        user_factory
    ):
        other_org = await organization_factory()
        outsider = await user_factory(organization_id=other_org.id)

        response = await async_client.post(BASE_URL, json=_payload(outsider.id))

        assert response.status_code == 404
        assert response.json()["detail"] == ja.OFFBOARDING_USER_NOT_FOUND

    async def test_reassign_target_in_other_organization_is_rejected(
        self,
        async_client: AsyncClient,
        owner_user: User,
        organization_factory,
        user_factory
    ):
        """引き継ぎ先が他組織のユーザーの場合は400（記録は作成しない）"""
        target = await user_factory(organization_id=owner_user.organization_id)
        other_org = await organization_factory()
        outsider = await user_factory(organization_id=other_org.id)

        response = await async_client.post(BASE_URL, json=_payload(target.id, reassign_tasks_to=outsider.id))

        assert response.status_code == 400
        assert response.json()["detail"] == ja.OFFBOARDING_REASSIGN_TARGET_INVALID
        listing = await async_client.get(BASE_URL)
        assert listing.json()["total"] == 0

    async def test_reassign_target_same_as_target_is_rejected(
        self,
        async_client: AsyncClient,
        owner_user: User,
        user_factory
    ):
        target = await user_factory(organization_id=owner_user.organization_id)

        response = await async_client.post(BASE_URL, json=_payload(target.id, reassign_tasks_to=target.id))

        assert response.status_code == 400
        assert response.json()["detail"] == ja.OFFBOARDING_REASSIGN_TARGET_SAME_USER

    async def test_inactive_reassign_target_is_rejected(
        self,
        async_client: AsyncClient,
        owner_user: User,
        user_factory
    ):
        target = await user_factory(organization_id=owner_user.organization_id)
        inactive = await user_factory(organization_id=owner_user.organization_id, is_active=False)

        response = await async_client.post(BASE_URL, json=_payload(target.id, reassign_tasks_to=inactive.id))

        assert response.status_code == 400
        assert response.json()["detail"] == ja.OFFBOARDING_REASSIGN_TARGET_INVALID

    async def test_already_inactive_target_is_rejected(
        self,
        async_client: AsyncClient,
        owner_user: User,
        user_factory
    ):
        target = await user_factory(organization_id=owner_user.organization_id, is_active=False)

        response = await async_client.post(BASE_URL, json=_payload(target.id))

        assert response.status_code == 400
        assert response.json()["detail"] == ja.OFFBOARDING_USER_ALREADY_INACTIVE


class TestOffboardingFlow:
    """プレビューから復元までの一連のテスト"""

    async def test_preview_offboard_and_restore(
        self,
        async_client: AsyncClient,
        db_session: AsyncSession,
        owner_user: User,
        user_factory,
        task_factory,
        project_factory
    ):
        org_id = owner_user.organization_id
        target = await user_factory(organization_id=org_id, role=UserRole.sub)
        successor = await user_factory(organization_id=org_id, role=UserRole.pm)
        await task_factory(organization_id=org_id, assigned_to=[target.id])
        await task_factory(organization_id=org_id, assigned_to=[target.id])
        await project_factory(organization_id=org_id, project_manager_id=target.id)

        # 影響範囲
        response = await async_client.get(f"{BASE_URL}/users/{target.id}/impact-preview")
        assert response.status_code == 200
        assert response.json() == {
            "task_count": 2,
            "project_count": 1,
            "time_entry_count": 0,
            "expense_count": 0,
        }

        # 作成・実行
        response = await async_client.post(BASE_URL, json=_payload(target.id, reassign_tasks_to=successor.id))
        assert response.status_code == 201
        body = response.json()
        assert body["status"] == OffboardingStatus.completed.value
        assert body["report"]["tasks_reassigned"] == 2
        assert body["report"]["projects_transferred"] == 1
        assert body["report"]["access_revoked"] is True
        assert body["report"]["data_archived"] is True
        offboarding_id = body["offboarding_id"]

        # 詳細・一覧
        response = await async_client.get(f"{BASE_URL}/{offboarding_id}")
        assert response.status_code == 200
        detail = response.json()
        assert detail["status"] == "completed"
        assert detail["user_id"] == str(target.id)
        assert detail["options"]["reassign_tasks_to"] == str(successor.id)
        assert detail["restorable_until"] is not None

        response = await async_client.get(BASE_URL)
        assert response.json()["total"] == 1

        response = await async_client.get(f"{BASE_URL}/restorable")
        assert [item["id"] for item in response.json()["items"]] == [offboarding_id]

        # 進行中ではないので同じユーザーでも409にはならないが、無効化済みなので400
        response = await async_client.post(BASE_URL, json=_payload(target.id))
        assert response.status_code == 400

        # 復元
        response = await async_client.post(f"{BASE_URL}/{offboarding_id}/restore")
        assert response.status_code == 200
        restored = response.json()
        assert restored["restored_by"] == str(owner_user.id)
        assert restored["restorable_until"] is None

        is_active = (await db_session.execute(select(User.is_active).where(User.id == target.id))).scalar_one()
        assert is_active is True

        # 2回目の復元は400
        response = await async_client.post(f"{BASE_URL}/{offboarding_id}/restore")
        assert response.status_code == 400
        assert response.json()["detail"] == ja.OFFBOARDING_ALREADY_RESTORED

    async def test_restore_after_window_is_gone(
        self,
        async_client: AsyncClient,
        db_session: AsyncSession,
        owner_user: User,
        user_factory
    ):
        """復元期限を過ぎている場合は410"""
        target = await user_factory(organization_id=owner_user.organization_id)

        response = await async_client.post(BASE_URL, json=_payload(target.id, archive_data=False))
        assert response.status_code == 201
        offboarding_id = uuid.UUID(response.json()["offboarding_id"])

        record = await db_session.get(OffboardingRecord, offboarding_id)
        record.restorable_until = datetime.now(timezone.utc) - timedelta(seconds=1)
        await db_session.commit()

        response = await async_client.post(f"{BASE_URL}/{offboarding_id}/restore")

        assert response.status_code == 410
        assert response.json()["detail"] == ja.OFFBOARDING_RESTORE_WINDOW_EXPIRED

    async def test_unknown_offboarding_is_not_found(self, async_client: AsyncClient, owner_user: User):
        response = await async_client.get(f"{BASE_URL}/{uuid.uuid4()}")
        assert response.status_code == 404

        response = await async_client.post(f"{BASE_URL}/{uuid.uuid4()}/restore")
        assert response.status_code == 404

    async def test_in_progress_offboarding_conflicts(
        self,
        async_client: AsyncClient,
        db_session: AsyncSession,
        owner_user: User,
        user_factory
    ):
        """同じユーザーの進行中の記録がある場合は409"""
        target = await user_factory(organization_id=owner_user.organization_id)
        db_session.add(OffboardingRecord(
            organization_id=owner_user.organization_id,
            user_id=target.id,
            user_name=target.display_name,
            user_email=target.email,
            user_role=target.role,
            status=OffboardingStatus.in_progress,
            options={
                "effective_date": "2026-03-31T00:00:00Z",
                "archive_data": False,
                "send_notification": False,
            },
            initiated_by=owner_user.id,
            initiated_by_name=owner_user.display_name,
            created_at=datetime.now(timezone.utc),
        ))
        await db_session.commit()

        response = await async_client.post(BASE_URL, json=_payload(target.id))

        assert response.status_code == 409
        assert response.json()["detail"] == ja.OFFBOARDING_ALREADY_IN_PROGRESS

    async def test_unexpected_error_returns_fixed_message(
        self,
        async_client: AsyncClient,
        db_session: AsyncSession,
        owner_user: User,
        user_factory,
        monkeypatch
    ):
        """実行中の予期しないエラーは500になり、例外の内容はレスポンスに含めない"""
        target = await user_factory(organization_id=owner_user.organization_id)
        target_id = target.id

        async def exploding_revoke(*args, **kwargs):
            raise RuntimeError("[SQL: UPDATE users SET is_active=?] [parameters: ('secret@example.com',)]")

        monkeypatch.setattr(offboarding_actions, "revoke_access", exploding_revoke)

        response = await async_client.post(BASE_URL, json=_payload(target_id))

        assert response.status_code == 500
        assert response.json()["detail"] == ja.OFFBOARDING_EXECUTION_FAILED

        result = await db_session.execute(
            select(OffboardingRecord.status).where(OffboardingRecord.user_id == target_id)
        )
        assert result.scalar_one() == OffboardingStatus.failed
