# tests/conftest.py (pytest-asyncio構成)
import os
import uuid
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import AsyncGenerator, List, Optional

# アプリのimport前にテスト用の環境変数を設定
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-offboarding")

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

# ロガーの設定 - テスト実行時のログ出力を抑制
logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.WARNING)

# SQLAlchemyのエンジンログを無効化
logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)

from app.main import app
from app.api.deps import get_db, get_current_user
from app.db.base import Base
from app.models import Organization, User, Project, Task, TaskAssignee, TimeEntry, Expense, Photo
from app.models.enums import UserRole


# --- データベースフィクスチャ ---

@pytest_asyncio.fixture(scope="function")
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    テストごとに新しいDBを用意する。
    TEST_DATABASE_URL が未設定の場合はインメモリのSQLiteを使用する。
    """
    DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

    if DATABASE_URL.startswith("sqlite"):
        async_engine = create_async_engine(
            DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=False,
        )

        # aiosqlite でセーブポイント（begin_nested）を使うための設定
        @event.listens_for(async_engine.sync_engine, "connect")
        def do_connect(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(async_engine.sync_engine, "begin")
        def do_begin(conn):
            conn.exec_driver_sql("BEGIN")
    else:
        async_engine = create_async_engine(DATABASE_URL, pool_pre_ping=True, echo=False)

    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield async_engine

    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await async_engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """
    テスト用のDBセッションフィクスチャ。
    サービス層が commit() / rollback() を行うため、テーブルはテストごとに作り直す。
    """
    async_session_factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False
    )
    async with async_session_factory() as session:
        yield session


# --- APIクライアントとファクトリ ---

@pytest_asyncio.fixture(scope="function")
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="https://test", follow_redirects=True) as client:
        try:
            yield client
        finally:
            app.dependency_overrides.pop(get_db, None)


@pytest_asyncio.fixture
async def organization_factory(db_session: AsyncSession):
    """組織を作成するFactory"""
    counter = {"count": 0}

    async def _create_organization(name: Optional[str] = None) -> Organization:
        counter["count"] += 1
        organization = Organization(name=name or f"テスト工務店{counter['count']}")
        db_session.add(organization)
        await db_session.flush()
        # サービス層のrollbackでテストデータが消えないようにcommitする
        await db_session.commit()
        return organization
    yield _create_organization


@pytest_asyncio.fixture
async def user_factory(db_session: AsyncSession):
    """ユーザーを作成するFactory"""
    counter = {"count": 0}

    async def _create_user(
        organization_id: uuid.UUID,
        role: UserRole = UserRole.employee,
        display_name: Optional[str] = None,
        email: Optional[str] = None,
        is_active: bool = True,
        phone: Optional[str] = None,
        trade: Optional[str] = None,
    ) -> User:
        counter["count"] += 1
        new_user = User(
            organization_id=organization_id,
            email=email or f"user_{uuid.uuid4().hex[:8]}_{counter['count']}@example.com",
            display_name=display_name or f"テスト ユーザー{counter['count']}",
            role=role,
            phone=phone,
            trade=trade,
            is_active=is_active,
            deactivated_at=None if is_active else datetime.now(timezone.utc),
        )
        db_session.add(new_user)
        await db_session.flush()
        await db_session.commit()
        return new_user
    yield _create_user


@pytest_asyncio.fixture
async def project_factory(db_session: AsyncSession):
    """プロジェクトを作成するFactory"""
    counter = {"count": 0}

    async def _create_project(
        organization_id: uuid.UUID,
        project_manager_id: Optional[uuid.UUID] = None,
        name: Optional[str] = None,
    ) -> Project:
        counter["count"] += 1
        new_project = Project(
            organization_id=organization_id,
            name=name or f"テスト現場{counter['count']}",
            project_manager_id=project_manager_id,
        )
        db_session.add(new_project)
        await db_session.flush()
        await db_session.commit()
        return new_project
    yield _create_project


@pytest_asyncio.fixture
async def task_factory(db_session: AsyncSession):
    """タスクを作成するFactory（担当者は指定順に登録）"""
    counter = {"count": 0}

    async def _create_task(
        organization_id: uuid.UUID,
        assigned_to: Optional[List[uuid.UUID]] = None,
        project_id: Optional[uuid.UUID] = None,
        title: Optional[str] = None,
    ) -> Task:
        counter["count"] += 1
        new_task = Task(
            organization_id=organization_id,
            project_id=project_id,
            title=title or f"テストタスク{counter['count']}",
        )
        new_task.assignees = [
            TaskAssignee(user_id=user_id, position=position)
            for position, user_id in enumerate(assigned_to or [])
        ]
        db_session.add(new_task)
        await db_session.flush()
        await db_session.commit()
        return new_task
    yield _create_task


@pytest_asyncio.fixture
async def time_entry_factory(db_session: AsyncSession):
    """作業時間を作成するFactory"""

    async def _create_time_entry(
        organization_id: uuid.UUID,
        user_id: uuid.UUID,
        project_id: Optional[uuid.UUID] = None,
        hours: Decimal = Decimal("8.00"),
    ) -> TimeEntry:
        entry = TimeEntry(
            organization_id=organization_id,
            user_id=user_id,
            project_id=project_id,
            hours=hours,
            entry_date=date(2026, 1, 15),
        )
        db_session.add(entry)
        await db_session.flush()
        await db_session.commit()
        return entry
    yield _create_time_entry


@pytest_asyncio.fixture
async def expense_factory(db_session: AsyncSession):
    """経費を作成するFactory"""

    async def _create_expense(
        organization_id: uuid.UUID,
        submitted_by: uuid.UUID,
        amount: Decimal = Decimal("1200.00"),
    ) -> Expense:
        expense = Expense(
            organization_id=organization_id,
            submitted_by=submitted_by,
            amount=amount,
            description="資材購入",
        )
        db_session.add(expense)
        await db_session.flush()
        await db_session.commit()
        return expense
    yield _create_expense


@pytest_asyncio.fixture
async def photo_factory(db_session: AsyncSession):
    """現場写真を作成するFactory"""

    async def _create_photo(organization_id: uuid.UUID, uploaded_by: uuid.UUID) -> Photo:
        photo = Photo(
            organization_id=organization_id,
            uploaded_by=uploaded_by,
            url=f"https://storage.example.com/photos/{uuid.uuid4().hex}.jpg",
        )
        db_session.add(photo)
        await db_session.flush()
        await db_session.commit()
        return photo
    yield _create_photo


@pytest_asyncio.fixture
async def owner_user(organization_factory, user_factory):
    """
    オーナーユーザーを作成し、get_current_userをオーバーライドするフィクスチャ

    APIテストで認証済みのオーナーとしてリクエストするために使用する。
    """
    organization = await organization_factory()
    owner = await user_factory(
        organization_id=organization.id,
        role=UserRole.owner,
        display_name="テスト オーナー",
    )

    async def override_get_current_user():
        return owner

    app.dependency_overrides[get_current_user] = override_get_current_user

    try:
        yield owner
    finally:
        app.dependency_overrides.pop(get_current_user, None)
