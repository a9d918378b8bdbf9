import uuid
import logging
from typing import AsyncGenerator, Optional

from fastapi import Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordBearer
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app import crud
from app.core.exceptions import ForbiddenException
from app.core.security import decode_access_token
from app.db.session import AsyncSessionLocal
from app.models.enums import UserRole
from app.models.user import User
from app.schemas.token import TokenData
from app.messages import ja

logger = logging.getLogger(__name__)

# Swagger UI 上での認証用。トークンはCookieからも受け付ける。
reusable_oauth2 = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token", auto_error=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    各APIリクエストに対して、独立したDBセッションを提供する依存性注入関数。
    セッションはリクエスト処理の完了後に自動的にクローズされます。
    """
    async with AsyncSessionLocal() as session:
        yield session


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
    token: Optional[str] = Depends(reusable_oauth2)
) -> User:
    """
    リクエストのCookieまたはAuthorizationヘッダーからJWTトークンを検証し、
    対応するユーザーをDBから取得する依存性注入関数。

    優先順位:
    1. Cookie (access_token)
    2. Authorization ヘッダー (Bearer token)

    無効化（オフボーディング済み）のユーザーは、発行済みトークンが
    有効期限内であってもここで拒否される。
    """
    cookie_token = request.cookies.get("access_token")
    final_token = cookie_token if cookie_token else token

    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=ja.PERM_CREDENTIALS_INVALID,
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not final_token:
        logger.warning("No token provided - raising 401")
        raise credentials_exception

    payload = decode_access_token(final_token)
    if payload is None:
        logger.warning("Payload is None - raising 401")
        raise credentials_exception

    try:
        token_data = TokenData(sub=payload.get("sub"))
    except ValidationError as e:
        logger.warning(f"ValidationError: {e}")
        raise credentials_exception

    if token_data.sub is None:
        logger.warning("token_data.sub is None - raising 401")
        raise credentials_exception

    try:
        user_id = uuid.UUID(token_data.sub)
    except ValueError as e:
        logger.warning(f"ValueError parsing UUID: {e}")
        raise credentials_exception

    user = await crud.user.get(db, id=user_id)
    if not user:
        logger.warning(f"User not found for id: {user_id}")
        raise credentials_exception

    if not user.is_active:
        logger.warning(f"Deactivated user attempted access: {user.email}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=ja.PERM_ACCOUNT_DEACTIVATED,
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


# --- 権限チェック依存関数 ---

async def require_owner(
    current_user: User = Depends(get_current_user)
) -> User:
    """
    Owner のみアクセス可能
    Owner以外のユーザーがアクセスした場合は403エラーを返す
    """
    if current_user.role != UserRole.owner:
        raise ForbiddenException(ja.PERM_OWNER_REQUIRED)
    return current_user
