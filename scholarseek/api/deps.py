# scholarseek/api/deps.py

from typing import AsyncGenerator
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jwt import InvalidTokenError
from sqlalchemy.ext.asyncio import AsyncSession

from scholarseek.core.security import decode_token
from scholarseek.core.database import get_session
from scholarseek.services.auth_service import get_user_by_id
from scholarseek.models.user import User

bearer_scheme = HTTPBearer(auto_error=True)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_session():
        yield session


def _subject_id(token: str) -> int:
    """User id from the token's "sub" claim; any decoding problem is a 401."""
    try:
        return int(decode_token(token)["sub"])
    except (InvalidTokenError, KeyError, TypeError, ValueError):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Could not validate credentials")


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_db_session),
) -> User:
    user = await get_user_by_id(session, _subject_id(credentials.credentials))
    if not user:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "User not found")
    return user
