# scholarseek/api/endpoints/auth.py

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from scholarseek.schemas.auth import LoginRequest, TokenWithUser, UserRead
from scholarseek.models.user import User
from scholarseek.services.auth_service import authenticate_user, create_login_response
from scholarseek.api.deps import get_db_session, get_current_user

router = APIRouter(prefix="/api/auth", tags=["Auth"])


# -------------------------------------------------------------------
# LOGIN (admin, staff and students share one login)
# -------------------------------------------------------------------
@router.post("/login", response_model=TokenWithUser)
async def login(
    payload: LoginRequest,
    session: AsyncSession = Depends(get_db_session)
):
    user = await authenticate_user(session, payload.email, payload.password)

    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")

    return create_login_response(user)


# -------------------------------------------------------------------
# CURRENT USER
# -------------------------------------------------------------------
@router.get("/me", response_model=UserRead)
async def me(current_user: User = Depends(get_current_user)):
    return current_user
