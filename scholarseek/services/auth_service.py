# scholarseek/services/auth_service.py

from loguru import logger
from sqlmodel import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from scholarseek.models.user import User, UserRole
from scholarseek.core.config import settings
from scholarseek.core.security import hash_password, verify_password, create_access_token
from scholarseek.schemas.auth import TokenWithUser, UserRead


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalar_one_or_none()


async def get_user_by_id(session: AsyncSession, user_id: int) -> User | None:
    return await session.get(User, user_id)


def _check_student_link(role: UserRole, student_id: int | None) -> None:
    # Student accounts always point at a student profile; nobody else does
    if role == UserRole.Student and student_id is None:
        raise ValueError("Student account must include student_id")
    if role != UserRole.Student and student_id is not None:
        raise ValueError(f"{role.value} accounts cannot have student_id")


async def create_user(
    session: AsyncSession,
    name: str,
    email: str,
    password: str,
    role: UserRole,
    student_id: int | None = None,
) -> User:
    _check_student_link(role, student_id)

    user = User(
        name=name,
        email=email.strip().lower(),
        password_hash=hash_password(password),
        role=role,
        student_id=student_id,
    )
    session.add(user)

    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise ValueError("User with this email already exists")

    await session.refresh(user)
    return user


async def ensure_admin(session: AsyncSession) -> User | None:
    """Creates the configured admin account once. Returns None when no credentials are configured."""
    if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
        logger.warning("Missing admin credentials in settings. Skipping admin seeding.")
        return None

    existing = await get_user_by_email(session, settings.ADMIN_EMAIL)
    if existing:
        logger.info("Admin already exists. Skipping.")
        return existing

    logger.info(f"Seeding admin: {settings.ADMIN_EMAIL}")
    admin = await create_user(
        session=session,
        name=settings.ADMIN_NAME or "ScholarSeek Admin",
        email=settings.ADMIN_EMAIL,
        password=settings.ADMIN_PASSWORD,
        role=UserRole.Admin,
    )
    logger.success("Admin created successfully.")
    return admin


async def authenticate_user(session: AsyncSession, email: str, password: str) -> User | None:
    user = await get_user_by_email(session, email)
    if user and verify_password(password, user.password_hash):
        return user
    return None


def create_login_response(user: User) -> TokenWithUser:
    """Bearer token whose "sub" is the user id; role and student link ride along as claims."""
    user_read = UserRead.model_validate(user)
    token = create_access_token(
        subject=user.id,
        data={"role": UserRole(user.role).value, "student_id": user.student_id},
    )
    return TokenWithUser(
        access_token=token,
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=user_read,
    )
