# scholarseek/schemas/auth.py

from pydantic import BaseModel, EmailStr
from typing import Optional

from scholarseek.models.user import UserRole


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserRead(BaseModel):
    id: int
    name: str
    email: str
    role: UserRole
    # Set for student accounts only
    student_id: Optional[int] = None

    class Config:
        from_attributes = True


class TokenWithUser(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: Optional[int] = None
    user: UserRead
