"""Account schemas."""
from datetime import datetime

from pydantic import BaseModel, EmailStr

from app.schemas.room import RoomResponse


class UserCreate(BaseModel):
    name: str
    # Shape is checked by account validation so errors carry field + rule
    email: str
    password: str
    password_confirmation: str | None = None
    accepted_terms: bool = False


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class ResendActivationRequest(BaseModel):
    email: EmailStr


class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordResetConfirm(BaseModel):
    email: EmailStr
    token: str
    password: str
    password_confirmation: str | None = None


class UserResponse(BaseModel):
    id: int
    name: str
    email: str | None = None
    username: str | None = None
    provider: str
    image: str | None = None
    uid: str | None = None
    email_verified: bool = False
    activated_at: datetime | None = None
    main_room: RoomResponse | None = None

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class MessageResponse(BaseModel):
    status: str = "ok"
    message: str
