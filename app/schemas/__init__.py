# Pydantic schemas for request/response
from app.schemas.auth import Token, UserCreate, UserLogin, UserResponse, PasswordResetRequest, PasswordResetConfirm
from app.schemas.omniauth import AuthInfo, AuthPayload
from app.schemas.room import RoomResponse, RoomListResponse
