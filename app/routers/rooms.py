"""Rooms listing for the signed-in account."""
from fastapi import APIRouter, Depends

from app.dependencies import require_verified
from app.models.user import User
from app.schemas.room import RoomListResponse, RoomResponse

router = APIRouter(prefix="/rooms", tags=["rooms"])


@router.get("", response_model=RoomListResponse)
def list_rooms(current_user: User = Depends(require_verified)):
    main_room = current_user.main_room
    return RoomListResponse(
        main_room=RoomResponse.model_validate(main_room) if main_room else None,
        secondary_rooms=[RoomResponse.model_validate(r) for r in current_user.secondary_rooms()],
    )
