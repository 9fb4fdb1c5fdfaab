"""Room collaborator: creation and cascading destroy for an owner's rooms."""
import random
import secrets

from sqlalchemy.orm import Session

from app.models.room import Room
from app.models.user import User, NAME_CHUNK_CHARSET

_UID_SEGMENT_LENGTH = 3


def _random_segment() -> str:
    return "".join(random.choice(NAME_CHUNK_CHARSET) for _ in range(_UID_SEGMENT_LENGTH))


def generate_room_uid(owner: User) -> str:
    """Shareable id, e.g. "joh-x4k-9ty"."""
    return "-".join([owner.name_chunk(), _random_segment(), _random_segment()])


def generate_bbb_id() -> str:
    return secrets.token_hex(20)


def create_room(db: Session, owner: User, name: str) -> Room:
    """Add a room owned by owner to the session. Caller commits."""
    room = Room(owner=owner, name=name, uid=generate_room_uid(owner), bbb_id=generate_bbb_id(), sessions=0)
    db.add(room)
    db.flush()
    return room


def destroy_rooms(db: Session, rooms: list[Room]) -> int:
    """Delete the given rooms. Caller commits. Returns how many were removed."""
    count = 0
    for room in list(rooms):
        db.delete(room)
        count += 1
    db.flush()
    return count
