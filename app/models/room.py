"""Conferencing rooms owned by an account."""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


class Room(Base):
    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    name = Column(String(256), nullable=False)
    # Shareable room identifier, e.g. "joh-x4k-9ty"
    uid = Column(String(64), unique=True, nullable=False, index=True)
    # Meeting id on the conferencing server
    bbb_id = Column(String(64), unique=True, nullable=False)

    sessions = Column(Integer, nullable=False, default=0)
    last_session = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    owner = relationship("User", back_populates="rooms", foreign_keys=[user_id])
