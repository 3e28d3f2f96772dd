"""Database tables / schema"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import JSON
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class DBMatch(Base):
    __tablename__ = "matches"
    id: Mapped[UUID] = mapped_column(primary_key=True)
    room_id: Mapped[str]
    red_player: Mapped[str]
    blue_player: Mapped[str]
    moves: Mapped[list[list]] = mapped_column(JSON, default=list)
    final_board: Mapped[str]
    outcome: Mapped[Optional[str]]
    reason: Mapped[str]
    finished_at: Mapped[datetime] = mapped_column(default=utc_now)
