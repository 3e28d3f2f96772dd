"""Implementation of (Match)Repository using SQLAlchemy"""

from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.core.exceptions import RepositoryError
from src.core.models import MatchRecord
from src.db.schema import DBMatch


class SQLMatchRepository:
    """Data stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def save_match(self, match: MatchRecord) -> UUID:
        """Store a finished match and return its newly created ID."""
        new_id = uuid4()
        match_db = DBMatch(
            id=new_id,
            room_id=match.room_id,
            red_player=match.red_player,
            blue_player=match.blue_player,
            moves=[list(move) for move in match.moves],
            final_board=match.final_board,
            outcome=match.outcome,
            reason=match.reason,
            finished_at=match.finished_at,
        )
        try:
            self.db.add(match_db)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RepositoryError(f"Could not store match {match.room_id}: {e}") from e
        return new_id

    def get_match(self, match_id: UUID) -> MatchRecord | None:
        """Get match by ID, if record exists."""
        match_db = self._fetch_match(match_id)
        if match_db:
            return self._to_model(match_db)
        return None

    def list_matches(self, limit: int = 50) -> list[tuple[UUID, MatchRecord]]:
        query = select(DBMatch).order_by(DBMatch.finished_at.desc()).limit(limit)
        return [(match_db.id, self._to_model(match_db)) for match_db in self.db.scalars(query)]

    def _fetch_match(self, match_id: UUID) -> DBMatch | None:
        query = select(DBMatch).where(DBMatch.id == match_id)
        return self.db.scalar(query)

    def _to_model(self, match_db: DBMatch) -> MatchRecord:
        """Convert SQLAlchemy model to data transfer model."""
        return MatchRecord(
            room_id=match_db.room_id,
            red_player=match_db.red_player,
            blue_player=match_db.blue_player,
            moves=[(index, player) for index, player in match_db.moves],
            final_board=match_db.final_board,
            outcome=match_db.outcome,
            reason=match_db.reason,
            finished_at=match_db.finished_at,
        )
