"""Protocol repository for the archive of finished matches (implemented with SQLAlchemy, a dict works just as well in tests)"""

from typing import Protocol
from uuid import UUID

from src.core.models import MatchRecord


class MatchRepository(Protocol):
    """Persistence layer orchestration"""

    def save_match(self, match: MatchRecord) -> UUID:
        """Store a finished match and return its newly created ID."""
        ...

    def get_match(self, match_id: UUID) -> MatchRecord | None:
        """Get match by ID, if record exists."""
        ...

    def list_matches(self, limit: int = 50) -> list[tuple[UUID, MatchRecord]]:
        """Most recent matches first."""
        ...
