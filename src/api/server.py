"""FastAPI app: the websocket relay the clients play through, plus a read-only view of the match archive"""

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Optional
from uuid import UUID

from fastapi import FastAPI, HTTPException, WebSocket

from src.api.connection import ConnectionManager
from src.api.models import HealthResponse, MatchResponse, parse_command
from src.core.config import Settings, configure_logging
from src.core.exceptions import GameError, InvalidRequestError
from src.core.models import MatchRecord
from src.db.database import create_session
from src.db.repository import MatchRepository
from src.db.sql_repository import SQLMatchRepository
from src.services.outbound import Outbound, error_to
from src.services.registry import SessionRegistry
from src.services.session import SessionCoordinator

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    repository: Optional[MatchRepository] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    db_session = None
    if repository is None:
        db_session = create_session(settings.database_url)
        repository = SQLMatchRepository(db_session)

    registry = SessionRegistry()
    coordinator = SessionCoordinator(registry, settings, repository)
    manager = ConnectionManager()
    # every command is handled (and its events delivered) before the next one starts
    lock = asyncio.Lock()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Start Server")
        try:
            yield
        finally:
            if db_session is not None:
                db_session.close()
            logger.info("Stop Server")

    app = FastAPI(title="Blocks", lifespan=lifespan)
    app.state.settings = settings
    app.state.coordinator = coordinator

    async def dispatch(outbound: list[Outbound]) -> None:
        failed = await manager.deliver(outbound)
        for participant_id in failed:
            await drop(participant_id)

    async def drop(participant_id: str) -> None:
        manager.disconnect(participant_id)
        if participant_id not in registry.participants:
            return
        await dispatch(coordinator.disconnect(participant_id))

    @app.get("/health")
    def health() -> HealthResponse:
        return HealthResponse(
            status="ok",
            connected=len(registry.participants),
            rooms=len(registry.rooms),
            waiting=len(registry.waiting),
        )

    @app.get("/matches")
    def list_matches(limit: int = 50) -> list[MatchResponse]:
        return [
            _match_response(match_id, record)
            for match_id, record in repository.list_matches(limit)
        ]

    @app.get("/matches/{match_id}")
    def get_match(match_id: UUID) -> MatchResponse:
        record = repository.get_match(match_id)
        if record is None:
            raise HTTPException(status_code=404, detail=f"Match {match_id} not found.")
        return _match_response(match_id, record)

    @app.websocket("/ws")
    async def ws_endpoint(websocket: WebSocket) -> None:
        participant_id = await manager.connect(websocket)
        async with lock:
            coordinator.connect(participant_id)
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                async with lock:
                    await dispatch(
                        _handle_frame(coordinator, participant_id, message.get("text"))
                    )
        finally:
            # also runs when the loop dies on an unexpected error
            async with lock:
                await drop(participant_id)

    return app


def _handle_frame(
    coordinator: SessionCoordinator, participant_id: str, text: Optional[str]
) -> list[Outbound]:
    """Parse + run one frame. Never lets an error escape into the socket loop."""
    if text is None:
        return [error_to(participant_id, InvalidRequestError("Expected a text frame."))]
    try:
        command = parse_command(json.loads(text))
    except json.JSONDecodeError:
        return [error_to(participant_id, InvalidRequestError("Expected a JSON object."))]
    except InvalidRequestError as e:
        return [error_to(participant_id, e)]

    try:
        return coordinator.handle(participant_id, command)
    except Exception:
        logger.exception(f"Unexpected error while handling a message from {participant_id}")
        return [error_to(participant_id, GameError("Server error."))]


def _match_response(match_id: UUID, record: MatchRecord) -> MatchResponse:
    return MatchResponse(
        match_id=str(match_id),
        room_id=record.room_id,
        red_player=record.red_player,
        blue_player=record.blue_player,
        moves=record.moves,
        final_board=record.final_board,
        outcome=record.outcome,
        reason=record.reason,
        finished_at=record.finished_at,
    )
