import logging
from typing import Any
from uuid import uuid4

from fastapi import WebSocket

from src.services.outbound import Outbound

logger = logging.getLogger(__name__)


class ConnectionManager:
    def __init__(self) -> None:
        self.active_connections: dict[str, WebSocket] = {}

    async def connect(self, websocket: WebSocket) -> str:
        """Accepts a websocket and hands out the participant id it will be known by

        Args:
            websocket (WebSocket): freshly opened connection

        Returns:
            str: participant id
        """
        await websocket.accept()
        participant_id = uuid4().hex
        self.active_connections[participant_id] = websocket
        return participant_id

    def disconnect(self, participant_id: str) -> None:
        self.active_connections.pop(participant_id, None)

    async def send_personal_message(
        self, message: dict[str, Any], participant_id: str
    ) -> bool:
        """Fire-and-forget send to one participant

        Returns:
            bool: False if the connection is unknown or broken
        """
        websocket = self.active_connections.get(participant_id)
        if websocket is None:
            return False
        try:
            await websocket.send_json(message)
        except Exception:
            logger.warning(f"Could not send to {participant_id}", exc_info=True)
            return False
        return True

    async def deliver(self, outbound: list[Outbound]) -> list[str]:
        """Send every event, in order, to each of its recipients

        Returns:
            list[str]: participants whose connection failed along the way
        """
        failed: list[str] = []
        for message in outbound:
            frame = message.to_frame()
            for participant_id in message.recipients:
                if participant_id in failed:
                    continue
                if not await self.send_personal_message(frame, participant_id):
                    failed.append(participant_id)
        return failed
