"""
In-process vote change feed.

Every stored vote publishes {"type": "vote", "subject_id", "location_id"} to
all connected WebSocket subscribers. Delivery is best-effort and unordered;
a subscriber whose socket fails is dropped. Subscribers refetch aggregates
on each message, so no payload beyond the ids is needed.

The feed only sees votes written by this process. Multi-instance deployments
need a shared broker in front of it.
"""

import json
from typing import Optional

from fastapi import WebSocket

from flashvote.core.logging import get_logger
from flashvote.core.metrics import feed_subscribers

logger = get_logger(__name__)


class VoteFeed:
    """Fan-out of vote change notifications to WebSocket subscribers."""

    def __init__(self):
        self._connections: list[WebSocket] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        if websocket not in self._connections:
            self._connections.append(websocket)
            feed_subscribers.set(len(self._connections))
            logger.info("feed_subscriber_connected", subscribers=len(self._connections))

    def disconnect(self, websocket: WebSocket) -> None:
        if websocket in self._connections:
            self._connections.remove(websocket)
            feed_subscribers.set(len(self._connections))
            logger.info("feed_subscriber_disconnected", subscribers=len(self._connections))

    async def publish(self, subject_id: str, location_id: Optional[str] = None) -> int:
        """Send a change notification to every subscriber. Returns deliveries."""
        connections = self._connections.copy()
        if not connections:
            return 0

        message = json.dumps({"type": "vote", "subject_id": subject_id, "location_id": location_id})
        delivered = 0
        failed = []
        for connection in connections:
            try:
                await connection.send_text(message)
                delivered += 1
            except Exception as e:
                logger.warning("feed_send_failed", error=str(e))
                failed.append(connection)

        for connection in failed:
            self.disconnect(connection)
        return delivered

    async def close_all(self) -> None:
        """Close every subscriber socket with 1001 (going away) on shutdown."""
        connections, self._connections = self._connections, []
        feed_subscribers.set(0)
        for connection in connections:
            try:
                await connection.close(code=1001)
            except RuntimeError:
                # Already closed by the client
                pass


vote_feed = VoteFeed()


def get_vote_feed() -> VoteFeed:
    return vote_feed
