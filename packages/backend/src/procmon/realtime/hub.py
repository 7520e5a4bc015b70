"""In-process event hub — rooms of subscriber queues.

Learn: Each WebSocket connection owns one asyncio.Queue. Joining a room
adds the queue to that room's set; broadcast() drops the message into
every queue in the room. Queues are bounded: a client too slow to drain
its queue loses messages instead of growing memory without limit.

Runs entirely on the event loop thread, so there are no locks.
"""

import asyncio

import structlog

logger = structlog.get_logger()


class EventHub:
    """Fan out messages to the queues subscribed to a room."""

    def __init__(self, queue_size: int = 100):
        self.queue_size = queue_size
        self._rooms: dict[str, set[asyncio.Queue]] = {}

    def connect(self) -> asyncio.Queue:
        """Create a queue for a new connection (not in any room yet)."""
        return asyncio.Queue(maxsize=self.queue_size)

    def join(self, room: str, queue: asyncio.Queue) -> None:
        self._rooms.setdefault(room, set()).add(queue)

    def leave(self, queue: asyncio.Queue) -> None:
        """Remove a queue from every room it joined."""
        for room in list(self._rooms):
            members = self._rooms[room]
            members.discard(queue)
            if not members:
                del self._rooms[room]

    def subscriber_count(self, room: str) -> int:
        return len(self._rooms.get(room, ()))

    def broadcast(self, room: str, message: str) -> int:
        """Deliver a message to a room. Returns how many queues took it."""
        delivered = 0
        for queue in list(self._rooms.get(room, ())):
            try:
                queue.put_nowait(message)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning("hub.message_dropped", room=room)
        return delivered


# Singleton — shared by publish_event() and the WebSocket endpoint
hub = EventHub()
