import asyncio
import concurrent.futures
import logging
from typing import Any, Dict, Iterable, Optional, Set

from fastapi import WebSocket

logger = logging.getLogger("WebSocket")


def _log_publish_failure(future: concurrent.futures.Future):
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.error("Publishing frames failed", exc_info=exc)


class ConnectionManager:
    """
    WebSocket fan-out keyed by heat id.

    Frames are {type, payload}. publish() holds a single asyncio lock so
    frames reach every subscriber in generation order. A failed send
    drops that subscriber and nothing else.
    """

    def __init__(self):
        self.subscriptions: Dict[int, Set[WebSocket]] = {}
        self._lock: Optional[asyncio.Lock] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def bind_loop(self, loop: asyncio.AbstractEventLoop):
        # the lock must belong to the serving loop, not the one alive at import
        self._loop = loop
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket):
        await websocket.accept()

    def subscribe(self, websocket: WebSocket, heat_id: int):
        self.unsubscribe(websocket)
        self.subscriptions.setdefault(heat_id, set()).add(websocket)

    def unsubscribe(self, websocket: WebSocket):
        for heat_id in list(self.subscriptions):
            subscribers = self.subscriptions[heat_id]
            subscribers.discard(websocket)
            if not subscribers:
                del self.subscriptions[heat_id]

    def disconnect(self, websocket: WebSocket):
        self.unsubscribe(websocket)

    def subscriber_count(self, heat_id: int) -> int:
        return len(self.subscriptions.get(heat_id, ()))

    @staticmethod
    async def send(websocket: WebSocket, frame_type: str, payload: Any) -> bool:
        try:
            await websocket.send_json({"type": frame_type, "payload": payload})
            return True
        except Exception:
            return False

    async def publish(self, heat_id: int, frame_type: str, payload: Any):
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            for websocket in list(self.subscriptions.get(heat_id, ())):
                if not await self.send(websocket, frame_type, payload):
                    logger.info(f"Dropping subscriber of heat {heat_id} after failed send")
                    self.disconnect(websocket)

    async def publish_many(self, frames: Iterable[tuple]):
        for heat_id, frame_type, payload in frames:
            await self.publish(heat_id, frame_type, payload)

    def publish_threadsafe(self, frames: Iterable[tuple]):
        """
        Hand frames over from the runner thread to the event loop.
        Dropped silently when the loop is not running (startup/shutdown).
        """
        loop = self._loop
        if loop is None or not loop.is_running():
            return None
        future = asyncio.run_coroutine_threadsafe(self.publish_many(list(frames)), loop)
        future.add_done_callback(_log_publish_failure)
        return future
