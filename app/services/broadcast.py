import asyncio
import logging
from typing import Any, Dict, Optional

from app.services.websocket import ConnectionManager, manager

logger = logging.getLogger(__name__)


class BroadcastBus:
    """
    Fans committed records out to every connection, one message at a time.

    ``publish`` only enqueues and never suspends, so calling it right after a
    commit keeps the queue in commit order. A single dispatcher task awaits
    the whole fan-out of a message before taking the next one, which gives
    every connection the same delivery order.
    """

    def __init__(self, registry: ConnectionManager):
        self.registry = registry
        self._queue: Optional[asyncio.Queue] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        if self.running:
            return
        self._queue = asyncio.Queue()
        self._task = asyncio.create_task(self._dispatch_loop(self._queue))
        logger.info("Broadcast dispatcher started")

    async def stop(self):
        task, self._task = self._task, None
        self._queue = None
        if task and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            logger.info("Broadcast dispatcher stopped")

    def publish(self, event: str, data: Any) -> None:
        if self._queue is None:
            logger.warning("Broadcast dispatcher not running, dropping %s", event)
            return
        self._queue.put_nowait({"type": event, "data": data})

    async def join(self):
        """Wait until everything published so far has been fanned out."""
        if self._queue is not None:
            await self._queue.join()

    async def _dispatch_loop(self, queue: asyncio.Queue):
        while True:
            message: Dict[str, Any] = await queue.get()
            try:
                result = await self.registry.broadcast(message)
                logger.debug("Broadcast %s | %s", message["type"], result)
            except Exception:
                logger.exception("Broadcast of %s failed", message["type"])
            finally:
                queue.task_done()


broadcast_bus = BroadcastBus(manager)
