import asyncio
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional, Tuple
from fastapi import WebSocket
from datetime import datetime, timezone
from collections import deque
import logging
import secrets

from app.core.config import settings

logger = logging.getLogger(__name__)

SnapshotLoader = Callable[[], Awaitable[Dict[str, Any]]]


class ConnectionManager:
    def __init__(self, send_timeout: float = 10.0, heartbeat_interval: float = 30.0):
        self.send_timeout = send_timeout
        self.heartbeat_interval = heartbeat_interval

        # {connection_id: WebSocket}
        self.active_connections: Dict[str, WebSocket] = {}

        # {connection_id: metadata}
        self.connection_metadata: Dict[str, Dict[str, Any]] = {}

        # {connection_id: deque([message])} until the snapshot has been delivered
        self.pending_messages: Dict[str, Deque[Dict[str, Any]]] = {}

        self.lock = asyncio.Lock()
        self._heartbeat_task: Optional[asyncio.Task] = None

    # =====================================================
    # LIFECYCLE
    # =====================================================

    def start(self):
        """Bind to the running loop; called once at application startup."""
        self.lock = asyncio.Lock()
        self.start_heartbeat()

    async def stop(self):
        await self.stop_heartbeat()

    # =====================================================
    # HEARTBEAT
    # =====================================================

    def start_heartbeat(self):
        if not self._heartbeat_task or self._heartbeat_task.done():
            self._heartbeat_task = asyncio.create_task(self._heartbeat_loop())
            logger.info("WebSocket heartbeat started (every %ss)", self.heartbeat_interval)

    async def stop_heartbeat(self):
        task, self._heartbeat_task = self._heartbeat_task, None
        if task and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            logger.info("WebSocket heartbeat stopped")

    async def _heartbeat_loop(self):
        while True:
            await asyncio.sleep(self.heartbeat_interval)
            try:
                # dead sockets fail the send and get pruned by broadcast()
                await self.broadcast({"type": "heartbeat"}, buffer_pending=False)
            except Exception:
                logger.exception("Heartbeat loop error")

    # =====================================================
    # CONNECTION LIFECYCLE
    # =====================================================

    async def connect(
        self,
        websocket: WebSocket,
        snapshot_loader: Optional[SnapshotLoader] = None,
        connection_id: Optional[str] = None
    ) -> str:
        """
        Register an accepted websocket and hand it the initial snapshot.

        The handle is registered *before* the snapshot is loaded, and broadcasts
        that arrive meanwhile are held back until the snapshot went out. A
        client therefore never sees an update older than its snapshot, at worst
        one it already has.
        """
        if not connection_id:
            connection_id = secrets.token_hex(8)

        async with self.lock:
            self.active_connections[connection_id] = websocket
            self.connection_metadata[connection_id] = {
                "connected_at": datetime.now(timezone.utc),
                "ready": False,
            }
            self.pending_messages[connection_id] = deque()

        logger.info(
            "WS connected | conn=%s | total=%d",
            connection_id,
            len(self.active_connections),
        )

        if snapshot_loader is not None:
            try:
                snapshot = await snapshot_loader()
            except Exception:
                logger.exception("Failed to load initial data for conn=%s", connection_id)
            else:
                if not await self._send(connection_id, websocket, snapshot):
                    logger.warning("Initial data not delivered to conn=%s", connection_id)

        await self._flush_pending(connection_id)
        return connection_id

    async def disconnect(self, connection_id: str):
        async with self.lock:
            removed = self.active_connections.pop(connection_id, None) is not None
            self.connection_metadata.pop(connection_id, None)
            self.pending_messages.pop(connection_id, None)
            remaining = len(self.active_connections)

        if removed:
            logger.info("WS disconnected | conn=%s | remaining=%d", connection_id, remaining)

    def is_connected(self, connection_id: str) -> bool:
        return connection_id in self.active_connections

    # =====================================================
    # HELD-BACK MESSAGES
    # =====================================================

    async def _flush_pending(self, connection_id: str):
        while True:
            async with self.lock:
                queue = self.pending_messages.get(connection_id)
                if queue is None:
                    return
                if not queue:
                    del self.pending_messages[connection_id]
                    self.connection_metadata[connection_id]["ready"] = True
                    return
                message = queue.popleft()
                websocket = self.active_connections[connection_id]

            if not await self._send(connection_id, websocket, message):
                await self._drop(connection_id, websocket)
                return

    # =====================================================
    # SEND
    # =====================================================

    async def _send(self, connection_id: str, websocket: WebSocket, message: Dict[str, Any]) -> bool:
        try:
            await asyncio.wait_for(websocket.send_json(message), timeout=self.send_timeout)
            return True
        except Exception as e:
            logger.warning("Send to conn=%s failed: %r", connection_id, e)
            return False

    async def _drop(self, connection_id: str, websocket: WebSocket):
        # closing ends the receive loop so the client reconnects for a fresh snapshot
        await self.disconnect(connection_id)
        try:
            await asyncio.wait_for(websocket.close(), timeout=self.send_timeout)
        except Exception as e:
            logger.debug("Close of conn=%s failed: %r", connection_id, e)

    async def send_to(self, connection_id: str, message: Dict[str, Any]) -> bool:
        async with self.lock:
            websocket = self.active_connections.get(connection_id)
        if websocket is None:
            return False
        if await self._send(connection_id, websocket, message):
            return True
        await self._drop(connection_id, websocket)
        return False

    async def broadcast(self, message: Dict[str, Any], buffer_pending: bool = True) -> Dict[str, int]:
        """Send one message to every registered connection, sender included."""

        # SNAPSHOT connections
        targets: List[Tuple[str, WebSocket]] = []
        buffered = 0
        async with self.lock:
            for conn_id, ws in self.active_connections.items():
                queue = self.pending_messages.get(conn_id)
                if queue is None:
                    targets.append((conn_id, ws))
                elif buffer_pending:
                    queue.append(message)
                    buffered += 1

        results = await asyncio.gather(
            *[self._send(conn_id, ws, message) for conn_id, ws in targets]
        )

        failed = [(conn_id, ws) for (conn_id, ws), ok in zip(targets, results) if not ok]
        for conn_id, ws in failed:
            await self._drop(conn_id, ws)

        return {
            "sent": len(targets) - len(failed),
            "buffered": buffered,
            "failed": len(failed),
        }

    # =====================================================
    # STATS
    # =====================================================

    async def get_stats(self):
        async with self.lock:
            total = len(self.active_connections)
            return {
                "total_connections": total,
                "awaiting_snapshot": len(self.pending_messages),
                "ready_connections": total - len(self.pending_messages),
            }


manager = ConnectionManager(
    send_timeout=settings.WS_SEND_TIMEOUT,
    heartbeat_interval=settings.WS_HEARTBEAT_INTERVAL,
)
