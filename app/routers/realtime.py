import json
import logging
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from app.services.room import UpdateOutcome, room_service
from app.services.websocket import manager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime"])


@router.get("/realtime/stats")
async def realtime_stats():
    return await manager.get_stats()


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    connection_id = None

    try:
        # 1. ACCEPT
        await websocket.accept()

        # 2. REGISTER + SNAPSHOT
        connection_id = await manager.connect(
            websocket,
            snapshot_loader=room_service.load_snapshot_message,
        )

        # 3. LOOP
        while manager.is_connected(connection_id):
            raw = await websocket.receive_text()
            try:
                data = json.loads(raw)
            except ValueError:
                logger.debug("Ignoring non-JSON frame from conn=%s", connection_id)
                continue

            msg_type = data.get("type") if isinstance(data, dict) else None

            if msg_type == "ping":
                await manager.send_to(connection_id, {"type": "pong"})

            elif msg_type == "update_room":
                result = await room_service.update_room(data.get("data"))
                if result.outcome != UpdateOutcome.APPLIED:
                    logger.debug("update_room from conn=%s: %s", connection_id, result.outcome.value)

            else:
                logger.debug("Ignoring unknown message type %r from conn=%s", msg_type, connection_id)

    except WebSocketDisconnect:
        logger.info("WS disconnected conn=%s", connection_id)

    except Exception:
        logger.exception("WebSocket fatal error")

    finally:
        if connection_id:
            await manager.disconnect(connection_id)
