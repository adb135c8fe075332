import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..heats.catalog import catalog_ids
from ..hub import ConnectionManager
from ..simulation.driver import SimulationDriver

logger = logging.getLogger("WebSocket")

router = APIRouter()


def _parse_heat_id(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


async def _send_snapshot(hub: ConnectionManager, driver: SimulationDriver,
                         websocket: WebSocket, heat_id: int):
    state = driver.status(heat_id)
    if state is None:
        await hub.send(websocket, "not_running", {"heatId": heat_id})
    else:
        await hub.send(websocket, "heat_state", state.to_dict())


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    hub: ConnectionManager = websocket.app.state.hub
    driver: SimulationDriver = websocket.app.state.driver

    await hub.connect(websocket)
    raw_heat_id = websocket.query_params.get("heatId")
    heat_id = _parse_heat_id(raw_heat_id)

    try:
        if heat_id is not None:
            hub.subscribe(websocket, heat_id)
            # reconnecting clients get the latest snapshot without waiting for a tick
            await _send_snapshot(hub, driver, websocket, heat_id)
        else:
            if raw_heat_id is not None:
                await hub.send(websocket, "error", {"message": f"Invalid heatId '{raw_heat_id}'"})
            heats = sorted(set(catalog_ids()) | set(driver.heat_ids()))
            await hub.send(websocket, "available_heats", heats)

        while True:
            text = await websocket.receive_text()
            try:
                message = json.loads(text)
            except ValueError:
                await hub.send(websocket, "error", {"message": "Invalid JSON"})
                continue
            if not isinstance(message, dict):
                await hub.send(websocket, "error", {"message": "Expected a JSON object"})
                continue

            msg_type = message.get("type")
            if msg_type == "ping":
                await hub.send(websocket, "pong", {"ts": datetime.now(timezone.utc).isoformat()})
            elif msg_type == "subscribe":
                payload = message.get("payload")
                requested = message.get("heatId")
                if requested is None and isinstance(payload, dict):
                    requested = payload.get("heatId")
                new_heat_id = _parse_heat_id(requested)
                if new_heat_id is None:
                    await hub.send(websocket, "error", {"message": "subscribe requires an integer heatId"})
                    continue
                hub.subscribe(websocket, new_heat_id)
                await _send_snapshot(hub, driver, websocket, new_heat_id)
            elif msg_type == "unsubscribe":
                hub.unsubscribe(websocket)
            else:
                await hub.send(websocket, "error", {"message": f"Unknown message type '{msg_type}'"})
    except WebSocketDisconnect:
        pass
    finally:
        hub.disconnect(websocket)
