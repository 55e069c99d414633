"""
WebSocket endpoint — pushes track snapshots and accepts drone messages.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

router = APIRouter(tags=["websocket"])
logger = logging.getLogger(__name__)


class ConnectionManager:
    """Manages WebSocket connections and broadcasts track snapshots."""

    def __init__(self):
        self.active_connections: list[WebSocket] = []
        self.last_revision: int | None = None

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.active_connections.append(websocket)
        logger.info("WebSocket connected (%d total)", len(self.active_connections))

    def disconnect(self, websocket: WebSocket) -> None:
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)
        logger.info("WebSocket disconnected (%d total)", len(self.active_connections))

    async def broadcast(self, message: dict[str, Any]) -> None:
        """Send JSON message to all connected clients."""
        if not self.active_connections:
            return

        data = json.dumps(message)
        disconnected = []
        for conn in self.active_connections:
            try:
                await conn.send_text(data)
            except Exception:
                disconnected.append(conn)

        for conn in disconnected:
            self.disconnect(conn)

    @property
    def count(self) -> int:
        return len(self.active_connections)


def get_manager() -> ConnectionManager:
    from skytrack.api.main import app_state
    return app_state["ws_manager"]


def snapshot_message(engine) -> dict[str, Any]:
    """Build the ``tracks`` push message from an engine snapshot."""
    from skytrack.api.routes.tracks import to_summary

    snapshot = engine.snapshot()
    now = engine.clock()
    return {
        "type": "tracks",
        "revision": snapshot.revision,
        "selected_id": snapshot.selected_id,
        "tracks": [
            {
                **to_summary(track, now).model_dump(),
                "trail": [list(point) for point in track.trail],
            }
            for track in snapshot.sorted_tracks()
        ],
    }


async def _handle_message(websocket: WebSocket, msg: Any) -> None:
    from skytrack.api.main import app_state

    engine = app_state["engine"]
    msg_type = msg.get("type") if isinstance(msg, dict) else None

    if msg_type == "ping":
        await websocket.send_text(json.dumps({"type": "pong"}))
        return

    if msg_type == "select":
        track_id = msg.get("id")
        if track_id is not None and not isinstance(track_id, str):
            await websocket.send_text(json.dumps({"type": "error", "detail": "Track id must be a string or null"}))
            return
        selected = engine.set_selection(track_id)
        await websocket.send_text(json.dumps({"type": "selection", "track_id": selected}))
        return

    try:
        tracks = app_state["ingestion_service"].ingest_payload(msg)
    except ValueError as e:
        await websocket.send_text(json.dumps({"type": "error", "detail": str(e)}))
        return

    await websocket.send_text(json.dumps({
        "type": "ack",
        "track_ids": [t.track_id for t in tracks],
    }))


@router.websocket("/api/ws")
async def websocket_endpoint(websocket: WebSocket):
    """
    WebSocket endpoint for real-time track updates.

    Clients receive a snapshot on connect and whenever the tracks change:
    {
        "type": "tracks",
        "revision": 42,
        "selected_id": "t1",
        "tracks": [
            {"id": "t1", "registration": "SG-BA", "lng": 35.9, "lat": 31.95, ..., "trail": [[35.9, 31.95], ...]},
            ...
        ]
    }

    Clients may send {"type": "ping"}, {"type": "select", "id": ...},
    flat drone messages ({"type": "drone", "lng": ..., "lat": ...}) or
    GeoJSON FeatureCollections.
    """
    from skytrack.api.main import app_state

    manager = get_manager()
    await manager.connect(websocket)
    try:
        await websocket.send_text(json.dumps(snapshot_message(app_state["engine"])))
        while True:
            data = await websocket.receive_text()
            try:
                msg = json.loads(data)
            except json.JSONDecodeError:
                await websocket.send_text(json.dumps({"type": "error", "detail": "Invalid JSON"}))
                continue
            await _handle_message(websocket, msg)
    except WebSocketDisconnect:
        pass
    finally:
        manager.disconnect(websocket)


async def broadcast_tracks(tick: int) -> None:
    """
    Callback for BroadcastClock — pushes a snapshot when the engine changed.
    Called once per clock tick.
    """
    from skytrack.api.main import app_state

    engine = app_state.get("engine")
    manager = app_state.get("ws_manager")
    if engine is None or manager is None:
        return

    revision = engine.revision
    if revision == manager.last_revision:
        return
    manager.last_revision = revision

    await manager.broadcast(snapshot_message(engine))
