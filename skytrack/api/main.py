"""
FastAPI Application — SkyTrack drone tracking backend.

Serves REST API + WebSocket for the live tracking map and list.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from skytrack.api.broadcast_clock import BroadcastClock
from skytrack.api.ingestion import IngestionService
from skytrack.api.routes.websocket import ConnectionManager, broadcast_tracks
from skytrack.tracking import TrackingEngine
from skytrack.utils.config_loader import Config

logger = logging.getLogger(__name__)

# Global app state (accessed by route modules)
app_state: dict = {}


def _load_config() -> Config:
    config = Config()
    config.load_all()
    return config


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the engine and start services on startup, clean up on shutdown."""
    from dotenv import load_dotenv
    load_dotenv()

    t0 = time.perf_counter()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    config = _load_config()
    app_state["config"] = config

    engine = TrackingEngine(config.tracking)
    app_state["engine"] = engine
    app_state["ingestion_service"] = IngestionService(engine)
    app_state["ws_manager"] = ConnectionManager()

    app_state["metrics"] = {
        "start_time": time.time(),
    }

    # Push snapshots to WebSocket clients whenever the tracks change
    clock = BroadcastClock(interval_s=config.api.broadcast_interval_s)
    clock.on_tick(broadcast_tracks)
    app_state["clock"] = clock
    await clock.start()

    elapsed = time.perf_counter() - t0
    logger.info("Backend ready in %.2fs — id mode %s, proximity %s (%s)",
                elapsed, config.tracking.id_mode,
                config.tracking.proximity_threshold, config.tracking.distance_metric)

    yield

    # Shutdown
    await clock.stop()
    app_state.clear()
    logger.info("Backend shut down")


app = FastAPI(
    title="SkyTrack API",
    description="Live drone track reconciliation backend",
    version="0.1.0",
    lifespan=lifespan,
)

_cors = _load_config().api
if _cors.enable_cors:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# Register routes
from skytrack.api.routes.tracks import router as tracks_router
from skytrack.api.routes.ingestion import router as ingestion_router
from skytrack.api.routes.broadcast import router as broadcast_router
from skytrack.api.routes.websocket import router as ws_router
from skytrack.api.routes.metrics import router as metrics_router

app.include_router(tracks_router)
app.include_router(ingestion_router)
app.include_router(broadcast_router)
app.include_router(ws_router)
app.include_router(metrics_router)


@app.get("/api/health")
async def health():
    """Health check endpoint."""
    engine = app_state.get("engine")
    return {
        "status": "ok",
        "tracks": len(engine.snapshot().tracks) if engine else 0,
        "id_mode": engine.config.id_mode if engine else None,
    }
