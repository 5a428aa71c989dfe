"""
Raster Playback Service
=======================

FastAPI entry point for the frame preloading and playback engine.

Endpoints:
    GET  /           - Service information
    GET  /health     - Liveness probe
    GET  /status     - Preload status, playback state and session condition
    GET  /frames     - Catalog of available frames
    GET  /metrics    - Prober and catalog metrics
    POST /range      - Range trigger ({start, end}; malformed -> default range)
    POST /refresh    - Re-probe the current range
    POST /play       - Start or resume playback
    POST /pause      - Pause playback
    POST /reset      - Reset playback to IDLE
    POST /speed      - Change milliseconds between frames
    POST /layers     - Replace rendered layers
    WS   /ws/frames  - Active-frame feed
"""

import asyncio
import logging
import os
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, Union

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from raster_playback.config import settings
from raster_playback.addressing import LocatorTemplate
from raster_playback.models.api import LayersRequest, RangeRequest, SpeedRequest
from raster_playback.probe import (
    AvailabilityProber,
    HttpExistenceCheck,
    StaticExistenceCheck,
)
from raster_playback.render import RecordingDisplaySink, RecordingSurface
from raster_playback.session import SessionController


logger = logging.getLogger(__name__)


# =============================================================================
# Global State
# =============================================================================

_existence_check: Optional[Union[HttpExistenceCheck, StaticExistenceCheck]] = None
_prober: Optional[AvailabilityProber] = None
_controller: Optional[SessionController] = None
_surface: Optional[RecordingSurface] = None
_display_sink: Optional[RecordingDisplaySink] = None
_startup_time: float = 0.0


# =============================================================================
# Getters
# =============================================================================

def get_controller() -> Optional[SessionController]:
    return _controller

def get_surface() -> Optional[RecordingSurface]:
    return _surface

def get_prober() -> Optional[AvailabilityProber]:
    return _prober


# =============================================================================
# Existence Check Factory
# =============================================================================

def create_existence_check() -> Union[HttpExistenceCheck, StaticExistenceCheck]:
    """
    Create the existence-check backend selected in config.

    Fails fast on an unknown backend name.
    """
    backend = settings.probe.backend

    if backend == "http":
        logger.info(
            f"Using HttpExistenceCheck: timeout={settings.probe.timeout_seconds}s, "
            f"suffix={settings.probe.probe_suffix!r}"
        )
        return HttpExistenceCheck(
            timeout=settings.probe.timeout_seconds,
            probe_suffix=settings.probe.probe_suffix,
        )

    elif backend == "mock":
        logger.info(
            f"Using StaticExistenceCheck: {len(settings.probe.mock_missing)} missing locators"
        )
        return StaticExistenceCheck(missing=settings.probe.mock_missing)

    else:
        raise ValueError(f"Unknown probe backend: {backend}")


def _require_controller() -> SessionController:
    controller = get_controller()
    if controller is None:
        raise RuntimeError("Session not initialized")
    return controller


def _status_payload(controller: SessionController) -> dict:
    displayed = _display_sink.current if _display_sink is not None else None
    return {
        **controller.snapshot(),
        "display_time": displayed.as_dict() if displayed is not None else None,
    }


# =============================================================================
# Lifespan Management
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager with graceful shutdown."""
    global _existence_check, _prober, _controller
    global _surface, _display_sink, _startup_time

    _startup_time = time.time()
    logger.info(f"Starting {settings.service.name} {settings.service.version}")

    template = LocatorTemplate(
        root=settings.addressing.root,
        path=settings.addressing.path_template,
    )
    _existence_check = create_existence_check()
    _prober = AvailabilityProber(
        _existence_check,
        template=template,
        batch_size=settings.probe.batch_size,
        check_timeout=settings.probe.timeout_seconds,
    )

    _surface = RecordingSurface()
    _display_sink = RecordingDisplaySink()
    _controller = SessionController(
        _prober,
        interval_minutes=settings.addressing.interval_minutes,
        default_frame_count=settings.session.default_frame_count,
        max_frame_count=settings.session.max_frame_count,
        default_lag_hours=settings.session.default_lag_hours,
        default_wait_seconds=settings.session.default_wait_seconds,
        speed_ms=settings.playback.speed_ms,
        min_speed_ms=settings.playback.min_speed_ms,
        max_speed_ms=settings.playback.max_speed_ms,
        layers=settings.display.layers,
        surface=_surface,
        display_sink=_display_sink,
    )

    if settings.session.autostart:
        _controller.start()

    logger.info("Session ready")

    yield

    logger.info("Shutting down gracefully...")

    await _controller.aclose()
    if isinstance(_existence_check, HttpExistenceCheck):
        await _existence_check.aclose()

    logger.info("Shutdown complete")


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="RasterPlayback",
    description="Temporal frame preloading and animation playback engine",
    version=settings.service.version,
    lifespan=lifespan,
)


# =============================================================================
# HTTP Endpoints
# =============================================================================

@app.get("/")
async def root() -> JSONResponse:
    """Service information endpoint."""
    return JSONResponse({
        "service": "RasterPlayback",
        "version": settings.service.version,
        "name": settings.service.name,
        "status": "running",
        "probe_backend": settings.probe.backend,
        "interval_minutes": settings.addressing.interval_minutes,
    })


@app.get("/health")
async def health() -> JSONResponse:
    """Liveness probe - always 200 while the process is alive."""
    return JSONResponse({
        "status": "healthy",
        "uptime_seconds": round(time.time() - _startup_time, 1),
    })


@app.get("/status")
async def status() -> JSONResponse:
    """Preload status, playback state and session condition."""
    return JSONResponse(_status_payload(_require_controller()))


@app.get("/frames")
async def frames() -> JSONResponse:
    """List frames in the current catalog."""
    controller = _require_controller()
    catalog = controller.catalog

    if catalog is None:
        return JSONResponse(
            {"error": "No catalog available yet", "condition": controller.condition.value},
            status_code=503,
        )

    return JSONResponse({
        "total_frames": catalog.total_frames,
        "available": catalog.size(),
        "missing": catalog.missing_indices(),
        "frames": [frame.to_dict() for frame in catalog],
    })


@app.get("/metrics")
async def metrics() -> JSONResponse:
    """Detailed metrics for observability."""
    controller = _require_controller()
    prober = get_prober()
    catalog = controller.catalog

    return JSONResponse({
        "uptime_seconds": round(time.time() - _startup_time, 1),
        "probe_backend": settings.probe.backend,
        "condition": controller.condition.value,
        "tick_count": controller.scheduler.tick_count,
        **(prober.metrics.to_dict() if prober else {}),
        **(catalog.metrics() if catalog is not None else {}),
    })


@app.post("/range")
async def set_range(request: RangeRequest) -> JSONResponse:
    """Range trigger. Malformed bounds fall back to the default range."""
    controller = _require_controller()
    controller.start_from_params(request.start, request.end)
    return JSONResponse(_status_payload(controller), status_code=202)


@app.post("/refresh")
async def refresh() -> JSONResponse:
    """Re-probe the current range."""
    controller = _require_controller()
    task = controller.refresh()
    return JSONResponse(
        {"started": task is not None, **_status_payload(controller)},
        status_code=202 if task is not None else 409,
    )


@app.post("/play")
async def play() -> JSONResponse:
    """Start or resume playback."""
    controller = _require_controller()
    if not controller.play():
        return JSONResponse(
            {"error": "No frames available", **_status_payload(controller)},
            status_code=409,
        )
    return JSONResponse(_status_payload(controller))


@app.post("/pause")
async def pause() -> JSONResponse:
    """Pause playback."""
    controller = _require_controller()
    controller.pause()
    return JSONResponse(_status_payload(controller))


@app.post("/reset")
async def reset() -> JSONResponse:
    """Reset playback to IDLE."""
    controller = _require_controller()
    controller.reset()
    return JSONResponse(_status_payload(controller))


@app.post("/speed")
async def speed(request: SpeedRequest) -> JSONResponse:
    """Change milliseconds between frames."""
    controller = _require_controller()
    try:
        controller.set_speed(request.speed_ms)
    except ValueError as e:
        return JSONResponse({"error": str(e)}, status_code=422)
    return JSONResponse(_status_payload(controller))


@app.post("/layers")
async def layers(request: LayersRequest) -> JSONResponse:
    """Replace rendered layers; playback restarts from the first frame."""
    controller = _require_controller()
    controller.set_layers(request.layers)
    return JSONResponse(_status_payload(controller))


# =============================================================================
# WebSocket Endpoints
# =============================================================================

@app.websocket("/ws/frames")
async def frame_stream(websocket: WebSocket) -> None:
    """WebSocket endpoint pushing the active frame whenever it changes."""
    await websocket.accept()
    logger.info("Client connected to /ws/frames")

    last_key = None
    try:
        while True:
            controller = _require_controller()
            surface = get_surface()
            key = (
                surface.version if surface else None,
                controller.preload_status.progress_percent,
                controller.condition,
            )
            if key != last_key:
                last_key = key
                await websocket.send_json({
                    **_status_payload(controller),
                    "bindings": [
                        binding.to_dict() for binding in surface.active_bindings()
                    ] if surface else [],
                })
            await asyncio.sleep(settings.server.push_interval_seconds)

    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.warning(f"WebSocket error: {e}")
    finally:
        logger.info("Client disconnected from /ws/frames")


# =============================================================================
# Main Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    port = int(os.environ.get("PORT", settings.server.port))

    uvicorn.run(
        "raster_playback.main:app",
        host=settings.server.host,
        port=port,
        reload=False,
    )
