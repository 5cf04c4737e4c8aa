"""
carewatch/main.py
============================================
FastAPI Application for Caregiver Monitoring
============================================

Main entry point of the caregiver monitoring backend. Devices post location
samples over HTTP; each sample runs through the telemetry pipeline and is
fanned out to the caregiver's live dashboards over WebSocket.

Architecture Overview:
---------------------
- REST API: device ingress (/telemetry) and dashboard queries (/history, /safe_zones)
- WebSocket: per-caregiver live channel (/live/{caregiver_id}) and system logs (/logs)
- Ingest runs on FastAPI's threadpool; WebSocket pushes are scheduled back
  onto the main event loop

Run:
    uvicorn carewatch.main:app --reload
"""

# Environment Configuration
from dotenv import load_dotenv
import os
load_dotenv()

# FastAPI Core
from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import asyncio

from carewatch.Core.config import settings
from carewatch.Controller.Routes import telemetry, history, safe_zones

# WebSocket Management
from carewatch.Core import log_ws, live_ws

# Database
from carewatch.DB.base import Base
from carewatch.DB.session import engine


# ============================================================
# DYNAMIC CORS CONFIGURATION
# ============================================================
def _parse_origins(csv_value: str):
    """
    Parse comma-separated origin values into a list for CORS configuration.

    Returns:
        Tuple of (is_wildcard: bool, origins: list)

    Examples:
        "*" → (True, ["*"])
        "https://app.com,https://admin.app.com" → (False, ["https://app.com", "https://admin.app.com"])
        "" → (False, [])
    """
    if not csv_value:
        return (False, [])

    csv_value = csv_value.strip()

    if csv_value == "*":
        return (True, ["*"])

    origins = [origin.strip() for origin in csv_value.split(",") if origin.strip()]
    return (False, origins)


_http_allow_all, _http_origins = _parse_origins(
    os.getenv("HTTP_ALLOWED_ORIGINS", "*")
)
_ws_allow_all, _ws_origins = _parse_origins(
    os.getenv("WS_ALLOWED_ORIGINS", "*")
)


# ============================================================
# APPLICATION LIFESPAN MANAGEMENT
# ============================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup:
        1. Hand the running event loop to the WebSocket managers
        2. Create missing tables when DB_AUTO_CREATE is enabled
           (production schemas are managed with Alembic)
    """
    loop = asyncio.get_running_loop()
    log_ws.log_ws_manager.set_main_loop(loop)
    live_ws.live_ws_manager.set_main_loop(loop)

    if settings.DB_AUTO_CREATE:
        Base.metadata.create_all(bind=engine)
        print("[STARTUP] Database tables verified")

    print("[STARTUP] Application initialization complete")

    yield

    print("[SHUTDOWN] Application shutdown initiated")


# ============================================================
# APPLICATION INSTANCE CREATION
# ============================================================
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_http_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health():
    """Liveness probe for the load balancer / orchestrator."""
    return {"status": "ok"}


# ============================================================
# REST API ROUTE REGISTRATION
# ============================================================
app.include_router(telemetry.router, prefix="/telemetry", tags=["telemetry"])
app.include_router(history.router, prefix="/history", tags=["history"])
app.include_router(safe_zones.router, prefix="/safe_zones", tags=["safe_zones"])


# ============================================================
# WEBSOCKET ENDPOINTS
# ============================================================
def _origin_allowed(ws: WebSocket) -> bool:
    origin = ws.headers.get("origin")
    if _ws_allow_all or origin in _ws_origins:
        return True
    print(f"[WS] Connection rejected - unauthorized origin: {origin}")
    return False


async def socket_handler(ws: WebSocket, manager):
    """
    Generic WebSocket lifecycle: origin check, register, message loop, cleanup.
    """
    if not _origin_allowed(ws):
        await ws.close(code=1008)
        return

    await manager.register(ws)

    try:
        while True:
            message = await ws.receive_text()
            await manager.handle_message(ws, message)
    except Exception as e:
        print(f"[WS] Connection closed: {e}")
    finally:
        manager.unregister(ws)


@app.websocket("/logs")
async def websocket_logs(ws: WebSocket):
    """
    Real-time system log stream.

    Message Format:
        {"msg_type": "log" | "error" | "warning", "message": "..."}
    """
    await socket_handler(ws, log_ws.log_ws_manager)


@app.websocket("/live/{caregiver_id}")
async def websocket_live(ws: WebSocket, caregiver_id: str):
    """
    Live dashboard channel of one caregiver.

    Every record committed for the caregiver after the connection opens is
    pushed as a "live_update" message; earlier records are not replayed.
    """
    if not _origin_allowed(ws):
        await ws.close(code=1008)
        return

    manager = live_ws.live_ws_manager
    await manager.connect_viewer(ws, caregiver_id)

    try:
        while True:
            message = await ws.receive_text()
            await manager.handle_message(ws, message)
    except Exception as e:
        print(f"[LIVE-WS] Connection closed for {caregiver_id}: {e}")
    finally:
        manager.disconnect_viewer(ws)


# ============================================================
# API INFORMATION ENDPOINT
# ============================================================
@app.get("/api")
def api_info():
    """API discovery and current configuration."""
    return {
        "status": "online",
        "version": settings.PROJECT_VERSION,
        "architecture": "REST + WebSocket",
        "features": {
            "websockets": ["/logs", "/live/{caregiver_id}"],
            "silent_initial_containment": settings.SILENT_INITIAL_CONTAINMENT,
            "zone_lookup_fail_open": settings.ZONE_LOOKUP_FAIL_OPEN,
        },
        "endpoints": {
            "telemetry": "/telemetry",
            "history": "/history, /history/last, /history/summary",
            "safe_zones": "/safe_zones",
            "live": "/live/{caregiver_id} (WebSocket)",
            "logs": "/logs (WebSocket)",
            "health": "/health"
        }
    }
