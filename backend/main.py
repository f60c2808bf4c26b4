"""
Basemap Sync API
================

FastAPI entry point. The browser map reports its view here and follows the
overlay commands streamed back from /api/basemap/events.
"""

import logging
import sys
import time

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

load_dotenv()  # BASEMAP_* settings may live in .env

# Windows consoles default to cp1252 and choke on the log emojis
for stream in (sys.stdout, sys.stderr):
    try:
        stream.reconfigure(encoding="utf-8", errors="replace")
    except AttributeError:
        pass

from api.router import api_router
from pipelines.mapping.basemap.types import BasemapError, BoundsError, ConfigError
from services.basemap.session import get_basemap_session
from services.logging_service import init_logging

LEVEL_STYLES = {
    logging.DEBUG: ("\033[36m", "🔍"),
    logging.INFO: ("\033[32m", "ℹ️"),
    logging.WARNING: ("\033[33m", "⚠️"),
    logging.ERROR: ("\033[31m", "❌"),
    logging.CRITICAL: ("\033[35m", "🚨"),
}
RESET = "\033[0m"


class ColoredFormatter(logging.Formatter):
    """Console formatter: colored level tag, basemap loggers shortened to their module"""

    def format(self, record):
        color, emoji = LEVEL_STYLES.get(record.levelno, ("", ""))
        # Work on a copy; the file and ring buffer handlers share the record
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{color}{emoji} {record.levelname}{RESET}"
        if record.name.startswith("pipelines.mapping.basemap."):
            record.name = "basemap." + record.name.rsplit(".", 1)[-1]
        return super().format(record)


def setup_logging(level: int = logging.INFO) -> None:
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(ColoredFormatter("%(asctime)s %(levelname)s %(name)s: %(message)s", "%H:%M:%S"))
    root.setLevel(level)
    root.addHandler(console)

    # Zoom policy logs every out-of-range refresh at DEBUG
    logging.getLogger("pipelines.mapping.basemap.zoom_policy").setLevel(logging.INFO)
    logging.getLogger("uvicorn.error").setLevel(logging.WARNING)


setup_logging()
try:
    init_logging()
except OSError as e:
    logging.getLogger(__name__).warning(f"⚠️ File logging unavailable: {e}")
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Basemap Sync API",
    description="Keeps a background basemap aligned with the primary map view",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # The map front end is served from a different origin in dev
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.on_event("startup")
async def startup_event():
    logger.info("🚀 Starting Basemap Sync API Server")
    session = get_basemap_session()
    if session.enabled:
        names = ", ".join(style.name for style in session.config.styles)
        logger.info(f"🗺️ Basemap enabled: {names}")
        if session.config.load_timeout_seconds is None:
            logger.info("🗺️ Overlay load timeout disabled")
    else:
        logger.info("🗺️ Basemap disabled; the basemap button will be hidden")


@app.on_event("shutdown")
async def shutdown_event():
    session = get_basemap_session()
    logger.info(f"🛑 Shutting down ({session.bus.get_subscriber_count()} SSE clients connected)")


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    response.headers["X-Process-Time"] = f"{time.time() - start_time:.4f}"
    return response


@app.exception_handler(BasemapError)
async def basemap_exception_handler(request: Request, exc: BasemapError):
    """Basemap errors that escape the controller, reported with their type"""
    status_code = 422 if isinstance(exc, BoundsError) else 500
    if isinstance(exc, ConfigError):
        logger.error(f"❌ Basemap configuration error on {request.url.path}: {exc}")
    else:
        logger.warning(f"⚠️ {type(exc).__name__} on {request.url.path}: {exc}")
    return JSONResponse(status_code=status_code, content={"error": type(exc).__name__, "detail": str(exc)})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"❌ Unhandled exception on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": str(exc) if app.debug else "An unexpected error occurred"
        }
    )


@app.get("/")
async def root():
    return {
        "message": "Basemap Sync API v1.0",
        "status": "running",
        "docs": "/docs",
        "basemap": "/api/basemap/config",
        "events": "/api/basemap/events",
    }


if __name__ == "__main__":
    logger.info("🔧 Starting Basemap Sync API Server in development mode")
    uvicorn.run(
        "main:app",
        host="127.0.0.1",
        port=8000,
        reload=False,
        log_level="info",
        access_log=True
    )
