"""Activity Log Viewer FastAPI backend: main application entry point."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from activity_viewer import config
from activity_viewer.file_watcher import LogFileSource, default_ticks, live_tail
from activity_viewer.log_store import load_log_file, log_store, start_live_tail
from activity_viewer.observability import initialize as initialize_observability, shutdown as shutdown_observability
from activity_viewer.routers.analytics import analytics_router
from activity_viewer.routers.api import log_router, tail_router

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("activity_viewer")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    logger.info("Activity viewer backend starting up")
    initialize_observability(app)

    if config.LOG_FILE is not None:
        source = LogFileSource(config.LOG_FILE)
        try:
            await load_log_file(log_store, source)
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Could not load {config.LOG_FILE}: {e}")
        else:
            if config.LIVE_TAIL_ENABLED:
                await start_live_tail(log_store, live_tail, source, default_ticks(source.path))

    yield

    logger.info("Activity viewer backend shutting down")
    await live_tail.stop()
    shutdown_observability(app)


app = FastAPI(
    title="Activity Log Viewer API",
    description="Backend API for browsing and tailing agent activity logs",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS: allow the Vite dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        config.FRONTEND_ORIGIN,
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(log_router)
app.include_router(tail_router)
app.include_router(analytics_router)


@app.get("/api/health")
def health():
    """Health check endpoint."""
    return {
        "status": "ok",
        "log": log_store.metadata.fileName or None,
        "entries": len(log_store.entries),
        "tail": live_tail.state.value,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=config.HOST, port=config.PORT)
