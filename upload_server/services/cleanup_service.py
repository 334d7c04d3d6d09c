import asyncio
import logging
import time
from fastapi import FastAPI
from upload_server.core.config import Settings
from upload_server.services.state_store import UploadStateStore

logger = logging.getLogger(__name__)

def evict_stale_sessions(store: UploadStateStore, timeout_seconds: float) -> int:
    """
    Drop sessions that have not received a chunk for ``timeout_seconds``.
    Partial files stay on disk so the client can still resume from them.
    """
    stale_threshold = time.monotonic() - timeout_seconds
    evicted = 0
    for key in store.stale_keys(stale_threshold):
        if store.delete(key):
            logger.info(f"Evicted stale upload session: {key}")
            evicted += 1
    return evicted

async def cleanup_stale_sessions(store: UploadStateStore, settings: Settings):
    """
    Periodically evict stale upload sessions.
    """
    while True:
        try:
            logger.debug("Running cleanup task for stale upload sessions")
            evict_stale_sessions(store, settings.STALE_UPLOAD_TIMEOUT_SECONDS)
        except Exception as e:
            logger.error(f"Error in cleanup task: {str(e)}")

        # Wait for next run
        await asyncio.sleep(settings.CLEANUP_INTERVAL_SECONDS)

def setup_cleanup_tasks(app: FastAPI, store: UploadStateStore, settings: Settings):
    """
    Start the sweeper with the application when a stale timeout is configured.
    """
    if settings.STALE_UPLOAD_TIMEOUT_SECONDS <= 0:
        return

    @app.on_event("startup")
    async def start_cleanup_task():
        app.state.cleanup_task = asyncio.create_task(cleanup_stale_sessions(store, settings))

    @app.on_event("shutdown")
    async def stop_cleanup_task():
        task = getattr(app.state, "cleanup_task", None)
        if task is not None:
            task.cancel()
