from typing import Optional
import uvicorn
from fastapi import FastAPI
from upload_server.api.routers import files
from upload_server.api import auth
from upload_server.core.config import Settings, settings as default_settings
from upload_server.core.errors import register_error_handlers
from upload_server.core.logging_config import setup_logging
from upload_server.services.cleanup_service import setup_cleanup_tasks
from upload_server.services.file_service import FileService
from upload_server.services.state_store import UploadStateStore
from upload_server.services.upload_service import UploadService
from upload_server.utils.file_utils import ensure_directory_exists

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application. The upload state store lives on app.state and is
    shared by every request handled by this app instance.
    """
    settings = settings or default_settings
    setup_logging(settings.LOG_LEVEL)
    ensure_directory_exists(settings.UPLOAD_DIR)

    app = FastAPI(title=settings.PROJECT_NAME)

    store = UploadStateStore()
    app.state.settings = settings
    app.state.upload_store = store
    app.state.upload_service = UploadService(settings, store)
    app.state.file_service = FileService(settings, store)

    register_error_handlers(app)

    # Include routers
    app.include_router(files.router)
    app.include_router(files.protected)
    app.include_router(auth.router, prefix="/auth")

    @app.get("/health")
    def get_health():
        return {"status": "ok"}

    # Set up background cleanup tasks
    setup_cleanup_tasks(app, store, settings)

    return app

# Create FastAPI application
app = create_app()

if __name__ == "__main__":
    uvicorn.run("main:app", host=default_settings.HOST, port=default_settings.PORT)
