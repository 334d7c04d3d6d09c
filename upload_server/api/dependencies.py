from fastapi import Request
from upload_server.core.config import Settings
from upload_server.services.file_service import FileService
from upload_server.services.upload_service import UploadService

# Services are built once by create_app and kept on app.state
def get_settings(request: Request) -> Settings:
    return request.app.state.settings

def get_upload_service(request: Request) -> UploadService:
    return request.app.state.upload_service

def get_file_service(request: Request) -> FileService:
    return request.app.state.file_service
