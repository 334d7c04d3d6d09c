import mimetypes
from typing import Optional
from urllib.parse import quote
from fastapi import APIRouter, Depends, UploadFile, File, Form, Header, HTTPException, Query, status
from fastapi.responses import StreamingResponse
from upload_server.api.schemas import (
    ChunkUploadRequest,
    DirectoryListing,
    PreviewResponse,
    ResumeInfo,
    StatusMessage,
    UploadResponse,
)
from upload_server.api.dependencies import get_file_service, get_settings, get_upload_service
from upload_server.core.auth import get_current_user
from upload_server.core.config import Settings
from upload_server.core.errors import InvalidRequest, NotFound
from upload_server.services import reconciler
from upload_server.services.file_service import FileService
from upload_server.services.upload_service import UploadService
from upload_server.utils.file_utils import resolve_path, stream_size

router = APIRouter(tags=["files"])
protected = APIRouter(tags=["files"], dependencies=[Depends(get_current_user)])

@protected.post("/upload", response_model=UploadResponse, response_model_exclude_none=True)
@protected.post("/upload/{path:path}", response_model=UploadResponse, response_model_exclude_none=True)
async def upload_file_chunk(
    path: str = "",
    file: Optional[UploadFile] = File(None),
    file_name: Optional[str] = Form(None),
    chunk_index: Optional[str] = Form(None),
    total_chunks: Optional[str] = Form(None),
    action: Optional[str] = Form(None),
    upload_service: UploadService = Depends(get_upload_service),
):
    """
    Upload one chunk of a file into the directory given by ``path``.

    Chunks must be sent in order starting at ``next_chunk``. ``action`` is
    one of new, overwrite or resume.
    """
    if file is None:
        raise InvalidRequest("Missing file chunk")

    request = ChunkUploadRequest.parse_form(
        file_name=file_name,
        chunk_index=chunk_index,
        total_chunks=total_chunks,
        action=action,
    )
    chunk_size = file.size if file.size is not None else stream_size(file.file)

    result = await upload_service.ingest(request, file, chunk_size, target_dir=path)

    if result.completed:
        return UploadResponse(
            message="Upload complete",
            file_name=result.file_name,
            completed=True,
            received_chunks=result.received_chunks,
            total_chunks=result.total_chunks,
            file_path=result.file_path,
        )
    return UploadResponse(
        message=f"Chunk {result.received_chunks}/{result.total_chunks} uploaded",
        file_name=result.file_name,
        received_chunks=result.received_chunks,
        total_chunks=result.total_chunks,
        next_chunk=result.next_chunk,
    )

@protected.get("/get_resume_info", response_model=ResumeInfo)
@protected.get("/get_resume_info/{path:path}", response_model=ResumeInfo)
async def get_resume_info(
    path: str = "",
    file_name: Optional[str] = Query(None),
    settings: Settings = Depends(get_settings),
):
    """
    Report how much of ``file_name`` is already on disk in the directory ``path``.
    """
    if not file_name:
        raise InvalidRequest("file_name is required")
    directory = resolve_path(settings.upload_root, path)
    if not directory.is_dir():
        raise NotFound("Directory not found")
    target = resolve_path(directory, file_name, decode=False)
    return reconciler.resume_info(file_name, target, settings.CHUNK_SIZE)

@protected.delete("/delete/{path:path}", response_model=StatusMessage)
async def delete_file(
    path: str,
    file_service: FileService = Depends(get_file_service),
):
    """
    Delete a file or cancel an ongoing upload.
    """
    await file_service.delete_file(path)
    return StatusMessage(message="File deleted")

@protected.get("/preview/{path:path}", response_model=PreviewResponse)
async def preview_file(
    path: str,
    file_service: FileService = Depends(get_file_service),
):
    """
    Return the content of a text file of at most PREVIEW_MAX_SIZE bytes.
    """
    return await file_service.preview(path)

@protected.get("/explore", response_model=DirectoryListing)
@protected.get("/explore/{path:path}", response_model=DirectoryListing)
async def explore_directory(
    path: str = "",
    file_service: FileService = Depends(get_file_service),
):
    """
    List the contents of a directory below the upload root.
    """
    return file_service.explore(path)

@router.get("/download/{path:path}")
async def download_file(
    path: str,
    range: Optional[str] = Header(None),
    file_service: FileService = Depends(get_file_service),
):
    """
    Download a complete file or a specific range.
    Supports partial content requests using the Range header.
    """
    file_path, file_size = file_service.stat_download(path)

    # Handle range request
    start_byte = 0
    end_byte = file_size - 1

    if range:
        try:
            range_str = range.strip().replace("bytes=", "")
            if "-" not in range_str or "," in range_str:
                raise ValueError(range)
            range_parts = range_str.split("-")
            if range_parts[0]:
                start_byte = int(range_parts[0])
                if range_parts[1]:
                    end_byte = min(int(range_parts[1]), file_size - 1)
            elif range_parts[1]:
                # suffix range: last N bytes
                start_byte = max(file_size - int(range_parts[1]), 0)
            else:
                raise ValueError(range)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid range header format"
            )

        # Validate range
        if start_byte >= file_size or start_byte > end_byte:
            raise HTTPException(
                status_code=status.HTTP_416_REQUESTED_RANGE_NOT_SATISFIABLE,
                detail=f"Range not satisfiable for file of size {file_size}",
                headers={"Content-Range": f"bytes */{file_size}"},
            )

    # Calculate content length
    content_length = max(end_byte - start_byte + 1, 0)

    media_type = mimetypes.guess_type(file_path.name)[0] or "application/octet-stream"

    headers = {
        "Content-Disposition": f"attachment; filename*=UTF-8''{quote(file_path.name)}",
        "Accept-Ranges": "bytes",
        "Content-Length": str(content_length),
    }

    # If this is a partial response
    if range:
        headers["Content-Range"] = f"bytes {start_byte}-{end_byte}/{file_size}"
        return StreamingResponse(
            file_service.read_file_range(file_path, start_byte, end_byte),
            status_code=status.HTTP_206_PARTIAL_CONTENT,
            headers=headers,
            media_type=media_type
        )

    # Full file download
    return StreamingResponse(
        file_service.read_file_range(file_path, start_byte, end_byte),
        headers=headers,
        media_type=media_type
    )
