from pydantic import BaseModel, Field, ValidationError
from typing import Optional, List
from upload_server.core.errors import InvalidRequest

class ChunkUploadRequest(BaseModel):
    """
    Form fields sent with every chunk. ``action`` stays a plain string so
    the upload service can report it as an invalid action rather than a
    malformed request.
    """
    file_name: str = Field(min_length=1)
    chunk_index: int = Field(ge=0)
    total_chunks: int = Field(gt=0)
    action: str

    @classmethod
    def parse_form(cls, **fields) -> "ChunkUploadRequest":
        try:
            return cls.model_validate(fields)
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in exc.errors()
            )
            raise InvalidRequest(f"Invalid upload form: {problems}") from exc

class UploadResponse(BaseModel):
    status: str = "success"
    message: str
    file_name: str
    completed: bool = False
    received_chunks: int
    total_chunks: int
    next_chunk: Optional[int] = None
    file_path: Optional[str] = None

class ResumeInfo(BaseModel):
    file_name: str
    file_exists: bool
    uploaded_bytes: int = 0
    uploaded_chunks: int = 0
    uploaded_size: str = "0.00 B"

class StatusMessage(BaseModel):
    status: str = "success"
    message: str

class PreviewResponse(BaseModel):
    file_name: str
    file_size: int
    content: str

class DirectoryEntry(BaseModel):
    name: str
    path: str
    is_dir: bool
    is_text: bool = False
    size: Optional[int] = None
    size_human: str = "--"
    modified: float

class DirectoryListing(BaseModel):
    path: str
    parent: Optional[str] = None
    entries: List[DirectoryEntry]

class Token(BaseModel):
    access_token: str
    token_type: str
