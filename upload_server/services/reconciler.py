"""
Rebuilds upload progress from the size of a partially written file.

The arithmetic assumes every earlier chunk was exactly ``chunk_size``
bytes (only the final chunk may be shorter) and that no write was torn
half way. File contents are not inspected.
"""
import logging
from pathlib import Path
from typing import Optional
from upload_server.api.schemas import ResumeInfo
from upload_server.utils.file_utils import format_size

logger = logging.getLogger(__name__)


def chunks_for_size(size: int, chunk_size: int) -> int:
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    return (size + chunk_size - 1) // chunk_size


def reconcile(target_file_path: Path, chunk_size: int) -> Optional[int]:
    """
    Number of chunks already present in ``target_file_path``, or None when
    there is no file to resume from.
    """
    if not target_file_path.is_file():
        return None
    return chunks_for_size(target_file_path.stat().st_size, chunk_size)


def resume_info(file_name: str, target_file_path: Path, chunk_size: int) -> ResumeInfo:
    """
    Read-only view of how far an upload got. Never creates a session.
    """
    if not target_file_path.is_file():
        logger.info(f"No partial file for {file_name}, nothing to resume")
        return ResumeInfo(file_name=file_name, file_exists=False)

    uploaded_bytes = target_file_path.stat().st_size
    info = ResumeInfo(
        file_name=file_name,
        file_exists=True,
        uploaded_bytes=uploaded_bytes,
        uploaded_chunks=chunks_for_size(uploaded_bytes, chunk_size),
        uploaded_size=format_size(uploaded_bytes),
    )
    logger.info(f"Resume info for {file_name}: {info.uploaded_size} in {info.uploaded_chunks} chunks")
    return info
