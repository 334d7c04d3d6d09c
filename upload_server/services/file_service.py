import logging
import aiofiles
from pathlib import Path
from typing import AsyncGenerator, Tuple
from upload_server.api.schemas import DirectoryEntry, DirectoryListing, PreviewResponse
from upload_server.core.config import Settings
from upload_server.core.errors import InvalidRequest, IOFailure, NotFound, PreviewUnavailable
from upload_server.services.state_store import UploadStateStore, session_key
from upload_server.utils.file_utils import format_size, is_text_file, relative_to_root, resolve_path

logger = logging.getLogger(__name__)

STREAM_BLOCK_SIZE = 1024 * 1024  # 1MB chunks for streaming
PART_SUFFIX = ".part"

class FileService:
    """
    Service for stored files: delete, download, preview and directory
    browsing. Every path from the client goes through resolve_path first.
    """

    def __init__(self, settings: Settings, store: UploadStateStore):
        self.settings = settings
        self.store = store
        self.root = settings.upload_root

    async def delete_file(self, relative_path: str) -> None:
        """
        Delete a file, its .part sibling and any upload still in progress for it.
        """
        target = resolve_path(self.root, relative_path)
        if target == self.root or target.is_dir():
            raise InvalidRequest("Only files can be deleted")

        key = session_key(target)
        async with self.store.locked(key):
            removed_file = self._unlink(target)
            removed_part = self._unlink(target.with_name(target.name + PART_SUFFIX))
            removed_session = self.store.delete(key)

        if not (removed_file or removed_part or removed_session):
            raise NotFound("File not found")

        logger.info(
            f"Deleted {relative_to_root(self.root, target)} "
            f"(file={removed_file}, part={removed_part}, session={removed_session})"
        )

    def _unlink(self, path: Path) -> bool:
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error(f"Failed to delete {path}: {e}")
            raise IOFailure(f"Failed to delete file: {e.strerror or e}") from e
        return True

    def stat_download(self, relative_path: str) -> Tuple[Path, int]:
        """
        Resolve a download target and return it with its size.
        """
        target = resolve_path(self.root, relative_path)
        if not target.is_file():
            raise NotFound("File not found")
        return target, target.stat().st_size

    async def read_file_range(self, file_path: Path, start_byte: int, end_byte: int) -> AsyncGenerator[bytes, None]:
        """
        Read a range of bytes from a file and yield chunks.
        Used for streaming file downloads.
        """
        async with aiofiles.open(file_path, "rb") as f:
            await f.seek(start_byte)
            bytes_to_read = end_byte - start_byte + 1
            bytes_read = 0

            while bytes_read < bytes_to_read:
                current_chunk_size = min(STREAM_BLOCK_SIZE, bytes_to_read - bytes_read)
                chunk = await f.read(current_chunk_size)
                if not chunk:
                    break
                bytes_read += len(chunk)
                yield chunk

    async def preview(self, relative_path: str) -> PreviewResponse:
        """
        Text content of a small text file.
        """
        target = resolve_path(self.root, relative_path)
        if not target.is_file():
            raise NotFound("File not found")

        file_size = target.stat().st_size
        if file_size < 1:
            raise PreviewUnavailable("File is empty")
        if file_size > self.settings.PREVIEW_MAX_SIZE:
            raise PreviewUnavailable(
                f"File is too large to preview (limit {format_size(self.settings.PREVIEW_MAX_SIZE)})"
            )
        if not is_text_file(target):
            raise PreviewUnavailable("Only text files can be previewed")

        try:
            async with aiofiles.open(target, "r", encoding="utf-8", errors="replace") as f:
                content = await f.read()
        except OSError as e:
            logger.warning(f"Failed to read {target} for preview: {e}")
            raise IOFailure(f"Failed to read file: {e.strerror or e}") from e

        return PreviewResponse(file_name=target.name, file_size=file_size, content=content)

    def explore(self, relative_path: str = "") -> DirectoryListing:
        """
        List one directory: sub-directories first, then files, each by name.
        """
        directory = resolve_path(self.root, relative_path)
        if not directory.is_dir():
            raise NotFound("Directory not found")

        entries = []
        for entry in directory.iterdir():
            try:
                stat = entry.stat()
            except OSError:
                # vanished or dangling link
                continue
            is_dir = entry.is_dir()
            entries.append(DirectoryEntry(
                name=entry.name,
                path=relative_to_root(self.root, directory / entry.name),
                is_dir=is_dir,
                is_text=not is_dir and is_text_file(entry.name),
                size=None if is_dir else stat.st_size,
                size_human="--" if is_dir else format_size(stat.st_size),
                modified=stat.st_mtime,
            ))
        entries.sort(key=lambda e: (not e.is_dir, e.name))

        path = relative_to_root(self.root, directory)
        parent = None
        if directory != self.root:
            parent = relative_to_root(self.root, directory.parent)
        return DirectoryListing(path=path, parent=parent, entries=entries)
