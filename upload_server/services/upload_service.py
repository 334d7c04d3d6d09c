import os
import logging
import aiofiles
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from fastapi import UploadFile
from upload_server.api.schemas import ChunkUploadRequest
from upload_server.core.config import Settings
from upload_server.core.errors import (
    CannotResume,
    ChunkOutOfOrder,
    InvalidAction,
    InvalidRequest,
    IOFailure,
    NotFound,
    SizeLimitExceeded,
)
from upload_server.services import reconciler
from upload_server.services.state_store import UploadSession, UploadStateStore, session_key
from upload_server.utils.file_utils import format_size, relative_to_root, resolve_path

logger = logging.getLogger(__name__)

VALID_ACTIONS = ("new", "overwrite", "resume")
COPY_BLOCK_SIZE = 1024 * 1024  # 1MB


@dataclass
class IngestResult:
    file_name: str
    completed: bool
    received_chunks: int
    total_chunks: int
    bytes_written: int
    next_chunk: Optional[int] = None
    file_path: Optional[str] = None


class UploadService:
    """
    Accepts file chunks one request at a time and appends them to the
    target file, tracking progress per target path in the state store.

    Chunks for one file must arrive strictly in order. A missing session is
    rebuilt from the file on disk when the client asks to resume.
    """

    def __init__(self, settings: Settings, store: UploadStateStore):
        self.settings = settings
        self.store = store
        self.root = settings.upload_root

    async def ingest(
        self,
        request: ChunkUploadRequest,
        chunk: UploadFile,
        chunk_size: int,
        target_dir: str = "",
    ) -> IngestResult:
        """
        Validate and append one chunk.

        Validation failures raise before anything is touched. A failed
        write leaves the session where it was, so the same chunk index can
        simply be sent again. A new or overwrite upload sent at chunk 0
        always starts over, replacing any session and file left behind.
        """
        if request.action not in VALID_ACTIONS:
            raise InvalidAction(request.action)

        if request.action in ("new", "overwrite"):
            declared_size = chunk_size * request.total_chunks
            if declared_size > self.settings.MAX_FILE_SIZE:
                raise SizeLimitExceeded(
                    f"File too large: maximum is {format_size(self.settings.MAX_FILE_SIZE)}, "
                    f"upload is estimated at {format_size(declared_size)}"
                )

        target_file_path = self._resolve_target(target_dir, request.file_name)
        key = session_key(target_file_path)

        async with self.store.locked(key):
            session = self.store.load(key)
            starting_over = request.action in ("new", "overwrite") and request.chunk_index == 0
            if session is not None and starting_over:
                logger.info(
                    f"Restarting {request.file_name}, dropping session at "
                    f"{session.received_chunks}/{session.total_chunks}"
                )
                self.store.delete(key)
                session = None

            if session is None:
                session = self._start_session(request, target_file_path)

            if request.chunk_index != session.received_chunks:
                logger.warning(
                    f"Rejected chunk {request.chunk_index} of {request.file_name}: "
                    f"expected {session.received_chunks}"
                )
                raise ChunkOutOfOrder(session.received_chunks, request.chunk_index)

            if starting_over:
                self._remove_previous_file(target_file_path)

            written = await self._append_chunk(session.target_file_path, chunk, request)
            session.advance()
            logger.info(
                f"Stored chunk {request.chunk_index} of {request.file_name} "
                f"({session.received_chunks}/{session.total_chunks}, {format_size(written)})"
            )

            if session.is_complete:
                self.store.delete(key)
                file_path = relative_to_root(self.root, session.target_file_path)
                logger.info(f"Upload complete: {file_path}")
                return IngestResult(
                    file_name=request.file_name,
                    completed=True,
                    received_chunks=session.received_chunks,
                    total_chunks=session.total_chunks,
                    bytes_written=written,
                    file_path=file_path,
                )

            self.store.store(key, session)
            return IngestResult(
                file_name=request.file_name,
                completed=False,
                received_chunks=session.received_chunks,
                total_chunks=session.total_chunks,
                bytes_written=written,
                next_chunk=session.next_chunk,
            )

    def _resolve_target(self, target_dir: str, file_name: str) -> Path:
        directory = resolve_path(self.root, target_dir)
        if not directory.is_dir():
            raise NotFound("Upload directory does not exist")

        target_file_path = resolve_path(directory, file_name, decode=False)
        if target_file_path == self.root or target_file_path.is_dir():
            raise InvalidRequest(f"Invalid file name: {file_name!r}")
        return target_file_path

    def _start_session(self, request: ChunkUploadRequest, target_file_path: Path) -> UploadSession:
        """
        Build the session for a key that has none. The caller stores it only
        once the first chunk has been written.
        """
        if request.action == "resume":
            received = reconciler.reconcile(target_file_path, self.settings.CHUNK_SIZE)
            if received is None:
                raise CannotResume(f"Cannot resume {request.file_name}: no partial upload found")
            if received >= request.total_chunks:
                raise CannotResume(
                    f"Cannot resume {request.file_name}: {received} of {request.total_chunks} chunks already present"
                )
            logger.info(f"Resuming {request.file_name} from disk at chunk {received}/{request.total_chunks}")
            return UploadSession(
                total_chunks=request.total_chunks,
                target_file_path=target_file_path,
                received_chunks=received,
            )

        if request.chunk_index != 0:
            raise ChunkOutOfOrder(0, request.chunk_index)

        logger.info(f"Starting {request.action} upload of {request.file_name} ({request.total_chunks} chunks)")
        return UploadSession(total_chunks=request.total_chunks, target_file_path=target_file_path)

    def _remove_previous_file(self, target_file_path: Path) -> None:
        try:
            target_file_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            # the new bytes will be appended to whatever is left
            logger.warning(f"Could not remove previous file {target_file_path}: {e}")

    async def _append_chunk(self, target_file_path: Path, chunk: UploadFile, request: ChunkUploadRequest) -> int:
        """
        Append the chunk payload to the target file. On failure the file is
        cut back to its previous length and IOFailure is raised.
        """
        try:
            offset: Optional[int] = target_file_path.stat().st_size
        except FileNotFoundError:
            offset = None

        written = 0
        try:
            async with aiofiles.open(target_file_path, "ab") as out_file:
                while True:
                    block = await chunk.read(COPY_BLOCK_SIZE)
                    if not block:
                        break
                    await out_file.write(block)
                    written += len(block)
        except OSError as e:
            logger.error(
                f"Failed writing chunk {request.chunk_index} of {request.file_name} "
                f"after {written} bytes: {e}"
            )
            self._truncate(target_file_path, offset)
            raise IOFailure(f"Failed to write chunk {request.chunk_index}: {e.strerror or e}") from e

        return written

    def _truncate(self, target_file_path: Path, offset: Optional[int]) -> None:
        """Restore the pre-write length; None means the file did not exist."""
        try:
            if offset is None:
                target_file_path.unlink(missing_ok=True)
            else:
                os.truncate(target_file_path, offset)
        except OSError as e:
            logger.error(f"Could not roll back {target_file_path} to {offset} bytes: {e}")
