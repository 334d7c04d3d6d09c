"""
In-memory registry of chunked uploads that are still in flight.
"""
import asyncio
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import AsyncIterator, Dict, List, Optional


@dataclass
class UploadSession:
    """Progress record for one chunked upload."""
    total_chunks: int
    target_file_path: Path
    received_chunks: int = 0
    last_updated: float = field(default_factory=time.monotonic)

    @property
    def next_chunk(self) -> int:
        return self.received_chunks

    @property
    def is_complete(self) -> bool:
        return self.received_chunks >= self.total_chunks

    def advance(self) -> None:
        self.received_chunks += 1
        self.last_updated = time.monotonic()


def session_key(target_file_path: Path) -> str:
    """
    Upload key for a target file. Sessions are keyed by the resolved
    absolute path so the same file name in two directories never shares
    state.
    """
    return str(target_file_path)


class UploadStateStore:
    """
    Mapping of upload key -> UploadSession plus one asyncio.Lock per key.

    All callers share one event loop, so individual map operations are
    atomic. Callers that need load-validate-write-store to be atomic for a
    key wrap the sequence in ``locked(key)``; other keys are unaffected.
    """

    def __init__(self):
        self._sessions: Dict[str, UploadSession] = {}
        # key -> (lock, number of holders and waiters)
        self._locks: Dict[str, List] = {}
        self._locks_guard = asyncio.Lock()

    @asynccontextmanager
    async def locked(self, key: str) -> AsyncIterator[None]:
        async with self._locks_guard:
            entry = self._locks.setdefault(key, [asyncio.Lock(), 0])
            entry[1] += 1
        try:
            async with entry[0]:
                yield
        finally:
            async with self._locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    def load(self, key: str) -> Optional[UploadSession]:
        return self._sessions.get(key)

    def store(self, key: str, session: UploadSession) -> None:
        self._sessions[key] = session

    def delete(self, key: str) -> bool:
        """
        Drop the session for ``key``. Returns True when one existed.
        """
        return self._sessions.pop(key, None) is not None

    def stale_keys(self, older_than: float) -> List[str]:
        """Keys whose session was last touched before the monotonic time ``older_than``."""
        return [key for key, session in self._sessions.items() if session.last_updated < older_than]

    def active_locks(self) -> int:
        return len(self._locks)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, key: str) -> bool:
        return key in self._sessions
