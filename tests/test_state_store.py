import asyncio
import time
from pathlib import Path
from upload_server.services.cleanup_service import evict_stale_sessions
from upload_server.services.state_store import UploadSession, UploadStateStore, session_key

def make_session(name="a.bin", total=3, received=0):
    return UploadSession(total_chunks=total, target_file_path=Path("/srv/uploads") / name, received_chunks=received)

def test_load_store_delete():
    store = UploadStateStore()
    session = make_session()
    key = session_key(session.target_file_path)

    assert store.load(key) is None
    store.store(key, session)
    assert store.load(key) is session
    assert key in store
    assert len(store) == 1

    assert store.delete(key) is True
    assert store.delete(key) is False
    assert store.load(key) is None

def test_session_advance_and_completion():
    session = make_session(total=2)
    before = session.last_updated

    session.advance()
    assert session.received_chunks == 1
    assert session.next_chunk == 1
    assert not session.is_complete
    assert session.last_updated >= before

    session.advance()
    assert session.is_complete

def test_keys_are_full_paths():
    assert session_key(Path("/srv/uploads/a/report.pdf")) != session_key(Path("/srv/uploads/b/report.pdf"))

def test_locked_serializes_same_key_only():
    store = UploadStateStore()
    events = []

    async def worker(key, label, delay):
        async with store.locked(key):
            events.append(f"{label}-start")
            await asyncio.sleep(delay)
            events.append(f"{label}-end")

    async def run():
        await asyncio.gather(
            worker("k1", "a", 0.05),
            worker("k1", "b", 0),
            worker("k2", "c", 0),
        )

    asyncio.run(run())

    # b waits for a, c does not
    assert events.index("a-end") < events.index("b-start")
    assert events.index("c-end") < events.index("a-end")
    assert store.active_locks() == 0

def test_stale_sessions_are_evicted():
    store = UploadStateStore()
    old = make_session("old.bin")
    old.last_updated = time.monotonic() - 120
    fresh = make_session("fresh.bin")
    store.store(session_key(old.target_file_path), old)
    store.store(session_key(fresh.target_file_path), fresh)

    assert store.stale_keys(time.monotonic() - 60) == [session_key(old.target_file_path)]
    assert evict_stale_sessions(store, 60) == 1
    assert session_key(old.target_file_path) not in store
    assert session_key(fresh.target_file_path) in store
