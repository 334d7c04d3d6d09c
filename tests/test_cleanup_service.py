from fastapi.testclient import TestClient
from main import create_app

def test_sweeper_disabled_by_default(test_client, test_app):
    assert getattr(test_app.state, "cleanup_task", None) is None

def test_sweeper_starts_with_the_app(test_settings, upload_root):
    settings = test_settings.model_copy(update={
        "STALE_UPLOAD_TIMEOUT_SECONDS": 1,
        "CLEANUP_INTERVAL_SECONDS": 3600,
    })
    app = create_app(settings)

    with TestClient(app) as client:
        token = client.post("/auth/token", data={"username": "tester", "password": "s3cret"}).json()["access_token"]
        client.headers.update({"Authorization": f"Bearer {token}"})

        task = app.state.cleanup_task
        assert not task.done()

        response = client.post(
            "/upload",
            data={"file_name": "slow.bin", "chunk_index": "0", "total_chunks": "2", "action": "new"},
            files={"file": ("blob", b"abcd")},
        )
        assert response.json()["next_chunk"] == 1
        assert len(app.state.upload_store) == 1

    # the partial file survives for a later resume
    assert (upload_root / "slow.bin").read_bytes() == b"abcd"
