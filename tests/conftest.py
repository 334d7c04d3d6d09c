import pytest
from fastapi.testclient import TestClient
from main import create_app
from upload_server.core.config import Settings
from upload_server.core.security import create_access_token

@pytest.fixture
def upload_root(tmp_path):
    root = tmp_path / "uploads"
    root.mkdir()
    return root

@pytest.fixture
def test_settings(upload_root):
    """Settings pointing at a throwaway upload directory with small limits."""
    return Settings(
        UPLOAD_DIR=upload_root,
        CHUNK_SIZE=4,
        MAX_FILE_SIZE=1024,
        PREVIEW_MAX_SIZE=64,
        SECRET_KEY="test-secret",
        AUTH_USERNAME="tester",
        AUTH_PASSWORD="s3cret",
    )

@pytest.fixture
def test_app(test_settings):
    return create_app(test_settings)

@pytest.fixture
def test_token(test_settings):
    """Create a test JWT token."""
    return create_access_token(data={"sub": test_settings.AUTH_USERNAME}, settings=test_settings)

@pytest.fixture
def test_client(test_app):
    """Create a test client for the FastAPI app."""
    with TestClient(test_app) as client:
        yield client

@pytest.fixture
def authenticated_client(test_client, test_token):
    """Create an authenticated test client."""
    test_client.headers.update({
        "Authorization": f"Bearer {test_token}"
    })
    return test_client

@pytest.fixture
def upload_chunk(authenticated_client):
    """Post one chunk and return the response."""
    def _upload(file_name, chunk_index, total_chunks, data, action="new", path=""):
        url = f"/upload/{path}" if path else "/upload"
        return authenticated_client.post(
            url,
            data={
                "file_name": file_name,
                "chunk_index": str(chunk_index),
                "total_chunks": str(total_chunks),
                "action": action,
            },
            files={"file": ("blob", data)},
        )
    return _upload
