from main import create_app
from upload_server.core.config import Settings

def test_default_size_limit_is_decimal_twenty_gigabytes(upload_root):
    settings = Settings(UPLOAD_DIR=upload_root)
    assert settings.MAX_FILE_SIZE == 20_000_000_000
    assert 5 * 1024 * 1024 * 4096 > settings.MAX_FILE_SIZE

def test_create_app_creates_upload_dir(tmp_path):
    upload_dir = tmp_path / "fresh" / "uploads"
    app = create_app(Settings(UPLOAD_DIR=upload_dir))

    assert upload_dir.is_dir()
    assert app.state.settings.upload_root == upload_dir.resolve()
