import pytest
from upload_server.services.reconciler import chunks_for_size, reconcile, resume_info

@pytest.mark.parametrize("size, chunk_size, expected", [
    (0, 4, 0),
    (1, 4, 1),
    (4, 4, 1),
    (5, 4, 2),
    (10, 4, 3),
    (15 * 1024 * 1024, 5 * 1024 * 1024, 3),
])
def test_chunks_for_size(size, chunk_size, expected):
    assert chunks_for_size(size, chunk_size) == expected

def test_chunks_for_size_rejects_bad_chunk_size():
    with pytest.raises(ValueError):
        chunks_for_size(10, 0)

def test_reconcile_missing_file(upload_root):
    assert reconcile(upload_root / "missing.bin", 4) is None

def test_reconcile_directory_is_not_resumable(upload_root):
    (upload_root / "folder").mkdir()
    assert reconcile(upload_root / "folder", 4) is None

def test_reconcile_partial_file(upload_root):
    target = upload_root / "partial.bin"
    target.write_bytes(b"x" * 9)
    assert reconcile(target, 4) == 3

def test_resume_info_for_existing_file(upload_root):
    target = upload_root / "video.mp4"
    target.write_bytes(b"x" * 2048)

    info = resume_info("video.mp4", target, 1024)

    assert info.file_name == "video.mp4"
    assert info.file_exists is True
    assert info.uploaded_bytes == 2048
    assert info.uploaded_chunks == 2
    assert info.uploaded_size == "2.00 KB"

def test_resume_info_for_missing_file(upload_root):
    info = resume_info("nothing.bin", upload_root / "nothing.bin", 1024)

    assert info.file_exists is False
    assert info.uploaded_bytes == 0
    assert info.uploaded_chunks == 0
    assert not (upload_root / "nothing.bin").exists()
