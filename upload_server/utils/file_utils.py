import os
from pathlib import Path
from typing import BinaryIO, Union
from urllib.parse import unquote
from upload_server.core.errors import PathViolation

SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")

TEXT_EXTENSIONS = frozenset({
    ".txt", ".md", ".log", ".csv", ".tsv", ".json", ".xml", ".yaml", ".yml",
    ".ini", ".cfg", ".conf", ".toml", ".env", ".py", ".go", ".js", ".ts",
    ".html", ".htm", ".css", ".sh", ".bat", ".sql", ".java", ".c", ".h",
    ".cpp", ".rs", ".rb", ".php",
})

def resolve_path(root: Union[str, Path], user_path: str, decode: bool = True) -> Path:
    """
    Join a caller-supplied relative path onto the upload root and return
    the canonical absolute result.

    Path parameters arrive decoded once by the framework. With ``decode``
    set they are URL-decoded one more time, so an encoded "%2e%2e%2f" is
    seen as "../". Form fields such as file names are taken literally.
    Leading slashes are dropped so the join can never restart at "/".

    Raises PathViolation when the joined, canonicalized path is neither the
    root itself nor located beneath it.
    """
    root_path = Path(root).resolve()
    relative = user_path or ""
    if decode:
        relative = unquote(relative)
    relative = relative.replace("\\", "/").lstrip("/")
    if "\x00" in relative:
        raise PathViolation()
    candidate = (root_path / relative).resolve()

    if candidate != root_path and root_path not in candidate.parents:
        raise PathViolation()

    return candidate

def relative_to_root(root: Union[str, Path], path: Path) -> str:
    """
    Render an already resolved path relative to the root, using forward slashes.
    """
    rel = path.relative_to(Path(root).resolve())
    return rel.as_posix() if rel.parts else ""

def format_size(size: int) -> str:
    """
    Human readable byte count, e.g. 1536 -> "1.50 KB".
    """
    value = float(size)
    unit_index = 0
    while value >= 1024 and unit_index < len(SIZE_UNITS) - 1:
        value /= 1024
        unit_index += 1
    return f"{value:.2f} {SIZE_UNITS[unit_index]}"

def is_text_file(name: Union[str, Path]) -> bool:
    return Path(name).suffix.lower() in TEXT_EXTENSIONS

def stream_size(stream: BinaryIO) -> int:
    """
    Size of a seekable stream, leaving the position at the start.
    """
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    return size

def ensure_directory_exists(directory_path: Path) -> None:
    """
    Ensure that a directory exists, creating it if necessary.
    """
    directory_path.mkdir(parents=True, exist_ok=True)
