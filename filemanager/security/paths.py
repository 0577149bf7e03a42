# filemanager/security/paths.py
import re
from pathlib import Path, PurePosixPath

from filemanager.errors import PathEscapeError

_DRIVE = re.compile(r"^[A-Za-z]:")

def resolve_inside(root, filename: str) -> Path:
    """
    filename을 target folder 기준으로 해석하고, 폴더 밖을 가리키면 거부합니다.
    (Directory Traversal 방지: 절대 경로, 드라이브 경로, '..' 탈출)
    """
    if not filename or not filename.strip():
        raise PathEscapeError("filename is required")

    if "\x00" in filename:
        raise PathEscapeError("filename must not contain NUL bytes")
    try:
        filename.encode("utf-8")
    except UnicodeEncodeError:
        raise PathEscapeError("filename is not valid UTF-8 text") from None

    normalized = filename.strip().replace("\\", "/")
    if normalized.startswith("/") or _DRIVE.match(normalized):
        raise PathEscapeError(f"Invalid path format (absolute): {filename}")

    base = Path(root).expanduser().resolve()
    full_path = (base / PurePosixPath(normalized)).resolve()

    if full_path != base and base not in full_path.parents:
        raise PathEscapeError(f"Access Denied: '{filename}' is outside the target folder")
    if full_path == base:
        raise PathEscapeError(f"'{filename}' names the target folder itself, not a file")

    return full_path
