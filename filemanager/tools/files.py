# filemanager/tools/files.py
# read-file / write-file 패스스루: 백업, 히스토리, 검증 정책 없음 (경로 제한만 적용)
import logging

import aiofiles

from filemanager.errors import InvalidRequestError
from filemanager.security.paths import resolve_inside

logger = logging.getLogger(__name__)


async def read(folder: str, filename: str) -> dict:
    """target folder 안의 파일을 읽습니다."""
    if not filename:
        raise InvalidRequestError("Filename is required")
    if not folder:
        raise InvalidRequestError("Folder path is required (call set-folder first)")

    path = resolve_inside(folder, filename)
    logger.info(f"[Tool.Files] Reading from: {path}")
    async with aiofiles.open(path, "r", encoding="utf-8") as f:
        content = await f.read()
    return {"success": True, "content": content}


async def write(folder: str, filename: str, content: str) -> dict:
    """target folder 안의 파일을 통째로 덮어씁니다."""
    if not filename or content is None:
        raise InvalidRequestError("Filename and content are required")
    if not folder:
        raise InvalidRequestError("Folder path is required (call set-folder first)")

    path = resolve_inside(folder, filename)
    logger.info(f"[Tool.Files] Writing {len(content)} chars to: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    async with aiofiles.open(path, "w", encoding="utf-8", newline="") as f:
        await f.write(content)
    return {"success": True, "message": "File saved successfully"}
