# filemanager/core/backup.py
from __future__ import annotations
import asyncio
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

import aiofiles

logger = logging.getLogger(__name__)

BACKUP_DIR = "backups"


def backup_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC with millisecond precision, ':' and '.' replaced by '-'."""
    now = now or datetime.now(timezone.utc)
    iso = now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"
    return iso.replace(":", "-").replace(".", "-")


def backup_name(original: Path, stamp: str) -> str:
    return f"{original.stem}.backup.{stamp}{original.suffix}"


def _pattern(original: Path) -> re.Pattern:
    return re.compile(
        rf"^{re.escape(original.stem)}\.backup\."
        r"(\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2}-\d{3}Z)(?:-(\d+))?"
        rf"{re.escape(original.suffix)}$"
    )


class BackupManager:
    """
    덮어쓰기/삭제 직전 원본 파일의 바이트를 <dir>/backups/ 아래에 복사합니다.
    max_backups > 0 이면 같은 원본의 오래된 백업을 정리합니다.
    """
    def __init__(self, max_backups: int = 10):
        self.max_backups = max_backups

    def backups_for(self, original: Path) -> List[Path]:
        """Existing backups of ``original``, oldest first."""
        folder = original.parent / BACKUP_DIR
        if not folder.is_dir():
            return []
        pat = _pattern(original)
        found = []
        for p in folder.iterdir():
            m = pat.match(p.name)
            if m:
                found.append(((m.group(1), int(m.group(2) or 0)), p))
        return [p for _, p in sorted(found)]

    def _target(self, original: Path, stamp: str) -> Path:
        folder = original.parent / BACKUP_DIR
        folder.mkdir(parents=True, exist_ok=True)
        target = folder / backup_name(original, stamp)
        n = 0
        while target.exists():
            n += 1
            target = folder / f"{original.stem}.backup.{stamp}-{n}{original.suffix}"
        return target

    async def create(self, original: Path, now: Optional[datetime] = None) -> Path:
        original = Path(original)
        target = self._target(original, backup_timestamp(now))

        async with aiofiles.open(original, "rb") as src:
            data = await src.read()
        async with aiofiles.open(target, "wb") as dst:
            await dst.write(data)

        logger.info(f"[Backup] {original.name} -> {target.relative_to(original.parent)} ({len(data)} bytes)")
        await asyncio.to_thread(self.prune, original)
        return target

    def prune(self, original: Path) -> List[Path]:
        if self.max_backups <= 0:
            return []
        existing = self.backups_for(original)
        excess = existing[:-self.max_backups] if len(existing) > self.max_backups else []
        removed = []
        for old in excess:
            try:
                old.unlink()
                removed.append(old)
            except OSError as e:
                logger.warning(f"[Backup] Failed to prune {old}: {e}")
        if removed:
            logger.info(f"[Backup] Pruned {len(removed)} old backup(s) of {original.name}")
        return removed
