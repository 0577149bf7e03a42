# filemanager/core/executor.py
import asyncio
import logging
import os
import time
from pathlib import Path
from typing import Any, Dict, Optional

import aiofiles

from filemanager.core.backup import BackupManager
from filemanager.core.locks import PathLocks
from filemanager.core.models import APPLIED_LABEL, ConfigSettings, ExecutionResult, ValidatedPlan
from filemanager.errors import ActionApplyError, PathEscapeError
from filemanager.security.paths import resolve_inside

logger = logging.getLogger(__name__)


class ActionExecutor:
    """
    검증된 계획을 순서대로 디스크에 적용합니다.
    한 액션의 실패는 기록만 하고 나머지 액션은 계속 실행합니다 (트랜잭션 아님).
    """
    def __init__(self, locks: Optional[PathLocks] = None):
        self.locks = locks or PathLocks()

    async def run(self, plan: ValidatedPlan, root, settings: ConfigSettings) -> ExecutionResult:
        result = ExecutionResult(actions_count=plan.planned_count)
        backups = BackupManager(max_backups=settings.max_backups)

        for action in plan.actions:
            start_time = time.monotonic()
            try:
                path = resolve_inside(root, action.filename)
            except (PathEscapeError, ValueError) as e:
                logger.error(f"[Executor] {e}")
                result.errors.append({"action": action.action, "filename": action.filename, "error": str(e)})
                continue

            try:
                async with self.locks.hold(path):
                    if action.action == "delete":
                        entry = await self._delete(path, action.filename, settings, backups)
                    else:
                        entry = await self._write(path, action, settings, backups)
            except ActionApplyError as e:
                logger.error(f"[Executor] {e}")
                result.errors.append({"action": e.action, "filename": e.filename, "error": str(e.cause)})
                continue

            latency_ms = int((time.monotonic() - start_time) * 1000)
            if entry is None:
                logger.info(f"[Executor] Skipped delete of missing file {action.filename}")
                continue
            logger.info(f"[Executor] {entry['action']} {action.filename} ({latency_ms} ms)")
            result.files_affected.append(entry)

        return result

    async def _write(self, path: Path, action, settings: ConfigSettings,
                     backups: BackupManager) -> Dict[str, Any]:
        try:
            await asyncio.to_thread(path.parent.mkdir, parents=True, exist_ok=True)
            if action.action == "update" and settings.auto_backup and path.is_file():
                await backups.create(path)
            async with aiofiles.open(path, "w", encoding="utf-8", newline="") as f:
                await f.write(action.content)
        except (OSError, ValueError) as e:
            raise ActionApplyError(action.action, action.filename, e) from e
        return {"action": APPLIED_LABEL[action.action], "filename": action.filename, "size": len(action.content)}

    async def _delete(self, path: Path, filename: str, settings: ConfigSettings,
                      backups: BackupManager) -> Optional[Dict[str, Any]]:
        if not path.is_file():
            return None
        try:
            if settings.auto_backup:
                await backups.create(path)
            await asyncio.to_thread(os.remove, path)
        except (OSError, ValueError) as e:
            raise ActionApplyError("delete", filename, e) from e
        return {"action": APPLIED_LABEL["delete"], "filename": filename}
