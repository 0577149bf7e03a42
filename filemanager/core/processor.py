# filemanager/core/processor.py
"""
Command processor
command + target folder -> prompt -> AI gateway -> parser (fallback) -> validator -> executor -> history
"""
from __future__ import annotations
import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import aiofiles

from filemanager.core.executor import ActionExecutor
from filemanager.core.history import HistoryRecorder
from filemanager.core.models import utf8_safe
from filemanager.core.parser import ResponseParser, strip_fences
from filemanager.core.prompt_builder import build_edit_prompt, build_prompt
from filemanager.core.store import ConfigStore
from filemanager.core.validator import validate_plan
from filemanager.errors import InvalidRequestError, UpstreamUnavailable
from filemanager.router.model_runner import CompletionGateway
from filemanager.security.paths import resolve_inside

logger = logging.getLogger(__name__)

LABEL_AI = "smart-execute"
LABEL_FALLBACK = "fallback"
LABEL_EDIT = "ai-task"


def normalize_folder(folder: Optional[str]) -> str:
    if not folder or not folder.strip():
        return ""
    return str(Path(folder.strip()).expanduser())


class CommandProcessor:
    def __init__(self, store: ConfigStore, gateway: CompletionGateway,
                 parser: Optional[ResponseParser] = None,
                 executor: Optional[ActionExecutor] = None,
                 history: Optional[HistoryRecorder] = None,
                 timeout: float = 30.0):
        self.store = store
        self.gateway = gateway
        self.parser = parser or ResponseParser()
        self.executor = executor or ActionExecutor()
        self.history = history or HistoryRecorder(store)
        self.timeout = timeout

    async def _complete(self, prompt: str) -> str:
        try:
            return await asyncio.wait_for(self.gateway.complete(prompt), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise UpstreamUnavailable(f"AI gateway did not answer within {self.timeout:g}s") from e

    async def _existing_content(self, folder: str, filename: Optional[str]) -> Optional[str]:
        if not filename:
            return None
        path = resolve_inside(folder, filename)
        if not path.is_file():
            return None
        async with aiofiles.open(path, "r", encoding="utf-8", errors="replace") as f:
            return await f.read()

    async def smart_execute(self, command: Optional[str], folder_path: Optional[str] = None,
                            filename: Optional[str] = None) -> Dict[str, Any]:
        if not command or not command.strip():
            raise InvalidRequestError("Command is required")
        command = utf8_safe(command.strip())

        folder = normalize_folder(folder_path)
        if folder:
            await self.store.set_folder(folder)
        else:
            folder = self.store.target_folder
        if not folder:
            raise InvalidRequestError("Folder path is required (call set-folder first)")

        existing = await self._existing_content(folder, filename)
        prompt = build_prompt(command, folder, existing_content=existing, filename=filename)

        try:
            raw = await self._complete(prompt)
        except UpstreamUnavailable as e:
            logger.warning(f"[Processor] AI gateway unavailable: {e}. Falling back.")
            raw = None

        plan = self.parser.parse(raw, command)
        settings = self.store.snapshot().settings
        validated = validate_plan(plan, folder, settings)
        result = await self.executor.run(validated, folder, settings)

        label = LABEL_FALLBACK if validated.degraded else LABEL_AI
        await self.history.record(command, label, validated.summary)
        logger.info(f"[Processor] '{command[:60]}' -> {len(result.files_affected)}/{result.actions_count} applied"
                    f"{' (fallback)' if validated.degraded else ''}")

        return {
            "success": True,
            "summary": validated.summary,
            "filesAffected": result.files_affected,
            "actionsCount": result.actions_count,
            "degraded": validated.degraded,
            "rejected": [r.to_dict() for r in validated.rejected],
            "errors": result.errors,
        }

    async def ai_task(self, prompt: Optional[str], code: Optional[str],
                      filename: Optional[str] = None) -> Dict[str, Any]:
        """Single-file edit: returns the updated code, writes nothing."""
        if not prompt or not prompt.strip() or code is None:
            raise InvalidRequestError("Prompt and code are required")

        raw = await self._complete(build_edit_prompt(prompt.strip(), code, filename))
        updated = strip_fences(raw)
        await self.history.record(prompt.strip(), LABEL_EDIT, len(updated))
        return {"success": True, "code": updated}
