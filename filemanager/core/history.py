# filemanager/core/history.py
import logging
from typing import List, Union

from filemanager.core.models import HISTORY_LIMIT, AppConfig, HistoryEntry, utf8_safe
from filemanager.core.store import ConfigStore

logger = logging.getLogger(__name__)


class HistoryRecorder:
    """Most-recent-first command history, capped at HISTORY_LIMIT, kept inside the config document."""

    def __init__(self, store: ConfigStore, limit: int = HISTORY_LIMIT):
        self.store = store
        self.limit = limit

    async def record(self, command: str, label: str, summary_or_length: Union[int, str]) -> HistoryEntry:
        if isinstance(summary_or_length, str):
            summary_or_length = utf8_safe(summary_or_length)
        entry = HistoryEntry.now(utf8_safe(command), label, summary_or_length)

        def _prepend(cfg: AppConfig) -> None:
            cfg.last_commands = [entry] + cfg.last_commands[: self.limit - 1]

        await self.store.update(_prepend)
        logger.info(f"[History] Recorded '{label}' command ({len(self.entries())}/{self.limit})")
        return entry

    def entries(self) -> List[HistoryEntry]:
        return self.store.snapshot().last_commands
