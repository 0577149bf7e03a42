# filemanager/core/store.py
"""
Config store
- 시작 시 config.json을 읽고, 없거나 손상되었으면 기본값으로 시작합니다.
- 모든 변경은 update()를 통해 한 번에 하나씩 적용되고 즉시 디스크에 기록됩니다.
"""
from __future__ import annotations
import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Callable, TypeVar

from pydantic import ValidationError

from filemanager.core.models import AppConfig
from filemanager.errors import ConfigPersistError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ConfigStore:
    def __init__(self, path: str | Path = "data/config.json"):
        self.path = Path(path)
        self._lock = asyncio.Lock()
        self._config = self._load()

    def _load(self) -> AppConfig:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                cfg = AppConfig.model_validate(json.load(f))
            logger.info(f"[ConfigStore] Loaded config from {self.path}")
            return cfg
        except FileNotFoundError:
            logger.warning(f"[ConfigStore] {self.path} not found. Using defaults.")
        except (OSError, ValueError, ValidationError) as e:
            logger.warning(f"[ConfigStore] Failed to load {self.path} ({e}). Using defaults.")
        return AppConfig()

    def snapshot(self) -> AppConfig:
        return self._config.model_copy(deep=True)

    @property
    def target_folder(self) -> str:
        return self._config.target_folder_path

    def _write(self, document: dict) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(prefix=".config.", suffix=".tmp", dir=self.path.parent)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(document, f, indent=2, ensure_ascii=True)
                os.replace(tmp, self.path)
            except BaseException:
                if os.path.exists(tmp):
                    os.remove(tmp)
                raise
        except (OSError, ValueError) as e:
            raise ConfigPersistError(f"Failed to save config to {self.path}: {e}") from e

    async def save(self) -> bool:
        async with self._lock:
            return await self._persist()

    async def _persist(self) -> bool:
        try:
            await asyncio.to_thread(self._write, self._config.to_document())
            return True
        except ConfigPersistError as e:
            logger.error(f"[ConfigStore] {e}")
            return False

    async def update(self, mutate: Callable[[AppConfig], T]) -> T:
        """
        Apply ``mutate`` to a working copy under the writer lock, install it, then persist.
        A failed persist is logged; the in-memory config stays authoritative.
        """
        async with self._lock:
            working = self._config.model_copy(deep=True)
            out = mutate(working)
            self._config = AppConfig.model_validate(working.model_dump())
            await self._persist()
            return out

    async def set_folder(self, folder: str) -> str:
        def _set(cfg: AppConfig) -> str:
            cfg.target_folder_path = folder
            return folder
        return await self.update(_set)
