# filemanager/core/idempotency.py
import asyncio
from collections import OrderedDict
from typing import Any, Awaitable, Callable, Dict, Tuple


class IdempotencyCache:
    """
    Idempotency-Key -> 첫 요청의 응답.
    같은 키의 동시 요청은 진행 중인 작업을 기다리고, 이후 요청은 저장된 응답을 재사용합니다.
    """
    def __init__(self, max_size: int = 128):
        self.max_size = max_size
        self._entries: "OrderedDict[str, asyncio.Future]" = OrderedDict()

    async def run(self, key: str, work: Callable[[], Awaitable[Dict[str, Any]]]) -> Tuple[Dict[str, Any], bool]:
        """Returns ``(response, replayed)``."""
        fut = self._entries.get(key)
        if fut is not None:
            self._entries.move_to_end(key)
            return await asyncio.shield(fut), True

        fut = asyncio.get_running_loop().create_future()
        self._entries[key] = fut
        self._evict()
        try:
            out = await work()
        except BaseException as e:
            # 실패한 요청은 캐시하지 않음: 같은 키로 다시 시도 가능
            self._entries.pop(key, None)
            if not fut.done():
                if isinstance(e, asyncio.CancelledError):
                    fut.cancel()
                else:
                    fut.set_exception(e)
                    fut.exception()
            raise
        fut.set_result(out)
        return out, False

    def _evict(self) -> None:
        while len(self._entries) > self.max_size:
            old_key, old = next(iter(self._entries.items()))
            if not old.done():
                break
            del self._entries[old_key]

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
