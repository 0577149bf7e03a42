# filemanager/core/parser.py
import json
import logging
import re
from typing import Any, Optional

from filemanager.core.fallback import FallbackGenerator
from filemanager.core.models import ActionPlan, utf8_safe

logger = logging.getLogger(__name__)

# 첫 여는 펜스부터 마지막 닫는 펜스까지 (내용 안의 ``` 는 보존)
_FENCED = re.compile(r"```[\w+-]*[ \t]*\r?\n(.*)```", re.DOTALL)


def strip_fences(text: str) -> str:
    """```json ... ``` 같은 코드펜스 표식을 제거합니다."""
    m = _FENCED.search(text)
    if m:
        return m.group(1).strip()
    return text.strip()


def _decode(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        # 앞뒤에 설명 문장이 붙은 경우: 가장 바깥 {...} 만 다시 시도
        start, end = text.find("{"), text.rfind("}")
        if start == -1 or end <= start:
            raise
        return json.loads(text[start:end + 1])


class ResponseParser:
    def __init__(self, fallback: Optional[FallbackGenerator] = None):
        self.fallback = fallback or FallbackGenerator()

    def parse(self, raw: Optional[str], command: str) -> ActionPlan:
        """
        Never raises. Anything that is not a JSON object with an ``actions`` list
        (including ``raw=None`` when the gateway failed) becomes the fallback plan.
        """
        if raw is None or not raw.strip():
            logger.warning("[Parser] Empty AI response. Using fallback plan.")
            return self.fallback.generate(command)

        try:
            data = _decode(strip_fences(raw))
        except (json.JSONDecodeError, ValueError) as e:
            logger.warning(f"[Parser] AI response is not valid JSON ({e}). Using fallback plan.")
            return self.fallback.generate(command)

        if not isinstance(data, dict) or not isinstance(data.get("actions"), list):
            logger.warning("[Parser] AI response has no 'actions' list. Using fallback plan.")
            return self.fallback.generate(command)

        summary = data.get("summary")
        if not isinstance(summary, str) or not summary.strip():
            summary = f"{len(data['actions'])} file action(s) planned"
        return ActionPlan(summary=utf8_safe(summary), actions=list(data["actions"]))
