# filemanager/core/validator.py
"""
Action plan validator
- AI가 만든 각 액션을 타입이 있는 FileAction으로 변환합니다.
- 조건을 통과하지 못한 액션은 격리(rejected)되고, 나머지 계획은 그대로 진행됩니다.
"""
import logging
from pathlib import PurePosixPath
from typing import Any, Dict, List

from pydantic import ValidationError

from filemanager.core.models import (
    ActionPlan, ConfigSettings, Rejection, ValidatedPlan, file_action_adapter, utf8_safe,
)
from filemanager.errors import PathEscapeError
from filemanager.security.paths import resolve_inside

logger = logging.getLogger(__name__)

KNOWN_KINDS = ("create", "update", "delete")


def _describe(err: ValidationError) -> str:
    msgs = []
    for e in err.errors():
        loc = ".".join(str(p) for p in e.get("loc", ()) if p not in KNOWN_KINDS)
        msgs.append(f"{loc}: {e.get('msg')}" if loc else e.get("msg", "invalid"))
    return "; ".join(msgs)


def _normalize(raw: Dict[str, Any]) -> Dict[str, Any]:
    item = dict(raw)
    kind = item.get("action")
    if isinstance(kind, str):
        item["action"] = kind.strip().lower()
    if item.get("action") == "delete":
        item.pop("content", None)
    return item


def validate_plan(plan: ActionPlan, root, settings: ConfigSettings) -> ValidatedPlan:
    valid = []
    rejected: List[Rejection] = []
    allowed = settings.extension_set()

    def reject(index: int, reason: str, raw: Any) -> None:
        filename = raw.get("filename") if isinstance(raw, dict) else None
        kind = raw.get("action") if isinstance(raw, dict) else None
        r = Rejection(index=index, reason=utf8_safe(reason),
                      filename=utf8_safe(filename) if isinstance(filename, str) else None,
                      action=utf8_safe(kind) if isinstance(kind, str) else None)
        logger.warning(f"[Validator] Rejected action #{index} ({r.action} {r.filename}): {reason}")
        rejected.append(r)

    for index, raw in enumerate(plan.actions):
        if not isinstance(raw, dict):
            reject(index, "action must be a JSON object", raw)
            continue

        item = _normalize(raw)
        if item.get("action") not in KNOWN_KINDS:
            reject(index, f"unsupported action kind: {raw.get('action')!r}", raw)
            continue

        try:
            action = file_action_adapter.validate_python(item)
        except ValidationError as e:
            reject(index, _describe(e), raw)
            continue

        try:
            resolve_inside(root, action.filename)
        except (PathEscapeError, ValueError) as e:
            reject(index, str(e), raw)
            continue

        suffix = PurePosixPath(action.filename.replace("\\", "/")).suffix.lower()
        # 대체(fallback) 계획은 확장자 제한에서 제외
        if allowed and not plan.degraded and action.action != "delete" and suffix not in allowed:
            reject(index, f"extension '{suffix or '(none)'}' is not in settings.allowedExtensions", raw)
            continue

        content = getattr(action, "content", None)
        try:
            size = len(content.encode("utf-8")) if content is not None else 0
        except UnicodeEncodeError:
            reject(index, "content is not encodable as UTF-8", raw)
            continue
        if size > settings.max_file_size:
            reject(index, f"content exceeds maxFileSize ({settings.max_file_size} bytes)", raw)
            continue

        valid.append(action)

    return ValidatedPlan(summary=plan.summary, actions=valid, rejected=rejected, degraded=plan.degraded)
