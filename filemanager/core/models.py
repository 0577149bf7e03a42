# filemanager/core/models.py
"""
Data model for the file action pipeline.
- FileAction: tagged variant (create | update | delete) validated at the boundary
- ActionPlan: what the parser hands to the validator
- AppConfig: the persisted config document (camelCase on disk)
"""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic.alias_generators import to_camel

HISTORY_LIMIT = 10

DEFAULT_EXTENSIONS = [".html", ".css", ".js", ".ts", ".jsx", ".tsx", ".json", ".py", ".md", ".txt"]


def utf8_safe(text: str) -> str:
    # 짝 없는 서로게이트 등 UTF-8로 저장할 수 없는 문자는 "?" 로 치환
    return text.encode("utf-8", "replace").decode("utf-8")


# ------------------------- file actions -------------------------
class _ActionBase(BaseModel):
    filename: str = Field(..., min_length=1)
    reason: Optional[str] = None

    @field_validator("filename")
    @classmethod
    def _strip(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("filename must not be blank")
        return v

class CreateAction(_ActionBase):
    action: Literal["create"]
    content: str

class UpdateAction(_ActionBase):
    action: Literal["update"]
    content: str

class DeleteAction(_ActionBase):
    action: Literal["delete"]

FileAction = Annotated[Union[CreateAction, UpdateAction, DeleteAction], Field(discriminator="action")]

file_action_adapter = TypeAdapter(FileAction)

# 결과 레이블 (filesAffected 항목의 action 값)
APPLIED_LABEL = {"create": "Created", "update": "Updated", "delete": "Deleted"}


@dataclass
class ActionPlan:
    summary: str
    actions: List[Any]          # raw decoded elements, typed by the validator
    degraded: bool = False      # True when produced by the fallback generator


@dataclass
class Rejection:
    index: int
    reason: str
    filename: Optional[str] = None
    action: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"index": self.index, "reason": self.reason}
        if self.filename is not None:
            out["filename"] = self.filename
        if self.action is not None:
            out["action"] = self.action
        return out


@dataclass
class ValidatedPlan:
    summary: str
    actions: List[Union[CreateAction, UpdateAction, DeleteAction]]
    rejected: List[Rejection] = field(default_factory=list)
    degraded: bool = False

    @property
    def planned_count(self) -> int:
        return len(self.actions) + len(self.rejected)


@dataclass
class ExecutionResult:
    files_affected: List[Dict[str, Any]] = field(default_factory=list)
    actions_count: int = 0
    errors: List[Dict[str, str]] = field(default_factory=list)


# ------------------------- persisted config -------------------------
class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class HistoryEntry(_CamelModel):
    timestamp: str
    command: str
    label: str
    summary_or_length: Union[int, str]

    @classmethod
    def now(cls, command: str, label: str, summary_or_length: Union[int, str]) -> "HistoryEntry":
        ts = datetime.now(timezone.utc).isoformat()
        return cls(timestamp=ts, command=command, label=label, summary_or_length=summary_or_length)


class ConfigSettings(_CamelModel):
    max_file_size: int = 10 * 1024 * 1024
    allowed_extensions: List[str] = Field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    auto_backup: bool = True
    max_backups: int = 10

    @field_validator("allowed_extensions")
    @classmethod
    def _normalize_exts(cls, v: List[str]) -> List[str]:
        seen: List[str] = []
        for ext in v:
            ext = ext.strip().lower()
            if not ext:
                continue
            if not ext.startswith("."):
                ext = "." + ext
            if ext not in seen:
                seen.append(ext)
        return seen

    def extension_set(self) -> set:
        return set(self.allowed_extensions)


class AppConfig(_CamelModel):
    target_folder_path: str = ""
    last_commands: List[HistoryEntry] = Field(default_factory=list)
    settings: ConfigSettings = Field(default_factory=ConfigSettings)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


# ------------------------- API bodies -------------------------
class SetFolderRequest(_CamelModel):
    folder_path: Optional[str] = None

class SmartExecuteRequest(_CamelModel):
    command: Optional[str] = None
    folder_path: Optional[str] = None
    filename: Optional[str] = None
    request_id: Optional[str] = None

class ReadFileRequest(_CamelModel):
    filename: Optional[str] = None

class WriteFileRequest(_CamelModel):
    filename: Optional[str] = None
    content: Optional[str] = None

class AITaskRequest(_CamelModel):
    prompt: Optional[str] = None
    code: Optional[str] = None
    filename: Optional[str] = None
