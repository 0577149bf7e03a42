# filemanager/errors.py
"""
AI File Manager 예외 계층
- 요청 검증 실패, 게이트웨이 장애, 개별 액션 적용 실패, 설정 저장 실패를 구분합니다.
"""


class FileManagerError(Exception):
    """Base class for every error raised by the service."""


class InvalidRequestError(FileManagerError):
    """A required request field is missing or malformed. Maps to HTTP 400."""


class PathEscapeError(InvalidRequestError):
    """A filename resolves outside the target folder."""


class UpstreamUnavailable(FileManagerError):
    """The AI gateway timed out, refused, or returned nothing usable."""


class ActionApplyError(FileManagerError):
    def __init__(self, action: str, filename: str, cause: Exception):
        super().__init__(f"{action} {filename} failed: {cause}")
        self.action = action
        self.filename = filename
        self.cause = cause


class ConfigPersistError(FileManagerError):
    """Writing the config document to disk failed."""
