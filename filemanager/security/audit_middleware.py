# filemanager/security/audit_middleware.py
import logging
import time
from datetime import datetime, timezone

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger = logging.getLogger(__name__)


class AuditMiddleware(BaseHTTPMiddleware):
    """
    모든 API 요청의 메서드/경로/상태/지연시간을 로그로 남깁니다.
    처리되지 않은 예외는 여기서 500 JSON으로 바뀌고, 프로세스는 계속 요청을 받습니다.
    (요청 body는 기록하지 않음: 파일 내용이 포함될 수 있음)
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start_time = time.time()
        action = f"API:{request.method}:{request.url.path}"

        try:
            response = await call_next(request)
        except Exception as e:
            ts = datetime.now(timezone.utc).isoformat()
            logger.exception(f"[Audit] Unhandled error on {action}: {e}")
            response = JSONResponse(
                status_code=500,
                content={"success": False, "error": f"Internal server error: {e}", "timestamp": ts},
            )

        latency_ms = int((time.time() - start_time) * 1000)
        logger.info(f"[Audit] {action} -> {response.status_code} ({latency_ms} ms)")
        return response
