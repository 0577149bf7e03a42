# filemanager/main.py
import logging
import sys
import time
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Body, FastAPI, Header, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from filemanager.core.config import Settings, ensure_directories
from filemanager.core.idempotency import IdempotencyCache
from filemanager.core.models import (
    AITaskRequest, ReadFileRequest, SetFolderRequest, SmartExecuteRequest, WriteFileRequest,
)
from filemanager.core.processor import CommandProcessor, normalize_folder
from filemanager.core.store import ConfigStore
from filemanager.errors import InvalidRequestError, UpstreamUnavailable
from filemanager.router.model_runner import CompletionGateway, GeminiGateway
from filemanager.security.audit_middleware import AuditMiddleware
from filemanager.tools import files

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)


def _error(status: int, message: str, **extra) -> JSONResponse:
    body = {"success": False, "error": message, "timestamp": datetime.now(timezone.utc).isoformat()}
    body.update(extra)
    return JSONResponse(status_code=status, content=body)


# --- API 엔드포인트 ---
api = APIRouter()


@api.post("/set-folder")
async def set_folder(request: Request, body: Optional[SetFolderRequest] = Body(None)):
    folder = normalize_folder(body.folder_path if body else None)
    if not folder:
        raise InvalidRequestError("Folder path is required")
    await request.app.state.store.set_folder(folder)
    logger.info(f"[API] Target folder set to {folder}")
    return {"success": True, "path": folder, "message": "Folder set successfully"}


@api.post("/smart-execute")
async def smart_execute(
    request: Request,
    response: Response,
    body: Optional[SmartExecuteRequest] = Body(None),
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
):
    body = body or SmartExecuteRequest()
    processor: CommandProcessor = request.app.state.processor

    async def work():
        return await processor.smart_execute(body.command, body.folder_path, body.filename)

    key = idempotency_key or body.request_id
    if not key:
        return await work()

    result, replayed = await request.app.state.idempotency.run(key, work)
    if replayed:
        logger.info(f"[API] Replaying cached result for Idempotency-Key {key}")
        response.headers["Idempotent-Replayed"] = "true"
    return result


@api.post("/ai-task")
async def ai_task(request: Request, body: Optional[AITaskRequest] = Body(None)):
    body = body or AITaskRequest()
    return await request.app.state.processor.ai_task(body.prompt, body.code, body.filename)


@api.get("/read-file")
async def read_file_query(request: Request, filename: Optional[str] = None):
    return await _read(request, filename)


@api.post("/read-file")
async def read_file(request: Request, body: Optional[ReadFileRequest] = Body(None)):
    return await _read(request, body.filename if body else None)


async def _read(request: Request, filename: Optional[str]):
    folder = request.app.state.store.target_folder
    try:
        return await files.read(folder, filename)
    except FileNotFoundError:
        return _error(404, f"File not found: {filename}")
    except UnicodeDecodeError:
        return _error(415, f"File is not UTF-8 text: {filename}")
    except OSError as e:
        logger.error(f"[API] Error reading {filename}: {e}")
        return _error(500, "Failed to read file", details=str(e))


@api.post("/write-file")
async def write_file(request: Request, body: Optional[WriteFileRequest] = Body(None)):
    body = body or WriteFileRequest()
    folder = request.app.state.store.target_folder
    try:
        return await files.write(folder, body.filename, body.content)
    except OSError as e:
        logger.error(f"[API] Error writing {body.filename}: {e}")
        return _error(500, "Failed to write file", details=str(e))


@api.get("/history")
async def history(request: Request):
    entries = request.app.state.processor.history.entries()
    return {"success": True, "history": [e.model_dump(by_alias=True) for e in entries]}


@api.get("/config")
async def config(request: Request):
    return {"success": True, "config": request.app.state.store.snapshot().to_document()}


@api.get("/health")
async def health(request: Request):
    state = request.app.state
    return {
        "status": "ok",
        "aiProvider": getattr(state.gateway, "provider", "unknown"),
        "uptime": round(time.monotonic() - state.started_at, 3),
    }


# --- FastAPI 앱 초기화 ---
def create_app(settings: Optional[Settings] = None,
               gateway: Optional[CompletionGateway] = None,
               store: Optional[ConfigStore] = None) -> FastAPI:
    settings = settings or Settings()

    if gateway is None:
        # 자격 증명이 없으면 기동 실패
        gateway = GeminiGateway(
            api_key=settings.require_api_key(),
            model=settings.AI_MODEL,
            base_url=settings.AI_BASE_URL,
            timeout=settings.AI_TIMEOUT_SEC,
        )
    if store is None:
        ensure_directories(settings)
        store = ConfigStore(settings.CONFIG_PATH)

    app = FastAPI(title="AI File Manager", version="1.0")

    app.add_middleware(AuditMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.gateway = gateway
    app.state.store = store
    app.state.processor = CommandProcessor(store, gateway, timeout=settings.AI_TIMEOUT_SEC)
    app.state.idempotency = IdempotencyCache(settings.IDEMPOTENCY_CACHE_SIZE)
    app.state.started_at = time.monotonic()

    @app.exception_handler(InvalidRequestError)
    async def _invalid_request(request: Request, exc: InvalidRequestError):
        return _error(400, str(exc))

    @app.exception_handler(UpstreamUnavailable)
    async def _upstream(request: Request, exc: UpstreamUnavailable):
        return _error(502, f"AI processing failed: {exc}")

    # 두 클라이언트 버전이 /api 접두사 유무를 섞어 씀
    app.include_router(api)
    app.include_router(api, prefix="/api")

    logger.info(f"[App] Ready. Provider: {gateway.provider}, config: {store.path}, "
                f"target folder: {store.target_folder or '(unset)'}")
    return app


def run() -> None:
    import uvicorn

    settings = Settings()
    configure_logging(settings.LOG_LEVEL)
    app = create_app(settings)
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())


if __name__ == "__main__":
    run()
