import asyncio
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime
from datetime import timezone
from typing import Any

from fastapi import Depends
from fastapi import FastAPI
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1 import analysis
from app.api.v1 import conversations
from app.api.v1 import users
from app.database import BaseStore
from app.database import create_store
from app.graphs.analysis_graph import AnalysisGraph
from app.llm import BaseLLMClient
from app.llm import create_llm_client
from app.middleware.request_size_limit import RequestSizeLimitMiddleware
from app.models.response import Response
from app.ocr import BaseOCRClient
from app.services.analysis_service import AnalysisService
from app.services.conversation_service import ConversationContextTracker
from app.services.conversation_service import ConversationService
from app.services.intent_service import IntentInferencer
from app.services.user_context import UserContextAssembler
from app.utils.errors import APIError
from app.utils.errors import Error
from app.utils.errors import ErrorCode
from app.utils.errors import to_error_dict
from app.utils.logger import get_logger
from app.utils.logger import setup_logging
from app.utils.security import require_api_key

APP_VERSION = "0.1.0"


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI lifespan context manager for startup and shutdown events."""
    logger = get_logger("app.startup")
    logger.info("Application startup initiated")

    if await app.state.store.ping():
        logger.info("Storage backend reachable")
    else:
        logger.warning("Storage backend unreachable during startup")
    if not app.state.llm_client.is_configured():
        logger.warning(
            "LLM client has no API key configured",
            extra={"provider": app.state.llm_client.provider},
        )

    logger.info("Application startup completed")

    yield

    logger = get_logger("app.shutdown")
    logger.info("Application shutdown initiated")

    await app.state.analysis_service.drain_background_tasks()
    try:
        await app.state.store.close()
    except Exception as e:
        logger.error(f"Error closing storage backend: {e}")
    try:
        await app.state.llm_client.aclose()
    except Exception as e:
        logger.error(f"Error closing LLM client: {e}")

    logger.info("Application shutdown completed")


def _build_ocr_client(settings) -> BaseOCRClient:
    from app.ocr.tesseract_client import TesseractOCRClient

    return TesseractOCRClient(
        language=settings.ocr_language,
        timeout=settings.ocr_timeout_seconds,
        tesseract_cmd=settings.tesseract_cmd,
    )


def create_app(
    store: BaseStore | None = None,
    llm_client: BaseLLMClient | None = None,
    ocr_client: BaseOCRClient | None = None,
) -> FastAPI:
    """Build the application.

    Collaborators default to the ones selected by settings; tests pass their own.
    """
    from app.config import settings

    setup_logging(
        enabled=settings.logging_enabled,
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        log_dir=settings.log_dir,
    )
    logger = get_logger("app.startup")
    logger.info("starting application", extra={"logging_enabled": settings.logging_enabled})

    store = store or create_store(settings)
    llm_client = llm_client or create_llm_client(settings)
    ocr_client = ocr_client or _build_ocr_client(settings)

    graph = AnalysisGraph(
        llm_client=llm_client,
        ocr_client=ocr_client,
        context_assembler=UserContextAssembler(store),
        intent_inferencer=IntentInferencer(llm_client, temperature=settings.intent_temperature),
        analysis_temperature=settings.analysis_temperature,
        max_output_tokens=settings.max_output_tokens,
        min_text_length=settings.min_text_length,
        risk_low_threshold=settings.risk_low_threshold,
        risk_medium_threshold=settings.risk_medium_threshold,
    )
    tracker = ConversationContextTracker(
        llm_client,
        temperature=settings.chat_temperature,
        history_limit=settings.chat_history_limit,
    )

    app = FastAPI(title="Ingredient Copilot", version=APP_VERSION, lifespan=lifespan)
    app.state.store = store
    app.state.llm_client = llm_client
    app.state.ocr_client = ocr_client
    app.state.analysis_service = AnalysisService(store, graph, model_name=llm_client.model_name)
    app.state.conversation_service = ConversationService(store, tracker)

    app.add_middleware(
        RequestSizeLimitMiddleware,
        max_size_bytes=settings.max_image_bytes,
        exclude_paths=["/health", "/docs", "/openapi.json"],
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_dependencies = [Depends(require_api_key)]
    app.include_router(analysis.router, prefix="/api/v1/analysis", dependencies=api_dependencies)
    app.include_router(
        conversations.router, prefix="/api/v1/conversations", dependencies=api_dependencies
    )
    app.include_router(users.router, prefix="/api/v1/users", dependencies=api_dependencies)

    def error_response(exc: APIError) -> JSONResponse:
        payload = Response(success=False, message=exc.message, error=to_error_dict(exc))
        return JSONResponse(status_code=exc.http_status, content=payload.model_dump(mode="json"))

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError):
        logger = get_logger("app.errors")
        log = logger.error if exc.http_status >= 500 else logger.warning
        log(
            f"APIError: {exc.code}",
            extra={
                "path": request.url.path,
                "method": request.method,
                "client": request.client.host if request.client else None,
                "error": to_error_dict(exc),
            },
        )
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"field": ".".join(str(p) for p in err.get("loc", ())[1:]), "message": err.get("msg")}
            for err in exc.errors()
        ]
        message = errors[0]["message"] if errors else None
        if message and message.startswith("Value error, "):
            message = message[len("Value error, ") :]
        return error_response(Error(ErrorCode.INVALID_INPUT, details=errors, message=message))

    app_start_time = time.time()
    check_timeout = settings.health_check_timeout_seconds

    async def check_storage_health() -> dict[str, Any]:
        try:
            healthy = await asyncio.wait_for(store.ping(), timeout=check_timeout)
            return {"service": "storage", "healthy": healthy, "details": {"backend": settings.storage_backend}}
        except Exception as e:
            return {"service": "storage", "healthy": False, "error": str(e)}

    async def check_llm_health() -> dict[str, Any]:
        return {
            "service": "llm",
            "healthy": llm_client.is_configured(),
            "details": {"provider": llm_client.provider, "model": llm_client.model_name},
        }

    async def check_ocr_health() -> dict[str, Any]:
        try:
            healthy = await asyncio.wait_for(
                asyncio.to_thread(ocr_client.health_check), timeout=check_timeout
            )
            return {"service": "ocr", "healthy": healthy}
        except Exception as e:
            return {"service": "ocr", "healthy": False, "error": str(e)}

    @app.get("/health", tags=["Health"], summary="Basic health check")
    async def health_check():
        """
        Basic health check endpoint - returns 200 if application is running.

        Use /health/ready for dependency checks.
        """
        return {
            "status": "healthy",
            "timestamp": _utc_timestamp(),
            "uptime_seconds": int(time.time() - app_start_time),
            "version": APP_VERSION,
        }

    @app.get("/health/ready", tags=["Health"], summary="Readiness probe")
    async def readiness_check():
        """
        Readiness check covering storage, the AI provider and the OCR engine.

        Returns 200 if all services are ready, 503 if any service is unavailable.
        """
        checks = list(
            await asyncio.gather(check_storage_health(), check_llm_health(), check_ocr_health())
        )
        overall_healthy = all(check["healthy"] for check in checks)

        response_data = {
            "status": "ready" if overall_healthy else "not_ready",
            "timestamp": _utc_timestamp(),
            "uptime_seconds": int(time.time() - app_start_time),
            "services": checks,
        }
        return JSONResponse(status_code=200 if overall_healthy else 503, content=response_data)

    @app.get("/health/live", tags=["Health"], summary="Liveness probe")
    async def liveness_check():
        """Returns 200 while the process is alive and responsive."""
        return {
            "status": "alive",
            "timestamp": _utc_timestamp(),
            "uptime_seconds": int(time.time() - app_start_time),
        }

    return app


app = create_app()
