import asyncio
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, HTTPException, Request, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

import config
from exceptions import QuestEngineException, handle_exception
from request_logging import RequestLogger, request_context
from quest_engine import QuestEngineCore, QuestService, get_engine_core, set_engine_core
from quest_engine.schemas import (
    CreateQuestPayload, ProgressPayload,
    QuestListResponse, QuestResponse, QuestCountResponse, ProgressResponse,
    CompleteResponse, ReplaceResponse, DeleteResponse, RefillResponse,
    TemplateListResponse, HealthResponse, WalletSchema,
)

# =============================================================================
# КОНФИГУРАЦИЯ И НАСТРОЙКА
# =============================================================================

logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)
logger = logging.getLogger("QUEST_API")
request_logger = RequestLogger("QUEST_API.requests", debug_mode=config.DEBUG_REQUESTS)

start_time = datetime.now()

# =============================================================================
# LIFECYCLE MANAGEMENT
# =============================================================================

async def sweep_once(core: QuestEngineCore) -> Optional[dict]:
    """
    One reconciliation pass. Never raises: a failed pass is logged and the
    next interval tries again.
    """
    try:
        stats = await run_in_threadpool(core.quest_service.reconcile_pools)
    except QuestEngineException as e:
        logger.error(f"Sweep error: {e.message}")
        return None
    except Exception as e:
        logger.error(f"🔥 Sweep crashed, retrying next interval: {e}", exc_info=True)
        return None
    if stats["expired"] or stats["trimmed"]:
        logger.info(f"🧹 Sweep: expired {stats['expired']}, trimmed {stats['trimmed']}")
    return stats


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup wiring, optional background sweep, shutdown."""
    logger.info("=" * 70)
    logger.info("🚀 Запуск Quest Engine API")
    logger.info("=" * 70)

    core = await run_in_threadpool(get_engine_core)

    logger.info("📋 Конфигурация:")
    logger.info(f"  • DATABASE_PATH: {config.DATABASE_PATH}")
    logger.info(f"  • MAX_ACTIVE_QUESTS: {config.MAX_ACTIVE_QUESTS}")
    logger.info(f"  • REPLENISH_MAX_ATTEMPTS: {config.REPLENISH_MAX_ATTEMPTS}")
    logger.info(f"  • NOTIFIABLE_QUEST_TYPES: {', '.join(sorted(config.NOTIFIABLE_QUEST_TYPES)) or '-'}")
    logger.info(f"  • QUEST_TIMEZONE: {config.QUEST_TIMEZONE}")
    logger.info(f"  • SWEEP_INTERVAL_SECONDS: {config.SWEEP_INTERVAL_SECONDS}")
    logger.info("=" * 70)

    async def periodic_sweep():
        """Expire overdue quests and trim oversized pools for all users."""
        while True:
            await asyncio.sleep(config.SWEEP_INTERVAL_SECONDS)
            await sweep_once(core)

    sweep_task = None
    if config.SWEEP_INTERVAL_SECONDS > 0:
        sweep_task = asyncio.create_task(periodic_sweep())

    yield

    if sweep_task is not None:
        sweep_task.cancel()
    core.shutdown()
    set_engine_core(None)
    logger.info("🛑 Остановка API")

# =============================================================================
# FASTAPI APP
# =============================================================================

app = FastAPI(
    title="Quest Engine",
    version="1.0.0",
    description="Time-limited quest pool with cooldowns, daily caps and reward settlement",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# =============================================================================
# MIDDLEWARE
# =============================================================================

@app.middleware("http")
async def log_and_trace_requests(request: Request, call_next):
    """Request id, timing and request/response logging."""
    with request_context(request.headers.get("X-Request-ID")) as request_id:
        start = time.perf_counter()
        request_logger.log_request(
            request.method, request.url.path, user_id=request.headers.get(config.USER_ID_HEADER)
        )
        response = await call_next(request)
        request_logger.log_response(response.status_code, (time.perf_counter() - start) * 1000)
        response.headers["X-Request-ID"] = request_id
        return response

# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_user_id(request: Request) -> str:
    """Caller identity; authentication happens upstream."""
    user_id = request.headers.get(config.USER_ID_HEADER, "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail=f"Missing {config.USER_ID_HEADER} header")
    return user_id


def get_core() -> QuestEngineCore:
    return get_engine_core()


def get_quest_service(core: QuestEngineCore = Depends(get_core)) -> QuestService:
    return core.quest_service


def unwrap(result):
    """Turn a rejected QuestResult into an HTTP error at the API boundary."""
    if not result.ok:
        raise result.error
    return result

# =============================================================================
# ENDPOINTS
# =============================================================================

@app.get("/health", response_model=HealthResponse)
async def health_check(core: QuestEngineCore = Depends(get_core)):
    return HealthResponse(
        status="ok",
        max_quests=core.quest_service.max_active,
        catalog_size=len(core.catalog),
        uptime_seconds=round((datetime.now() - start_time).total_seconds(), 2),
    )


@app.get("/quests", response_model=QuestListResponse, tags=["Quests"])
async def list_quests(user_id: str = Depends(get_user_id), service: QuestService = Depends(get_quest_service)):
    quests = await run_in_threadpool(service.list_quests, user_id)
    return QuestListResponse(quests=quests, count=len(quests), max_quests=service.max_active)


@app.post("/quests", response_model=QuestResponse, tags=["Quests"])
async def create_quest(
    payload: Optional[CreateQuestPayload] = None,
    user_id: str = Depends(get_user_id),
    service: QuestService = Depends(get_quest_service),
):
    """Issue a quest: the given template, or a rarity-weighted random one."""
    if payload is not None and payload.template_id:
        result = await run_in_threadpool(service.create_from_template, user_id, payload.template_id)
    else:
        result = await run_in_threadpool(service.create_random, user_id)
    return QuestResponse(quest=unwrap(result).quest)


@app.get("/quests/count", response_model=QuestCountResponse, tags=["Quests"])
async def count_quests(user_id: str = Depends(get_user_id), service: QuestService = Depends(get_quest_service)):
    count = await run_in_threadpool(service.count_active, user_id)
    return QuestCountResponse(count=count, max_quests=service.max_active)


@app.post("/quests/refill", response_model=RefillResponse, tags=["Quests"])
async def refill_quests(user_id: str = Depends(get_user_id), service: QuestService = Depends(get_quest_service)):
    created = await run_in_threadpool(service.fill, user_id)
    quests = await run_in_threadpool(service.list_quests, user_id)
    return RefillResponse(created=created, quests=quests, count=len(quests), max_quests=service.max_active)


@app.get("/quests/templates", response_model=TemplateListResponse, tags=["Templates"])
async def list_templates(core: QuestEngineCore = Depends(get_core)):
    templates = core.catalog.all()
    return TemplateListResponse(templates=templates, count=len(templates))


@app.get("/quests/templates/{category}", response_model=TemplateListResponse, tags=["Templates"])
async def list_templates_by_category(category: str, core: QuestEngineCore = Depends(get_core)):
    templates = core.catalog.by_category(category)
    return TemplateListResponse(templates=templates, count=len(templates))


@app.get("/quests/wallet", response_model=WalletSchema, tags=["Wallet"])
async def get_wallet(user_id: str = Depends(get_user_id), core: QuestEngineCore = Depends(get_core)):
    return await run_in_threadpool(core.wallet_service.get_wallet, user_id)


@app.post("/quests/{quest_id}/progress", response_model=ProgressResponse, tags=["Quests"])
async def update_progress(
    quest_id: int,
    payload: ProgressPayload,
    user_id: str = Depends(get_user_id),
    service: QuestService = Depends(get_quest_service),
):
    result = unwrap(await run_in_threadpool(service.update_progress, quest_id, user_id, payload.progress))
    return ProgressResponse(quest=result.quest, is_ready_to_claim=result.quest.is_ready_to_claim)


@app.post("/quests/{quest_id}/complete", response_model=CompleteResponse, tags=["Quests"])
async def complete_quest(
    quest_id: int,
    user_id: str = Depends(get_user_id),
    service: QuestService = Depends(get_quest_service),
):
    result = unwrap(await run_in_threadpool(service.complete, quest_id, user_id))
    return CompleteResponse(
        completed_quest=result.quest,
        new_quest=result.new_quest,
        rewards=result.rewards,
        wheel_spin=result.wheel_spin,
    )


@app.post("/quests/{quest_id}/replace", response_model=ReplaceResponse, tags=["Quests"])
async def replace_quest(
    quest_id: int,
    user_id: str = Depends(get_user_id),
    service: QuestService = Depends(get_quest_service),
):
    result = unwrap(await run_in_threadpool(service.replace, quest_id, user_id))
    return ReplaceResponse(new_quest=result.new_quest)


@app.delete("/quests/{quest_id}", response_model=DeleteResponse, tags=["Quests"])
async def delete_quest(
    quest_id: int,
    user_id: str = Depends(get_user_id),
    service: QuestService = Depends(get_quest_service),
):
    deleted = await run_in_threadpool(service.delete, quest_id, user_id)
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Quest {quest_id} not found")
    return DeleteResponse(success=True)

# =============================================================================
# ОБРАБОТЧИКИ ОШИБОК
# =============================================================================

@app.exception_handler(QuestEngineException)
async def quest_exception_handler(request: Request, exc: QuestEngineException):
    """Typed engine errors with a stable machine-readable code."""
    if exc.http_status >= 500:
        logger.error(f"🔥 {exc.error_code}: {exc.message} | context={exc.context}")
    body = exc.to_dict()
    body["detail"] = handle_exception(exc)
    return JSONResponse(status_code=exc.http_status, content=body)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Обработка HTTP ошибок (включая неизвестные маршруты) с единообразным форматом."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": "http_error",
            "message": str(exc.detail),
            "detail": f"❌ {exc.detail}",
            "context": {"status_code": exc.status_code},
        },
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Невалидный запрос: 422 с перечнем ошибок полей."""
    errors = jsonable_encoder(exc.errors())
    return JSONResponse(
        status_code=422,
        content={
            "error": "validation_error",
            "message": "Request validation failed",
            "detail": "❌ Некорректные данные запроса.",
            "context": {"errors": errors},
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Обработка всех необработанных исключений."""
    logger.error(f"🔥 Необработанное исключение: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_error",
            "message": "Internal server error",
            "detail": handle_exception(exc),
            "context": {},
        }
    )

# =============================================================================
# ЗАПУСК (для development)
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    logger.info(f"🚀 Запуск сервера на порту {config.PORT}")

    uvicorn.run(
        "api_server:app",
        host="0.0.0.0",
        port=config.PORT,
        reload=False,
        log_level="info"
    )
