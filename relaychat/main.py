# relaychat/main.py
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from datetime import datetime, timezone
from contextlib import asynccontextmanager
from sqlalchemy import text
from slowapi.errors import RateLimitExceeded
import logging
from relaychat.core.admin import setup_admin
from relaychat.api.v1.routes import api_router
from relaychat.api.v1.routes import ws
from relaychat.api.v1.routes.auth import limiter
from relaychat.core.config import settings
from relaychat.core.database import db_helper
from relaychat.core.exceptions import AppException, ErrorKind, RateLimitError, ValidationError

logging.basicConfig(
    level=logging.INFO if settings.debug else logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Контекстный менеджер для жизненного цикла приложения"""
    logger.info(f"🚀 Starting {settings.app_name} in {'DEBUG' if settings.debug else 'PRODUCTION'} mode")

    # Маскируем пароль в URL для логов
    masked_db_url = settings.db.DATABASE_URL
    password = settings.db.DB_PASSWORD.get_secret_value()
    if password:
        masked_db_url = masked_db_url.replace(password, "***")
    logger.info(f"📝 Database: {masked_db_url}")
    logger.info(f"🔐 JWT Algorithm: {settings.security.JWT_ALGORITHM}")

    try:
        async with db_helper.session_factory() as session:
            await session.execute(text("SELECT 1"))
        logger.info("✅ Database connection successful")
    except Exception as e:
        logger.error(f"❌ Database connection failed: {e}")
        raise

    setup_admin(app, db_helper.engine)

    yield

    await db_helper.dispose()
    logger.info("👋 Application shutdown complete")


app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)
app.state.limiter = limiter

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")
app.include_router(ws.router)
app.mount(
    settings.media.PUBLIC_PREFIX,
    StaticFiles(directory=settings.media.UPLOAD_DIR, check_dir=False),
    name="uploads",
)


@app.get("/", summary="Root endpoint", tags=["root"])
async def root():
    return {
        "message": f"Welcome to {settings.app_name} API",
        "docs": {
            "swagger": "/docs",
            "redoc": "/redoc"
        } if settings.debug else None,
        "environment": "development" if settings.debug else "production",
        "timestamp": _now()
    }


@app.get("/health", summary="Health check", tags=["health"])
async def health_check():
    """Проверка здоровья приложения"""
    try:
        async with db_helper.session_factory() as session:
            result = await session.execute(text("SELECT 1"))
            db_value = result.scalar()

        return {
            "status": "healthy",
            "timestamp": _now(),
            "environment": "development" if settings.debug else "production",
            "database": "connected",
            "database_ping": db_value,
            "app_name": settings.app_name,
        }
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "timestamp": _now(),
                "database": "connection failed",
                "error": str(e) if settings.debug else "Database connection error"
            },
        )


def _error_response(exc: AppException) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.kind is ErrorKind.UNAUTHENTICATED else None
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.detail,
            "error": type(exc).__name__,
            "kind": exc.kind.value,
            "timestamp": _now()
        },
        headers=headers,
    )


@app.exception_handler(AppException)
async def app_exception_handler(request, exc: AppException):
    """Все ошибки приложения: статус определяется видом ошибки"""
    if exc.status_code >= 500:
        logger.error(f"AppException: {exc.detail} (kind: {exc.kind.value})")
    else:
        logger.warning(f"AppException: {exc.detail} (kind: {exc.kind.value})")
    return _error_response(exc)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request, exc: RequestValidationError):
    errors = exc.errors()
    detail = errors[0].get("msg", "Validation error") if errors else "Validation error"
    return _error_response(ValidationError(detail))


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request, exc: RateLimitExceeded):
    return _error_response(RateLimitError(f"Rate limit exceeded: {exc.detail}"))


@app.exception_handler(Exception)
async def global_exception_handler(request, exc: Exception):
    """Неизвестные ошибки: без внутренних подробностей (кроме debug)"""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error": "InternalServerError",
            "kind": ErrorKind.INTERNAL.value,
            "timestamp": _now(),
            "debug_info": str(exc) if settings.debug else None
        }
    )


@app.exception_handler(404)
async def not_found_handler(request, exc):
    return JSONResponse(
        status_code=404,
        content={
            "detail": "Not Found",
            "error": "NotFoundError",
            "timestamp": _now()
        }
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "relaychat.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level="info" if settings.debug else "warning",
        access_log=False
    )
