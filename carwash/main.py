import logging
import os
from contextlib import asynccontextmanager

import redis
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import models  # noqa: F401
from .database import Base, SessionLocal, engine
from .domain.catalog import router as catalog_router
from .domain.chat import router as chat_router
from .domain.chat import ws_router as chat_ws_router
from .domain.jobs import router as jobs_router
from .domain.notifications import router as notifications_router
from .domain.payments import router as payments_router
from .domain.proofs import router as proofs_router
from .domain.ratings import reservation_rating_router
from .domain.ratings import router as ratings_router
from .domain.reservations import router as reservations_router
from .domain.users import auth_router, router as users_router
from .domain.vehicles import router as vehicles_router
from .domain.washers import router as washers_router
from .rate_limiter import RATE_LIMIT_ENABLED, get_redis_client
from .security_headers import SecurityHeadersMiddleware
from .services.connection_registry import ConnectionRegistry
from .shared.errors import APIError, code_for_status, error_body

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    Base.metadata.create_all(bind=engine, checkfirst=True)
    logger.info("Database tables created successfully")

    if RATE_LIMIT_ENABLED:
        try:
            get_redis_client()  # Connection test
            logger.info("Redis connection established")
        except redis.RedisError as e:
            logger.warning(f"Redis connection failed - credential endpoints will return 503: {e}")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Car Wash On Demand API", version="1.0.0", lifespan=lifespan)
app.state.connections = ConnectionRegistry()


# ============================================================================
# ERROR HANDLERS
# ============================================================================


@app.exception_handler(APIError)
async def api_error_handler(request: Request, exc: APIError):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.detail, exc.code, exc.details),
        headers=exc.headers,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail), code_for_status(exc.status_code)),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Render request validation failures as 400 VALIDATION_ERROR, except a
    missing or malformed Authorization header which is a 401
    """
    for error in exc.errors():
        if error.get("loc") and "authorization" in str(error.get("loc")).lower():
            logger.warning(
                f"Authentication failed for {request.url.path}: Missing or invalid Authorization header"
            )
            return JSONResponse(
                status_code=401,
                content=error_body(
                    "Not authenticated. Please provide a valid Bearer token.", "NOT_AUTHENTICATED"
                ),
                headers={"WWW-Authenticate": "Bearer"},
            )

    details = [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
        for e in exc.errors()
    ]
    logger.warning(f"Validation error for {request.url.path}: {details}")
    return JSONResponse(
        status_code=400, content=error_body("Invalid request", "VALIDATION_ERROR", details)
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"{request.method} {request.url.path} - Unhandled error: {exc}")
    return JSONResponse(
        status_code=500, content=error_body("Internal server error", "INTERNAL_ERROR")
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    try:
        response = await call_next(request)
        return response
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise


if SECURITY_HEADERS_ENABLED:
    app.add_middleware(
        SecurityHeadersMiddleware, exclude_paths=["/health", "/docs", "/openapi.json"]
    )
    logger.info("Security headers enabled")
else:
    logger.warning("Security headers DISABLED - only use in development!")


# CORS Configuration
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:5173,http://localhost:3000",
).split(",")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(vehicles_router)
app.include_router(catalog_router)
app.include_router(reservations_router)
app.include_router(reservation_rating_router)
app.include_router(jobs_router)
app.include_router(washers_router)
app.include_router(ratings_router)
app.include_router(payments_router)
app.include_router(proofs_router)
app.include_router(notifications_router)
app.include_router(chat_router)
app.include_router(chat_ws_router)


@app.get("/")
def root():
    return {"message": "Car Wash On Demand API is running"}


@app.get("/health")
def health():
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        return {"status": "healthy", "database": "ok"}
    except SQLAlchemyError as e:
        logger.error(f"❌ Health check database query failed: {e}")
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "database": "unreachable"},
        )
    finally:
        db.close()
