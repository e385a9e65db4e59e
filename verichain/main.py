"""
VeriChain Service
Cold-chain shipment tracking with temperature-verified escrow release
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
import os

from shared.core import HealthStatus, ServiceHealth, setup_logging, RequestLoggingMiddleware, get_logger
from verichain.api.routes import router as api_router
from verichain.core_settings import get_settings
from verichain.domain.errors import VeriChainError
from verichain.infrastructure.seed import seed_demo_data
from verichain.infrastructure.store import get_store

settings = get_settings()

SERVICE_NAME = settings.SERVICE_NAME
SERVICE_VERSION = settings.SERVICE_VERSION
SERVICE_DESCRIPTION = "Cold-chain shipment tracking and escrow service"

os.environ.setdefault("ENVIRONMENT", settings.ENVIRONMENT)
os.environ.setdefault("SERVICE_VERSION", SERVICE_VERSION)

setup_logging(
    service_name=SERVICE_NAME,
    level=settings.LOG_LEVEL
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle management"""
    logger.info(f"Starting {SERVICE_NAME} version {SERVICE_VERSION}")

    if settings.SEED_DEMO_DATA:
        seed_demo_data(get_store())
    if not settings.WEATHER_API_KEY:
        logger.warning("WEATHER_API_KEY not set, temperature verification runs on synthetic readings")

    logger.info(f"{SERVICE_NAME} started successfully")

    yield

    logger.info(f"Shutting down {SERVICE_NAME}")


app = FastAPI(
    title=SERVICE_NAME,
    description=SERVICE_DESCRIPTION,
    version=SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)


def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


@app.exception_handler(VeriChainError)
async def service_error_handler(request: Request, exc: VeriChainError):
    logger.info(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    return _failure(exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _failure(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    return _failure(422, f"Invalid request: {errors}")


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    return _failure(500, "Internal server error")


def _check_store():
    counts = get_store().counts()
    return {
        "status": HealthStatus.PASS,
        "componentType": "datastore",
        "observedValue": counts,
    }


def _check_weather_upstream():
    if settings.WEATHER_API_KEY:
        return {"status": HealthStatus.PASS, "componentType": "component", "output": "live"}
    return {
        "status": HealthStatus.WARN,
        "componentType": "component",
        "output": "synthetic readings (WEATHER_API_KEY not set)",
    }


def _check_configuration():
    if settings.STORE_SHARDS < 1:
        return {
            "status": HealthStatus.FAIL,
            "componentType": "configuration",
            "output": "STORE_SHARDS must be >= 1",
        }
    return {"status": HealthStatus.PASS, "componentType": "configuration"}


health_service = ServiceHealth(
    SERVICE_NAME,
    SERVICE_VERSION,
    readiness_checks={
        "datastore:entities": _check_store,
        "weather:upstream": _check_weather_upstream,
    },
    startup_checks={"config:settings": _check_configuration},
)
app.include_router(health_service.create_health_router())

app.include_router(api_router)


@app.get("/")
async def root():
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "status": "running",
        "docs": "/api/docs"
    }


@app.get("/info")
async def info():
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "description": SERVICE_DESCRIPTION,
        "environment": settings.ENVIRONMENT,
        "endpoints": {
            "health": "/health",
            "ready": "/health/ready",
            "live": "/health/live",
            "metrics": "/metrics",
            "docs": "/api/docs",
            "api": "/api"
        }
    }


def run() -> None:
    import uvicorn

    uvicorn.run(
        "verichain.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8080")),
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
