"""
Commerce Ops Service
Back-office API for orders, shipping, service inquiries, invoices and inventory
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from sqlalchemy.orm.exc import StaleDataError
import subprocess
import os

from shared.core import ServiceHealth, setup_logging, RequestLoggingMiddleware, get_logger
from commerce_ops.api.deps import get_mailer, get_payment_gateway, get_shipping_provider
from commerce_ops.api.routes import routers
from commerce_ops.application.errors import CommerceOpsError
from commerce_ops.core_settings import get_settings
from commerce_ops.infrastructure.db import engine, init_models

settings = get_settings()

SERVICE_NAME = settings.SERVICE_NAME
SERVICE_VERSION = settings.SERVICE_VERSION
SERVICE_DESCRIPTION = "Order, shipping, inquiry, invoice and inventory administration"

setup_logging(
    service_name=SERVICE_NAME,
    level=settings.LOG_LEVEL,
    environment=settings.ENVIRONMENT,
    version=SERVICE_VERSION,
    log_file=os.getenv("LOG_FILE"),
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle management"""
    logger.info(f"Starting {SERVICE_NAME} version {SERVICE_VERSION}")

    if settings.RUN_MIGRATIONS:
        try:
            logger.info("Running database migrations")
            result = subprocess.run(
                ["alembic", "upgrade", "head"],
                cwd=os.path.join(os.path.dirname(__file__), ".."),
                capture_output=True,
                text=True,
                check=False,
            )
            if result.returncode != 0:
                logger.warning(f"Migration output: {result.stderr}")
            else:
                logger.info("Database migrations completed")
        except OSError as e:
            logger.error(f"Migration error: {e}")

    try:
        init_models()
        logger.info("Database models initialized")
    except Exception as e:
        logger.error(f"Failed to initialize database models: {e}")
        raise

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
    openapi_url="/api/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)


@app.exception_handler(CommerceOpsError)
async def commerce_ops_error_handler(request: Request, exc: CommerceOpsError):
    level = "error" if exc.status_code >= 500 else "warning"
    getattr(logger, level)(
        f"{type(exc).__name__}: {exc.message}",
        extra={"extra_fields": {"path": request.url.path, "status_code": exc.status_code}},
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(StaleDataError)
async def stale_data_handler(request: Request, exc: StaleDataError):
    logger.warning(f"Concurrent modification on {request.url.path}")
    return JSONResponse(
        status_code=409,
        content={"error": "Record was modified by someone else. Reload and retry."},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


health_service = ServiceHealth(
    SERVICE_NAME,
    SERVICE_VERSION,
    engine=engine,
    providers={
        "stripe": lambda: get_payment_gateway().is_configured,
        "shippo": lambda: get_shipping_provider().is_configured,
        "resend": lambda: get_mailer().is_configured,
    },
)
app.include_router(health_service.create_health_router())

for router in routers:
    app.include_router(router)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "status": "running",
        "docs": "/api/docs",
    }


@app.get("/info")
async def info():
    """Service information endpoint"""
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
            "orders": "/orders",
            "inquiries": "/inquiries",
            "invoices": "/invoices",
            "products": "/products",
            "inventory": "/inventory",
        },
    }
