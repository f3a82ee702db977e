# main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import IntegrityError

from app.routers import (
    subscription_router,
    razorpay_webhook_router,
    client_router,
    invoice_router,
    dashboard_router,
    activity_router,
)

from app.core.config import (
    APP_ENV,
    APP_VERSION,
    CORS_ORIGINS,
    ENABLE_SCHEDULER,
    PAYMENTS_ENABLED,
    SUBSCRIPTION_GATE_ENABLED,
)
from app.core.db import init_models
from app.core.scheduler import scheduler
from app.core.exceptions import AppException
from app.core.logging import setup_logging
from app.middleware.request_logging import request_logging_middleware
from app.core.error_handlers import (
    app_exception_handler,
    validation_exception_handler,
    http_exception_handler,
    integrity_error_handler,
    unhandled_exception_handler,
)

APP_NAME = "InvoMitra API"

# ------------------------------------------------------------------------------
# LOGGING
# ------------------------------------------------------------------------------
setup_logging()
logger = logging.getLogger(__name__)

# ------------------------------------------------------------------------------
# LIFESPAN
# ------------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting application", extra={"environment": APP_ENV})

    if not PAYMENTS_ENABLED:
        logger.warning("Payments disabled: checkout answers PAYMENTS_DISABLED")
    if not SUBSCRIPTION_GATE_ENABLED:
        logger.warning("Subscription check bypassed for invoice routes")

    # DB init ONLY in development
    if APP_ENV == "development":
        await init_models()
        logger.info("Database models initialized (development)")

    # production opts in, other environments always run the jobs
    if APP_ENV != "production" or ENABLE_SCHEDULER:
        scheduler.start()
        logger.info("Scheduler started")
    else:
        logger.info("Scheduler disabled (production)")

    yield

    logger.info("Shutting down application")
    if scheduler.running:
        scheduler.shutdown()

# ------------------------------------------------------------------------------
# APP INIT
# ------------------------------------------------------------------------------
app = FastAPI(
    title=APP_NAME,
    description="GST invoicing with subscription billing",
    version=APP_VERSION,
    docs_url="/docs" if APP_ENV != "production" else None,
    redoc_url=None,
    lifespan=lifespan,
)

# ------------------------------------------------------------------------------
# EXCEPTION HANDLERS
# ------------------------------------------------------------------------------
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(IntegrityError, integrity_error_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# ------------------------------------------------------------------------------
# MIDDLEWARE
# ------------------------------------------------------------------------------
app.middleware("http")(request_logging_middleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ------------------------------------------------------------------------------
# HEALTH CHECK
# ------------------------------------------------------------------------------
@app.get("/health", tags=["Health"])
async def health_check():
    return {
        "status": "ok",
        "service": "invomitra-api",
        "environment": APP_ENV,
        "version": APP_VERSION,
        "payments_enabled": PAYMENTS_ENABLED,
    }

# ------------------------------------------------------------------------------
# ROUTERS
# ------------------------------------------------------------------------------
app.include_router(subscription_router)
app.include_router(razorpay_webhook_router)
app.include_router(client_router)
app.include_router(invoice_router)
app.include_router(dashboard_router)
app.include_router(activity_router)
