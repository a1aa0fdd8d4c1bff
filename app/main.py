# Main application file

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import DataError, IntegrityError, OperationalError

from app import models  # noqa: F401
from app.database import engine, Base
from app.core.errors import LedgerError, classify_integrity_error
from app.core.rate_limiter import limiter
from app.core.config import settings
from app.routers import (
    auth,
    admin,
    internal_admin,
    products,
    messes,
    attendants,
    inventory,
    distributions,
    payments,
    dashboard,
)


# LOGGING CONFIGURATION

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s | %(levelname)s | %(message)s",
)

logger = logging.getLogger("app")


# STARTUP

@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.AUTO_CREATE_TABLES:
        # Also creates v_current_stock through the metadata DDL events
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables ensured")
    yield


# APP INIT

app = FastAPI(
    title="Beverage Distribution API",
    description="Back office for stock received from suppliers and distributed to messes",
    version="1.0.0",
    debug=settings.DEBUG,
    lifespan=lifespan,
)


# CORS (Token-based auth)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)


# RATE LIMITING

app.state.limiter = limiter
app.add_exception_handler(
    RateLimitExceeded,
    _rate_limit_exceeded_handler
)


# ERROR HANDLERS

@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.error(f"{request.method} {request.url.path} rejected by database: {exc.orig}")
    error = classify_integrity_error(exc)
    return JSONResponse(status_code=error.status_code, content={"detail": error.message})


@app.exception_handler(OperationalError)
async def operational_error_handler(request: Request, exc: OperationalError):
    logger.error(f"{request.method} {request.url.path} database unavailable: {exc.orig}")
    return JSONResponse(
        status_code=503,
        content={"detail": "Database unavailable. Please try again"},
    )


@app.exception_handler(DataError)
async def data_error_handler(request: Request, exc: DataError):
    logger.error(f"{request.method} {request.url.path} rejected by database: {exc.orig}")
    return JSONResponse(status_code=400, content={"detail": "Value out of range"})


# REQUEST LOGGING MIDDLEWARE

@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()

    response = await call_next(request)

    duration = round((time.time() - start_time) * 1000, 2)

    logger.info(
        f"{request.method} {request.url.path} "
        f"Status: {response.status_code} "
        f"Time: {duration}ms"
    )

    return response


# ROUTERS

app.include_router(auth.router)
app.include_router(admin.router)
app.include_router(internal_admin.router)
app.include_router(products.router)
app.include_router(messes.router)
app.include_router(attendants.router)
app.include_router(inventory.router)
app.include_router(distributions.router)
app.include_router(payments.router)
app.include_router(dashboard.router)


# ROOT

@app.get("/")
def root():
    logger.info("Health check endpoint called")
    return {"message": "Beverage Distribution API is running"}
