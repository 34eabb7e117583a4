# Main application file



import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from salestrack.core.rate_limiter import limiter
from salestrack.core.config import settings
from salestrack.core.errors import AccessDenied, NotFound, UpstreamFailure, ValidationError
from salestrack.routers import (
    auth,
    users,
    internal_admin,
    insurance_types,
    sales,
    reports,
    objectives,
    exports,
    bonuses,
    audit_logs,
    system_settings,
)


# LOGGING CONFIGURATION

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s | %(levelname)s | %(message)s",
)

logger = logging.getLogger("salestrack")


# APP INIT

app = FastAPI(
    title="SalesTrack API",
    description="Insurance sales tracking, commissions and objectives for a sales team",
    version="1.0.0",
)



# CORS (Token-based auth)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["Authorization", "Content-Type", "X-Internal-Secret"],
)


# RATE LIMITING

app.state.limiter = limiter
app.add_exception_handler(
    RateLimitExceeded,
    _rate_limit_exceeded_handler
)


# DOMAIN ERRORS

@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    logger.debug(f"Validation failed on {request.url.path}: {exc.errors}")
    return JSONResponse(
        status_code=422,
        content={"detail": "Validation failed", "errors": exc.errors},
    )


@app.exception_handler(AccessDenied)
async def access_denied_handler(request: Request, exc: AccessDenied):
    logger.info(f"Access refused on {request.method} {request.url.path}")
    return JSONResponse(status_code=403, content={"detail": "Access refused"})


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(UpstreamFailure)
async def upstream_failure_handler(request: Request, exc: UpstreamFailure):
    logger.error(f"Upstream failure on {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=503,
        content={"detail": f"{exc.service} is temporarily unavailable", "retryable": True},
    )


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
app.include_router(users.router)
app.include_router(internal_admin.router)
app.include_router(insurance_types.router)
app.include_router(sales.router)
app.include_router(reports.router)
app.include_router(objectives.router)
app.include_router(exports.router)
app.include_router(bonuses.router)
app.include_router(audit_logs.router)
app.include_router(system_settings.router)



# ROOT

@app.get("/")
def root():
    logger.info("Health check endpoint called")
    return {"message": "SalesTrack API is running", "env": settings.ENV}
