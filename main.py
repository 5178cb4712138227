# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Relief Service
==============
Disaster-relief backend: emergency reporting and volunteer acceptance,
role-based accounts, admin listings, and proxies to the flood prediction
backend and the support chat.

Emergency status is derived from its volunteers:
    pending ─► accepted   first volunteer accepts
    accepted ─► pending   last volunteer declines

Port: 8000
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from relief_service.controllers import (
    account_controller,
    assist_controller,
    emergency_controller,
    system_controller,
)
from relief_service.core.config import settings
from relief_service.core.dependencies import (
    get_account_service,
    get_document_store,
    get_emergency_service,
)
from relief_service.core.errors import StorageError
from relief_service.core.logging import get_logger
from relief_service.middleware import MetricsMiddleware, RequestIDMiddleware

logger = get_logger(settings.SERVICE_NAME)


# ── Lifespan ──────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(application: FastAPI):
    store = get_document_store()
    try:
        store.initialize()
        get_account_service().seed_admin(
            settings.ADMIN_NAME, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD,
        )
        get_emergency_service().seed_gauges()
    except StorageError:
        logger.warning("Could not initialise document store — it may not be ready yet")
    logger.info("Service started version=%s", settings.SERVICE_VERSION)
    yield
    store.dispose()
    logger.info("Shutting down")


# ── FastAPI App ───────────────────────────────────────────────────────────
app = FastAPI(
    title="Relief Service",
    description="Emergency reporting, volunteer coordination and disaster assistance.",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
)

app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Error handlers ────────────────────────────────────────────────────────
def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "-")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = []
    for err in exc.errors():
        field = err["loc"][-1] if err.get("loc") else "body"
        msg = str(err.get("msg", "invalid")).removeprefix("Value error, ")
        messages.append(f"{field}: {msg}")
    return JSONResponse(status_code=400, content={"error": "; ".join(messages) or "Invalid request"})


@app.exception_handler(StorageError)
async def storage_exception_handler(request: Request, exc: StorageError):
    logger.error("Storage failure: %s", exc, extra={"request_id": _request_id(request)})
    return JSONResponse(status_code=500, content={"error": "Storage unavailable"})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception", extra={"request_id": _request_id(request)})
    return JSONResponse(status_code=500, content={"error": "internal_server_error"})


# ── Routers ───────────────────────────────────────────────────────────────
app.include_router(system_controller.router)
app.include_router(emergency_controller.router)
app.include_router(account_controller.router)
app.include_router(assist_controller.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=settings.SERVICE_PORT)
