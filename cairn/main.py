"""
Cairn Reconciliation Service

FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cairn.api.deps import to_http_exception
from cairn.api.middleware.request_id import REQUEST_ID_HEADER, RequestIdMiddleware
from cairn.api.v1 import router as api_v1_router
from cairn.config import get_settings
from cairn.engines.reconciliation.driver import ReconciliationDriver
from cairn.engines.workflows.ledger_workflows import LedgerWorkflows
from cairn.errors import CairnError
from cairn.kernel.ledger.gateway import LedgerGateway
from cairn.kernel.state.project_store import ProjectStore
from cairn.kernel.state.session import SessionState
from cairn.kernel.storage.content_resolver import ContentResolver
from cairn.logging_config import configure_logging, get_logger
from cairn.schemas.common import HealthResponse

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan handler.

    Wires the gateways, the store and the driver onto app.state. The first
    reconciliation pass runs when a session starts, not at boot.
    """
    configure_logging(
        log_level=settings.log_level,
        environment=settings.environment,
        debug=settings.debug,
    )
    logger.info("Starting %s v%s", settings.project_name, settings.version)

    ledger = LedgerGateway.from_settings(settings)
    content = ContentResolver.from_settings(settings)
    store = ProjectStore()
    driver = ReconciliationDriver.from_settings(settings, ledger, content, store)

    app.state.ledger = ledger
    app.state.store = store
    app.state.session = SessionState()
    app.state.driver = driver
    app.state.workflows = LedgerWorkflows(
        ledger,
        content,
        store,
        driver,
        certificate_units=settings.certificate_default_units,
    )
    if ledger.signer_address is None:
        logger.info("No signing key configured; ledger writes are disabled")

    yield

    logger.info("Shutting down...")
    await content.close()
    await ledger.close()


app = FastAPI(
    title=settings.project_name,
    description="""
    Cairn Reconciliation Service

    Merges the on-chain project registry with the off-chain documents it
    points at and serves the reconciled collection.

    ## Features

    - **Projects**: reconciled metadata, outputs, certificate ownership and impact
    - **Reproducibilities**: recorded proofs with derived Waiting / Disputed / Success state
    - **Writes**: register projects, record outputs and proofs, disputes and funding
    """,
    version=settings.version,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

_cors_origins = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
]

# Last added is outermost; CORS wraps everything
app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _request_headers(request: Request) -> dict:
    req_id = getattr(request.state, "request_id", None)
    return {REQUEST_ID_HEADER: req_id} if req_id else {}


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    content = {"detail": exc.detail}
    req_id = getattr(request.state, "request_id", None)
    if req_id and exc.status_code >= 500:
        content["request_id"] = req_id
    return JSONResponse(status_code=exc.status_code, content=content, headers=_request_headers(request))


@app.exception_handler(CairnError)
async def cairn_exception_handler(request: Request, exc: CairnError):
    """Domain errors that escaped a route keep their mapped status."""
    return await http_exception_handler(request, to_http_exception(exc))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        errors.append({
            "field": field,
            "message": error["msg"],
            "type": error["type"],
        })
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": "Validation error", "errors": errors},
        headers=_request_headers(request),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception("Unhandled exception: %s", exc)
    req_id = getattr(request.state, "request_id", None)
    if settings.debug:
        content = {"detail": str(exc), "type": type(exc).__name__, "request_id": req_id}
    else:
        content = {"detail": "Internal server error", "request_id": req_id}
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=content,
        headers=_request_headers(request),
    )


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(request: Request):
    """Check application health and the state of the last reconciliation pass."""
    snapshot = request.app.state.store.snapshot
    return HealthResponse(
        status="ok" if snapshot.last_error is None else "degraded",
        version=settings.version,
        snapshot_version=snapshot.version,
        writes_enabled=request.app.state.ledger.signer_address is not None,
        last_error=snapshot.last_error,
    )


@app.get("/", tags=["Root"])
async def root():
    return {
        "name": settings.project_name,
        "version": settings.version,
        "docs": "/docs" if settings.debug else "disabled",
        "api": {"v1": settings.api_v1_prefix},
    }


app.include_router(api_v1_router, prefix=settings.api_v1_prefix)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "cairn.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
