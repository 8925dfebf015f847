"""Main entrypoint and application factory for the FinControl ledger API.

This module initializes the FastAPI application, configures logging, creates the ledger tables, renders ledger errors as ``{"error": ...}`` bodies, and exposes the Scalar API reference endpoint for interactive OpenAPI documentation. It also includes the main entrypoint for running the app with Uvicorn.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from scalar_fastapi import get_scalar_api_reference
from sqlalchemy.exc import SQLAlchemyError

from fincontrol.api.routes import router
from fincontrol.core.db import init_db
from fincontrol.core.errors import MSG_INVALID_REQUEST, MSG_PROCESSING_FAILED, LedgerError, StorageError
from fincontrol.core.settings import get_settings
from fincontrol.core.utils import get_logger

LOG_DIR = Path("logs")
LOGGER_NAMES = (
    "fincontrol.api",
    "fincontrol.agent",
    "fincontrol.worker",
    "fincontrol.import",
    "fincontrol.auth",
    "fincontrol.db",
)

logger = get_logger("fincontrol.api")


# --- Logging Setup ---
def setup_logging() -> None:
    """Add a persistent (not colorized) file handler to every project logger."""
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(LOG_DIR / "fincontrol.log")
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
    for name in LOGGER_NAMES:
        named = get_logger(name)
        if not any(isinstance(h, logging.FileHandler) for h in named.handlers):
            named.addHandler(file_handler)


setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan event handler to create the profiles, transactions and uploaded_files tables."""
    _ = app  # Silence unused argument warning
    try:
        init_db()
    except SQLAlchemyError:
        logger.exception("Failed to create ledger tables")
        raise
    yield


app = FastAPI(
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    title="FinControl Ledger API",
    description="""
    The FinControl Ledger API records income and expense transactions per profile, imports and exports them as CSV, and extracts them from bank statements and receipts with a multimodal LLM.

    **Endpoints:**
    - `POST /profiles/{{profile_id}}/import-csv`: Validate and import a CSV file in batches.
    - `POST /profiles/{{profile_id}}/files`: Stage a PDF or image for extraction.
    - `POST /process-bank-statement`: Run AI extraction for a staged file.
    - `GET /files/{{file_id}}`: Check the extraction status of a file.
    - `GET /export`: Download transactions as CSV.
    - `GET /health`: Health check endpoint.
    - `GET /scalar`: Interactive Scalar OpenAPI documentation.
    """,
    version="1.0.0",
)
app.include_router(router)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    """Render a LedgerError with its fixed user-facing message."""
    logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.__class__.__name__}")
    return JSONResponse(exc.to_payload(), status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies and parameters are a 400 with a generic message."""
    logger.warning(f"{request.method} {request.url.path} -> 400: {exc.errors()}")
    return JSONResponse({"error": MSG_INVALID_REQUEST}, status_code=400)


@app.exception_handler(StorageError)
@app.exception_handler(SQLAlchemyError)
async def infrastructure_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Storage and database failures become a generic 500; the cause stays in the logs."""
    logger.error(f"{request.method} {request.url.path} -> 500: {exc!r}")
    return JSONResponse({"error": MSG_PROCESSING_FAILED}, status_code=500)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort for anything unhandled, so error bodies keep the same shape."""
    logger.error(f"{request.method} {request.url.path} -> 500: unhandled {exc!r}")
    return JSONResponse({"error": MSG_PROCESSING_FAILED}, status_code=500)


@app.get("/scalar", include_in_schema=False)
async def scalar_docs() -> JSONResponse:
    """Return Scalar API reference."""
    return get_scalar_api_reference(openapi_url=app.openapi_url, title=app.title)


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("main:app", host=settings.server_host, port=settings.server_port, reload=True)
