"""FastAPI endpoints for the FinControl ledger API.

This module defines the routes for profiles, transactions, CSV import/export,
document staging and AI extraction. It wires together the repository, the
import and extraction runners, and the storage service.
"""

from datetime import date
from urllib.parse import quote

from fastapi import APIRouter, Body, Depends, Query, Response, UploadFile
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from fincontrol.api.dependencies import (
    get_current_user_id,
    get_extraction_runner,
    get_file_service,
    get_import_runner,
    get_repository,
)
from fincontrol.core.db import LedgerRepository, Profile
from fincontrol.core.errors import (
    MSG_NO_TYPE_SELECTED,
    MSG_NOTHING_TO_EXPORT,
    InvalidRequestError,
    NotFoundError,
)
from fincontrol.core.models import (
    FileProcessingReport,
    ImportResult,
    LedgerSummary,
    ProcessFileRequest,
    ProfileCreate,
    ProfileOut,
    ProfileUpdate,
    TransactionData,
    TransactionOut,
    TransactionType,
    UploadedFileOut,
)
from fincontrol.core.utils import get_logger
from fincontrol.services.csv_export import export_filename, transactions_to_csv
from fincontrol.services.csv_parser import parse_csv
from fincontrol.services.file_service import FileService, build_storage_key
from fincontrol.services.summary import summarize
from fincontrol.services.validator import date_issue, validate_transactions
from fincontrol.workers.extraction_runner import ExtractionRunner
from fincontrol.workers.import_runner import ImportRunner

router = APIRouter()
logger = get_logger("fincontrol.api")

ERROR_EXAMPLE = {"application/json": {"example": {"error": "Acesso negado a este recurso."}}}


def _owned_profile(repository: LedgerRepository, profile_id: str, user_id: str) -> Profile:
    profile = repository.get_owned_profile(profile_id, user_id)
    if profile is None:
        raise NotFoundError
    return profile


@router.get(
    "/health",
    summary="Health check",
    description="Simple health check endpoint. Returns status ok.",
    response_description="Status ok.",
    responses={200: {"description": "API is healthy.", "content": {"application/json": {"example": {"status": "ok"}}}}},
)
def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


# --- Profiles ---
@router.get("/profiles", response_model=list[ProfileOut], summary="List the caller's profiles")
def list_profiles(
    user_id: str = Depends(get_current_user_id),
    repository: LedgerRepository = Depends(get_repository),
) -> list[Profile]:
    return repository.list_profiles(user_id)


@router.post("/profiles", response_model=ProfileOut, status_code=201, summary="Create a profile")
def create_profile(
    payload: ProfileCreate,
    user_id: str = Depends(get_current_user_id),
    repository: LedgerRepository = Depends(get_repository),
) -> Profile:
    profile = repository.create_profile(user_id, payload)
    logger.info(f"Created profile {profile.id} for user {user_id}")
    return profile


@router.patch("/profiles/{profile_id}", response_model=ProfileOut, summary="Update a profile")
def update_profile(
    profile_id: str,
    payload: ProfileUpdate,
    user_id: str = Depends(get_current_user_id),
    repository: LedgerRepository = Depends(get_repository),
) -> Profile:
    profile = _owned_profile(repository, profile_id, user_id)
    return repository.update_profile(profile, payload)


@router.delete(
    "/profiles/{profile_id}",
    status_code=204,
    summary="Delete a profile",
    description="Deletes the profile together with all of its transactions and uploaded file records.",
)
def delete_profile(
    profile_id: str,
    user_id: str = Depends(get_current_user_id),
    repository: LedgerRepository = Depends(get_repository),
) -> Response:
    profile = _owned_profile(repository, profile_id, user_id)
    repository.delete_profile(profile)
    logger.info(f"Deleted profile {profile_id} for user {user_id}")
    return Response(status_code=204)


# --- Transactions ---
@router.get(
    "/profiles/{profile_id}/transactions",
    response_model=list[TransactionOut],
    summary="List transactions of a profile",
)
def list_transactions(
    profile_id: str,
    year: int | None = Query(default=None, ge=1900, le=9999),
    month: int | None = Query(default=None, ge=1, le=12),
    type: TransactionType | None = None,  # noqa: A002
    user_id: str = Depends(get_current_user_id),
    repository: LedgerRepository = Depends(get_repository),
) -> list:
    _owned_profile(repository, profile_id, user_id)
    types = [type] if type else None
    return repository.list_transactions(user_id, profile_id=profile_id, year=year, month=month, types=types)


@router.post(
    "/profiles/{profile_id}/transactions",
    status_code=201,
    summary="Record a transaction manually",
    description="The body goes through the same sanitizing model as CSV and AI ingestion.",
)
def create_transaction(
    profile_id: str,
    payload: TransactionData,
    user_id: str = Depends(get_current_user_id),
    repository: LedgerRepository = Depends(get_repository),
) -> dict:
    _owned_profile(repository, profile_id, user_id)
    issue = date_issue(1, payload.transaction_date)
    if issue:
        raise InvalidRequestError(issue.message)
    repository.insert_transactions([payload], profile_id, user_id)
    return {"success": True, "transaction": payload.model_dump(mode="json")}


@router.delete("/transactions/{transaction_id}", status_code=204, summary="Delete a transaction")
def delete_transaction(
    transaction_id: str,
    user_id: str = Depends(get_current_user_id),
    repository: LedgerRepository = Depends(get_repository),
) -> Response:
    transaction = repository.get_owned_transaction(transaction_id, user_id)
    if transaction is None:
        raise NotFoundError
    repository.delete_transaction(transaction)
    return Response(status_code=204)


@router.get("/profiles/{profile_id}/summary", response_model=LedgerSummary, summary="Income, expense and balance")
def profile_summary(
    profile_id: str,
    year: int | None = Query(default=None, ge=1900, le=9999),
    month: int | None = Query(default=None, ge=1, le=12),
    user_id: str = Depends(get_current_user_id),
    repository: LedgerRepository = Depends(get_repository),
) -> LedgerSummary:
    _owned_profile(repository, profile_id, user_id)
    return summarize(repository.list_transactions(user_id, profile_id=profile_id, year=year, month=month))


# --- CSV import / export ---
@router.post(
    "/profiles/{profile_id}/import-csv/preview",
    summary="Validate a CSV file without importing it",
    description=(
        "Tokenizes and validates the uploaded CSV. Nothing is written.\n\n"
        "**Response:** the number of rows, how many are valid, the list of "
        "`{row, field, message}` issues and the normalized transactions."
    ),
)
def preview_csv(
    profile_id: str,
    file: UploadFile,
    user_id: str = Depends(get_current_user_id),
    repository: LedgerRepository = Depends(get_repository),
) -> dict:
    _owned_profile(repository, profile_id, user_id)
    rows = parse_csv(file.file.read())
    result = validate_transactions(rows)
    logger.info(f"CSV preview: {len(rows)} rows, {len(result.errors)} issues (file={file.filename})")
    return {
        "total_rows": len(rows),
        "valid_count": len(result.valid_transactions),
        **result.model_dump(mode="json"),
    }


@router.post(
    "/profiles/{profile_id}/import-csv",
    response_model=ImportResult,
    summary="Import a CSV file into a profile",
    description=(
        "Tokenizes, validates and imports a CSV file in batches.\n\n"
        "**Request:** multipart form field `file`; `;` or `,` delimited, UTF-8, header row required.\n\n"
        "**Response:**\n"
        "- 200 OK: `{imported, total, progress: [{imported, total, percent}]}`.\n"
        "- 400 Bad Request: empty/unreadable file, no valid rows, or more than 500 rows.\n"
        "- 422 Unprocessable Entity: validation issues; nothing is imported.\n"
        "- 500 Internal Server Error: a batch failed; earlier batches stay imported."
    ),
    responses={
        400: {"description": "Invalid file.", "content": ERROR_EXAMPLE},
        422: {"description": "Validation issues."},
        500: {"description": "Batch failure.", "content": ERROR_EXAMPLE},
    },
)
def import_csv(
    profile_id: str,
    file: UploadFile,
    user_id: str = Depends(get_current_user_id),
    repository: LedgerRepository = Depends(get_repository),
    runner: ImportRunner = Depends(get_import_runner),
) -> ImportResult | JSONResponse:
    _owned_profile(repository, profile_id, user_id)
    logger.info(f"Received CSV import: filename={file.filename}, profile={profile_id}")
    rows = parse_csv(file.file.read())
    runner.check_size(len(rows))
    result = validate_transactions(rows)
    if not result.valid:
        logger.warning(f"CSV import blocked: {len(result.errors)} validation issues")
        return JSONResponse(
            {
                "error": f"Existem {len(result.errors)} erro(s) de validação. Corrija-os antes de importar.",
                "errors": [issue.model_dump() for issue in result.errors],
            },
            status_code=422,
        )
    return runner.run(result.valid_transactions, profile_id, user_id)


@router.get(
    "/export",
    summary="Export transactions as CSV",
    description="UTF-8 with BOM, `;` delimited, Brazilian number and date formats.",
    responses={200: {"description": "CSV file download.", "content": {"text/csv": {}}}},
)
def export_csv(
    profile_id: str | None = None,
    year: int | None = Query(default=None, ge=1900, le=9999),
    month: int | None = Query(default=None, ge=1, le=12),
    include_income: bool = True,
    include_expense: bool = True,
    user_id: str = Depends(get_current_user_id),
    repository: LedgerRepository = Depends(get_repository),
) -> Response:
    if not include_income and not include_expense:
        raise InvalidRequestError(MSG_NO_TYPE_SELECTED)
    year = year or date.today().year
    profile = _owned_profile(repository, profile_id, user_id) if profile_id else None
    types = [
        t for t, wanted in ((TransactionType.INCOME, include_income), (TransactionType.EXPENSE, include_expense)) if wanted
    ]
    transactions = repository.list_transactions(user_id, profile_id=profile_id, year=year, month=month, types=types)
    if not transactions:
        raise NotFoundError(MSG_NOTHING_TO_EXPORT)
    filename = export_filename(profile.name if profile else None, year, month)
    logger.info(f"Exporting {len(transactions)} transactions as {filename}")
    return Response(
        content=transactions_to_csv(transactions).encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"},
    )


# --- Documents and AI extraction ---
@router.post(
    "/profiles/{profile_id}/files",
    response_model=UploadedFileOut,
    status_code=201,
    summary="Stage a bank statement or receipt for extraction",
    description="Accepts PDF, PNG, JPEG or WEBP up to 10MB. The file record starts as `pending`.",
)
def upload_document(
    profile_id: str,
    file: UploadFile,
    user_id: str = Depends(get_current_user_id),
    repository: LedgerRepository = Depends(get_repository),
    file_service: FileService = Depends(get_file_service),
) -> object:
    _owned_profile(repository, profile_id, user_id)
    data = file.file.read()
    file_name = file.filename or "document"
    mime_type = file.content_type or "application/octet-stream"
    file_service.check_upload(file_name, mime_type, len(data))
    key = build_storage_key(user_id, profile_id, file_name)
    file_service.save_file(key, data, mime_type)
    try:
        record = repository.create_uploaded_file(profile_id, user_id, file_name, mime_type, len(data), key)
    except Exception:
        logger.exception(f"Could not record upload {key}; removing blob")
        file_service.delete_file(key)
        raise
    logger.info(f"Staged upload: file={record.id}, key={key}, size={len(data)}")
    return record


@router.get("/files/{file_id}", response_model=UploadedFileOut, summary="Get extraction status of a file")
def get_file_status(
    file_id: str,
    user_id: str = Depends(get_current_user_id),
    repository: LedgerRepository = Depends(get_repository),
) -> object:
    record = repository.get_owned_file(file_id, user_id)
    if record is None:
        raise NotFoundError
    return record


@router.post(
    "/process-bank-statement",
    summary="Extract transactions from a staged document with AI",
    description=(
        "Runs the extraction pipeline for one staged file. The owning user is taken "
        "from the bearer token, never from the body.\n\n"
        "**Request:** `{ 'fileId': '<uuid>', 'profileId': '<uuid>' }`\n\n"
        "**Response:**\n"
        "- 200 OK: `{ 'success': true, 'transactionsCount': <n> }`\n"
        "- 400 invalid body, 401 missing/invalid token, 403 not owned, 404 not found\n"
        "- 402 insufficient AI credits, 409 already processed, 429 AI rate limit, 500 processing failure"
    ),
    responses={
        200: {"content": {"application/json": {"example": {"success": True, "transactionsCount": 12}}}},
        402: {"description": "Insufficient AI credits.", "content": ERROR_EXAMPLE},
        403: {"description": "Resource not owned by caller.", "content": ERROR_EXAMPLE},
        404: {"description": "File or profile not found.", "content": ERROR_EXAMPLE},
        409: {"description": "File already processed.", "content": ERROR_EXAMPLE},
        429: {"description": "AI rate limit.", "content": ERROR_EXAMPLE},
        500: {"description": "Processing failure.", "content": ERROR_EXAMPLE},
    },
)
def process_bank_statement(
    payload: dict | None = Body(default=None),
    user_id: str = Depends(get_current_user_id),
    runner: ExtractionRunner = Depends(get_extraction_runner),
) -> dict:
    try:
        request = ProcessFileRequest.model_validate(payload)
    except ValidationError as exc:
        raise InvalidRequestError from exc
    outcome = runner.process(request.file_id, request.profile_id, user_id)
    return {"success": True, "transactionsCount": outcome.transactions_count}


@router.post(
    "/profiles/{profile_id}/files/process-pending",
    response_model=list[FileProcessingReport],
    summary="Process every pending file of a profile, one at a time",
)
def process_pending_files(
    profile_id: str,
    user_id: str = Depends(get_current_user_id),
    repository: LedgerRepository = Depends(get_repository),
    runner: ExtractionRunner = Depends(get_extraction_runner),
) -> list[FileProcessingReport]:
    _owned_profile(repository, profile_id, user_id)
    return runner.process_pending(profile_id, user_id)
