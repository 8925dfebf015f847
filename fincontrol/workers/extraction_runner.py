"""AI extraction of transactions from staged documents.

The runner drives one ``UploadedFile`` through
``pending -> processing -> completed | failed``. Authorization happens before
any status write; every later failure marks the file ``failed`` with a fixed
user-facing message and re-raises the matching ``LedgerError``.
"""

import base64
from collections.abc import Callable
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import NoReturn

from pydantic import ValidationError

from fincontrol.agents.base import BaseAgent
from fincontrol.agents.extraction_agent import parse_extraction_response
from fincontrol.core.db import LedgerRepository, Profile, UploadedFile
from fincontrol.core.errors import (
    MSG_UNSUPPORTED_FILE,
    AIGatewayError,
    ConflictError,
    ForbiddenError,
    InsufficientCreditsError,
    LedgerError,
    NotFoundError,
    ProcessingFailedError,
    RateLimitedError,
)
from fincontrol.core.models import (
    ExtractionOutcome,
    FileProcessingReport,
    FileStatus,
    TransactionData,
    normalize_payment_method,
    normalize_type,
)
from fincontrol.core.normalize import parse_currency, parse_date
from fincontrol.core.utils import get_logger
from fincontrol.services.file_service import FileService, classify_document
from fincontrol.services.validator import date_issue

logger = get_logger("fincontrol.worker")

HTTP_PAYMENT_REQUIRED = 402
HTTP_TOO_MANY_REQUESTS = 429

TransitionListener = Callable[[str, FileStatus], None]


def gateway_error(exc: AIGatewayError) -> LedgerError:
    """Map an upstream status to the error the caller must act on."""
    if exc.status_code == HTTP_TOO_MANY_REQUESTS:
        return RateLimitedError()
    if exc.status_code == HTTP_PAYMENT_REQUIRED:
        return InsufficientCreditsError()
    return ProcessingFailedError()


def _absolute_amount(value: object) -> Decimal | None:
    if isinstance(value, bool) or value is None:
        return None
    text = str(value).strip()
    try:
        amount = Decimal(text)
    except InvalidOperation:
        if not isinstance(value, str):
            return None
        # BR notation ("1.234,56", "R$ 10,00") only when plain decimal fails
        amount = parse_currency(text)
    return abs(amount) if amount.is_finite() else None


def normalize_extracted(items: list[dict], today: date | None = None) -> list[TransactionData]:
    """Turn model output into persistable rows.

    The sign of ``amount`` is discarded (direction comes from ``type``).
    Items that still fail the field bounds are skipped and logged.
    """
    rows: list[TransactionData] = []
    for position, item in enumerate(items, start=1):
        candidate = {
            "description": item.get("description"),
            "amount": _absolute_amount(item.get("amount")),
            "type": normalize_type(item.get("type")),
            "payment_method": normalize_payment_method(item.get("payment_method")),
            "payment_source": item.get("payment_source"),
            "transaction_date": parse_date(item.get("transaction_date") or "", today=today),
            "notes": item.get("notes"),
        }
        try:
            row = TransactionData.model_validate(candidate)
        except ValidationError as exc:
            logger.warning(f"Skipping extracted item {position}: {exc.error_count()} invalid field(s)")
            continue
        if date_issue(position, row.transaction_date, today=today):
            logger.warning(f"Skipping extracted item {position}: date {row.transaction_date} out of range")
            continue
        rows.append(row)
    return rows


class ExtractionRunner:
    """Runs the extraction state machine for uploaded documents."""

    def __init__(
        self,
        repository: LedgerRepository,
        file_service: FileService,
        agent: BaseAgent,
        listener: TransitionListener | None = None,
    ) -> None:
        """Initialize the runner with its storage, persistence and AI collaborators."""
        self.repository = repository
        self.file_service = file_service
        self.agent = agent
        self.listener = listener

    def authorize(self, file_id: str, profile_id: str, user_id: str) -> tuple[UploadedFile, Profile]:
        """Load the file and profile and require both to belong to ``user_id``."""
        file_record = self.repository.get_file(file_id)
        profile = self.repository.get_profile(profile_id)
        if file_record is None or profile is None:
            logger.warning(f"Extraction refused: file={file_id} or profile={profile_id} not found")
            raise NotFoundError
        if file_record.user_id != user_id or profile.user_id != user_id:
            logger.warning(f"Extraction refused: user {user_id} does not own file={file_id}/profile={profile_id}")
            raise ForbiddenError
        return file_record, profile

    def _transition(self, file_id: str, expected: FileStatus, target: FileStatus, **values: object) -> bool:
        moved = self.repository.transition_file(file_id, expected, target, **values)
        if moved and self.listener:
            self.listener(file_id, target)
        return moved

    def _fail(self, file_id: str, error: LedgerError, cause: BaseException) -> NoReturn:
        logger.error(f"File {file_id} failed: {cause!r}")
        self._transition(file_id, FileStatus.PROCESSING, FileStatus.FAILED, error_message=error.user_message)
        raise error from cause

    def process(self, file_id: str, profile_id: str, user_id: str) -> ExtractionOutcome:
        """Extract, normalize and persist the transactions of one document."""
        file_record, _ = self.authorize(file_id, profile_id, user_id)
        storage_path = file_record.storage_path
        mime_type = file_record.file_type

        if not self._transition(file_id, FileStatus.PENDING, FileStatus.PROCESSING):
            raise ConflictError
        logger.info(f"Starting extraction: file={file_id}, type={mime_type}, path={storage_path}")

        try:
            content = self.file_service.get_file(storage_path)
            kind = classify_document(mime_type)
            if kind is None:
                self._fail(file_id, ProcessingFailedError(MSG_UNSUPPORTED_FILE), ValueError(mime_type))
            content_b64 = base64.b64encode(content).decode("ascii")
            try:
                raw_output = self.agent.extract(content_b64, mime_type, kind)
            except AIGatewayError as exc:
                self._fail(file_id, gateway_error(exc), exc)
            try:
                items = parse_extraction_response(raw_output)
            except ValueError as exc:
                self._fail(file_id, ProcessingFailedError(), exc)
            rows = normalize_extracted(items)
            logger.info(f"File {file_id}: {len(rows)}/{len(items)} extracted transactions accepted")
            count = self.repository.insert_transactions(rows, profile_id, user_id) if rows else 0
        except LedgerError:
            raise
        except Exception as exc:
            logger.exception(f"Unexpected error while processing file {file_id}")
            self._fail(file_id, ProcessingFailedError(), exc)

        self._transition(
            file_id,
            FileStatus.PROCESSING,
            FileStatus.COMPLETED,
            processed_count=count,
            error_message=None,
        )
        logger.info(f"File {file_id} completed with {count} transactions")
        return ExtractionOutcome(file_id=file_id, transactions_count=count)

    def process_pending(self, profile_id: str, user_id: str) -> list[FileProcessingReport]:
        """Process the caller's pending files one at a time, continuing past failures."""
        reports = []
        for file_record in self.repository.list_pending_files(user_id, profile_id):
            file_id = file_record.id
            try:
                outcome = self.process(file_id, profile_id, user_id)
            except LedgerError as exc:
                current = self.repository.get_file(file_id)
                status = current.status if current else FileStatus.FAILED
                reports.append(FileProcessingReport(file_id=file_id, status=status, error=exc.user_message))
                continue
            reports.append(
                FileProcessingReport(
                    file_id=file_id,
                    status=FileStatus.COMPLETED,
                    transactions_count=outcome.transactions_count,
                )
            )
        return reports
