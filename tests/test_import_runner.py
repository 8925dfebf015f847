"""Tests for the batched CSV import runner."""

from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from fincontrol.core.db import LedgerRepository
from fincontrol.core.errors import BatchImportError, ImportRejectedError
from fincontrol.core.models import ImportProgress, TransactionData, TransactionType
from fincontrol.core.settings import get_settings
from fincontrol.workers.import_runner import ImportRunner, progress_percent


def make_rows(count: int) -> list[TransactionData]:
    return [
        TransactionData(
            description=f"Compra {n}",
            amount=Decimal("10.00"),
            type=TransactionType.EXPENSE,
            transaction_date="2024-01-15",
        )
        for n in range(count)
    ]


class RecordingRepository:
    """Counts inserted chunks; fails on the configured call number."""

    def __init__(self, fail_on_call: int | None = None) -> None:
        self.fail_on_call = fail_on_call
        self.chunks: list[int] = []

    def insert_transactions(self, rows: list, profile_id: str, user_id: str) -> int:
        _ = (profile_id, user_id)
        if self.fail_on_call == len(self.chunks) + 1:
            msg = "INSERT INTO transactions"
            raise OperationalError(msg, {}, Exception("disk I/O error"))
        self.chunks.append(len(rows))
        return len(rows)


def test_progress_percent_rounds_half_up() -> None:
    """50/120 is 41.67% -> 42, 100/120 is 83.33% -> 83, 1/8 is 12.5% -> 13."""
    cases = [((50, 120), 42), ((100, 120), 83), ((120, 120), 100), ((1, 8), 13)]
    for (imported, total), expected in cases:
        if progress_percent(imported, total) != expected:
            msg = f"progress_percent({imported}, {total}) = {progress_percent(imported, total)}, expected {expected}"
            raise AssertionError(msg)


def test_120_rows_in_three_chunks() -> None:
    """Chunks of 50, 50 and 20 with progress 42%, 83%, 100% in order."""
    repository = RecordingRepository()
    events: list[ImportProgress] = []
    result = ImportRunner(repository, get_settings()).run(make_rows(120), "p1", "u1", on_progress=events.append)
    if repository.chunks != [50, 50, 20]:
        msg = f"Unexpected chunk sizes: {repository.chunks}"
        raise AssertionError(msg)
    if [event.percent for event in events] != [42, 83, 100]:
        msg = f"Unexpected progress: {events}"
        raise AssertionError(msg)
    if [event.percent for event in result.progress] != [42, 83, 100]:
        msg = f"Unexpected result progress: {result.progress}"
        raise AssertionError(msg)
    if (result.imported, result.total) != (120, 120):
        msg = f"Unexpected result: {result}"
        raise AssertionError(msg)


def test_oversized_import_is_rejected_before_any_insert() -> None:
    """501 rows never reach the repository."""
    repository = RecordingRepository()
    with pytest.raises(ImportRejectedError) as excinfo:
        ImportRunner(repository, get_settings()).run(make_rows(501), "p1", "u1")
    if repository.chunks:
        msg = f"Expected nothing persisted, got {repository.chunks}"
        raise AssertionError(msg)
    if "501" not in excinfo.value.user_message or "500" not in excinfo.value.user_message:
        msg = f"Unexpected message: {excinfo.value.user_message}"
        raise AssertionError(msg)


def test_empty_import_is_rejected() -> None:
    """Zero rows is an error, not a successful no-op."""
    with pytest.raises(ImportRejectedError):
        ImportRunner(RecordingRepository(), get_settings()).run([], "p1", "u1")


def test_failed_chunk_halts_and_keeps_previous_chunks() -> None:
    """A failure in chunk 2 reports 50 imported and stops before chunk 3."""
    repository = RecordingRepository(fail_on_call=2)
    with pytest.raises(BatchImportError) as excinfo:
        ImportRunner(repository, get_settings()).run(make_rows(120), "p1", "u1")
    if repository.chunks != [50]:
        msg = f"Expected only the first chunk committed, got {repository.chunks}"
        raise AssertionError(msg)
    payload = excinfo.value.to_payload()
    if (payload["imported"], payload["total"]) != (50, 120):
        msg = f"Unexpected payload: {payload}"
        raise AssertionError(msg)


def test_rows_are_persisted(repository: LedgerRepository) -> None:
    """Against the real repository every row ends up stored for the profile."""
    result = ImportRunner(repository, get_settings()).run(make_rows(60), "profile-1", "user-1")
    stored = repository.list_transactions("user-1", profile_id="profile-1")
    if result.imported != len(stored) or len(stored) != 60:  # noqa: PLR2004
        msg = f"Expected 60 stored rows, got {len(stored)} (reported {result.imported})"
        raise AssertionError(msg)
