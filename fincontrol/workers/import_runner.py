"""Batched persistence of validated CSV transactions."""

from collections.abc import Callable, Sequence

from sqlalchemy.exc import SQLAlchemyError

from fincontrol.core.db import LedgerRepository
from fincontrol.core.errors import BatchImportError, ImportRejectedError
from fincontrol.core.models import ImportProgress, ImportResult, TransactionData
from fincontrol.core.settings import Settings
from fincontrol.core.utils import get_logger

logger = get_logger("fincontrol.worker")

ProgressListener = Callable[[ImportProgress], None]


def progress_percent(imported: int, total: int) -> int:
    """Percentage rounded half-up, as displayed in progress bars."""
    return (2 * imported * 100 + total) // (2 * total)


def chunked(rows: Sequence[TransactionData], size: int) -> list[Sequence[TransactionData]]:
    return [rows[start : start + size] for start in range(0, len(rows), size)]


class ImportRunner:
    """Persist validated transactions in fixed-size chunks, strictly in order.

    A failed chunk halts the run; chunks already committed stay committed and
    nothing is retried.
    """

    def __init__(self, repository: LedgerRepository, settings: Settings) -> None:
        """Initialize the runner with a repository and the import limits."""
        self.repository = repository
        self.max_rows = settings.import_max_rows
        self.batch_size = settings.import_batch_size

    def check_size(self, total: int) -> None:
        """Reject empty or oversized imports before anything is written."""
        if total == 0:
            raise ImportRejectedError
        if total > self.max_rows:
            msg = (
                f"O arquivo contém {total} linhas. "
                f"O máximo permitido é {self.max_rows} transações por importação."
            )
            raise ImportRejectedError(msg)

    def run(
        self,
        transactions: Sequence[TransactionData],
        profile_id: str,
        user_id: str,
        on_progress: ProgressListener | None = None,
    ) -> ImportResult:
        """Import ``transactions`` into ``profile_id`` on behalf of ``user_id``."""
        total = len(transactions)
        self.check_size(total)
        logger.info(f"Starting import: profile={profile_id}, rows={total}, batch_size={self.batch_size}")
        imported = 0
        progress: list[ImportProgress] = []
        for index, batch in enumerate(chunked(transactions, self.batch_size), start=1):
            try:
                imported += self.repository.insert_transactions(batch, profile_id, user_id)
            except SQLAlchemyError as exc:
                logger.exception(f"Batch {index} failed after {imported}/{total} rows were committed")
                raise BatchImportError(imported=imported, total=total) from exc
            event = ImportProgress(imported=imported, total=total, percent=progress_percent(imported, total))
            progress.append(event)
            logger.info(f"Batch {index}: {imported}/{total} ({event.percent}%)")
            if on_progress:
                on_progress(event)
        logger.info(f"Import finished: profile={profile_id}, rows={imported}")
        return ImportResult(imported=imported, total=total, progress=progress)
