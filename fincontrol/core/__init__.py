"""Core package: provides models, database helpers, errors, settings, and shared utilities."""

from .db import LedgerRepository, get_db  # noqa: F401
from .errors import LedgerError  # noqa: F401
from .models import FileStatus, TransactionData  # noqa: F401
from .settings import Settings  # noqa: F401
from .utils import get_logger  # noqa: F401
