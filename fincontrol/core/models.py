"""Pydantic models for the FinControl ledger API.

This module defines the closed variant types (transaction type, payment method,
file status), the persistable ``TransactionData`` model that every ingestion
path goes through, and the request/response schemas used by the API.
"""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from fincontrol.core.sanitize import sanitize_text

MIN_AMOUNT = Decimal("0.01")
MAX_AMOUNT = Decimal("999999999.99")
MAX_DESCRIPTION_LENGTH = 500
MAX_PAYMENT_SOURCE_LENGTH = 100
MAX_NOTES_LENGTH = 1000
ISO_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
DEFAULT_PROFILE_COLOR = "#0891b2"


class TransactionType(StrEnum):
    INCOME = "income"
    EXPENSE = "expense"


class PaymentMethod(StrEnum):
    PIX = "pix"
    BOLETO = "boleto"
    CREDITO = "credito"
    DEBITO = "debito"
    DINHEIRO = "dinheiro"
    TRANSFERENCIA = "transferencia"


class FileStatus(StrEnum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


TYPE_LABELS = {
    TransactionType.INCOME: "Receita",
    TransactionType.EXPENSE: "Despesa",
}

PAYMENT_METHOD_LABELS = {
    PaymentMethod.PIX: "PIX",
    PaymentMethod.BOLETO: "Boleto",
    PaymentMethod.CREDITO: "Crédito",
    PaymentMethod.DEBITO: "Débito",
    PaymentMethod.DINHEIRO: "Dinheiro",
    PaymentMethod.TRANSFERENCIA: "Transferência",
}

_TYPE_ALIASES = {
    "receita": TransactionType.INCOME,
    "despesa": TransactionType.EXPENSE,
    "income": TransactionType.INCOME,
    "expense": TransactionType.EXPENSE,
}

_PAYMENT_METHOD_ALIASES = {
    "pix": PaymentMethod.PIX,
    "boleto": PaymentMethod.BOLETO,
    "credito": PaymentMethod.CREDITO,
    "crédito": PaymentMethod.CREDITO,
    "credit": PaymentMethod.CREDITO,
    "debito": PaymentMethod.DEBITO,
    "débito": PaymentMethod.DEBITO,
    "debit": PaymentMethod.DEBITO,
    "dinheiro": PaymentMethod.DINHEIRO,
    "cash": PaymentMethod.DINHEIRO,
    "transferencia": PaymentMethod.TRANSFERENCIA,
    "transferência": PaymentMethod.TRANSFERENCIA,
    "transfer": PaymentMethod.TRANSFERENCIA,
}


def normalize_type(value: object) -> TransactionType:
    """Map any external string to a transaction type; unknown values become expense."""
    return _TYPE_ALIASES.get(str(value or "").strip().lower(), TransactionType.EXPENSE)


def normalize_payment_method(value: object) -> PaymentMethod:
    """Map any external string to a payment method; unknown values become pix."""
    return _PAYMENT_METHOD_ALIASES.get(str(value or "").strip().lower(), PaymentMethod.PIX)


class TransactionData(BaseModel):
    """A sanitized, bounds-checked transaction ready to be persisted.

    Free-text fields are sanitized before the length checks run, so every
    ingestion path (CSV, AI extraction, manual entry) shares one boundary.
    """

    description: str = Field(min_length=1, max_length=MAX_DESCRIPTION_LENGTH)
    amount: Decimal = Field(ge=MIN_AMOUNT, le=MAX_AMOUNT)
    type: TransactionType
    payment_method: PaymentMethod = PaymentMethod.PIX
    payment_source: str | None = Field(default=None, max_length=MAX_PAYMENT_SOURCE_LENGTH)
    transaction_date: str = Field(pattern=ISO_DATE_PATTERN)
    notes: str | None = Field(default=None, max_length=MAX_NOTES_LENGTH)

    @field_validator("description", mode="before")
    @classmethod
    def _sanitize_description(cls, value: object) -> object:
        if value is None:
            return value
        return sanitize_text(str(value))

    @field_validator("payment_source", "notes", mode="before")
    @classmethod
    def _sanitize_optional(cls, value: object) -> object:
        if value is None:
            return None
        return sanitize_text(str(value)) or None

    @field_validator("amount", mode="after")
    @classmethod
    def _round_cents(cls, value: Decimal) -> Decimal:
        return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    @field_serializer("amount")
    def _amount_as_float(self, value: Decimal) -> float:
        return float(value)


class RawCsvRow(BaseModel):
    """One header-mapped CSV data row, before any normalization."""

    row_number: int
    descricao: str = ""
    valor: str = ""
    tipo: str = "expense"
    forma_pagamento: str = "pix"
    fonte_pagamento: str = ""
    data: str = ""
    observacao: str = ""


class ValidationIssue(BaseModel):
    """A single field violation on a 1-based CSV row."""

    row: int
    field: str
    message: str


class ValidationResult(BaseModel):
    valid: bool
    errors: list[ValidationIssue] = Field(default_factory=list)
    valid_transactions: list[TransactionData] = Field(default_factory=list)


class ImportProgress(BaseModel):
    imported: int
    total: int
    percent: int


class ImportResult(BaseModel):
    imported: int
    total: int
    progress: list[ImportProgress] = Field(default_factory=list)


class ProfileCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    color: str = Field(default=DEFAULT_PROFILE_COLOR, pattern=r"^#[0-9a-fA-F]{6}$")


class ProfileUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    color: str | None = Field(default=None, pattern=r"^#[0-9a-fA-F]{6}$")


class ProfileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str | None = None
    color: str
    created_at: datetime
    updated_at: datetime


class TransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    profile_id: str
    type: TransactionType
    description: str
    amount: Decimal
    payment_method: PaymentMethod
    payment_source: str | None = None
    transaction_date: date
    notes: str | None = None
    created_at: datetime

    @field_serializer("amount")
    def _amount_as_float(self, value: Decimal) -> float:
        return float(value)


class UploadedFileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    profile_id: str
    file_name: str
    file_type: str
    file_size: int
    status: FileStatus
    processed_count: int
    error_message: str | None = None
    created_at: datetime
    updated_at: datetime


class ProcessFileRequest(BaseModel):
    """Body of the extraction trigger: ``{"fileId": ..., "profileId": ...}``."""

    model_config = ConfigDict(populate_by_name=True)

    file_id: str = Field(alias="fileId", min_length=1)
    profile_id: str = Field(alias="profileId", min_length=1)


class ExtractionOutcome(BaseModel):
    file_id: str
    transactions_count: int


class FileProcessingReport(BaseModel):
    """Per-file result of a sequential run over pending uploads."""

    file_id: str
    status: FileStatus
    transactions_count: int = 0
    error: str | None = None


class LedgerSummary(BaseModel):
    income: float
    expense: float
    balance: float
    count: int
