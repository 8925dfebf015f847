"""Row-by-row validation of tokenized CSV data.

Each row is normalized (type, payment method, currency, date), pushed through
the sanitizing ``TransactionData`` model, and range-checked. Errors are
collected for the whole batch; no row stops the run.
"""

from collections.abc import Iterable
from datetime import date

from pydantic import ValidationError

from fincontrol.core.models import (
    MAX_DESCRIPTION_LENGTH,
    MAX_NOTES_LENGTH,
    MAX_PAYMENT_SOURCE_LENGTH,
    RawCsvRow,
    TransactionData,
    ValidationIssue,
    ValidationResult,
    normalize_payment_method,
    normalize_type,
)
from fincontrol.core.normalize import parse_currency, parse_date

MIN_TRANSACTION_DATE = date(1990, 1, 1)

# (field, pydantic error type) -> message shown to the user
FIELD_MESSAGES: dict[tuple[str, str], str] = {
    ("description", "string_too_short"): "Descrição é obrigatória",
    ("description", "string_type"): "Descrição é obrigatória",
    ("description", "string_too_long"): f"Descrição deve ter no máximo {MAX_DESCRIPTION_LENGTH} caracteres",
    ("amount", "greater_than_equal"): "Valor mínimo é R$ 0,01",
    ("amount", "less_than_equal"): "Valor máximo é R$ 999.999.999,99",
    ("payment_source", "string_too_long"): f"Fonte deve ter no máximo {MAX_PAYMENT_SOURCE_LENGTH} caracteres",
    ("transaction_date", "string_pattern_mismatch"): "Data inválida",
    ("notes", "string_too_long"): f"Observação deve ter no máximo {MAX_NOTES_LENGTH} caracteres",
}

FALLBACK_MESSAGES = {
    "description": "Descrição inválida",
    "amount": "Valor inválido",
    "type": "Tipo inválido",
    "payment_method": "Forma de pagamento inválida",
    "payment_source": "Fonte inválida",
    "transaction_date": "Data inválida",
    "notes": "Observação inválida",
}


def max_transaction_date(today: date | None = None) -> date:
    """Last accepted date: December 31st of next year."""
    today = today or date.today()
    return date(today.year + 1, 12, 31)


def message_for(field: str, error_type: str) -> str:
    """Fixed user-facing message for a pydantic error on a field."""
    return FIELD_MESSAGES.get((field, error_type), FALLBACK_MESSAGES.get(field, "Valor inválido"))


def schema_issues(row_number: int, exc: ValidationError) -> list[ValidationIssue]:
    """Translate a pydantic ValidationError into user-facing issues."""
    issues = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"]) or "row"
        issues.append(ValidationIssue(row=row_number, field=field, message=message_for(field, err["type"])))
    return issues


def date_issue(row_number: int, iso_date: str, today: date | None = None) -> ValidationIssue | None:
    """Reject non-calendar dates and dates outside [1990-01-01, end of next year]."""
    try:
        parsed = date.fromisoformat(iso_date)
    except ValueError:
        return ValidationIssue(row=row_number, field="transaction_date", message="Data inválida")
    upper = max_transaction_date(today)
    if parsed < MIN_TRANSACTION_DATE or parsed > upper:
        return ValidationIssue(
            row=row_number,
            field="transaction_date",
            message=f"Data fora do intervalo permitido ({MIN_TRANSACTION_DATE.year}-{upper.year})",
        )
    return None


def build_candidate(row: RawCsvRow, today: date | None = None) -> dict:
    """Normalize a raw row into the field layout of ``TransactionData``."""
    return {
        "description": row.descricao.strip(),
        "amount": parse_currency(row.valor),
        "type": normalize_type(row.tipo),
        "payment_method": normalize_payment_method(row.forma_pagamento),
        "payment_source": row.fonte_pagamento.strip() or None,
        "transaction_date": parse_date(row.data, today=today),
        "notes": row.observacao.strip() or None,
    }


def validate_transactions(rows: Iterable[RawCsvRow], today: date | None = None) -> ValidationResult:
    """Validate every row and split the batch into valid records and issues."""
    errors: list[ValidationIssue] = []
    valid: list[TransactionData] = []
    for row in rows:
        candidate = build_candidate(row, today=today)
        try:
            transaction = TransactionData.model_validate(candidate)
        except ValidationError as exc:
            errors.extend(schema_issues(row.row_number, exc))
            continue
        issue = date_issue(row.row_number, transaction.transaction_date, today=today)
        if issue:
            errors.append(issue)
            continue
        valid.append(transaction)
    return ValidationResult(valid=not errors, errors=errors, valid_transactions=valid)
