"""CSV tokenizer for transaction imports.

Turns raw spreadsheet exports into header-mapped ``RawCsvRow`` records. The
delimiter is sniffed once from the header line; headers are matched against
Portuguese and English synonyms.
"""

import csv
from io import StringIO

from fincontrol.core.errors import MSG_UNREADABLE_CSV, CsvFormatError
from fincontrol.core.models import RawCsvRow
from fincontrol.core.utils import get_logger

logger = get_logger("fincontrol.import")

BOM = "\ufeff"
MIN_CSV_LINES = 2

# Ordered: the first synonym present in the header wins.
COLUMN_SYNONYMS: dict[str, list[str]] = {
    "descricao": ["descrição", "descricao", "description", "pagamento", "nome"],
    "valor": ["valor", "value", "amount", "quantia"],
    "tipo": ["tipo", "type", "categoria"],
    "forma_pagamento": ["forma de pagamento", "forma_pagamento", "payment_method", "metodo", "método"],
    "fonte_pagamento": ["fonte", "fonte/cartão", "fonte_pagamento", "cartão", "cartao", "pagador", "source"],
    "data": ["data", "date", "transaction_date", "dia"],
    "observacao": ["observação", "observacao", "notes", "obs", "comentário", "comentario"],
}

FIELD_DEFAULTS = {"tipo": "expense", "forma_pagamento": "pix"}


def detect_delimiter(header_line: str) -> str:
    """Return ``;`` when the header uses semicolons, otherwise ``,``."""
    return ";" if ";" in header_line else ","


def _find_column(headers: list[str], values: list[str], names: list[str]) -> str | None:
    for name in names:
        if name in headers:
            index = headers.index(name)
            if index < len(values):
                return values[index]
    return None


def _decode(content: str | bytes) -> str:
    if isinstance(content, str):
        return content
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise CsvFormatError(MSG_UNREADABLE_CSV) from exc


def _is_blank(record: list[str]) -> bool:
    return all(not value.strip() for value in record)


def parse_csv(content: str | bytes) -> list[RawCsvRow]:
    """Tokenize CSV text into raw rows in file order.

    Quoted fields may hold the delimiter, ``""`` escapes and line breaks.
    Raises ``CsvFormatError`` when there is no header plus at least one data row.
    """
    text = _decode(content).removeprefix(BOM)
    header_line = next((line for line in text.splitlines() if line.strip()), "")
    delimiter = detect_delimiter(header_line)
    records = [
        [value.strip() for value in record]
        for record in csv.reader(StringIO(text, newline=""), delimiter=delimiter)
        if not _is_blank(record)
    ]
    if len(records) < MIN_CSV_LINES:
        raise CsvFormatError

    headers = [header.lower() for header in records[0]]
    logger.info(f"CSV header ({delimiter!r}): {headers}")

    rows: list[RawCsvRow] = []
    for values in records[1:]:
        fields = {}
        for field, names in COLUMN_SYNONYMS.items():
            value = _find_column(headers, values, names)
            fields[field] = value if value else FIELD_DEFAULTS.get(field, "")
        rows.append(RawCsvRow(row_number=len(rows) + 1, **fields))
    logger.info(f"Tokenized {len(rows)} data rows")
    return rows
