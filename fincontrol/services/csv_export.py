"""CSV export of ledger transactions in the spreadsheet-friendly Brazilian layout."""

import csv
import re
from collections.abc import Iterable

import pandas as pd

from fincontrol.core.db import Transaction
from fincontrol.core.models import PAYMENT_METHOD_LABELS, TYPE_LABELS
from fincontrol.core.normalize import format_currency, format_date

EXPORT_COLUMNS = ["Descrição", "Valor", "Tipo", "Forma de Pagamento", "Fonte/Cartão", "Data", "Observação"]
MONTH_NAMES = [
    "janeiro",
    "fevereiro",
    "março",
    "abril",
    "maio",
    "junho",
    "julho",
    "agosto",
    "setembro",
    "outubro",
    "novembro",
    "dezembro",
]


def transactions_to_csv(transactions: Iterable[Transaction]) -> str:
    """Render transactions as ``;``-separated CSV with a UTF-8 BOM."""
    records = [
        {
            "Descrição": t.description,
            "Valor": format_currency(t.amount),
            "Tipo": TYPE_LABELS.get(t.type, str(t.type)),
            "Forma de Pagamento": PAYMENT_METHOD_LABELS.get(t.payment_method, str(t.payment_method)),
            "Fonte/Cartão": t.payment_source or "",
            "Data": format_date(t.transaction_date),
            "Observação": t.notes or "",
        }
        for t in transactions
    ]
    data_frame = pd.DataFrame(records, columns=EXPORT_COLUMNS)
    body = data_frame.to_csv(sep=";", index=False, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    return "\ufeff" + body.rstrip("\n")


def export_filename(profile_name: str | None, year: int, month: int | None = None) -> str:
    """``fincontrol-<profile-slug>-<month-year|year>.csv``."""
    slug = re.sub(r"\s+", "-", profile_name.lower()) if profile_name else "todos-perfis"
    period = f"{MONTH_NAMES[month - 1]}-{year}" if month else str(year)
    return f"fincontrol-{slug}-{period}.csv"
