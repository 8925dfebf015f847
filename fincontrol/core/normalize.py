"""Brazilian-locale currency and date conversions.

All functions here are pure. Parsing is deliberately lenient: malformed
currency degrades to zero (amount bounds catch it later) and unrecognised
dates fall back to today.
"""

import re
from datetime import date
from decimal import Decimal, InvalidOperation

_CURRENCY_NOISE = re.compile(r"[R$\s]")
_NUMERIC_PREFIX = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def parse_currency(text: str) -> Decimal:
    """Parse ``1.234,56`` / ``R$ 1.234,56`` into ``Decimal("1234.56")``.

    Returns ``Decimal("0")`` when nothing numeric can be read.
    """
    cleaned = _CURRENCY_NOISE.sub("", str(text or ""))
    cleaned = cleaned.replace(".", "").replace(",", ".", 1)
    match = _NUMERIC_PREFIX.match(cleaned)
    if not match:
        return Decimal(0)
    try:
        value = Decimal(match.group(0))
    except InvalidOperation:
        return Decimal(0)
    if not value.is_finite():
        return Decimal(0)
    return value


def format_currency(value: Decimal | float) -> str:
    """Render ``1234.56`` as ``1.234,56``."""
    rendered = f"{Decimal(str(value)):,.2f}"
    return rendered.replace(",", "_").replace(".", ",").replace("_", ".")


def parse_date(text: str, today: date | None = None) -> str:
    """Convert ``DD/MM/YYYY`` or ISO text to ``YYYY-MM-DD``.

    Any other shape returns today's date.
    """
    value = str(text or "").strip()
    parts = value.split("/")
    if len(parts) == 3:  # noqa: PLR2004
        day, month, year = parts
        return f"{year}-{month.zfill(2)}-{day.zfill(2)}"
    if "-" in value:
        return value.split("T")[0]
    return (today or date.today()).isoformat()


def format_date(iso_date: str | date) -> str:
    """Render ``2024-01-05`` as ``05/01/2024``."""
    if isinstance(iso_date, date):
        return iso_date.strftime("%d/%m/%Y")
    year, month, day = str(iso_date).split("T")[0].split("-")
    return f"{day}/{month}/{year}"
