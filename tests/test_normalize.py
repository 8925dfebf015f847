"""Tests for Brazilian currency/date conversion and text sanitization."""

from datetime import date
from decimal import Decimal

from fincontrol.core.normalize import format_currency, format_date, parse_currency, parse_date
from fincontrol.core.sanitize import sanitize_text

TODAY = date(2024, 6, 15)


def test_parse_currency_brazilian_formats() -> None:
    """Thousands dots are dropped and the decimal comma becomes a point."""
    cases = {
        "1.234,56": Decimal("1234.56"),
        "R$ 1.234,56": Decimal("1234.56"),
        "5.000,00": Decimal("5000.00"),
        "  42 ": Decimal("42"),
        "-10,5": Decimal("-10.5"),
    }
    for text, expected in cases.items():
        got = parse_currency(text)
        if got != expected:
            msg = f"parse_currency({text!r}): expected {expected}, got {got}"
            raise AssertionError(msg)


def test_parse_currency_garbage_is_zero() -> None:
    """Unreadable amounts degrade to zero instead of raising."""
    for text in ("", "abc", "R$", None):
        if parse_currency(text) != 0:
            msg = f"Expected 0 for {text!r}, got {parse_currency(text)}"
            raise AssertionError(msg)


def test_format_currency() -> None:
    """Dots group thousands; the comma separates cents."""
    if format_currency(Decimal("1234.56")) != "1.234,56":
        msg = f"Unexpected rendering: {format_currency(Decimal('1234.56'))}"
        raise AssertionError(msg)
    if format_currency(5) != "5,00":
        msg = f"Unexpected rendering: {format_currency(5)}"
        raise AssertionError(msg)


def test_parse_date_shapes() -> None:
    """DD/MM/YYYY is reordered, ISO is truncated at T, anything else is today."""
    cases = {
        "05/01/2024": "2024-01-05",
        "5/1/2024": "2024-01-05",
        "2024-03-09": "2024-03-09",
        "2024-03-09T10:00:00Z": "2024-03-09",
        "ontem": "2024-06-15",
        "": "2024-06-15",
    }
    for text, expected in cases.items():
        got = parse_date(text, today=TODAY)
        if got != expected:
            msg = f"parse_date({text!r}): expected {expected}, got {got}"
            raise AssertionError(msg)


def test_format_date() -> None:
    """ISO strings and date objects both render as DD/MM/YYYY."""
    if format_date("2024-01-05") != "05/01/2024":
        msg = f"Unexpected rendering: {format_date('2024-01-05')}"
        raise AssertionError(msg)
    if format_date(date(2023, 12, 31)) != "31/12/2023":
        msg = f"Unexpected rendering: {format_date(date(2023, 12, 31))}"
        raise AssertionError(msg)


def test_sanitize_text_strips_markup_and_controls() -> None:
    """Angle brackets, javascript: schemes, event handlers and control chars are removed."""
    cases = {
        "<script>alert(1)</script>": "scriptalert(1)/script",
        "JavaScript:void(0)": "void(0)",
        'img onerror="x"': 'img "x"',
        "Mercado\x00\x07 Livre\x7f": "Mercado Livre",
        "  linha\tcom tab  ": "linha\tcom tab",
    }
    for text, expected in cases.items():
        got = sanitize_text(text)
        if got != expected:
            msg = f"sanitize_text({text!r}): expected {expected!r}, got {got!r}"
            raise AssertionError(msg)
    if sanitize_text(None) is not None:
        msg = "Expected None to pass through unchanged"
        raise AssertionError(msg)


def test_currency_format_then_parse_returns_the_value() -> None:
    """Formatting to BR notation and parsing back is lossless for two-decimal values."""
    for text in ("0.01", "9.99", "10.50", "999.00", "1000.00", "1234.56", "98765.43", "1000000.00", "999999999.99"):
        value = Decimal(text)
        rendered = format_currency(value)
        if parse_currency(rendered) != value:
            msg = f"{value} -> {rendered!r} -> {parse_currency(rendered)}"
            raise AssertionError(msg)


def test_parse_date_is_idempotent() -> None:
    """Parsing an already parsed date changes nothing, whatever the input shape."""
    for text in ("05/01/2024", "5/1/2024", "2024-03-09", "2024-03-09T10:00:00Z", "ontem", ""):
        once = parse_date(text, today=TODAY)
        twice = parse_date(once, today=TODAY)
        if once != twice:
            msg = f"parse_date({text!r}) = {once!r}, but parsing again gave {twice!r}"
            raise AssertionError(msg)


def test_parse_currency_drops_stray_currency_letters() -> None:
    """Every R, $ and whitespace character is noise, not only the R$ pair."""
    cases = {"R 10,00": Decimal("10.00"), "10,00 R": Decimal("10.00"), "$ 7,5": Decimal("7.5")}
    for text, expected in cases.items():
        got = parse_currency(text)
        if got != expected:
            msg = f"parse_currency({text!r}): expected {expected}, got {got}"
            raise AssertionError(msg)
