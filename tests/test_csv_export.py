"""Tests for CSV export rendering and dashboard totals."""

from datetime import date
from decimal import Decimal

from fincontrol.core.db import Transaction
from fincontrol.core.models import PaymentMethod, TransactionType
from fincontrol.services.csv_export import export_filename, transactions_to_csv
from fincontrol.services.summary import summarize


def make_transactions() -> list[Transaction]:
    return [
        Transaction(
            description="Salário",
            amount=Decimal("5000.00"),
            type=TransactionType.INCOME,
            payment_method=PaymentMethod.PIX,
            payment_source="Nubank",
            transaction_date=date(2024, 1, 5),
            notes=None,
        ),
        Transaction(
            description="Loja; Centro",
            amount=Decimal("1234.5"),
            type=TransactionType.EXPENSE,
            payment_method=PaymentMethod.CREDITO,
            payment_source=None,
            transaction_date=date(2024, 1, 20),
            notes="parcela 1/3",
        ),
    ]


def test_export_layout() -> None:
    """BOM, semicolons, Portuguese labels, BR numbers and dates, quoting when needed."""
    text = transactions_to_csv(make_transactions())
    expected = (
        "\ufeffDescrição;Valor;Tipo;Forma de Pagamento;Fonte/Cartão;Data;Observação\n"
        "Salário;5.000,00;Receita;PIX;Nubank;05/01/2024;\n"
        '"Loja; Centro";1.234,50;Despesa;Crédito;;20/01/2024;parcela 1/3'
    )
    if text != expected:
        msg = f"Unexpected CSV:\n{text!r}\nexpected:\n{expected!r}"
        raise AssertionError(msg)


def test_export_filename() -> None:
    """Profile name is slugged; the period is month-year or just the year."""
    cases = {
        ("Cliente ACME", 2024, 3): "fincontrol-cliente-acme-março-2024.csv",
        (None, 2024, None): "fincontrol-todos-perfis-2024.csv",
    }
    for (name, year, month), expected in cases.items():
        got = export_filename(name, year, month)
        if got != expected:
            msg = f"export_filename({name!r}, {year}, {month}) = {got!r}, expected {expected!r}"
            raise AssertionError(msg)


def test_summarize() -> None:
    """Balance is income minus expense."""
    summary = summarize(make_transactions())
    if (summary.income, summary.expense, summary.balance, summary.count) != (5000.0, 1234.5, 3765.5, 2):
        msg = f"Unexpected summary: {summary}"
        raise AssertionError(msg)
    empty = summarize([])
    if (empty.income, empty.expense, empty.balance, empty.count) != (0.0, 0.0, 0.0, 0):
        msg = f"Unexpected empty summary: {empty}"
        raise AssertionError(msg)
