"""Income/expense totals for dashboards."""

from collections.abc import Iterable

import pandas as pd

from fincontrol.core.db import Transaction
from fincontrol.core.models import LedgerSummary, TransactionType


def summarize(transactions: Iterable[Transaction]) -> LedgerSummary:
    """Sum amounts per type; balance is income minus expense."""
    data_frame = pd.DataFrame(
        [{"type": str(t.type), "amount": float(t.amount)} for t in transactions],
        columns=["type", "amount"],
    )
    totals = data_frame.groupby("type")["amount"].sum()
    income = round(float(totals.get(TransactionType.INCOME.value, 0.0)), 2)
    expense = round(float(totals.get(TransactionType.EXPENSE.value, 0.0)), 2)
    return LedgerSummary(income=income, expense=expense, balance=round(income - expense, 2), count=len(data_frame))
