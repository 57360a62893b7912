"""
CSV Export

Produces the ledger download. The format is fixed and must be reproduced
exactly:

    ID,Description,Amount,Date,Category,Type

The description is always double-quoted with internal quotes doubled.
The other columns are written bare. Rows follow the order of the
transactions passed in (normally the current filter order).
"""

from decimal import Decimal
from typing import Iterable

from finsight.models.transaction import Transaction


CSV_HEADER = "ID,Description,Amount,Date,Category,Type"


def _quote(text: str) -> str:
    return '"' + text.replace('"', '""') + '"'


def _format_amount(amount: Decimal) -> str:
    """Plain decimal notation without trailing zeros: 85.50 -> 85.5, 1200.00 -> 1200."""
    return format(amount.normalize(), "f")


def export_transactions_csv(transactions: Iterable[Transaction]) -> str:
    """Render transactions as CSV text, lines separated by a newline."""
    rows = [CSV_HEADER]
    for t in transactions:
        rows.append(",".join([
            t.id,
            _quote(t.description),
            _format_amount(t.amount),
            t.date.isoformat(),
            t.category,
            t.type.value,
        ]))
    return "\n".join(rows)
