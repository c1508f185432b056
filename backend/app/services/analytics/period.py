"""
Period summary: gross, net and the per-field totals for the reporting window
"""
from typing import Dict, List

from app.schemas.analytics import PeriodSummary
from app.schemas.resova import Transaction
from app.utils.parsing import parse_amount, percent_change, round_money

_SUMMED_FIELDS = ("paid", "total", "discount", "refunded", "tax", "fee")


def _totals(transactions: List[Transaction]) -> Dict[str, float]:
    totals = {field: 0.0 for field in _SUMMED_FIELDS}
    for transaction in transactions:
        # unparsable fields contribute 0 on their own; the rest of the row still counts
        for field in _SUMMED_FIELDS:
            totals[field] += parse_amount(getattr(transaction, field))

    return {
        "gross": totals["paid"],
        "net": totals["paid"] - totals["refunded"],
        "total_sales": totals["total"],
        "discounts": totals["discount"],
        "refunded": totals["refunded"],
        "taxes": totals["tax"],
        "fees": totals["fee"],
    }


def summarize_period(
    transactions: List[Transaction],
    previous_transactions: List[Transaction],
) -> PeriodSummary:
    """
    Build the period summary with changes against the previous window

    Args:
        transactions: Current-period transactions
        previous_transactions: Previous-period transactions, empty when unknown

    Returns:
        PeriodSummary; every change is 0 when the previous window has no data
    """
    current = _totals(transactions)
    previous = _totals(previous_transactions)

    values = {}
    for name, value in current.items():
        values[name] = round_money(value)
        values[f"{name}_change"] = percent_change(value, previous[name])
    return PeriodSummary(**values)
