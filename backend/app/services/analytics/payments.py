"""
Payment collection analysis over allPayments rows
"""
from typing import Dict, List, Tuple

from app.schemas.analytics import PaymentCollection
from app.schemas.resova import Payment
from app.services.analytics.categories import PaymentMethod, classify_payment_method
from app.utils.parsing import parse_amount, percent_change, percentage, round_money, round_percent


def analyze_payment_collection(payments: List[Payment], previous_payments: List[Payment]) -> PaymentCollection:
    """
    Summarize collected and outstanding money

    Payment rows carry a snapshot of their parent transaction. Transaction
    totals and dues are deduplicated per transaction id by taking the largest
    value seen across its rows, while payment amounts are summed as-is since
    each row is a separate capture.

    Args:
        payments: Current-period payment rows
        previous_payments: Previous-period payment rows

    Returns:
        PaymentCollection
    """
    max_total: Dict[str, float] = {}
    max_due: Dict[str, float] = {}
    latest_snapshot: Dict[str, Tuple[float, float]] = {}
    by_method = {method: 0.0 for method in PaymentMethod}
    paid_amount = 0.0

    for payment in payments:
        amount = parse_amount(payment.amount)
        paid_amount += amount
        by_method[classify_payment_method(payment.label)] += amount

        if payment.transaction_id is None:
            continue
        key = str(payment.transaction_id)
        total = parse_amount(payment.transaction_total)
        due = parse_amount(payment.transaction_due)
        max_total[key] = max(max_total.get(key, total), total)
        max_due[key] = max(max_due.get(key, due), due)
        latest_snapshot[key] = (parse_amount(payment.transaction_paid), due)

    paid_count = partial_count = unpaid_count = 0
    for paid, due in latest_snapshot.values():
        if due <= 0:
            paid_count += 1
        elif paid > 0:
            partial_count += 1
        else:
            unpaid_count += 1

    total_transaction_amount = sum(max_total.values())
    unpaid_amount = sum(max_due.values())
    previous_total = sum(parse_amount(p.amount) for p in previous_payments)

    return PaymentCollection(
        total_payments=round_money(paid_amount),
        total_change=percent_change(paid_amount, previous_total),
        total_transaction_amount=round_money(total_transaction_amount),
        paid_amount=round_money(paid_amount),
        paid_percent=round_percent(percentage(paid_amount, total_transaction_amount)),
        unpaid_amount=round_money(unpaid_amount),
        unpaid_percent=round_percent(percentage(unpaid_amount, total_transaction_amount)),
        card_amount=round_money(by_method[PaymentMethod.CARD]),
        card_percent=round_percent(percentage(by_method[PaymentMethod.CARD], paid_amount)),
        cash_amount=round_money(by_method[PaymentMethod.CASH]),
        cash_percent=round_percent(percentage(by_method[PaymentMethod.CASH], paid_amount)),
        uncategorized_amount=round_money(by_method[PaymentMethod.OTHER]),
        paid_transactions=paid_count,
        partially_paid_transactions=partial_count,
        unpaid_transactions=unpaid_count,
    )
