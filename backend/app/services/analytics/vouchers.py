"""
Gift voucher economics
"""
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from app.schemas.analytics import (
    VoucherIntelligence,
    VoucherMonthlyTrend,
    VoucherSalesEstimate,
    VoucherTypeBreakdown,
)
from app.schemas.resova import GiftVoucher, Transaction
from app.services.analytics.categories import MetricBasis
from app.utils.parsing import parse_amount, parse_date, percentage, round_money, round_percent, safe_divide

# Assumed share of sold vouchers that get redeemed when only transaction data is available
ASSUMED_REDEMPTION_RATE = 75
EXPIRING_SOON_DAYS = 30
ACTIVE_STATUS = "active"

VOUCHER_TYPE_LABELS = {
    "value": "Value Vouchers",
    "spaces": "Space Vouchers",
}


def _is_redeemed(voucher: GiftVoucher) -> bool:
    return bool(voucher.redeemed_at and voucher.redeemed_at.strip())


def _month_key(value: Optional[str]) -> Optional[str]:
    parsed = parse_date(value)
    return parsed.strftime("%Y-%m") if parsed else None


def is_voucher_transaction(transaction: Transaction) -> bool:
    """True when a purchase or booked item on the transaction names a gift voucher"""
    for purchase in transaction.purchases:
        text = f"{purchase.type or ''} {purchase.name or ''}".lower()
        if "voucher" in text:
            return True
    for booking in transaction.bookings:
        if booking.item and booking.item.name and "voucher" in booking.item.name.lower():
            return True
    return False


def estimate_voucher_sales(transactions: List[Transaction]) -> Optional[VoucherSalesEstimate]:
    """
    Project redemptions from voucher-selling transactions

    The redeemed figures are a projection at ASSUMED_REDEMPTION_RATE, not
    observed redemptions.
    """
    voucher_transactions = [t for t in transactions if is_voucher_transaction(t)]
    if not voucher_transactions:
        return None

    sold_value = sum(parse_amount(t.total) for t in voucher_transactions)
    return VoucherSalesEstimate(
        voucher_transactions=len(voucher_transactions),
        sold_value=round_money(sold_value),
        assumed_redemption_rate=ASSUMED_REDEMPTION_RATE,
        projected_redeemed=len(voucher_transactions) * ASSUMED_REDEMPTION_RATE // 100,
        projected_redeemed_value=round_money(sold_value * ASSUMED_REDEMPTION_RATE / 100),
        is_estimate=True,
    )


def analyze_vouchers(
    vouchers: List[GiftVoucher],
    transactions: List[Transaction],
    now: datetime,
) -> VoucherIntelligence:
    """
    Voucher sales, redemption and breakage

    Redemption and breakage are measured from voucher records when they exist.
    With no voucher records, the rates fall back to the transaction-based
    estimate and redemption_basis is set to estimated.

    Args:
        vouchers: Gift voucher records
        transactions: Transactions for the window, used for the estimate
        now: Reference time for expiry checks

    Returns:
        VoucherIntelligence
    """
    total = len(vouchers)
    gift_sales = 0.0
    redeemed_count = available_count = expired_count = expiring_soon = 0
    redeemed_value = available_value = expired_value = 0.0
    by_type: Dict[str, Dict[str, float]] = {}
    by_month: Dict[str, Dict[str, float]] = {}
    soon = now + timedelta(days=EXPIRING_SOON_DAYS)

    for voucher in vouchers:
        amount = parse_amount(voucher.amount)
        gift_sales += amount
        redeemed = _is_redeemed(voucher)
        expires = parse_date(voucher.expires_at)

        if redeemed:
            redeemed_count += 1
            redeemed_value += amount
        elif expires is not None and expires < now:
            expired_count += 1
            expired_value += amount
        elif (voucher.status or "").strip().lower() == ACTIVE_STATUS:
            available_count += 1
            available_value += amount
            if expires is not None and expires <= soon:
                expiring_soon += 1

        voucher_type = (voucher.voucher_type or "other").strip().lower() or "other"
        type_entry = by_type.setdefault(voucher_type, {"sold": 0, "redeemed": 0, "revenue": 0.0})
        type_entry["sold"] += 1
        type_entry["revenue"] += amount
        if redeemed:
            type_entry["redeemed"] += 1

        created_month = _month_key(voucher.created_at)
        if created_month:
            month = by_month.setdefault(created_month, _empty_month())
            month["sold"] += 1
            month["sold_value"] += amount
        redeemed_month = _month_key(voucher.redeemed_at) if redeemed else None
        if redeemed_month:
            month = by_month.setdefault(redeemed_month, _empty_month())
            month["redeemed"] += 1
            month["redeemed_value"] += amount

    estimate = estimate_voucher_sales(transactions)
    redemption_rate = percentage(redeemed_count, total)
    breakage_rate = percentage(expired_count, total)
    basis = MetricBasis.MEASURED
    if not vouchers and estimate is not None:
        basis = MetricBasis.ESTIMATED
        redemption_rate = ASSUMED_REDEMPTION_RATE
        breakage_rate = 100 - ASSUMED_REDEMPTION_RATE

    return VoucherIntelligence(
        total_vouchers=total,
        gift_sales=round_money(gift_sales),
        redeemed_count=redeemed_count,
        redeemed_value=round_money(redeemed_value),
        available_count=available_count,
        available_value=round_money(available_value),
        expired_unredeemed_count=expired_count,
        expired_unredeemed_value=round_money(expired_value),
        expiring_soon=expiring_soon,
        redemption_rate=round_percent(redemption_rate),
        breakage_rate=round_percent(breakage_rate),
        average_voucher_value=round_money(safe_divide(gift_sales, total)),
        average_redemption_value=round_money(safe_divide(redeemed_value, redeemed_count)),
        redemption_basis=basis,
        by_type=[
            VoucherTypeBreakdown(
                type=voucher_type,
                label=VOUCHER_TYPE_LABELS.get(voucher_type, voucher_type.title()),
                sold=int(entry["sold"]),
                redeemed=int(entry["redeemed"]),
                redemption_rate=round_percent(percentage(entry["redeemed"], entry["sold"])),
                revenue=round_money(entry["revenue"]),
            )
            for voucher_type, entry in by_type.items()
        ],
        monthly_trends=[
            VoucherMonthlyTrend(
                month=key,
                sold=int(month["sold"]),
                sold_value=round_money(month["sold_value"]),
                redeemed=int(month["redeemed"]),
                redeemed_value=round_money(month["redeemed_value"]),
            )
            for key, month in sorted(by_month.items())
        ],
        transaction_estimate=estimate,
    )


def _empty_month() -> Dict[str, float]:
    return {"sold": 0, "sold_value": 0.0, "redeemed": 0, "redeemed_value": 0.0}
