"""
Cart conversion, abandonment and recovery projections
"""
from typing import Dict, List

from app.schemas.analytics import (
    AbandonedItem,
    CartAbandonment,
    ConversionIntelligence,
    FunnelStage,
    RecoveryOpportunity,
)
from app.schemas.resova import Basket
from app.services.analytics.categories import BasketStatus, classify_basket_status
from app.utils.parsing import parse_amount, parse_count, percentage, round_money, round_percent, safe_divide

# Assumed share of abandoned value won back by recovery outreach
ASSUMED_RECOVERY_RATE = 15
TOP_ABANDONED_ITEMS_LIMIT = 5

# Benchmark drop-off per checkout stage, in percent. Not measured from the data.
FUNNEL_DROP_OFF_RATES = (
    ("Cart Created", 0),
    ("Item Added", 15),
    ("Checkout Started", 35),
    ("Payment Info", 25),
    ("Completed", 0),
)

ABANDONED_STATUSES = (BasketStatus.ABANDONED, BasketStatus.EXPIRED)


def _top_abandoned_items(abandoned: List[Basket]) -> List[AbandonedItem]:
    items: Dict[str, Dict[str, float]] = {}
    for basket in abandoned:
        for line in basket.items:
            entry = items.setdefault(line.item_name or "Unknown", {"count": 0, "lost": 0.0})
            entry["count"] += parse_count(line.quantity) or 1
            line_total = parse_amount(line.total) or parse_amount(line.price) * (parse_count(line.quantity) or 1)
            entry["lost"] += line_total

    ranked = sorted(items.items(), key=lambda entry: entry[1]["lost"], reverse=True)
    return [
        AbandonedItem(item_name=name, abandonment_count=int(entry["count"]), lost_revenue=round_money(entry["lost"]))
        for name, entry in ranked[:TOP_ABANDONED_ITEMS_LIMIT]
    ]


def analyze_conversion(baskets: List[Basket]) -> ConversionIntelligence:
    """
    Cart funnel figures

    Abandonment and conversion counts are measured from basket statuses.
    The recovery projection and the funnel stage drop-offs apply fixed rates
    and are flagged with is_estimate.
    """
    statuses = [classify_basket_status(basket.status) for basket in baskets]
    abandoned = [b for b, status in zip(baskets, statuses) if status in ABANDONED_STATUSES]
    converted = sum(1 for status in statuses if status == BasketStatus.CONVERTED)
    active = sum(1 for status in statuses if status == BasketStatus.ACTIVE)

    total_value = sum(parse_amount(b.total) for b in baskets)
    abandoned_value = sum(parse_amount(b.total) for b in abandoned)

    recoverable = [b for b in abandoned if b.customer_email and b.customer_email.strip()]
    potential = sum(parse_amount(b.total) for b in recoverable)

    return ConversionIntelligence(
        cart_abandonment=CartAbandonment(
            total_carts=len(baskets),
            abandoned_carts=len(abandoned),
            converted_carts=converted,
            active_carts=active,
            abandonment_rate=round_percent(percentage(len(abandoned), len(baskets))),
            conversion_rate=round_percent(percentage(converted, len(baskets))),
            abandoned_value=round_money(abandoned_value),
            avg_cart_value=round_money(safe_divide(total_value, len(baskets))),
            top_abandoned_items=_top_abandoned_items(abandoned),
        ),
        recovery_opportunity=RecoveryOpportunity(
            recoverable_carts=len(recoverable),
            potential_revenue=round_money(potential),
            estimated_recovery_rate=ASSUMED_RECOVERY_RATE,
            projected_recovered_revenue=round_money(potential * ASSUMED_RECOVERY_RATE / 100),
            is_estimate=True,
        ),
        drop_off_analysis=[
            FunnelStage(
                stage=stage,
                drop_off_rate=rate,
                lost_revenue=round_money(abandoned_value * rate / 100),
                is_estimate=True,
            )
            for stage, rate in FUNNEL_DROP_OFF_RATES
        ],
    )
