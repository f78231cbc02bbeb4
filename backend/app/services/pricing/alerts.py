"""
Pricing Alerts.

Two checks over data we already hold:
1. Low margin: current margin well below the product's target
2. Competitor price drop: a competitor's latest price this week is
   clearly below its latest price the week before
"""

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Iterable, List, Optional

from app.services.pricing.margin import calculate_margin
from app.services.pricing.position import CompetitorObservation, latest_observations
from app.services.pricing.recommendation import ProductSnapshot


LOW_MARGIN_GAP = 10.0  # Percentage points below target
PRICE_DROP_WINDOW_DAYS = 7
PRICE_DROP_THRESHOLD_PCT = 10.0


class AlertType(str, Enum):
    LOW_MARGIN = "low_margin"
    COMPETITOR_PRICE_DROP = "competitor_price_drop"


class AlertSeverity(str, Enum):
    WARNING = "warning"
    INFO = "info"


@dataclass
class Alert:
    type: AlertType
    title: str
    description: str
    severity: AlertSeverity
    product_id: Optional[int] = None


@dataclass
class PriceDrop:
    """A competitor's week-over-week price drop."""
    competitor_name: str
    previous_price: float
    current_price: float
    drop_percent: float


def low_margin_alert(
    product: ProductSnapshot,
    target_margin: float,
    gap: float = LOW_MARGIN_GAP
) -> Optional[Alert]:
    """Alert when margin is more than `gap` points below target."""
    if not product.current_price or product.current_price <= 0:
        return None

    margin = calculate_margin(product.current_price, product.cost_price)
    if margin >= target_margin - gap:
        return None

    return Alert(
        type=AlertType.LOW_MARGIN,
        title=f"Low Margin Alert: {product.name or product.sku}",
        description=(
            f"Product {product.sku} has only {margin:.1f}% margin, "
            f"well below the {target_margin:.0f}% target."
        ),
        severity=AlertSeverity.WARNING,
        product_id=product.product_id,
    )


def competitor_price_drops(
    observations: Iterable[CompetitorObservation],
    today: date,
    window_days: int = PRICE_DROP_WINDOW_DAYS,
    threshold_pct: float = PRICE_DROP_THRESHOLD_PCT
) -> List[PriceDrop]:
    """
    Compare each competitor's latest price in the last `window_days`
    with its latest price in the window before that.

    Competitors without an observation in both windows are ignored.
    """
    recent_start = today - timedelta(days=window_days)
    previous_start = recent_start - timedelta(days=window_days)

    observations = list(observations)
    recent = {
        o.competitor_name: o.price
        for o in latest_observations(o for o in observations if recent_start <= o.date <= today)
    }
    previous = {
        o.competitor_name: o.price
        for o in latest_observations(o for o in observations if previous_start <= o.date < recent_start)
    }

    drops = []
    for name, current_price in sorted(recent.items()):
        previous_price = previous.get(name)
        if not previous_price:
            continue
        if current_price < previous_price * (1 - threshold_pct / 100):
            drops.append(PriceDrop(
                competitor_name=name,
                previous_price=previous_price,
                current_price=current_price,
                drop_percent=round((previous_price - current_price) / previous_price * 100, 1),
            ))
    return drops


def price_drop_alert(product: ProductSnapshot, drop: PriceDrop) -> Alert:
    return Alert(
        type=AlertType.COMPETITOR_PRICE_DROP,
        title="Competitor Price Drop Detected",
        description=(
            f"{drop.competitor_name} dropped price by {drop.drop_percent:.1f}% "
            f"on {product.name or product.sku}"
        ),
        severity=AlertSeverity.INFO,
        product_id=product.product_id,
    )
