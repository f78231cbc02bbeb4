"""
Smart Promo Price Calculator.

A promo price is the deepest discount that still respects:
- the global minimum margin (inviolable floor)
- the maximum discount for the product's ABC class
- optional competitor guardrails (approach their average,
  never undercut their minimum)
"""

import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple

from app.services.pricing.margin import calculate_margin, price_for_margin
from app.services.pricing.position import CompetitorObservation
from app.services.pricing.recommendation import ProductSnapshot


UPLIFT_FALLBACK_MULTIPLIER = 2


@dataclass
class SmartPriceConfig:
    global_min_margin_percent: float = 15.0
    abc_a_max_discount_percent: float = 10.0
    abc_b_max_discount_percent: float = 20.0
    abc_c_max_discount_percent: float = 30.0
    match_competitor_promo: bool = True
    never_below_competitor_min: bool = True

    def max_discount_for(self, abc_class: str) -> float:
        if abc_class == 'A':
            return self.abc_a_max_discount_percent
        if abc_class == 'B':
            return self.abc_b_max_discount_percent
        return self.abc_c_max_discount_percent


@dataclass
class SmartPriceResult:
    product_id: int
    cost_price: float
    current_price: float
    current_margin: float
    promo_price: float
    promo_margin: float
    discount_percent: float
    expected_uplift_percent: float
    abc_class: str
    min_comp_price: Optional[float] = None
    avg_comp_price: Optional[float] = None
    elasticity_coefficient: Optional[float] = None
    product_name: Optional[str] = None
    sku: Optional[str] = None
    constraints_met: Dict[str, bool] = field(default_factory=dict)


def competitor_reference_prices(
    observations: Iterable[CompetitorObservation]
) -> Tuple[Optional[float], Optional[float]]:
    """
    Min and average of competitor effective prices.

    The effective price is the promo price while a promo is active,
    otherwise the regular price. Min only considers positive prices.

    Returns:
        (min_price, avg_price); either is None when unavailable
    """
    effective = [
        o.promo_price if o.has_active_promo else o.price
        for o in observations
    ]
    if not effective:
        return None, None

    positive = [p for p in effective if p > 0]
    min_price = min(positive) if positive else None
    avg_price = sum(effective) / len(effective)
    return min_price, avg_price


def _round_above_floor(price: float, floor: float) -> float:
    """Round to cents without dropping below the floor."""
    rounded = round(price, 2)
    if rounded < floor:
        rounded = math.ceil(floor * 100) / 100
    return rounded


def compute_smart_price(
    product: ProductSnapshot,
    config: SmartPriceConfig,
    min_comp_price: Optional[float] = None,
    avg_comp_price: Optional[float] = None,
    elasticity_coefficient: Optional[float] = None
) -> SmartPriceResult:
    """Calculate a constrained promotional price for one product."""
    cost_price = float(product.cost_price)
    current_price = float(product.current_price)
    abc_class = product.abc_category or 'C'

    max_discount = config.max_discount_for(abc_class)
    min_margin_price = price_for_margin(cost_price, config.global_min_margin_percent)
    max_discount_price = current_price * (1 - max_discount / 100)

    # Margin floor dominates a discount that would violate it
    promo_price = max(min_margin_price, max_discount_price)

    if config.match_competitor_promo and avg_comp_price is not None:
        promo_price = max(min_margin_price, min(promo_price, avg_comp_price))

    if config.never_below_competitor_min and min_comp_price is not None:
        promo_price = max(promo_price, min_comp_price)

    promo_price = _round_above_floor(promo_price, min_margin_price)

    price_change_pct = ((promo_price - current_price) / current_price) * 100

    if elasticity_coefficient is not None:
        expected_uplift = abs(elasticity_coefficient * price_change_pct)
    else:
        expected_uplift = abs(price_change_pct) * UPLIFT_FALLBACK_MULTIPLIER

    promo_margin = calculate_margin(promo_price, cost_price)

    return SmartPriceResult(
        product_id=product.product_id,
        product_name=product.name,
        sku=product.sku,
        cost_price=cost_price,
        current_price=current_price,
        current_margin=round(calculate_margin(current_price, cost_price), 2),
        promo_price=promo_price,
        promo_margin=round(promo_margin, 2),
        discount_percent=round(price_change_pct, 2),
        expected_uplift_percent=round(expected_uplift, 1),
        min_comp_price=min_comp_price,
        avg_comp_price=round(avg_comp_price, 2) if avg_comp_price is not None else None,
        abc_class=abc_class,
        elasticity_coefficient=elasticity_coefficient,
        constraints_met={
            'min_margin': promo_margin >= config.global_min_margin_percent - 1e-9,
            'max_discount': abs(price_change_pct) <= max_discount + 1e-9,
            'above_comp_min': promo_price >= min_comp_price if min_comp_price is not None else True,
        },
    )
