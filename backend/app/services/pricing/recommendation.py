"""
Pricing Recommendation Engine.

Rules are evaluated in a fixed order, first match wins:
1. Class-specific rules (A: conservative, C: aggressive)
2. General market rules
3. Batch-only catalog rules (B-class margin, weak sales, private label)

Each rule is a row in a table rather than a branch in a conditional,
so the policy can be tested and extended rule by rule.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Sequence

from app.services.pricing.margin import calculate_margin, price_for_margin
from app.services.pricing.position import PriceComparison, PricePosition
from app.services.pricing.trend import SalesTrend

logger = logging.getLogger(__name__)


class Action(str, Enum):
    INCREASE = "increase"
    DECREASE = "decrease"
    MAINTAIN = "maintain"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass
class Recommendation:
    """Outcome of a single rule evaluation."""
    action: Action
    reason: str
    confidence: Confidence
    suggested_price: Optional[float] = None
    rule: Optional[str] = None


@dataclass
class RuleContext:
    """Everything a rule may look at."""
    comparison: Optional[PriceComparison]
    current_margin: float
    target_margin: float
    abc_class: str
    sales_trend: SalesTrend
    our_price: float = 0.0
    cost_price: float = 0.0
    is_private_label: bool = False
    units_sold: float = 0.0
    private_label_min_margin: float = 35.0
    weak_sales_units: float = 10

    @property
    def position(self) -> PricePosition:
        if self.comparison is None:
            return PricePosition.NO_COMPETITOR_DATA
        return self.comparison.price_position

    @property
    def competitor_avg(self) -> float:
        return self.comparison.competitor_avg_price

    @property
    def below_target(self) -> bool:
        return self.current_margin < self.target_margin


@dataclass(frozen=True)
class PricingRule:
    """
    One row of the rule table.

    abc_class limits the rule to one class (None = any class).
    reason may reference {margin} and {target}.
    """
    name: str
    condition: Callable[[RuleContext], bool]
    action: Action
    target_price: Callable[[RuleContext], float]
    reason: str
    confidence: Confidence
    abc_class: Optional[str] = None

    def applies(self, ctx: RuleContext) -> bool:
        if self.abc_class is not None and self.abc_class != ctx.abc_class:
            return False
        return self.condition(ctx)

    def build(self, ctx: RuleContext) -> Recommendation:
        return Recommendation(
            action=self.action,
            suggested_price=round(self.target_price(ctx), 2),
            reason=self.reason.format(margin=ctx.current_margin, target=ctx.target_margin),
            confidence=self.confidence,
            rule=self.name,
        )


# ============== Rule Table ==============

MARKET_RULES: Sequence[PricingRule] = (
    # A-class products: be conservative
    PricingRule(
        name="a_underpriced_growing",
        abc_class="A",
        condition=lambda c: (
            c.position == PricePosition.CHEAPER_THAN_ALL
            and c.sales_trend == SalesTrend.GROWING
            and c.below_target
        ),
        action=Action.INCREASE,
        target_price=lambda c: min(c.comparison.our_price * 1.03, c.competitor_avg * 0.95),
        reason="Strong A-class product with growth potential, room to increase price while staying competitive",
        confidence=Confidence.HIGH,
    ),
    PricingRule(
        name="a_overpriced_declining",
        abc_class="A",
        condition=lambda c: (
            c.position == PricePosition.MORE_EXPENSIVE_THAN_ALL
            and c.sales_trend == SalesTrend.DECLINING
        ),
        action=Action.DECREASE,
        target_price=lambda c: c.competitor_avg,
        reason="A-class product losing volume due to high price, align with market average",
        confidence=Confidence.HIGH,
    ),
    # C-class products: can be more aggressive
    PricingRule(
        name="c_above_average",
        abc_class="C",
        condition=lambda c: (
            c.position == PricePosition.MORE_EXPENSIVE_THAN_AVG
            and c.sales_trend != SalesTrend.GROWING
        ),
        action=Action.DECREASE,
        target_price=lambda c: c.competitor_avg * 0.95,
        reason="C-class product: reduce price to stimulate volume and regain competitiveness",
        confidence=Confidence.MEDIUM,
    ),
    # General rules
    PricingRule(
        name="significantly_underpriced",
        condition=lambda c: (
            c.position == PricePosition.CHEAPER_THAN_ALL
            and c.below_target
            and c.comparison.price_difference_vs_avg < -10
        ),
        action=Action.INCREASE,
        target_price=lambda c: min(c.comparison.our_price * 1.05, c.competitor_avg * 0.9),
        reason="Significantly underpriced vs market with margin below target",
        confidence=Confidence.HIGH,
    ),
    PricingRule(
        name="uncompetitive_declining",
        condition=lambda c: (
            c.position == PricePosition.MORE_EXPENSIVE_THAN_ALL
            and c.sales_trend == SalesTrend.DECLINING
        ),
        action=Action.DECREASE,
        target_price=lambda c: c.competitor_avg,
        reason="Losing sales due to uncompetitive pricing",
        confidence=Confidence.HIGH,
    ),
    PricingRule(
        name="margin_gap_at_average",
        condition=lambda c: c.below_target and c.position == PricePosition.AROUND_AVG,
        action=Action.INCREASE,
        target_price=lambda c: c.comparison.our_price * 1.02,
        reason="Margin below target with competitive position allows small increase",
        confidence=Confidence.MEDIUM,
    ),
)

CATALOG_RULES: Sequence[PricingRule] = (
    PricingRule(
        name="b_margin_below_target",
        abc_class="B",
        condition=lambda c: c.current_margin < c.target_margin - 5,
        action=Action.INCREASE,
        target_price=lambda c: price_for_margin(c.cost_price, c.target_margin),
        reason="B-class product with margin {margin:.1f}% below target ({target:.0f}%). Price increase recommended.",
        confidence=Confidence.MEDIUM,
    ),
    PricingRule(
        name="b_above_market_weak_sales",
        abc_class="B",
        condition=lambda c: (
            c.comparison is not None
            and c.our_price > c.comparison.competitor_max_price
            and c.units_sold < c.weak_sales_units
        ),
        action=Action.DECREASE,
        target_price=lambda c: c.competitor_avg,
        reason="B-class product priced above all competitors with weak sales. Reduce to market average.",
        confidence=Confidence.MEDIUM,
    ),
    PricingRule(
        name="private_label_margin",
        condition=lambda c: c.is_private_label and c.current_margin < c.private_label_min_margin,
        action=Action.INCREASE,
        target_price=lambda c: price_for_margin(c.cost_price, c.private_label_min_margin),
        reason="Private label product can sustain a higher margin. Current margin: {margin:.1f}%.",
        confidence=Confidence.MEDIUM,
    ),
)

MAINTAIN_REASON = "Price is appropriately positioned given current market conditions"


def evaluate_rules(
    rules: Sequence[PricingRule],
    ctx: RuleContext
) -> Optional[Recommendation]:
    """Return the first matching rule's recommendation, if any."""
    for rule in rules:
        if rule.applies(ctx):
            return rule.build(ctx)
    return None


def recommend(
    comparison: Optional[PriceComparison],
    current_margin: float,
    target_margin: float,
    abc_class: Optional[str],
    sales_trend: SalesTrend
) -> Recommendation:
    """
    Generate a pricing recommendation from a competitor comparison.

    Margins are percentages. Without a comparison the price is maintained.
    """
    if comparison is None:
        return Recommendation(
            action=Action.MAINTAIN,
            reason="No competitor data available",
            confidence=Confidence.LOW,
        )

    ctx = RuleContext(
        comparison=comparison,
        current_margin=current_margin,
        target_margin=target_margin,
        abc_class=abc_class or "",
        sales_trend=SalesTrend(sales_trend),
        our_price=comparison.our_price,
    )
    return evaluate_rules(MARKET_RULES, ctx) or Recommendation(
        action=Action.MAINTAIN,
        reason=MAINTAIN_REASON,
        confidence=Confidence.MEDIUM,
    )


# ============== Catalog (batch) evaluation ==============

@dataclass
class ProductSnapshot:
    """The product fields the engine reads."""
    product_id: int
    cost_price: float
    current_price: float
    abc_category: Optional[str] = None
    is_private_label: bool = False
    sku: Optional[str] = None
    name: Optional[str] = None


@dataclass
class RecommendationDraft:
    """A recommendation ready to be persisted."""
    product_id: int
    current_price: float
    current_cost_price: float
    competitor_avg_price: Optional[float]
    recommended_price: float
    recommended_change_percent: float
    reasoning: str
    abc_class: str
    action: Action
    confidence: Confidence
    rule: Optional[str] = None


def recommend_for_product(
    product: ProductSnapshot,
    comparison: Optional[PriceComparison],
    sales_trend: SalesTrend,
    units_sold: float,
    target_margins: Dict[str, float],
    private_label_min_margin: float = 35.0,
    weak_sales_units: float = 10,
    min_change_pct: float = 1.0
) -> Optional[RecommendationDraft]:
    """
    Catalog-wide evaluation for one product.

    Market rules run first; when they say maintain (or there is no
    competitor data) the catalog rules get a chance.

    Returns:
        Draft, or None when there is nothing meaningful to recommend
    """
    cost_price = float(product.cost_price or 0)
    current_price = float(product.current_price or 0)

    if cost_price <= 0 or current_price <= 0:
        logger.info(
            f"Skipping product {product.sku or product.product_id}: invalid prices "
            f"(cost: {cost_price}, current: {current_price})"
        )
        return None

    abc_class = product.abc_category or "C"
    target_margin = target_margins.get(abc_class, target_margins.get("C", 30.0))
    current_margin = calculate_margin(current_price, cost_price)

    result = recommend(comparison, current_margin, target_margin, abc_class, sales_trend)

    if result.action == Action.MAINTAIN:
        ctx = RuleContext(
            comparison=comparison,
            current_margin=current_margin,
            target_margin=target_margin,
            abc_class=abc_class,
            sales_trend=SalesTrend(sales_trend),
            our_price=current_price,
            cost_price=cost_price,
            is_private_label=bool(product.is_private_label),
            units_sold=units_sold,
            private_label_min_margin=private_label_min_margin,
            weak_sales_units=weak_sales_units,
        )
        result = evaluate_rules(CATALOG_RULES, ctx) or result

    if result.action == Action.MAINTAIN or result.suggested_price is None:
        return None

    change_pct = ((result.suggested_price - current_price) / current_price) * 100
    if abs(change_pct) < min_change_pct:
        return None

    # e.g. min(our x 1.03, avg x 0.95) lands below our price when we sit just under the market
    if (result.action == Action.INCREASE) != (change_pct > 0):
        logger.info(
            f"Dropping {result.rule} for {product.sku or product.product_id}: "
            f"{result.action.value} to {result.suggested_price} is a {change_pct:+.1f}% change"
        )
        return None

    return RecommendationDraft(
        product_id=product.product_id,
        current_price=current_price,
        current_cost_price=cost_price,
        competitor_avg_price=comparison.competitor_avg_price if comparison else None,
        recommended_price=result.suggested_price,
        recommended_change_percent=round(change_pct, 1),
        reasoning=result.reason,
        abc_class=abc_class,
        action=result.action,
        confidence=result.confidence,
        rule=result.rule,
    )
