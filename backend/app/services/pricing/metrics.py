"""
Category Metrics.

Per-category rollup of the sales window: revenue, units, promo share,
slow movers and a rough rotation figure.
"""

from dataclasses import dataclass
from typing import Hashable, Iterable, Optional

from app.services.pricing.abc import aggregate_sales


SLOW_MOVER_SHARE = 0.2  # Below 20% of the category's average units per product


@dataclass
class CategoryMetrics:
    total_revenue: float
    total_margin: float
    total_units: float
    sku_count: int
    slow_movers_count: int
    promo_revenue_share: float  # Percentage
    avg_rotation_days: Optional[float] = None


def calculate_category_metrics(
    records: Iterable[dict],
    product_ids: Iterable[Hashable],
    period_days: int
) -> Optional[CategoryMetrics]:
    """
    Roll up one category's sales records.

    Revenue follows the ABC convention, (selling - purchase) x units,
    so it is also the category's margin value.

    Args:
        records: Sales records with aggregate_sales columns plus 'promo_flag'
        product_ids: Active products in the category
        period_days: Length of the sales window

    Returns:
        Metrics, or None for a category without products
    """
    product_ids = list(product_ids)
    if not product_ids:
        return None

    records = list(records)
    totals = aggregate_sales(records).reindex(product_ids, fill_value=0)
    promo = aggregate_sales(r for r in records if r.get('promo_flag'))

    total_revenue = float(totals['revenue'].sum())
    total_units = float(totals['units_sold'].sum())
    promo_revenue = float(promo['revenue'].sum()) if not promo.empty else 0.0

    avg_units = total_units / len(product_ids)
    slow_movers = int((totals['units_sold'] < avg_units * SLOW_MOVER_SHARE).sum())

    rotation = None
    if total_units > 0:
        rotation = round(period_days / total_units * len(product_ids), 1)

    return CategoryMetrics(
        total_revenue=round(total_revenue, 2),
        total_margin=round(total_revenue, 2),
        total_units=round(total_units),
        sku_count=len(product_ids),
        slow_movers_count=slow_movers,
        promo_revenue_share=round(promo_revenue / total_revenue * 100, 2) if total_revenue > 0 else 0.0,
        avg_rotation_days=rotation,
    )
