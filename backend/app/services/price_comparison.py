"""
Price Comparison Service.

Loads competitor observations and sales for products and runs the
comparison engine on the latest observation per competitor.
"""

import logging
from collections import defaultdict
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

import pandas as pd
from sqlalchemy.orm import Session

from app.config.settings import settings
from app.models import Product, CompetitorPrice, SalesRecord
from app.services.pricing import (
    CompetitorObservation, PriceComparison, ProductSnapshot, SalesTrend,
    analyze_price_comparison, latest_observations, classify_sales_trend
)

logger = logging.getLogger(__name__)


def to_snapshot(product: Product) -> ProductSnapshot:
    """Engine view of an ORM product."""
    return ProductSnapshot(
        product_id=product.id,
        cost_price=product.cost_price,
        current_price=product.current_price,
        abc_category=product.abc_category.value if product.abc_category else None,
        is_private_label=bool(product.is_private_label),
        sku=product.sku,
        name=product.name,
    )


def load_latest_observations(
    db: Session,
    product_ids: Iterable[int]
) -> Dict[int, List[CompetitorObservation]]:
    """Latest observation per competitor, grouped by product."""
    product_ids = list(product_ids)
    if not product_ids:
        return {}

    rows = db.query(CompetitorPrice).filter(
        CompetitorPrice.product_id.in_(product_ids)
    ).order_by(CompetitorPrice.date, CompetitorPrice.id).all()

    grouped = defaultdict(list)
    for row in rows:
        grouped[row.product_id].append(CompetitorObservation(
            competitor_name=row.competitor_name,
            price=row.price,
            promo_price=row.promo_price,
            is_on_promo=bool(row.is_on_promo),
            date=row.date,
        ))

    return {pid: latest_observations(obs) for pid, obs in grouped.items()}


def load_sales_frames(
    db: Session,
    product_ids: Iterable[int],
    period_days: int
) -> Dict[int, pd.DataFrame]:
    """
    Daily units per product over the trailing window.

    Returns:
        product_id -> DataFrame with columns ['date', 'units_sold']
    """
    product_ids = list(product_ids)
    if not product_ids:
        return {}

    start_date = date.today() - timedelta(days=period_days)
    rows = db.query(SalesRecord.product_id, SalesRecord.date, SalesRecord.units_sold).filter(
        SalesRecord.product_id.in_(product_ids),
        SalesRecord.date >= start_date
    ).order_by(SalesRecord.date).all()

    if not rows:
        return {}

    df = pd.DataFrame([tuple(r) for r in rows], columns=['product_id', 'date', 'units_sold'])
    daily = df.groupby(['product_id', 'date'], as_index=False)['units_sold'].sum()
    return {
        pid: group[['date', 'units_sold']].reset_index(drop=True)
        for pid, group in daily.groupby('product_id')
    }


class PriceComparisonService:
    """Single-product comparison against the market."""

    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> Optional[Product]:
        return self.db.query(Product).filter(Product.id == product_id).first()

    def compare(self, product: Product) -> Optional[PriceComparison]:
        """Compare against the latest price of each competitor. None without data."""
        observations = load_latest_observations(self.db, [product.id]).get(product.id, [])
        return analyze_price_comparison(product.current_price, observations)

    def sales_trend(self, product: Product, period_days: Optional[int] = None) -> SalesTrend:
        frames = load_sales_frames(
            self.db, [product.id], period_days or settings.ANALYSIS_PERIOD_DAYS
        )
        frame = frames.get(product.id)
        if frame is None:
            return SalesTrend.STABLE
        return classify_sales_trend(frame, end_date=date.today())
