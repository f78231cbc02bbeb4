"""
Price Elasticity Service.

Recalculates elasticity per product from sales and price history
and upserts one estimate row per product.
"""

import logging
from datetime import date, datetime, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from app.config.settings import settings
from app.models import Product, SalesRecord, PriceHistory, PriceElasticity
from app.services.pricing import Computed, ElasticityResult, estimate_elasticity

logger = logging.getLogger(__name__)


class ElasticityService:
    """Service for elasticity recalculation."""

    def __init__(self, db: Session):
        self.db = db

    def estimate_product(self, product_id: int, period_days: int) -> ElasticityResult:
        """Run the estimator on one product's history window."""
        start_date = date.today() - timedelta(days=period_days)

        sales = self.db.query(SalesRecord.date, SalesRecord.units_sold).filter(
            SalesRecord.product_id == product_id,
            SalesRecord.date >= start_date
        ).order_by(SalesRecord.date, SalesRecord.id).all()

        # No lower bound: the price in effect at the window start may predate it
        prices = self.db.query(PriceHistory.valid_from, PriceHistory.regular_price).filter(
            PriceHistory.product_id == product_id,
            PriceHistory.valid_from <= date.today()
        ).order_by(PriceHistory.valid_from, PriceHistory.id).all()

        return estimate_elasticity(
            ({"date": s.date, "units_sold": s.units_sold} for s in sales),
            ({"valid_from": p.valid_from, "regular_price": p.regular_price} for p in prices),
        )

    def calculate(
        self,
        product_id: Optional[int] = None,
        period_days: Optional[int] = None
    ) -> int:
        """
        Calculate elasticity for one product or all products.

        Returns:
            Number of products with a stored estimate
        """
        period_days = period_days or settings.ELASTICITY_PERIOD_DAYS

        if product_id is not None:
            product_ids = [product_id]
        else:
            product_ids = [p.id for p in self.db.query(Product.id).all()]

        calculated = 0
        for pid in product_ids:
            result = self.estimate_product(pid, period_days)
            if not result.is_available:
                logger.info(f"Skipping product {pid}: {result.reason}")
                continue

            self._upsert(pid, result)
            calculated += 1

        self.db.commit()
        logger.info(f"Calculated elasticity for {calculated} products")
        return calculated

    def _upsert(self, product_id: int, result: Computed):
        row = self.db.query(PriceElasticity).filter(
            PriceElasticity.product_id == product_id
        ).first()
        if row is None:
            row = PriceElasticity(product_id=product_id)
            self.db.add(row)

        row.elasticity_coefficient = result.coefficient
        row.confidence = result.confidence
        row.sensitivity_label = result.label.value
        row.data_points = result.data_points
        row.calculated_at = datetime.utcnow()

    def get(self, product_id: int) -> Optional[PriceElasticity]:
        return self.db.query(PriceElasticity).filter(
            PriceElasticity.product_id == product_id
        ).first()

    def all_estimates(self) -> List[PriceElasticity]:
        return self.db.query(PriceElasticity).all()
