"""
Category Metrics Service.

Rolls up the trailing sales window per product category and upserts one
category_metrics row per (category, period start).
"""

import logging
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from app.config.settings import settings
from app.models import Product, SalesRecord, CategoryMetric
from app.services.pricing import calculate_category_metrics

logger = logging.getLogger(__name__)


class CategoryMetricsService:
    def __init__(self, db: Session):
        self.db = db

    def calculate(
        self,
        category: Optional[str] = None,
        period_days: Optional[int] = None
    ) -> List[CategoryMetric]:
        """
        Recalculate metrics for one category or every category.

        Args:
            category: Restrict to this category (default: all)
            period_days: Sales window (default: ANALYSIS_PERIOD_DAYS)

        Returns:
            The upserted rows
        """
        period_days = period_days or settings.ANALYSIS_PERIOD_DAYS
        period_end = date.today()
        period_start = period_end - timedelta(days=period_days)

        query = self.db.query(Product).filter(
            Product.category.isnot(None),
            (Product.status == "active") | (Product.status.is_(None))
        )
        if category:
            query = query.filter(Product.category == category)

        product_ids_by_category = defaultdict(list)
        for product in query.all():
            product_ids_by_category[product.category].append(product.id)

        if not product_ids_by_category:
            logger.info("No categorized products to aggregate")
            return []

        all_ids = [pid for ids in product_ids_by_category.values() for pid in ids]
        rows = self.db.query(
            SalesRecord.product_id,
            SalesRecord.units_sold,
            SalesRecord.selling_price,
            SalesRecord.purchase_price,
            SalesRecord.revenue,
            SalesRecord.promo_flag
        ).filter(
            SalesRecord.product_id.in_(all_ids),
            SalesRecord.date >= period_start,
            SalesRecord.date <= period_end
        ).all()

        records_by_product = defaultdict(list)
        for r in rows:
            records_by_product[r.product_id].append(r._asdict())

        results = []
        for name in sorted(product_ids_by_category):
            product_ids = product_ids_by_category[name]
            metrics = calculate_category_metrics(
                (rec for pid in product_ids for rec in records_by_product[pid]),
                product_ids,
                period_days,
            )
            if metrics is None:
                continue

            row = self.db.query(CategoryMetric).filter(
                CategoryMetric.category == name,
                CategoryMetric.period_start == period_start
            ).first()
            if row is None:
                row = CategoryMetric(category=name, period_start=period_start)
                self.db.add(row)

            row.period_end = period_end
            row.total_revenue = metrics.total_revenue
            row.total_margin = metrics.total_margin
            row.total_units = metrics.total_units
            row.sku_count = metrics.sku_count
            row.slow_movers_count = metrics.slow_movers_count
            row.promo_revenue_share = metrics.promo_revenue_share
            row.avg_rotation_days = metrics.avg_rotation_days
            row.calculated_at = datetime.utcnow()
            results.append(row)

        self.db.commit()
        for row in results:
            self.db.refresh(row)

        logger.info(f"Calculated metrics for {len(results)} categories ({period_start} to {period_end})")
        return results

    def list_metrics(self, category: Optional[str] = None) -> List[CategoryMetric]:
        query = self.db.query(CategoryMetric)
        if category:
            query = query.filter(CategoryMetric.category == category)
        return query.order_by(CategoryMetric.period_start.desc(), CategoryMetric.category).all()
