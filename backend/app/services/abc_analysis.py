"""
ABC Analysis Service.

Batch recalculation of product ABC categories from trailing revenue.
Thresholds and window live in the abc_settings table, not in code.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Dict

from sqlalchemy.orm import Session

from app.config.settings import settings
from app.models import Product, SalesRecord, AbcSettings, AbcCategory
from app.services.pricing import aggregate_sales, classify_abc, category_counts

logger = logging.getLogger(__name__)


class AbcService:
    """Service for ABC classification runs."""

    def __init__(self, db: Session):
        self.db = db

    def get_settings(self) -> AbcSettings:
        """ABC settings row, created with defaults if missing."""
        abc_settings = self.db.query(AbcSettings).first()
        if abc_settings:
            return abc_settings

        logger.info("No ABC settings found, creating defaults...")
        abc_settings = AbcSettings(
            analysis_period_days=settings.ANALYSIS_PERIOD_DAYS,
            threshold_a_percent=settings.ABC_THRESHOLD_A_PERCENT,
            threshold_b_percent=settings.ABC_THRESHOLD_B_PERCENT,
            threshold_c_percent=settings.ABC_THRESHOLD_C_PERCENT,
        )
        self.db.add(abc_settings)
        self.db.commit()
        self.db.refresh(abc_settings)
        return abc_settings

    def run(self) -> Dict[str, int]:
        """
        Recalculate ABC categories for every product.

        Returns:
            Stats: total_products, a_category, b_category, c_category
        """
        abc_settings = self.get_settings()

        end_date = date.today()
        start_date = end_date - timedelta(days=abc_settings.analysis_period_days)
        logger.info(f"Analyzing sales from {start_date} to {end_date}")

        rows = self.db.query(
            SalesRecord.product_id,
            SalesRecord.units_sold,
            SalesRecord.selling_price,
            SalesRecord.purchase_price,
            SalesRecord.revenue
        ).filter(
            SalesRecord.date >= start_date,
            SalesRecord.date <= end_date
        ).all()

        totals = aggregate_sales(r._asdict() for r in rows)
        products = self.db.query(Product).all()

        total_revenue = float(totals['revenue'].sum()) if not totals.empty else 0.0
        logger.info(f"Total revenue: {total_revenue:.2f}, Products with sales: {len(totals)}")
        if total_revenue <= 0:
            logger.warning("No positive revenue in the analysis window, all products fall into C")

        categories = classify_abc(
            totals['revenue'].to_dict(),
            threshold_a=abc_settings.threshold_a_percent,
            threshold_b=abc_settings.threshold_b_percent,
            product_ids=[p.id for p in products],
        )

        logger.info(f"Updating {len(products)} products...")
        for product in products:
            product.abc_category = AbcCategory(categories[product.id])

        abc_settings.last_calculated_at = datetime.utcnow()
        self.db.commit()

        counts = category_counts({p.id: categories[p.id] for p in products})
        logger.info("ABC calculation completed successfully")

        return {
            "total_products": len(products),
            "a_category": counts["A"],
            "b_category": counts["B"],
            "c_category": counts["C"],
        }
