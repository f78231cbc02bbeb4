"""
Smart Price Service.

Generates promo prices for a filtered set of active products using
the stored guardrails, latest competitor prices and elasticity.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from app.config.settings import settings
from app.models import Product, PriceElasticity, SmartPriceSettings, AbcCategory
from app.services.pricing import (
    SmartPriceConfig, SmartPriceResult, compute_smart_price, competitor_reference_prices
)
from app.services.price_comparison import load_latest_observations, to_snapshot

logger = logging.getLogger(__name__)

CONFIG_FIELDS = (
    "global_min_margin_percent",
    "abc_a_max_discount_percent",
    "abc_b_max_discount_percent",
    "abc_c_max_discount_percent",
    "match_competitor_promo",
    "never_below_competitor_min",
)


def default_config() -> SmartPriceConfig:
    return SmartPriceConfig(
        global_min_margin_percent=settings.SMART_PRICE_MIN_MARGIN_PERCENT,
        abc_a_max_discount_percent=settings.SMART_PRICE_A_MAX_DISCOUNT_PERCENT,
        abc_b_max_discount_percent=settings.SMART_PRICE_B_MAX_DISCOUNT_PERCENT,
        abc_c_max_discount_percent=settings.SMART_PRICE_C_MAX_DISCOUNT_PERCENT,
        match_competitor_promo=settings.SMART_PRICE_MATCH_COMPETITOR_PROMO,
        never_below_competitor_min=settings.SMART_PRICE_NEVER_BELOW_COMPETITOR_MIN,
    )


class SmartPriceService:
    """Service for smart promo prices."""

    def __init__(self, db: Session):
        self.db = db

    def get_config(self) -> SmartPriceConfig:
        """Stored config, or defaults from settings."""
        row = self.db.query(SmartPriceSettings).first()
        if row is None:
            return default_config()
        return SmartPriceConfig(**{f: getattr(row, f) for f in CONFIG_FIELDS})

    def update_config(self, values: dict) -> SmartPriceConfig:
        row = self.db.query(SmartPriceSettings).first()
        if row is None:
            row = SmartPriceSettings(**vars(default_config()))
            self.db.add(row)

        for field_name in CONFIG_FIELDS:
            if field_name in values:
                setattr(row, field_name, values[field_name])

        self.db.commit()
        return self.get_config()

    def find_products(
        self,
        product_ids: Optional[List[int]] = None,
        category: Optional[str] = None,
        abc_class: Optional[str] = None
    ) -> List[Product]:
        query = self.db.query(Product).filter(
            (Product.status == "active") | (Product.status.is_(None))
        )
        if product_ids:
            query = query.filter(Product.id.in_(product_ids))
        if category:
            query = query.filter(Product.category == category)
        if abc_class:
            query = query.filter(Product.abc_category == AbcCategory(abc_class))
        return query.order_by(Product.id).all()

    def generate(
        self,
        product_ids: Optional[List[int]] = None,
        category: Optional[str] = None,
        abc_class: Optional[str] = None
    ) -> List[SmartPriceResult]:
        """Smart prices for every matching active product."""
        products = self.find_products(product_ids, category, abc_class)
        if not products:
            return []

        config = self.get_config()
        ids = [p.id for p in products]
        observations = load_latest_observations(self.db, ids)
        elasticities = {
            e.product_id: e.elasticity_coefficient
            for e in self.db.query(PriceElasticity).filter(PriceElasticity.product_id.in_(ids)).all()
        }

        results = []
        for product in products:
            if product.cost_price <= 0 or product.current_price <= 0:
                logger.info(f"Skipping product {product.sku}: invalid prices")
                continue

            min_comp, avg_comp = competitor_reference_prices(observations.get(product.id, []))
            results.append(compute_smart_price(
                to_snapshot(product),
                config,
                min_comp_price=min_comp,
                avg_comp_price=avg_comp,
                elasticity_coefficient=elasticities.get(product.id),
            ))

        logger.info(f"Generated smart prices for {len(results)} products")
        return results
