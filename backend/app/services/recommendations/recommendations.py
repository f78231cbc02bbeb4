import logging
from datetime import date, datetime
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from app.config.settings import settings
from app.models import Product, PriceHistory, PricingRecommendation, RecommendationStatus
from app.services.pricing import (
    Action, RecommendationDraft, SalesTrend,
    analyze_price_comparison, classify_sales_trend, recommend_for_product
)
from app.services.price_comparison import (
    load_latest_observations, load_sales_frames, to_snapshot
)

logger = logging.getLogger(__name__)


class RecommendationService:
    def __init__(self, db: Session):
        self.db = db

    def active_products(self) -> List[Product]:
        return self.db.query(Product).filter(
            (Product.status == "active") | (Product.status.is_(None))
        ).all()

    def generate_recommendations(
        self,
        period_days: Optional[int] = None
    ) -> List[RecommendationDraft]:
        """
        Generate pricing recommendations for the whole active catalog.

        Args:
            period_days: Sales window for trend and volume (default from settings)

        Returns:
            Recommendation drafts, one per product that needs a change
        """
        period_days = period_days or settings.ANALYSIS_PERIOD_DAYS
        products = self.active_products()
        if not products:
            return []

        product_ids = [p.id for p in products]
        observations = load_latest_observations(self.db, product_ids)
        sales = load_sales_frames(self.db, product_ids, period_days)

        logger.info(
            f"Processing {len(products)} products "
            f"({len(observations)} with competitor data, {len(sales)} with sales)"
        )

        today = date.today()
        drafts = []
        for product in products:
            frame = sales.get(product.id)
            units_sold = float(frame['units_sold'].sum()) if frame is not None else 0.0
            trend = (
                classify_sales_trend(frame, end_date=today) if frame is not None else SalesTrend.STABLE
            )

            comparison = analyze_price_comparison(
                product.current_price, observations.get(product.id, [])
            )

            draft = recommend_for_product(
                to_snapshot(product),
                comparison,
                sales_trend=trend,
                units_sold=units_sold,
                target_margins=settings.target_margins,
                private_label_min_margin=settings.PRIVATE_LABEL_MIN_MARGIN,
                weak_sales_units=settings.WEAK_SALES_UNITS,
                min_change_pct=settings.MIN_RECOMMENDATION_CHANGE_PCT,
            )
            if draft:
                drafts.append(draft)

        logger.info(f"Generated {len(drafts)} recommendations")
        return drafts

    def save_recommendations(self, drafts: List[RecommendationDraft]) -> Tuple[int, int]:
        """
        Replace all NEW recommendations with the given drafts.

        Delete and insert share one transaction: readers see either the
        old set or the new one, never an empty gap. Applied and dismissed
        recommendations are kept.

        Returns:
            (saved, replaced) counts
        """
        generated_at = datetime.utcnow()
        try:
            replaced = self.db.query(PricingRecommendation).filter(
                PricingRecommendation.status == RecommendationStatus.NEW
            ).delete(synchronize_session=False)

            self.db.add_all([
                PricingRecommendation(
                    product_id=d.product_id,
                    current_price=d.current_price,
                    current_cost_price=d.current_cost_price,
                    competitor_avg_price=d.competitor_avg_price,
                    recommended_price=d.recommended_price,
                    recommended_change_percent=d.recommended_change_percent,
                    reasoning=d.reasoning,
                    abc_class=d.abc_class,
                    action=d.action.value,
                    confidence=d.confidence.value,
                    status=RecommendationStatus.NEW,
                    generated_at=generated_at,
                )
                for d in drafts
            ])
            self.db.commit()
        except Exception as e:
            logger.error(f"Failed to replace recommendations, keeping previous set: {e}")
            self.db.rollback()
            raise

        return len(drafts), replaced

    def regenerate(self, period_days: Optional[int] = None) -> Tuple[int, int]:
        """Generate and persist in one go."""
        return self.save_recommendations(self.generate_recommendations(period_days))

    def list_recommendations(
        self,
        status: Optional[RecommendationStatus] = None
    ) -> List[PricingRecommendation]:
        query = self.db.query(PricingRecommendation)
        if status is not None:
            query = query.filter(PricingRecommendation.status == status)
        return query.order_by(
            PricingRecommendation.abc_class,
            PricingRecommendation.recommended_change_percent.desc()
        ).all()

    def update_status(
        self,
        recommendation_id: int,
        status: RecommendationStatus
    ) -> Optional[PricingRecommendation]:
        """
        Apply or dismiss a recommendation.
        Applying also moves the product to the recommended price and
        records the change in price history, in the same commit.
        """
        rec = self.db.query(PricingRecommendation).filter(
            PricingRecommendation.id == recommendation_id
        ).first()
        if not rec:
            return None

        rec.status = status
        if status == RecommendationStatus.APPLIED:
            product = self.db.query(Product).filter(Product.id == rec.product_id).first()
            if product:
                logger.info(
                    f"Applying price {rec.recommended_price} to {product.sku} "
                    f"(was {product.current_price})"
                )
                product.current_price = rec.recommended_price
                self.db.add(PriceHistory(
                    product_id=product.id,
                    valid_from=date.today(),
                    regular_price=rec.recommended_price,
                ))

        self.db.commit()
        self.db.refresh(rec)
        return rec

    def get_summary(self) -> dict:
        """Quick summary of pending recommendations."""
        recs = self.list_recommendations(RecommendationStatus.NEW)

        by_class = {"A": 0, "B": 0, "C": 0}
        for r in recs:
            if r.abc_class in by_class:
                by_class[r.abc_class] += 1

        return {
            "total_items": len(recs),
            "increase": sum(1 for r in recs if r.action == Action.INCREASE.value),
            "decrease": sum(1 for r in recs if r.action == Action.DECREASE.value),
            "by_class": by_class,
        }
