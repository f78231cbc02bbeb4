"""
Alert Service.

Checks the active catalog for low margins and competitor price drops
and stores the result as insights. Each run replaces the unread alerts;
alerts someone has already read are kept.
"""

import logging
from collections import defaultdict
from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from app.config.settings import settings
from app.models import Product, CompetitorPrice, Insight
from app.services.pricing import (
    Alert, CompetitorObservation,
    low_margin_alert, competitor_price_drops, price_drop_alert
)
from app.services.price_comparison import to_snapshot

logger = logging.getLogger(__name__)


class AlertService:
    def __init__(self, db: Session):
        self.db = db

    def generate(self, today: Optional[date] = None) -> List[Alert]:
        """Evaluate both alert checks for every active product."""
        today = today or date.today()
        window_days = settings.PRICE_DROP_WINDOW_DAYS

        products = self.db.query(Product).filter(
            (Product.status == "active") | (Product.status.is_(None))
        ).order_by(Product.id).all()
        if not products:
            return []

        rows = self.db.query(CompetitorPrice).filter(
            CompetitorPrice.product_id.in_([p.id for p in products]),
            CompetitorPrice.date >= today - timedelta(days=2 * window_days),
            CompetitorPrice.date <= today
        ).order_by(CompetitorPrice.date, CompetitorPrice.id).all()

        observations = defaultdict(list)
        for row in rows:
            observations[row.product_id].append(CompetitorObservation(
                competitor_name=row.competitor_name,
                price=row.price,
                date=row.date,
            ))

        alerts = []
        for product in products:
            snapshot = to_snapshot(product)
            abc_class = snapshot.abc_category or "C"
            target = settings.target_margins.get(abc_class, settings.TARGET_MARGIN_C)

            alert = low_margin_alert(snapshot, target, gap=settings.ALERT_LOW_MARGIN_GAP)
            if alert:
                alerts.append(alert)

            drops = competitor_price_drops(
                observations.get(product.id, []),
                today,
                window_days=window_days,
                threshold_pct=settings.PRICE_DROP_THRESHOLD_PCT,
            )
            alerts.extend(price_drop_alert(snapshot, drop) for drop in drops)

        logger.info(f"Generated {len(alerts)} alerts for {len(products)} products")
        return alerts

    def save_alerts(self, alerts: List[Alert]) -> int:
        """Replace unread alerts with the given ones in one transaction."""
        try:
            replaced = self.db.query(Insight).filter(
                Insight.is_read.is_(False)
            ).delete(synchronize_session=False)

            self.db.add_all([
                Insight(
                    product_id=a.product_id,
                    type=a.type.value,
                    title=a.title,
                    description=a.description,
                    severity=a.severity.value,
                    is_read=False,
                )
                for a in alerts
            ])
            self.db.commit()
        except Exception as e:
            logger.error(f"Failed to replace alerts, keeping previous set: {e}")
            self.db.rollback()
            raise

        logger.info(f"Saved {len(alerts)} alerts, replaced {replaced} unread")
        return len(alerts)

    def regenerate(self, today: Optional[date] = None) -> int:
        return self.save_alerts(self.generate(today))

    def list_alerts(self, unread_only: bool = False) -> List[Insight]:
        query = self.db.query(Insight)
        if unread_only:
            query = query.filter(Insight.is_read.is_(False))
        return query.order_by(Insight.created_at.desc(), Insight.id.desc()).all()

    def mark_read(self, alert_id: int) -> Optional[Insight]:
        alert = self.db.query(Insight).filter(Insight.id == alert_id).first()
        if not alert:
            return None
        alert.is_read = True
        self.db.commit()
        self.db.refresh(alert)
        return alert
