from datetime import date, timedelta

from app.models import Insight
from app.services import AlertService
from app.services.pricing import (
    AlertType, AlertSeverity, CompetitorObservation, ProductSnapshot,
    low_margin_alert, competitor_price_drops, price_drop_alert
)


TODAY = date(2024, 3, 15)


def snapshot(cost, price, sku="SKU001", name="Milk 1L"):
    return ProductSnapshot(product_id=1, cost_price=cost, current_price=price, sku=sku, name=name)


def obs(name, price, day):
    return CompetitorObservation(competitor_name=name, price=price, date=date(2024, 3, day))


class TestLowMarginAlert:

    def test_margin_far_below_target(self):
        alert = low_margin_alert(snapshot(6.0, 8.0), target_margin=36)

        assert alert.type == AlertType.LOW_MARGIN
        assert alert.severity == AlertSeverity.WARNING
        assert alert.product_id == 1
        assert alert.title == "Low Margin Alert: Milk 1L"
        assert alert.description == "Product SKU001 has only 25.0% margin, well below the 36% target."

    def test_within_gap_is_fine(self):
        # 25% margin against 35% target sits exactly on the gap
        assert low_margin_alert(snapshot(6.0, 8.0), target_margin=35) is None

    def test_custom_gap(self):
        assert low_margin_alert(snapshot(6.0, 8.0), target_margin=30, gap=4) is not None

    def test_non_positive_price_is_skipped(self):
        assert low_margin_alert(snapshot(6.0, 0.0), target_margin=30) is None

    def test_title_falls_back_to_sku(self):
        alert = low_margin_alert(snapshot(6.0, 8.0, name=None), target_margin=40)
        assert alert.title == "Low Margin Alert: SKU001"


class TestCompetitorPriceDrops:

    def test_compares_latest_price_in_each_week(self):
        observations = [
            obs("Shop A", 10.0, 5), obs("Shop A", 8.5, 12),   # -15%
            obs("Shop B", 10.0, 5), obs("Shop B", 9.5, 12),   # -5%
            obs("Shop E", 10.0, 2), obs("Shop E", 12.0, 6),   # previous week closes at 12
            obs("Shop E", 10.5, 10),
        ]

        drops = competitor_price_drops(observations, TODAY)

        assert [(d.competitor_name, d.previous_price, d.current_price, d.drop_percent) for d in drops] == [
            ("Shop A", 10.0, 8.5, 15.0),
            ("Shop E", 12.0, 10.5, 12.5),
        ]

    def test_competitor_needs_both_windows(self):
        observations = [
            obs("Shop C", 5.0, 12),                      # nothing the week before
            obs("Shop D", 20.0, 1), obs("Shop D", 10.0, 9),
        ]
        # Mar 1 opens the previous window
        drops = competitor_price_drops(observations, TODAY)
        assert [d.competitor_name for d in drops] == ["Shop D"]

        older = [
            CompetitorObservation(competitor_name="Shop D", price=20.0, date=date(2024, 2, 29)),
            obs("Shop D", 10.0, 9),
        ]
        assert competitor_price_drops(older, TODAY) == []

    def test_threshold(self):
        observations = [obs("Shop A", 10.0, 5), obs("Shop A", 8.5, 12)]
        assert competitor_price_drops(observations, TODAY, threshold_pct=20) == []

    def test_price_increase_is_not_a_drop(self):
        observations = [obs("Shop A", 10.0, 5), obs("Shop A", 14.0, 12)]
        assert competitor_price_drops(observations, TODAY) == []

    def test_future_observations_are_ignored(self):
        observations = [obs("Shop A", 10.0, 5), obs("Shop A", 5.0, 16)]
        assert competitor_price_drops(observations, TODAY) == []

    def test_alert_text(self):
        drop = competitor_price_drops([obs("Shop A", 10.0, 5), obs("Shop A", 8.5, 12)], TODAY)[0]
        alert = price_drop_alert(snapshot(6.0, 8.0), drop)

        assert alert.type == AlertType.COMPETITOR_PRICE_DROP
        assert alert.severity == AlertSeverity.INFO
        assert alert.title == "Competitor Price Drop Detected"
        assert alert.description == "Shop A dropped price by 15.0% on Milk 1L"


class TestAlertService:

    def seed(self, make_product, add_competitor_prices):
        thin = make_product(cost_price=9.5, current_price=10.0)     # 5% margin, C target 30
        healthy = make_product(cost_price=10.0, current_price=15.0)
        add_competitor_prices(healthy, {"Shop A": 10.0}, on=date.today() - timedelta(days=10))
        add_competitor_prices(healthy, {"Shop A": 8.0}, on=date.today() - timedelta(days=1))
        return thin, healthy

    def test_generate(self, db, make_product, add_competitor_prices):
        thin, healthy = self.seed(make_product, add_competitor_prices)

        alerts = AlertService(db).generate()

        assert [(a.type, a.product_id) for a in alerts] == [
            (AlertType.LOW_MARGIN, thin.id),
            (AlertType.COMPETITOR_PRICE_DROP, healthy.id),
        ]
        assert "20.0%" in alerts[1].description

    def test_inactive_products_are_skipped(self, db, make_product):
        make_product(cost_price=9.5, current_price=10.0, status="discontinued")
        assert AlertService(db).generate() == []

    def test_regenerate_replaces_unread_and_keeps_read(self, db, make_product, add_competitor_prices):
        self.seed(make_product, add_competitor_prices)
        service = AlertService(db)

        assert service.regenerate() == 2
        assert service.regenerate() == 2
        assert db.query(Insight).count() == 2

        first = service.list_alerts()[0]
        assert service.mark_read(first.id).is_read is True

        service.regenerate()
        assert db.query(Insight).count() == 3
        assert len(service.list_alerts(unread_only=True)) == 2

    def test_mark_unknown_alert(self, db):
        assert AlertService(db).mark_read(999) is None
