from datetime import date

import pytest

from app.services.pricing import (
    Action, Confidence, CompetitorObservation, ProductSnapshot, SalesTrend,
    analyze_price_comparison, recommend, recommend_for_product
)
from app.services.pricing.recommendation import MARKET_RULES, CATALOG_RULES, MAINTAIN_REASON

TARGETS = {"A": 20.0, "B": 25.0, "C": 30.0}


def market(our_price, prices=(10.0, 11.0, 12.0)):
    observations = [
        CompetitorObservation(f"Comp {i}", p, date(2024, 3, 1))
        for i, p in enumerate(prices)
    ]
    return analyze_price_comparison(our_price, observations)


class TestRecommend:

    def test_no_comparison_maintains_with_low_confidence(self):
        result = recommend(None, 10.0, 20.0, "A", SalesTrend.STABLE)
        assert result.action == Action.MAINTAIN
        assert result.confidence == Confidence.LOW
        assert result.reason == "No competitor data available"
        assert result.suggested_price is None

    def test_a_class_underpriced_and_growing(self):
        result = recommend(market(9.0), 10.0, 20.0, "A", SalesTrend.GROWING)
        assert result.action == Action.INCREASE
        assert result.confidence == Confidence.HIGH
        # min(9 * 1.03, 11 * 0.95)
        assert result.suggested_price == pytest.approx(9.27)
        # Also matches the general underpriced rule; the class rule comes first
        assert result.rule == "a_underpriced_growing"

    def test_a_class_overpriced_and_declining(self):
        result = recommend(market(13.0), 25.0, 20.0, "A", SalesTrend.DECLINING)
        assert result.action == Action.DECREASE
        assert result.suggested_price == pytest.approx(11.0)
        assert result.rule == "a_overpriced_declining"

    def test_a_class_falls_through_to_general_rules(self):
        result = recommend(market(9.0), 10.0, 20.0, "A", SalesTrend.STABLE)
        assert result.rule == "significantly_underpriced"
        # min(9 * 1.05, 11 * 0.9)
        assert result.suggested_price == pytest.approx(9.45)
        assert result.confidence == Confidence.HIGH

    def test_c_class_above_average(self):
        result = recommend(market(11.8), 40.0, 30.0, "C", SalesTrend.STABLE)
        assert result.action == Action.DECREASE
        assert result.confidence == Confidence.MEDIUM
        assert result.suggested_price == pytest.approx(10.45)

    def test_c_class_above_average_but_growing_is_kept(self):
        result = recommend(market(11.8), 40.0, 30.0, "C", SalesTrend.GROWING)
        assert result.action == Action.MAINTAIN
        assert result.reason == MAINTAIN_REASON

    def test_uncompetitive_and_declining(self):
        result = recommend(market(13.0), 40.0, 25.0, "B", SalesTrend.DECLINING)
        assert result.action == Action.DECREASE
        assert result.rule == "uncompetitive_declining"
        assert result.suggested_price == pytest.approx(11.0)

    def test_small_increase_at_market_average(self):
        result = recommend(market(11.0), 10.0, 25.0, "B", SalesTrend.STABLE)
        assert result.action == Action.INCREASE
        assert result.suggested_price == pytest.approx(11.22)
        assert result.confidence == Confidence.MEDIUM

    def test_at_average_with_healthy_margin_maintains(self):
        result = recommend(market(11.0), 30.0, 25.0, "B", SalesTrend.STABLE)
        assert result.action == Action.MAINTAIN
        assert result.confidence == Confidence.MEDIUM

    def test_cheapest_but_close_to_average_maintains(self):
        # -4.3% vs avg: not significantly underpriced
        result = recommend(market(10.4, (10.5, 11.0, 11.1)), 10.0, 25.0, "B", SalesTrend.STABLE)
        assert result.action == Action.MAINTAIN

    def test_rule_table_order(self):
        assert [r.name for r in MARKET_RULES] == [
            "a_underpriced_growing",
            "a_overpriced_declining",
            "c_above_average",
            "significantly_underpriced",
            "uncompetitive_declining",
            "margin_gap_at_average",
        ]
        assert [r.name for r in CATALOG_RULES] == [
            "b_margin_below_target",
            "b_above_market_weak_sales",
            "private_label_margin",
        ]


class TestRecommendForProduct:

    def test_invalid_prices_are_skipped(self):
        product = ProductSnapshot(product_id=1, cost_price=0, current_price=10.0, abc_category="B")
        assert recommend_for_product(product, None, SalesTrend.STABLE, 0, TARGETS) is None

    def test_b_class_margin_below_target(self):
        product = ProductSnapshot(product_id=1, cost_price=9.0, current_price=10.0, abc_category="B")
        draft = recommend_for_product(product, None, SalesTrend.STABLE, 20, TARGETS)

        assert draft.action == Action.INCREASE
        # 9 / (1 - 0.25)
        assert draft.recommended_price == pytest.approx(12.0)
        assert draft.recommended_change_percent == pytest.approx(20.0)
        assert draft.reasoning == (
            "B-class product with margin 10.0% below target (25%). Price increase recommended."
        )
        assert draft.competitor_avg_price is None
        assert draft.abc_class == "B"

    def test_b_class_above_market_with_weak_sales(self):
        product = ProductSnapshot(product_id=2, cost_price=5.0, current_price=13.0, abc_category="B")
        draft = recommend_for_product(product, market(13.0), SalesTrend.STABLE, 5, TARGETS)

        assert draft.action == Action.DECREASE
        assert draft.recommended_price == pytest.approx(11.0)
        assert draft.recommended_change_percent == pytest.approx(-15.4)
        assert draft.competitor_avg_price == pytest.approx(11.0)
        assert draft.rule == "b_above_market_weak_sales"

    def test_b_class_above_market_with_good_sales(self):
        product = ProductSnapshot(product_id=2, cost_price=5.0, current_price=13.0, abc_category="B")
        assert recommend_for_product(product, market(13.0), SalesTrend.STABLE, 50, TARGETS) is None

    def test_private_label_margin(self):
        product = ProductSnapshot(
            product_id=3, cost_price=7.0, current_price=10.0, abc_category="A", is_private_label=True
        )
        draft = recommend_for_product(product, None, SalesTrend.STABLE, 0, TARGETS)

        assert draft.rule == "private_label_margin"
        assert draft.recommended_price == pytest.approx(10.77)
        assert draft.recommended_change_percent == pytest.approx(7.7)
        assert draft.reasoning == "Private label product can sustain a higher margin. Current margin: 30.0%."

    def test_changes_under_one_percent_are_dropped(self):
        product = ProductSnapshot(
            product_id=4, cost_price=6.52, current_price=10.0, abc_category="A", is_private_label=True
        )
        assert recommend_for_product(product, None, SalesTrend.STABLE, 0, TARGETS) is None

    def test_missing_class_defaults_to_c(self):
        product = ProductSnapshot(product_id=5, cost_price=5.0, current_price=11.8)
        draft = recommend_for_product(product, market(11.8), SalesTrend.STABLE, 100, TARGETS)

        assert draft.abc_class == "C"
        assert draft.rule == "c_above_average"
        assert draft.recommended_price == pytest.approx(10.45)
        assert draft.current_cost_price == 5.0

    def test_market_rule_wins_over_catalog_rules(self):
        # B class with a thin margin, but the market says decrease
        product = ProductSnapshot(product_id=6, cost_price=12.0, current_price=13.0, abc_category="B")
        draft = recommend_for_product(product, market(13.0), SalesTrend.DECLINING, 5, TARGETS)
        assert draft.rule == "uncompetitive_declining"

    def test_nothing_to_do(self):
        product = ProductSnapshot(product_id=7, cost_price=8.0, current_price=10.0)
        assert recommend_for_product(product, None, SalesTrend.STABLE, 0, TARGETS) is None

    def test_increase_that_lowers_the_price_is_dropped(self):
        # min(9.9 * 1.03, 10 * 0.95) = 9.5, below the current price
        comparison = market(9.9, (10.0, 10.0, 10.0))
        assert recommend(comparison, 9.1, 20.0, "A", SalesTrend.GROWING).suggested_price == pytest.approx(9.5)

        product = ProductSnapshot(product_id=8, cost_price=9.0, current_price=9.9, abc_category="A")
        assert recommend_for_product(product, comparison, SalesTrend.GROWING, 100, TARGETS) is None
