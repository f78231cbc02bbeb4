import random
from datetime import date

import pytest

from app.services.pricing import (
    CompetitorObservation, ProductSnapshot, SmartPriceConfig,
    compute_smart_price, competitor_reference_prices
)


def product(cost=10.0, price=20.0, abc="A"):
    return ProductSnapshot(product_id=1, cost_price=cost, current_price=price, abc_category=abc,
                           sku="SKU001", name="Milk 1L")


class TestComputeSmartPrice:

    def test_class_discount_without_competitors(self):
        result = compute_smart_price(product(), SmartPriceConfig())

        assert result.promo_price == pytest.approx(18.0)
        assert result.discount_percent == pytest.approx(-10.0)
        # No elasticity: twice the discount
        assert result.expected_uplift_percent == pytest.approx(20.0)
        assert result.promo_margin == pytest.approx(44.44)
        assert result.current_margin == pytest.approx(50.0)
        assert result.constraints_met == {"min_margin": True, "max_discount": True, "above_comp_min": True}
        assert result.sku == "SKU001"

    def test_approaches_competitor_average(self):
        result = compute_smart_price(product(), SmartPriceConfig(), min_comp_price=15.0, avg_comp_price=16.0)
        assert result.promo_price == pytest.approx(16.0)
        # Deeper than the class limit, reported rather than hidden
        assert result.constraints_met["max_discount"] is False
        assert result.constraints_met["above_comp_min"] is True

    def test_never_below_competitor_minimum(self):
        result = compute_smart_price(product(), SmartPriceConfig(), min_comp_price=19.0, avg_comp_price=19.5)
        assert result.promo_price == pytest.approx(19.0)
        assert result.discount_percent == pytest.approx(-5.0)

    def test_competitor_guardrails_can_be_disabled(self):
        config = SmartPriceConfig(match_competitor_promo=False, never_below_competitor_min=False)
        result = compute_smart_price(product(), config, min_comp_price=19.0, avg_comp_price=12.0)
        assert result.promo_price == pytest.approx(18.0)
        assert result.constraints_met["above_comp_min"] is False

    def test_margin_floor_dominates(self):
        # 30% off 12.00 is 8.40, below the 15% margin price of 11.7647
        result = compute_smart_price(product(cost=10.0, price=12.0, abc="C"), SmartPriceConfig())
        assert result.promo_price == pytest.approx(11.77)
        assert result.constraints_met["min_margin"] is True

    def test_cheap_competitor_average_does_not_break_floor(self):
        config = SmartPriceConfig(never_below_competitor_min=False)
        result = compute_smart_price(product(), config, avg_comp_price=5.0)
        assert result.promo_price == pytest.approx(11.77)

    def test_elasticity_drives_uplift(self):
        result = compute_smart_price(product(), SmartPriceConfig(), elasticity_coefficient=-1.5)
        assert result.expected_uplift_percent == pytest.approx(15.0)
        assert result.elasticity_coefficient == -1.5

    def test_zero_elasticity_is_used(self):
        result = compute_smart_price(product(), SmartPriceConfig(), elasticity_coefficient=0.0)
        assert result.expected_uplift_percent == 0.0

    def test_missing_class_uses_c_limit(self):
        result = compute_smart_price(product(abc=None), SmartPriceConfig())
        assert result.abc_class == "C"
        assert result.promo_price == pytest.approx(14.0)

    def test_promo_price_never_breaks_margin_floor(self):
        rng = random.Random(3)
        config = SmartPriceConfig(global_min_margin_percent=15)
        floor = 10.0 / 0.85
        for _ in range(300):
            current = round(rng.uniform(10.5, 40.0), 2)
            comp_min = rng.choice([None, round(rng.uniform(1.0, 40.0), 2)])
            comp_avg = rng.choice([None, round(rng.uniform(1.0, 40.0), 2)])
            result = compute_smart_price(
                product(cost=10.0, price=current, abc=rng.choice("ABC")),
                config,
                min_comp_price=comp_min,
                avg_comp_price=comp_avg,
            )
            assert result.promo_price >= floor
            assert result.constraints_met["min_margin"]


class TestCompetitorReferencePrices:

    def test_active_promo_is_effective_price(self):
        observations = [
            CompetitorObservation("A", 10.0, date(2024, 3, 1), is_on_promo=True, promo_price=8.0),
            CompetitorObservation("B", 12.0, date(2024, 3, 1)),
            CompetitorObservation("C", 11.0, date(2024, 3, 1), is_on_promo=False, promo_price=6.0),
        ]
        min_price, avg_price = competitor_reference_prices(observations)
        assert min_price == 8.0
        assert avg_price == pytest.approx(31.0 / 3)

    def test_no_observations(self):
        assert competitor_reference_prices([]) == (None, None)

    def test_non_positive_prices_are_not_a_minimum(self):
        min_price, avg_price = competitor_reference_prices([
            CompetitorObservation("A", 0.0, date(2024, 3, 1)),
            CompetitorObservation("B", 10.0, date(2024, 3, 1)),
        ])
        assert min_price == 10.0
        assert avg_price == pytest.approx(5.0)


def test_max_discount_per_class():
    config = SmartPriceConfig()
    assert config.max_discount_for("A") == 10.0
    assert config.max_discount_for("B") == 20.0
    assert config.max_discount_for("C") == 30.0
