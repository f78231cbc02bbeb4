from app.models import AbcCategory, Insight, PriceElasticity, PricingRecommendation
from app.tasks import (
    calculate_abc_async, calculate_elasticity_async, generate_alerts_async, generate_recommendations_async
)


def test_abc_task_regenerates_recommendations(db, make_product, add_sales):
    product = make_product(cost_price=9.0, current_price=10.0)
    add_sales(product, [5] * 3)

    result = calculate_abc_async.apply().get()

    assert result["status"] == "completed"
    assert result["stats"]["total_products"] == 1
    # Single product ends up in C: 10% margin vs 30% target, no rule fires
    assert result["recommendations_generated"] == 0
    db.refresh(product)
    assert product.abc_category == AbcCategory.C


def test_recommendation_task(db, make_product):
    make_product(cost_price=9.0, current_price=10.0, abc="B")

    result = generate_recommendations_async.apply(kwargs={"period_days": 30}).get()

    assert result == {"recommendations_generated": 1, "recommendations_replaced": 0, "status": "completed"}
    assert db.query(PricingRecommendation).count() == 1


def test_elasticity_task_without_history(db, make_product):
    make_product()

    result = calculate_elasticity_async.apply().get()

    assert result == {"products_processed": 0, "status": "completed"}
    assert db.query(PriceElasticity).count() == 0


def test_alert_task(db, make_product):
    make_product(cost_price=9.5, current_price=10.0)

    result = generate_alerts_async.apply().get()

    assert result == {"alerts_generated": 1, "status": "completed"}
    assert db.query(Insight).count() == 1
