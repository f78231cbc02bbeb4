# Pricing engine module
from app.services.pricing.position import (
    PricePosition, CompetitorObservation, PriceComparison,
    calculate_price_position, analyze_price_comparison, latest_observations,
    price_position_label, is_price_position_risky, has_pricing_opportunity
)
from app.services.pricing.trend import SalesTrend, calculate_velocity_change, classify_sales_trend
from app.services.pricing.margin import calculate_margin, price_for_margin
from app.services.pricing.recommendation import (
    Action, Confidence, Recommendation, PricingRule, ProductSnapshot, RecommendationDraft,
    recommend, recommend_for_product
)
from app.services.pricing.abc import aggregate_sales, classify_abc, category_counts
from app.services.pricing.elasticity import (
    SensitivityLabel, Unavailable, Computed, ElasticityResult, estimate_elasticity
)
from app.services.pricing.smart_price import (
    SmartPriceConfig, SmartPriceResult, compute_smart_price, competitor_reference_prices
)
from app.services.pricing.alerts import (
    AlertType, AlertSeverity, Alert, PriceDrop,
    low_margin_alert, competitor_price_drops, price_drop_alert
)
from app.services.pricing.metrics import CategoryMetrics, calculate_category_metrics

__all__ = [
    "PricePosition", "CompetitorObservation", "PriceComparison",
    "calculate_price_position", "analyze_price_comparison", "latest_observations",
    "price_position_label", "is_price_position_risky", "has_pricing_opportunity",
    "SalesTrend", "calculate_velocity_change", "classify_sales_trend",
    "calculate_margin", "price_for_margin",
    "Action", "Confidence", "Recommendation", "PricingRule", "ProductSnapshot",
    "RecommendationDraft", "recommend", "recommend_for_product",
    "aggregate_sales", "classify_abc", "category_counts",
    "SensitivityLabel", "Unavailable", "Computed", "ElasticityResult", "estimate_elasticity",
    "SmartPriceConfig", "SmartPriceResult", "compute_smart_price", "competitor_reference_prices",
    "AlertType", "AlertSeverity", "Alert", "PriceDrop",
    "low_margin_alert", "competitor_price_drops", "price_drop_alert",
    "CategoryMetrics", "calculate_category_metrics",
]
