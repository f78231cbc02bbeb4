# Services module
from app.services.price_comparison import PriceComparisonService
from app.services.recommendations import RecommendationService
from app.services.abc_analysis import AbcService
from app.services.price_elasticity import ElasticityService
from app.services.smart_prices import SmartPriceService
from app.services.alerts import AlertService
from app.services.category_metrics import CategoryMetricsService

__all__ = [
    "PriceComparisonService",
    "RecommendationService",
    "AbcService",
    "ElasticityService",
    "SmartPriceService",
    "AlertService",
    "CategoryMetricsService"
]
