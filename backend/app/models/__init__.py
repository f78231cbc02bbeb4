# Models module
from app.models.models import (
    Base, Product, SalesRecord, CompetitorPrice, PriceHistory,
    PricingRecommendation, PriceElasticity, AbcSettings, SmartPriceSettings,
    Insight, CategoryMetric, AbcCategory, RecommendationStatus
)
from app.models.database import get_db, create_tables, SessionLocal, engine

__all__ = [
    "Base", "Product", "SalesRecord", "CompetitorPrice", "PriceHistory",
    "PricingRecommendation", "PriceElasticity", "AbcSettings", "SmartPriceSettings",
    "Insight", "CategoryMetric",
    "AbcCategory", "RecommendationStatus",
    "get_db", "create_tables", "SessionLocal", "engine"
]
