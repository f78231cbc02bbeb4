# Schemas module
from app.schemas.schemas import (
    AbcClass, RecommendationStatusType,
    ProductCreate, ProductResponse,
    SalesRecordCreate, CompetitorPriceCreate, PriceHistoryCreate, BulkInsertResponse,
    PricingAdvice, PriceComparisonResponse,
    RecommendationItem, RecommendationRunResponse, RecommendationStatusUpdate, RecommendationSummary,
    AbcStats, AbcRunResponse,
    ElasticityRequest, ElasticityRunResponse, ElasticityResponse,
    SmartPriceConfigSchema, SmartPriceRequest, ConstraintsMet, SmartPriceItem, SmartPriceResponse,
    AlertItem, AlertRunResponse,
    CategoryMetricsRequest, CategoryMetricsItem, CategoryMetricsResponse
)

__all__ = [
    "AbcClass", "RecommendationStatusType",
    "ProductCreate", "ProductResponse",
    "SalesRecordCreate", "CompetitorPriceCreate", "PriceHistoryCreate", "BulkInsertResponse",
    "PricingAdvice", "PriceComparisonResponse",
    "RecommendationItem", "RecommendationRunResponse", "RecommendationStatusUpdate", "RecommendationSummary",
    "AbcStats", "AbcRunResponse",
    "ElasticityRequest", "ElasticityRunResponse", "ElasticityResponse",
    "SmartPriceConfigSchema", "SmartPriceRequest", "ConstraintsMet", "SmartPriceItem", "SmartPriceResponse",
    "AlertItem", "AlertRunResponse",
    "CategoryMetricsRequest", "CategoryMetricsItem", "CategoryMetricsResponse"
]
