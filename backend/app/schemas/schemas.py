"""
Pydantic Schemas for API validation and serialization.

These schemas define the contract between frontend and backend:
- Request validation (catalog, sales, competitor observations)
- Response serialization (comparisons, recommendations, smart prices)
"""

from datetime import date, datetime
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator
from enum import Enum

from app.services.pricing import (
    Action, Confidence, PricePosition, SensitivityLabel, AlertType, AlertSeverity
)


# ============== Enums ==============

class AbcClass(str, Enum):
    """ABC revenue tiers."""
    A = "A"
    B = "B"
    C = "C"


class RecommendationStatusType(str, Enum):
    """Recommendation lifecycle."""
    NEW = "new"
    APPLIED = "applied"
    DISMISSED = "dismissed"


def _enum_value(v):
    """Unwrap ORM enum members into their raw value."""
    return getattr(v, "value", v)


def _parse_date(v):
    """Parse various date formats."""
    if isinstance(v, date):
        return v
    if isinstance(v, str):
        for fmt in ['%Y-%m-%d', '%d-%m-%Y', '%d/%m/%Y', '%m/%d/%Y']:
            try:
                return datetime.strptime(v, fmt).date()
            except ValueError:
                continue
        raise ValueError(f"Cannot parse date: {v}")
    return v


# ============== Products ==============

class ProductCreate(BaseModel):
    """Create a catalog product."""
    sku: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=300)
    category: Optional[str] = None
    cost_price: float = Field(..., gt=0)
    current_price: float = Field(..., gt=0)
    currency: str = Field(default="EUR", min_length=3, max_length=3)
    abc_category: Optional[AbcClass] = None
    is_private_label: bool = False


class ProductResponse(BaseModel):
    """Product response."""
    id: int
    sku: str
    name: str
    category: Optional[str]
    cost_price: float
    current_price: float
    abc_category: Optional[AbcClass]
    is_private_label: bool
    status: Optional[str]

    @field_validator('abc_category', mode='before')
    @classmethod
    def unwrap_category(cls, v):
        return _enum_value(v)

    class Config:
        from_attributes = True


# ============== Inputs ==============

class SalesRecordCreate(BaseModel):
    """Single day of sales for a product."""
    date: date
    units_sold: float = Field(..., ge=0)
    selling_price: Optional[float] = Field(None, ge=0)
    purchase_price: Optional[float] = Field(None, ge=0)
    revenue: Optional[float] = None
    promo_flag: bool = False

    @field_validator('date', mode='before')
    @classmethod
    def parse_date(cls, v):
        return _parse_date(v)


class CompetitorPriceCreate(BaseModel):
    """Competitor price observation."""
    competitor_name: str = Field(..., min_length=1, max_length=200)
    price: float = Field(..., gt=0)
    promo_price: Optional[float] = Field(None, gt=0)
    is_on_promo: bool = False
    date: date

    @field_validator('date', mode='before')
    @classmethod
    def parse_date(cls, v):
        return _parse_date(v)


class PriceHistoryCreate(BaseModel):
    """Regular price effective from a date."""
    valid_from: date
    regular_price: float = Field(..., gt=0)

    @field_validator('valid_from', mode='before')
    @classmethod
    def parse_date(cls, v):
        return _parse_date(v)


class BulkInsertResponse(BaseModel):
    """Response after adding input rows."""
    success: bool
    rows_added: int


# ============== Price Comparison ==============

class PricingAdvice(BaseModel):
    """Single-product recommendation from the rule table."""
    action: Action
    suggested_price: Optional[float] = None
    reason: str
    confidence: Confidence


class PriceComparisonResponse(BaseModel):
    """Our price vs. latest competitor prices."""
    product_id: int
    our_price: float
    current_margin: float
    price_position: PricePosition
    position_label: str
    competitor_min_price: Optional[float] = None
    competitor_avg_price: Optional[float] = None
    competitor_max_price: Optional[float] = None
    competitor_discount_price: Optional[float] = None
    price_difference_vs_avg: Optional[float] = None
    price_difference_vs_min: Optional[float] = None
    total_competitors: int = 0
    competitors_with_promo: int = 0
    is_risky: bool = False
    has_opportunity: bool = False
    sales_trend: Optional[str] = None
    advice: Optional[PricingAdvice] = None


# ============== Recommendations ==============

class RecommendationItem(BaseModel):
    """
    Single pricing recommendation.
    What the category manager sees and acts upon.
    """
    id: int
    product_id: int
    sku: Optional[str] = None
    product_name: Optional[str] = None
    current_price: float
    current_cost_price: Optional[float]
    competitor_avg_price: Optional[float]
    recommended_price: float
    recommended_change_percent: float
    reasoning: str
    abc_class: Optional[str]
    action: Optional[str]
    confidence: Optional[str]
    status: RecommendationStatusType
    generated_at: datetime

    @field_validator('status', mode='before')
    @classmethod
    def unwrap_status(cls, v):
        return _enum_value(v)

    class Config:
        from_attributes = True


class RecommendationRunResponse(BaseModel):
    """Result of a recommendation regeneration."""
    success: bool
    count: int
    replaced: int
    message: str


class RecommendationStatusUpdate(BaseModel):
    """Apply or dismiss a recommendation."""
    status: RecommendationStatusType

    @field_validator('status')
    @classmethod
    def not_new(cls, v):
        if v == RecommendationStatusType.NEW:
            raise ValueError("Status can only change to applied or dismissed")
        return v


class RecommendationSummary(BaseModel):
    """Quick summary for dashboard."""
    total_items: int
    increase: int
    decrease: int
    by_class: dict = {}


# ============== ABC ==============

class AbcStats(BaseModel):
    total_products: int
    a_category: int
    b_category: int
    c_category: int


class AbcRunResponse(BaseModel):
    """Result of an ABC recalculation."""
    success: bool
    message: str
    stats: AbcStats


# ============== Elasticity ==============

class ElasticityRequest(BaseModel):
    """Recalculate elasticity for one product or the whole catalog."""
    product_id: Optional[int] = None
    period_days: Optional[int] = Field(default=None, ge=1, le=730)  # None: ELASTICITY_PERIOD_DAYS


class ElasticityRunResponse(BaseModel):
    message: str
    products_processed: int


class ElasticityResponse(BaseModel):
    """Stored elasticity estimate."""
    product_id: int
    elasticity_coefficient: float
    confidence: float
    sensitivity_label: SensitivityLabel
    data_points: int
    calculated_at: datetime

    class Config:
        from_attributes = True


# ============== Smart Price ==============

class SmartPriceConfigSchema(BaseModel):
    """Promo price guardrails."""
    global_min_margin_percent: float = Field(default=15, ge=0, lt=100)
    abc_a_max_discount_percent: float = Field(default=10, ge=0, le=100)
    abc_b_max_discount_percent: float = Field(default=20, ge=0, le=100)
    abc_c_max_discount_percent: float = Field(default=30, ge=0, le=100)
    match_competitor_promo: bool = True
    never_below_competitor_min: bool = True

    class Config:
        from_attributes = True


class SmartPriceRequest(BaseModel):
    """Filters for smart price generation. No filter = whole active catalog."""
    product_ids: Optional[List[int]] = None
    category: Optional[str] = None
    abc_class: Optional[AbcClass] = None


class ConstraintsMet(BaseModel):
    min_margin: bool
    max_discount: bool
    above_comp_min: bool


class SmartPriceItem(BaseModel):
    product_id: int
    product_name: Optional[str]
    sku: Optional[str]
    cost_price: float
    current_price: float
    current_margin: float
    promo_price: float
    promo_margin: float
    discount_percent: float
    expected_uplift_percent: float
    min_comp_price: Optional[float]
    avg_comp_price: Optional[float]
    abc_class: str
    elasticity_coefficient: Optional[float]
    constraints_met: ConstraintsMet

    class Config:
        from_attributes = True


class SmartPriceResponse(BaseModel):
    message: str
    smart_prices: List[SmartPriceItem]


# ============== Alerts ==============

class AlertItem(BaseModel):
    id: int
    product_id: Optional[int]
    type: AlertType
    title: str
    description: str
    severity: AlertSeverity
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True


class AlertRunResponse(BaseModel):
    success: bool
    count: int
    message: str


# ============== Category Metrics ==============

class CategoryMetricsRequest(BaseModel):
    """Recalculate one category or all of them."""
    category: Optional[str] = None
    period_days: Optional[int] = Field(default=None, ge=1, le=730)  # None: ANALYSIS_PERIOD_DAYS


class CategoryMetricsItem(BaseModel):
    category: str
    period_start: date
    period_end: date
    total_revenue: float
    total_margin: float
    total_units: float
    sku_count: int
    slow_movers_count: int
    promo_revenue_share: float
    avg_rotation_days: Optional[float]
    calculated_at: datetime

    class Config:
        from_attributes = True


class CategoryMetricsResponse(BaseModel):
    message: str
    categories: List[CategoryMetricsItem]
