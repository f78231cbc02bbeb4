"""
SQLAlchemy Database Models for the Pricing Intelligence System.

Tables:
- products: Product catalog with cost, price and ABC category
- sales_records: Daily sales per product
- competitor_prices: Competitor price observations
- price_history: Our regular price over time
- pricing_recommendations: Regenerated price-change recommendations
- product_price_elasticity: Latest elasticity estimate per product
- abc_settings: ABC analysis configuration
- smart_price_config: Promo price guardrails
- insights: Generated pricing alerts
- category_metrics: Per-category rollups of the sales window
"""

from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Float, Date, DateTime,
    ForeignKey, Boolean, Text, UniqueConstraint, Enum as SQLEnum
)
from sqlalchemy.orm import relationship, declarative_base
import enum

Base = declarative_base()


class AbcCategory(enum.Enum):
    """Pareto revenue tiers."""
    A = "A"
    B = "B"
    C = "C"


class RecommendationStatus(enum.Enum):
    """Lifecycle of a pricing recommendation."""
    NEW = "new"
    APPLIED = "applied"
    DISMISSED = "dismissed"


class Product(Base):
    """Product catalog."""
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    sku = Column(String(50), unique=True, nullable=False, index=True)
    name = Column(String(300), nullable=False)
    category = Column(String(100), index=True)
    cost_price = Column(Float, nullable=False)
    current_price = Column(Float, nullable=False)
    currency = Column(String(3), default="EUR")
    abc_category = Column(SQLEnum(AbcCategory), nullable=True, index=True)
    is_private_label = Column(Boolean, default=False)
    status = Column(String(20), default="active", index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    sales = relationship("SalesRecord", back_populates="product")
    competitor_prices = relationship("CompetitorPrice", back_populates="product")
    price_history = relationship("PriceHistory", back_populates="product")
    recommendations = relationship("PricingRecommendation", back_populates="product")
    elasticity = relationship("PriceElasticity", back_populates="product", uselist=False)


class SalesRecord(Base):
    """
    Daily sales data.
    Input for ABC classification, sales trend and elasticity.
    """
    __tablename__ = "sales_records"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    units_sold = Column(Float, nullable=False)
    selling_price = Column(Float)
    purchase_price = Column(Float)
    revenue = Column(Float)  # Optional, overrides the derived value
    promo_flag = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    product = relationship("Product", back_populates="sales")


class CompetitorPrice(Base):
    """
    Competitor price observation.
    Several per day per competitor are allowed; the latest one counts.
    """
    __tablename__ = "competitor_prices"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    competitor_name = Column(String(200), nullable=False)
    price = Column(Float, nullable=False)
    promo_price = Column(Float)
    is_on_promo = Column(Boolean, default=False)
    date = Column(Date, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    product = relationship("Product", back_populates="competitor_prices")


class PriceHistory(Base):
    """Our regular price, effective from valid_from until the next entry."""
    __tablename__ = "price_history"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    valid_from = Column(Date, nullable=False, index=True)
    regular_price = Column(Float, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    product = relationship("Product", back_populates="price_history")


class PricingRecommendation(Base):
    """
    Price-change recommendation.
    Rows with status NEW are regenerated, not edited.
    """
    __tablename__ = "pricing_recommendations"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    current_price = Column(Float, nullable=False)
    current_cost_price = Column(Float)
    competitor_avg_price = Column(Float)
    recommended_price = Column(Float, nullable=False)
    recommended_change_percent = Column(Float, nullable=False)
    reasoning = Column(Text, nullable=False)  # Human-readable explanation
    abc_class = Column(String(1))
    action = Column(String(20))
    confidence = Column(String(20))
    status = Column(SQLEnum(RecommendationStatus), nullable=False, default=RecommendationStatus.NEW, index=True)
    generated_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    product = relationship("Product", back_populates="recommendations")


class PriceElasticity(Base):
    """Latest elasticity estimate. One row per product, upserted."""
    __tablename__ = "product_price_elasticity"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, unique=True, index=True)
    elasticity_coefficient = Column(Float, nullable=False)
    confidence = Column(Float, nullable=False)
    sensitivity_label = Column(String(20), nullable=False)
    data_points = Column(Integer, nullable=False)
    calculated_at = Column(DateTime, default=datetime.utcnow)

    product = relationship("Product", back_populates="elasticity")


class AbcSettings(Base):
    """ABC analysis configuration. Single row, created with defaults on first run."""
    __tablename__ = "abc_settings"

    id = Column(Integer, primary_key=True, index=True)
    analysis_period_days = Column(Integer, nullable=False, default=90)
    threshold_a_percent = Column(Float, nullable=False, default=80)
    threshold_b_percent = Column(Float, nullable=False, default=15)
    threshold_c_percent = Column(Float, nullable=False, default=5)
    last_calculated_at = Column(DateTime)


class SmartPriceSettings(Base):
    """Promo price guardrails. Single row."""
    __tablename__ = "smart_price_config"

    id = Column(Integer, primary_key=True, index=True)
    global_min_margin_percent = Column(Float, nullable=False, default=15)
    abc_a_max_discount_percent = Column(Float, nullable=False, default=10)
    abc_b_max_discount_percent = Column(Float, nullable=False, default=20)
    abc_c_max_discount_percent = Column(Float, nullable=False, default=30)
    match_competitor_promo = Column(Boolean, nullable=False, default=True)
    never_below_competitor_min = Column(Boolean, nullable=False, default=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Insight(Base):
    """
    Generated pricing alert.
    Unread alerts are regenerated; read ones are kept.
    """
    __tablename__ = "insights"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=True, index=True)
    type = Column(String(50), nullable=False, index=True)
    title = Column(String(300), nullable=False)
    description = Column(Text, nullable=False)
    severity = Column(String(20), nullable=False)
    is_read = Column(Boolean, default=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    product = relationship("Product")


class CategoryMetric(Base):
    """Category rollup for one sales window. Unique per category and period start."""
    __tablename__ = "category_metrics"
    __table_args__ = (UniqueConstraint("category", "period_start", name="uq_category_period"),)

    id = Column(Integer, primary_key=True, index=True)
    category = Column(String(100), nullable=False, index=True)
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)
    total_revenue = Column(Float, nullable=False, default=0)
    total_margin = Column(Float, nullable=False, default=0)
    total_units = Column(Float, nullable=False, default=0)
    sku_count = Column(Integer, nullable=False, default=0)
    slow_movers_count = Column(Integer, nullable=False, default=0)
    promo_revenue_share = Column(Float, nullable=False, default=0)
    avg_rotation_days = Column(Float)
    calculated_at = Column(DateTime, default=datetime.utcnow)
