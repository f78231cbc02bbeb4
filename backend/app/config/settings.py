"""
Application settings and configuration.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration using environment variables."""

    # Database
    DATABASE_URL: str = "postgresql://localhost:5432/pricing_intelligence"

    # Redis (for Celery)
    REDIS_URL: str = "redis://localhost:6379/0"

    # API
    API_PREFIX: str = "/api"
    LOG_LEVEL: str = "INFO"

    # ABC classification defaults
    ANALYSIS_PERIOD_DAYS: int = 90
    ABC_THRESHOLD_A_PERCENT: float = 80.0
    ABC_THRESHOLD_B_PERCENT: float = 15.0
    ABC_THRESHOLD_C_PERCENT: float = 5.0

    # Recommendation engine
    TARGET_MARGIN_A: float = 20.0
    TARGET_MARGIN_B: float = 25.0
    TARGET_MARGIN_C: float = 30.0
    PRIVATE_LABEL_MIN_MARGIN: float = 35.0
    WEAK_SALES_UNITS: float = 10
    MIN_RECOMMENDATION_CHANGE_PCT: float = 1.0

    # Elasticity
    ELASTICITY_PERIOD_DAYS: int = 90

    # Alerts
    ALERT_LOW_MARGIN_GAP: float = 10.0
    PRICE_DROP_WINDOW_DAYS: int = 7
    PRICE_DROP_THRESHOLD_PCT: float = 10.0

    # Smart price defaults (used until a config row exists)
    SMART_PRICE_MIN_MARGIN_PERCENT: float = 15.0
    SMART_PRICE_A_MAX_DISCOUNT_PERCENT: float = 10.0
    SMART_PRICE_B_MAX_DISCOUNT_PERCENT: float = 20.0
    SMART_PRICE_C_MAX_DISCOUNT_PERCENT: float = 30.0
    SMART_PRICE_MATCH_COMPETITOR_PROMO: bool = True
    SMART_PRICE_NEVER_BELOW_COMPETITOR_MIN: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def target_margins(self) -> dict:
        """Target margin percent by ABC class."""
        return {
            "A": self.TARGET_MARGIN_A,
            "B": self.TARGET_MARGIN_B,
            "C": self.TARGET_MARGIN_C,
        }


settings = Settings()
