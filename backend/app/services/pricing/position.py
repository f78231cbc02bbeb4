"""
Price Position & Comparison.

Compares our price with competitor prices:
1. Position label relative to the competitor distribution
2. Aggregated comparison (min/avg/max, lowest promo, deviation %)
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence


AROUND_AVG_THRESHOLD = 0.05  # ±5%


class PricePosition(str, Enum):
    """Where our price sits in the market."""
    CHEAPER_THAN_ALL = "cheaper_than_all"
    CHEAPER_THAN_AVG = "cheaper_than_avg"
    AROUND_AVG = "around_avg"
    MORE_EXPENSIVE_THAN_AVG = "more_expensive_than_avg"
    MORE_EXPENSIVE_THAN_ALL = "more_expensive_than_all"
    NO_COMPETITOR_DATA = "no_competitor_data"


POSITION_LABELS: Dict[PricePosition, str] = {
    PricePosition.CHEAPER_THAN_ALL: "Cheapest in Market",
    PricePosition.CHEAPER_THAN_AVG: "Below Average",
    PricePosition.AROUND_AVG: "At Market Average",
    PricePosition.MORE_EXPENSIVE_THAN_AVG: "Above Average",
    PricePosition.MORE_EXPENSIVE_THAN_ALL: "Most Expensive",
    PricePosition.NO_COMPETITOR_DATA: "No Data",
}


@dataclass
class CompetitorObservation:
    """Single competitor price observation."""
    competitor_name: str
    price: float
    date: date
    is_on_promo: bool = False
    promo_price: Optional[float] = None

    @property
    def has_active_promo(self) -> bool:
        return bool(self.is_on_promo and self.promo_price)


@dataclass
class PriceComparison:
    """Our price vs. a set of competitor observations."""
    our_price: float
    competitor_min_price: float
    competitor_avg_price: float
    competitor_max_price: float
    price_position: PricePosition
    price_difference_vs_avg: float  # Percentage
    price_difference_vs_min: float  # Percentage
    total_competitors: int
    competitors_with_promo: int
    competitor_discount_price: Optional[float] = None  # Lowest promo price


def calculate_price_position(
    our_price: float,
    competitor_prices: Sequence[float]
) -> PricePosition:
    """Calculate price position relative to competitors."""
    if len(competitor_prices) == 0:
        return PricePosition.NO_COMPETITOR_DATA

    low = min(competitor_prices)
    high = max(competitor_prices)
    avg = sum(competitor_prices) / len(competitor_prices)

    if our_price < low:
        return PricePosition.CHEAPER_THAN_ALL

    if our_price > high:
        return PricePosition.MORE_EXPENSIVE_THAN_ALL

    diff_from_avg = (our_price - avg) / avg if avg != 0 else 0.0

    if abs(diff_from_avg) <= AROUND_AVG_THRESHOLD:
        return PricePosition.AROUND_AVG

    if diff_from_avg < 0:
        return PricePosition.CHEAPER_THAN_AVG

    return PricePosition.MORE_EXPENSIVE_THAN_AVG


def percent_difference(value: float, reference: float) -> float:
    """Percentage difference of value vs reference, 2 decimals. Zero reference gives 0."""
    if reference == 0:
        return 0.0
    return round(((value - reference) / reference) * 100, 2)


def analyze_price_comparison(
    our_price: float,
    observations: Sequence[CompetitorObservation]
) -> Optional[PriceComparison]:
    """
    Analyze price comparison for a product.

    Regular prices drive min/avg/max and the position label.
    Promo prices are only aggregated into the lowest discount price.

    Returns:
        PriceComparison, or None when there are no observations
    """
    if len(observations) == 0:
        return None

    regular_prices = [o.price for o in observations]
    promo_prices = [o.promo_price for o in observations if o.has_active_promo]

    low = min(regular_prices)
    high = max(regular_prices)
    avg = sum(regular_prices) / len(regular_prices)

    return PriceComparison(
        our_price=our_price,
        competitor_min_price=low,
        competitor_avg_price=avg,
        competitor_max_price=high,
        competitor_discount_price=min(promo_prices) if promo_prices else None,
        price_position=calculate_price_position(our_price, regular_prices),
        price_difference_vs_avg=percent_difference(our_price, avg),
        price_difference_vs_min=percent_difference(our_price, low),
        total_competitors=len(observations),
        competitors_with_promo=len(promo_prices),
    )


def latest_observations(
    observations: Iterable[CompetitorObservation]
) -> List[CompetitorObservation]:
    """
    Keep only the most recent observation per competitor.
    On equal dates the later observation in input order wins.
    """
    latest: Dict[str, CompetitorObservation] = {}
    for obs in observations:
        current = latest.get(obs.competitor_name)
        if current is None or obs.date >= current.date:
            latest[obs.competitor_name] = obs
    return list(latest.values())


def price_position_label(position: PricePosition) -> str:
    """User-friendly label for a price position."""
    return POSITION_LABELS[PricePosition(position)]


def is_price_position_risky(
    position: PricePosition,
    margin: float,
    target_margin: float
) -> bool:
    """
    Risky if we are the most expensive in the market,
    or above average while margin is below target.
    """
    return (
        position == PricePosition.MORE_EXPENSIVE_THAN_ALL
        or (position == PricePosition.MORE_EXPENSIVE_THAN_AVG and margin < target_margin)
    )


def has_pricing_opportunity(
    position: PricePosition,
    margin: float,
    target_margin: float
) -> bool:
    """
    Opportunity if we are below average with margin below target,
    or cheapest with margin significantly (5+ points) below target.
    """
    return (
        (position == PricePosition.CHEAPER_THAN_AVG and margin < target_margin)
        or (position == PricePosition.CHEAPER_THAN_ALL and margin < target_margin - 5)
    )
