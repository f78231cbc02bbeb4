"""
Price Elasticity Estimator.

Point-to-point elasticity, averaged:
1. Match each sale with the price in effect on that day
2. For consecutive points with a meaningful price change (>1%),
   elasticity = %change in quantity / %change in price
3. Average the valid samples

This is NOT a regression. It is noisy, but it is cheap and deterministic
for ordered input, and it needs very little history.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Union

import numpy as np
import pandas as pd


MIN_SALES_POINTS = 10
MIN_MATCHED_POINTS = 5
MIN_SAMPLES = 3
MIN_PRICE_CHANGE = 0.01
FULL_CONFIDENCE_SAMPLES = 10

INELASTIC_ABOVE = -0.8
HIGHLY_ELASTIC_AT_OR_BELOW = -1.5


class SensitivityLabel(str, Enum):
    INELASTIC = "inelastic"
    NORMAL = "normal"
    HIGHLY_ELASTIC = "highly_elastic"


@dataclass(frozen=True)
class Unavailable:
    """Not enough usable history to estimate elasticity."""
    reason: str

    @property
    def is_available(self) -> bool:
        return False


@dataclass(frozen=True)
class Computed:
    """An elasticity estimate."""
    coefficient: float
    confidence: float
    label: SensitivityLabel
    data_points: int
    samples: int

    @property
    def is_available(self) -> bool:
        return True


ElasticityResult = Union[Unavailable, Computed]


def sensitivity_label(coefficient: float) -> SensitivityLabel:
    """Classify price sensitivity from an elasticity coefficient."""
    if coefficient > INELASTIC_ABOVE:
        return SensitivityLabel.INELASTIC
    if coefficient > HIGHLY_ELASTIC_AT_OR_BELOW:
        return SensitivityLabel.NORMAL
    return SensitivityLabel.HIGHLY_ELASTIC


def match_prices(
    sales: pd.DataFrame,
    prices: pd.DataFrame
) -> pd.DataFrame:
    """
    Attach the price in effect on each sale date.

    The effective price is the latest one with valid_from <= sale date.
    Sales without a positive price or with zero units are dropped.

    Args:
        sales: DataFrame with columns ['date', 'units_sold']
        prices: DataFrame with columns ['valid_from', 'regular_price']

    Returns:
        DataFrame with columns ['date', 'units_sold', 'regular_price']
    """
    sales = sales.copy()
    sales['date'] = pd.to_datetime(sales['date']).astype('datetime64[ns]')
    sales['units_sold'] = pd.to_numeric(sales['units_sold'], errors='coerce')
    sales = sales.dropna(subset=['date']).sort_values('date', kind='mergesort').reset_index(drop=True)

    prices = prices.copy()
    prices['valid_from'] = pd.to_datetime(prices['valid_from']).astype('datetime64[ns]')
    prices['regular_price'] = pd.to_numeric(prices['regular_price'], errors='coerce')
    prices = prices.dropna().sort_values('valid_from', kind='mergesort').reset_index(drop=True)

    if prices.empty or sales.empty:
        return pd.DataFrame(columns=['date', 'units_sold', 'regular_price'])

    matched = pd.merge_asof(
        sales, prices,
        left_on='date', right_on='valid_from',
        direction='backward'
    )
    matched = matched[(matched['regular_price'] > 0) & (matched['units_sold'] > 0)]
    return matched[['date', 'units_sold', 'regular_price']].reset_index(drop=True)


def point_elasticities(prices: np.ndarray, quantities: np.ndarray) -> np.ndarray:
    """Elasticity samples for consecutive points with a meaningful price change."""
    if len(prices) < 2:
        return np.array([], dtype=float)

    with np.errstate(divide='ignore', invalid='ignore'):
        price_change = (prices[1:] - prices[:-1]) / prices[:-1]
        quantity_change = (quantities[1:] - quantities[:-1]) / quantities[:-1]
        mask = np.abs(price_change) > MIN_PRICE_CHANGE
        samples = quantity_change[mask] / price_change[mask]

    return samples[np.isfinite(samples)]


def estimate_elasticity(
    sales_history: Iterable[dict],
    price_history: Iterable[dict]
) -> ElasticityResult:
    """
    Estimate price elasticity from sales and price history.

    Args:
        sales_history: Records with 'date' and 'units_sold'
        price_history: Records with 'valid_from' and 'regular_price'

    Returns:
        Computed estimate, or Unavailable with the reason
    """
    sales = pd.DataFrame(list(sales_history), columns=['date', 'units_sold'])
    if len(sales) < MIN_SALES_POINTS:
        return Unavailable(f"Need {MIN_SALES_POINTS} sales points, got {len(sales)}")

    prices = pd.DataFrame(list(price_history), columns=['valid_from', 'regular_price'])
    matched = match_prices(sales, prices)
    if len(matched) < MIN_MATCHED_POINTS:
        return Unavailable(f"Need {MIN_MATCHED_POINTS} priced sales, got {len(matched)}")

    samples = point_elasticities(
        matched['regular_price'].to_numpy(dtype=float),
        matched['units_sold'].to_numpy(dtype=float),
    )
    if len(samples) < MIN_SAMPLES:
        return Unavailable(f"Need {MIN_SAMPLES} price changes, got {len(samples)}")

    coefficient = float(np.mean(samples))
    confidence = min(len(samples) / FULL_CONFIDENCE_SAMPLES, 1.0)

    return Computed(
        coefficient=round(coefficient, 4),
        confidence=round(confidence, 2),
        label=sensitivity_label(coefficient),
        data_points=len(matched),
        samples=len(samples),
    )
