"""
Sales Trend.

Compares the recent sales period against the one before it.
The recommendation engine only needs a coarse label:
growing, stable or declining.
"""

from datetime import date
from enum import Enum
from typing import Optional

import pandas as pd


TREND_THRESHOLD_PCT = 10.0


class SalesTrend(str, Enum):
    GROWING = "growing"
    STABLE = "stable"
    DECLINING = "declining"


def daily_units(data: pd.DataFrame, end_date: Optional[date] = None) -> pd.DataFrame:
    """
    Units per calendar day, days without sales filled with 0.

    The range runs from the first sale to end_date (or the last sale).
    """
    if data.empty:
        return pd.DataFrame(columns=['date', 'units_sold'])

    dates = pd.to_datetime(data['date']).dt.normalize()
    units = data.assign(date=dates).groupby('date')['units_sold'].sum()

    end = units.index.max()
    if end_date is not None:
        end = max(end, pd.Timestamp(end_date))

    calendar = pd.date_range(units.index.min(), end, freq='D')
    return units.reindex(calendar, fill_value=0).rename_axis('date').reset_index()


def calculate_velocity_change(
    data: pd.DataFrame,
    recent_days: int = 7,
    compare_days: int = 7,
    end_date: Optional[date] = None
) -> float:
    """
    Calculate velocity change percentage.

    Compares recent period average to previous period average,
    over calendar days. Expects columns ['date', 'units_sold'].

    Returns:
        Percentage change (e.g., 40.0 means 40% increase)
    """
    data = daily_units(data, end_date)
    if len(data) < recent_days + compare_days:
        return 0.0

    recent = data.tail(recent_days)['units_sold'].mean()
    previous = data.tail(recent_days + compare_days).head(compare_days)['units_sold'].mean()

    if previous == 0:
        return 100.0 if recent > 0 else 0.0

    return round(((recent - previous) / previous) * 100, 1)


def classify_sales_trend(
    data: pd.DataFrame,
    recent_days: int = 7,
    compare_days: int = 7,
    threshold_pct: float = TREND_THRESHOLD_PCT,
    end_date: Optional[date] = None
) -> SalesTrend:
    """Label the sales trend; short histories are stable."""
    change = calculate_velocity_change(data, recent_days, compare_days, end_date)
    if change > threshold_pct:
        return SalesTrend.GROWING
    if change < -threshold_pct:
        return SalesTrend.DECLINING
    return SalesTrend.STABLE
