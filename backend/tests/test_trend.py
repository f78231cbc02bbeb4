from datetime import date, timedelta

import pandas as pd

from app.services.pricing import SalesTrend, calculate_velocity_change, classify_sales_trend


def daily(units):
    start = date(2024, 1, 1)
    return pd.DataFrame({
        'date': [start + timedelta(days=i) for i in range(len(units))],
        'units_sold': units,
    })


def test_velocity_change():
    data = daily([10] * 7 + [14] * 7)
    assert calculate_velocity_change(data) == 40.0


def test_velocity_change_short_history():
    assert calculate_velocity_change(daily([10] * 10)) == 0.0


def test_velocity_change_from_zero():
    assert calculate_velocity_change(daily([0] * 7 + [5] * 7)) == 100.0
    assert calculate_velocity_change(daily([0] * 14)) == 0.0


def test_velocity_change_ignores_input_order():
    data = daily([10] * 7 + [5] * 7).iloc[::-1]
    assert calculate_velocity_change(data) == -50.0


def test_classify_sales_trend():
    assert classify_sales_trend(daily([10] * 7 + [12] * 7)) == SalesTrend.GROWING
    assert classify_sales_trend(daily([10] * 7 + [8] * 7)) == SalesTrend.DECLINING
    assert classify_sales_trend(daily([10] * 7 + [11] * 7)) == SalesTrend.STABLE
    assert classify_sales_trend(daily([10] * 3)) == SalesTrend.STABLE


def test_days_without_sales_count_as_zero():
    # Daily sales for a week, then only two sales in the following week
    data = pd.concat([daily([10] * 7), daily([10] * 7).iloc[[0, 6]].assign(
        date=[date(2024, 1, 8), date(2024, 1, 14)]
    )])
    assert calculate_velocity_change(data) == -71.4
    assert classify_sales_trend(data) == SalesTrend.DECLINING


def test_trend_runs_up_to_end_date():
    data = daily([10] * 14)
    assert classify_sales_trend(data) == SalesTrend.STABLE
    # A week without any sales since the last record
    assert calculate_velocity_change(data, end_date=date(2024, 1, 21)) == -100.0
    assert classify_sales_trend(data, end_date=date(2024, 1, 21)) == SalesTrend.DECLINING


def test_same_day_records_are_summed():
    data = pd.concat([daily([5] * 14), daily([5] * 14)])
    assert calculate_velocity_change(data) == 0.0
