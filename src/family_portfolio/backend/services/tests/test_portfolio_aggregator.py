# src/family_portfolio/backend/services/tests/test_portfolio_aggregator.py

from datetime import date

import pytest

from family_portfolio.backend.services.models import Asset, Snapshot
from family_portfolio.backend.services.portfolio_aggregator import (
    TOTAL_WORTH_COLUMNS,
    aggregate_portfolio,
    calculate_total_worth_series,
    compare_filtered,
    owned_by,
)


def _asset(asset_id, owner_id, category, value, invested, history=None):
    return Asset(
        id=asset_id,
        name=f"asset-{asset_id}",
        category=category,
        owner_id=owner_id,
        purchase_amount=invested,
        current_value=value,
        value_history=history or [],
    )


def test_empty_portfolio():
    stats = aggregate_portfolio([])

    assert stats.total_value == 0
    assert stats.total_invested == 0
    assert stats.gain_percentage == 0
    assert stats.by_category == {}
    assert stats.by_owner == {}


def test_two_assets_totals():
    """
    평가액 100 / 300, 원금 80 / 250
    -> 총 400, 원금 330, 손익 70, 21.21%
    """
    assets = [
        _asset("1", "p1", "stocks", 100, 80),
        _asset("2", "p2", "stocks", 300, 250),
    ]

    stats = aggregate_portfolio(assets)

    assert stats.total_value == 400
    assert stats.total_invested == 330
    assert stats.total_gain == 70
    assert stats.gain_percentage == pytest.approx(21.2121, rel=1e-4)
    assert stats.by_category == {"stocks": 400}
    assert stats.by_owner == {"p1": 100, "p2": 300}


def test_zero_value_keys_are_kept():
    stats = aggregate_portfolio([_asset("1", "p1", "cash", 0, 0)])

    assert stats.by_category == {"cash": 0}
    assert stats.gain_percentage == 0


def test_predicate_and_compare_filtered():
    assets = [
        _asset("1", "p1", "stocks", 100, 80),
        _asset("2", "p2", "bonds", 300, 250),
        _asset("3", "p1", "bonds", 50, 50),
    ]

    mine, total = compare_filtered(assets, owned_by("p1"))

    assert mine.total_value == 150
    assert mine.by_owner == {"p1": 150}
    assert mine.by_category == {"stocks": 100, "bonds": 50}
    assert total.total_value == 450
    assert total == aggregate_portfolio(assets)


def test_total_worth_series_forward_fills_and_excludes_contributions():
    """
    A: 1/1 1000 (납입 1000), 1/3 1100
    B: 1/2 500 (납입 500)
    - 1/2: +500은 전부 원금 -> 수익률 0
    - 1/3: +100 / 1500
    """
    a = _asset("a", "p1", "etf", 1100, 1000, [
        Snapshot(date=date(2024, 1, 1), value=1000, investment_change=1000),
        Snapshot(date=date(2024, 1, 3), value=1100),
    ])
    b = _asset("b", "p1", "cash", 500, 500, [
        Snapshot(date=date(2024, 1, 2), value=500, investment_change=500),
    ])

    df = calculate_total_worth_series([a, b])

    assert list(df.columns) == TOTAL_WORTH_COLUMNS
    assert list(df["date"]) == [date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 3)]
    assert list(df["total_value"]) == [1000, 1500, 1600]
    assert list(df["total_invested"]) == [1000, 1500, 1500]
    assert list(df["total_gain"]) == [0, 0, 100]

    assert df["daily_return"].iloc[0] == 0.0
    assert df["daily_return"].iloc[1] == 0.0
    assert df["daily_return"].iloc[2] == pytest.approx(100 / 1500)
    assert df["cumulative_return"].iloc[2] == pytest.approx(100 / 1500)


def test_total_worth_series_same_day_snapshots():
    a = _asset("a", "p1", "etf", 1200, 1100, [
        Snapshot(date=date(2024, 1, 1), value=1000, investment_change=1000),
        Snapshot(date=date(2024, 1, 1), value=1050, investment_change=100),
        Snapshot(date=date(2024, 2, 1), value=1200),
    ])

    df = calculate_total_worth_series([a])

    assert len(df) == 2
    assert df["total_value"].iloc[0] == 1050
    assert df["total_invested"].iloc[0] == 1100
    assert df["daily_return"].iloc[1] == pytest.approx(150 / 1050)


def test_total_worth_series_without_history():
    df = calculate_total_worth_series([_asset("1", "p1", "cash", 10, 10)])

    assert df.empty
    assert list(df.columns) == TOTAL_WORTH_COLUMNS
