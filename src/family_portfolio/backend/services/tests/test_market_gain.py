# src/family_portfolio/backend/services/tests/test_market_gain.py

from datetime import date

import pytest

from family_portfolio.backend.services.market_gain import (
    HISTORY_COLUMNS,
    decompose_market_gain,
    enrich_snapshot_history,
)
from family_portfolio.backend.services.models import Snapshot


@pytest.mark.parametrize("previous_value", [0.01, 1, 1000, 123456.78])
def test_unchanged_value_has_no_market_gain(previous_value):
    result = decompose_market_gain(previous_value, previous_value, 0)

    assert result.market_gain == 0
    assert result.market_gain_percent == 0


@pytest.mark.parametrize("capital", [-500.0, -0.3, 0.1, 250.25, 10000.0])
def test_pure_capital_movement_has_no_market_gain(capital):
    previous_value = 1000.0
    result = decompose_market_gain(previous_value + capital, previous_value, capital)

    assert result.market_gain == 0


def test_floating_point_noise_snaps_to_zero():
    # 0.3 - 0.1 - 0.2 = -2.7e-17
    result = decompose_market_gain(0.3, 0.1, 0.2)

    assert result.market_gain == 0.0
    assert result.market_gain_percent == 0.0


def test_price_growth_without_capital():
    result = decompose_market_gain(1100, 1000, 0)

    assert result.market_gain == pytest.approx(100)
    assert result.market_gain_percent == pytest.approx(10.0)


def test_contribution_is_excluded_from_gain_and_added_to_base():
    """
    1000 -> 1650, 그 사이 500 납입
    - 시장 수익 = 1650 - 1000 - 500 = 150
    - 분모 = 1000 + 500
    """
    result = decompose_market_gain(1650, 1000, 500)

    assert result.market_gain == pytest.approx(150)
    assert result.market_gain_percent == pytest.approx(10.0)


def test_withdrawal_reduces_base():
    result = decompose_market_gain(540, 1000, -500)

    assert result.market_gain == pytest.approx(40)
    assert result.market_gain_percent == pytest.approx(8.0)


def test_non_positive_base_gives_zero_percent():
    assert decompose_market_gain(100, 0, 0).market_gain_percent == 0
    assert decompose_market_gain(100, 200, -200).market_gain_percent == 0


def test_enrich_history_sorts_and_returns_latest_first():
    snapshots = [
        Snapshot(date=date(2024, 2, 1), value=11000, investment_change=0, id=2),
        Snapshot(date=date(2024, 1, 1), value=10000, investment_change=10000, id=1),
    ]

    df = enrich_snapshot_history(snapshots)

    assert list(df.columns) == HISTORY_COLUMNS
    assert list(df["id"]) == [2, 1]

    latest, first = df.iloc[0], df.iloc[1]

    # 첫 스냅샷: 전액 원금 -> 시장 손익 0
    assert first["cum_invested"] == 10000
    assert first["period_gl"] == 0
    assert first["roi"] == 0

    # 두 번째: +1000 시장 수익
    assert latest["cum_invested"] == 10000
    assert latest["period_gl"] == pytest.approx(1000)
    assert latest["period_gl_percent"] == pytest.approx(10.0)
    assert latest["cum_gl"] == pytest.approx(1000)
    assert latest["roi"] == pytest.approx(10.0)


def test_enrich_empty_history():
    df = enrich_snapshot_history([])

    assert df.empty
    assert list(df.columns) == HISTORY_COLUMNS
