# src/family_portfolio/backend/services/market_gain.py
"""
market_gain.py

[역할]
- 평가액 변화 = 원금 증감(납입/인출) + 시장 수익 으로 분해
- 스냅샷 이력에 기간 손익 / 누적 손익 / ROI 컬럼을 붙인다

[원칙]
- 원금 납입 X는 평가액을 X만큼 올리지만 투자 성과가 아니다
- 수익률 분모는 (직전 평가액 + 원금 증감) = 실제 위험에 노출된 금액
"""

from __future__ import annotations

from typing import Iterable, List

import pandas as pd

from family_portfolio.backend.services.models import MarketGain, Snapshot

# 반복 뺄셈에서 생기는 부동소수점 잔차 (예: -0.00000001) 를 0으로 본다
ZERO_SNAP_THRESHOLD = 1e-4

HISTORY_COLUMNS = [
    "id",
    "date",
    "value",
    "investment_change",
    "notes",
    "cum_invested",
    "period_gl",
    "period_gl_percent",
    "cum_gl",
    "roi",
]


def decompose_market_gain(
    new_value: float,
    previous_value: float,
    capital_movement: float = 0.0,
) -> MarketGain:
    capital = float(capital_movement or 0.0)
    market_gain = float(new_value) - float(previous_value) - capital

    if abs(market_gain) < ZERO_SNAP_THRESHOLD:
        market_gain = 0.0

    adjusted_start = float(previous_value) + capital
    market_gain_percent = (market_gain / adjusted_start * 100) if adjusted_start > 0 else 0.0

    return MarketGain(market_gain=market_gain, market_gain_percent=market_gain_percent)


def _sorted_history(snapshots: Iterable[Snapshot]) -> List[Snapshot]:
    # sorted()는 안정 정렬: 같은 날짜는 입력 순서 유지
    return sorted(snapshots, key=lambda s: s.date)


def enrich_snapshot_history(snapshots: Iterable[Snapshot]) -> pd.DataFrame:
    """
    스냅샷 이력 -> 손익 컬럼이 붙은 DataFrame (최신순)

    반환 컬럼:
      - cum_invested      : investment_change 누적합
      - period_gl         : 직전 스냅샷 대비 시장 손익 (첫 행은 직전값 0 기준)
      - period_gl_percent : period_gl / (직전값 + 원금 증감) * 100
      - cum_gl            : value - cum_invested
      - roi               : cum_gl / cum_invested * 100 (누적 원금 0 이하이면 0)
    """
    history = _sorted_history(snapshots)
    if not history:
        return pd.DataFrame(columns=HISTORY_COLUMNS)

    rows = []
    running_invested = 0.0
    previous_value = 0.0

    for snap in history:
        change = float(snap.investment_change or 0.0)
        running_invested += change

        gain = decompose_market_gain(snap.value, previous_value, change)
        cum_gl = float(snap.value) - running_invested
        roi = (cum_gl / running_invested * 100) if running_invested > 0 else 0.0

        rows.append({
            "id": snap.id,
            "date": snap.date,
            "value": float(snap.value),
            "investment_change": change,
            "notes": snap.notes,
            "cum_invested": running_invested,
            "period_gl": gain.market_gain,
            "period_gl_percent": gain.market_gain_percent,
            "cum_gl": cum_gl,
            "roi": roi,
        })

        previous_value = float(snap.value)

    df = pd.DataFrame(rows, columns=HISTORY_COLUMNS)

    # 화면 표시는 최신순
    return df.iloc[::-1].reset_index(drop=True)
