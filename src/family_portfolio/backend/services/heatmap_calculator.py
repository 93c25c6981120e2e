# src/family_portfolio/backend/services/heatmap_calculator.py
"""
heatmap_calculator.py

[역할]
- 한 자산의 스냅샷 이력 -> 연도 x 12개월 수익률 그리드
- DB, Supabase, UI 전혀 모름 (순수 계산 레이어)

[규칙]
- 같은 달에 여러 스냅샷이 있으면 마지막 값이 그 달의 대표값
- 데이터가 없는 달(gap)은 exists=False 셀, 직전 값을 그대로 이월
- gap 다음 달의 previous_value는 gap 이전 마지막 값 (몇 달 전이든)
- 첫 데이터 달은 previous_value = 자기 자신 -> 수익률 0
- 결과는 최신 연도가 먼저
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Union

import pandas as pd

from family_portfolio.backend.services.models import (
    Asset,
    HeatmapCell,
    HeatmapYearRow,
    Snapshot,
)


def _to_monthly_values(snapshots: Iterable[Snapshot]) -> Dict[pd.Period, float]:
    rows = [{"date": s.date, "value": float(s.value)} for s in snapshots]
    if not rows:
        return {}

    df = pd.DataFrame(rows)
    df["date"] = pd.to_datetime(df["date"])

    # =========================
    # 안정 정렬 (같은 날짜는 입력 순서 유지)
    # =========================
    df = df.sort_values("date", kind="mergesort").reset_index(drop=True)
    df["period"] = df["date"].dt.to_period("M")

    # 월별 마지막 관측값
    monthly = df.groupby("period", sort=True)["value"].last()
    return {period: float(v) for period, v in monthly.items()}


def _pct(change: float, base: float) -> float:
    return (change / base * 100) if base != 0 else 0.0


def build_heatmap(source: Union[Asset, Iterable[Snapshot]]) -> List[HeatmapYearRow]:
    history = source.value_history if isinstance(source, Asset) else source
    monthly_values = _to_monthly_values(history)
    if not monthly_values:
        return []

    first, last = min(monthly_values), max(monthly_values)

    cells_by_year: Dict[int, List[Optional[HeatmapCell]]] = {}
    start_by_year: Dict[int, float] = {}
    end_by_year: Dict[int, float] = {}

    last_known: Optional[float] = None

    # =========================
    # 첫 달 ~ 마지막 달까지 한 번만 순회 (이월값 1개 유지)
    # =========================
    for period in pd.period_range(first, last, freq="M"):
        year = period.year
        cells = cells_by_year.setdefault(year, [None] * 12)

        if year not in start_by_year and last_known is not None:
            start_by_year[year] = last_known

        value = monthly_values.get(period)

        if value is None:
            cells[period.month - 1] = HeatmapCell(
                month=str(period),
                value=last_known,
                previous_value=last_known,
                change_value=0.0,
                change_percent=0.0,
                exists=False,
            )
            continue

        previous = last_known if last_known is not None else value
        change = value - previous

        cells[period.month - 1] = HeatmapCell(
            month=str(period),
            value=value,
            previous_value=previous,
            change_value=change,
            change_percent=_pct(change, previous),
            exists=True,
        )

        start_by_year.setdefault(year, value)
        end_by_year[year] = value
        last_known = value

    # =========================
    # 연도 합계
    # =========================
    rows: List[HeatmapYearRow] = []
    for year in sorted(cells_by_year, reverse=True):
        start_value = start_by_year[year]
        # gap만 있는 연도는 이월값 그대로
        end_value = end_by_year.get(year, start_value)
        total_change = end_value - start_value

        rows.append(
            HeatmapYearRow(
                year=year,
                cells=cells_by_year[year],
                start_value=start_value,
                end_value=end_value,
                total_change=total_change,
                total_return=_pct(total_change, start_value),
            )
        )

    return rows


def monthly_returns(rows: Iterable[HeatmapYearRow]) -> List[float]:
    """데이터가 있는 달의 change_percent (오래된 순, gap 제외)"""
    ordered = sorted(rows, key=lambda r: r.year)
    return [
        cell.change_percent
        for row in ordered
        for cell in row.cells
        if cell is not None and cell.exists
    ]
