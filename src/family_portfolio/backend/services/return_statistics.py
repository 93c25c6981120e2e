"""
return_statistics.py

[역할]
- 월별 수익률(%) 목록 -> 변동성 / 최고의 달 / 최악의 달
- 변동성 = 모집단 표준편차 (ddof=0), 연율화하지 않음
"""

from __future__ import annotations

from typing import Iterable

import numpy as np

from family_portfolio.backend.services.models import HeatmapYearRow, ReturnStatistics
from family_portfolio.backend.services.heatmap_calculator import monthly_returns


def summarize_returns(returns: Iterable[float]) -> ReturnStatistics:
    values = np.asarray([float(r) for r in returns], dtype=float)

    if values.size == 0:
        return ReturnStatistics(volatility=0.0, best_month=0.0, worst_month=0.0)

    volatility = float(np.std(values, ddof=0)) if values.size > 1 else 0.0

    return ReturnStatistics(
        volatility=volatility,
        best_month=float(values.max()),
        worst_month=float(values.min()),
    )


def summarize_heatmap(rows: Iterable[HeatmapYearRow]) -> ReturnStatistics:
    return summarize_returns(monthly_returns(rows))
