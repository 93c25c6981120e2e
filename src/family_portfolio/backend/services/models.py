# src/family_portfolio/backend/services/models.py
"""
models.py

[역할]
- 자산(Asset) / 스냅샷(Snapshot) 및 계산 결과 구조 정의
- 계산 레이어는 이 구조만 알고, DB/Supabase 스키마는 모른다
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Dict, List, Optional


@dataclass(frozen=True)
class Snapshot:
    """
    ✅ 특정 시점의 자산 평가액 기록 (asset_history 1 row)
    - investment_change: +면 추가 납입, -면 인출
    - id: 저장소에서 부여한 식별자 (수정/삭제용, 신규 입력 시 None)
    """
    date: date
    value: float
    investment_change: float = 0.0
    notes: str = ""
    id: Optional[int] = None

    def to_payload(self) -> Dict[str, object]:
        return {
            "date": self.date.isoformat(),
            "value": float(self.value),
            "investment_change": float(self.investment_change),
            "notes": self.notes,
        }


@dataclass(frozen=True)
class Asset:
    """
    ✅ 자산 1건
    - category / owner_id는 불투명 키 (표시 라벨은 별도 lookup)
    - current_value는 history가 있으면 가장 최근 스냅샷 값과 같아야 한다 (호출자 책임)
    """
    id: str
    name: str
    category: str
    owner_id: str
    purchase_amount: float = 0.0
    current_value: float = 0.0
    purchase_date: Optional[date] = None
    value_history: List[Snapshot] = field(default_factory=list)

    def with_history(self, history: List[Snapshot]) -> "Asset":
        return replace(self, value_history=list(history))


@dataclass(frozen=True)
class MarketGain:
    market_gain: float
    market_gain_percent: float


@dataclass(frozen=True)
class HeatmapCell:
    """
    한 자산의 한 달 (month = "YYYY-MM")
    - exists=False 이면 해당 월 데이터가 없는 gap 셀 (값은 이월값)
    """
    month: str
    value: float
    previous_value: float
    change_value: float
    change_percent: float
    exists: bool


@dataclass(frozen=True)
class HeatmapYearRow:
    year: int
    cells: List[Optional[HeatmapCell]]
    start_value: float
    end_value: float
    total_change: float
    total_return: float


@dataclass(frozen=True)
class ReturnStatistics:
    volatility: float
    best_month: float
    worst_month: float


@dataclass
class PortfolioStats:
    total_value: float = 0.0
    total_invested: float = 0.0
    total_gain: float = 0.0
    gain_percentage: float = 0.0
    by_category: Dict[str, float] = field(default_factory=dict)
    by_owner: Dict[str, float] = field(default_factory=dict)
