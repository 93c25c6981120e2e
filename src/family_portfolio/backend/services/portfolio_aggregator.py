"""
portfolio_aggregator.py

[역할]
- 여러 자산의 현재 평가액 / 투자원금을 합산 (카테고리별, 소유자별)
- 여러 자산의 스냅샷을 날짜 기준으로 합산해 총자산 시계열 계산
- DB, Supabase, API 전혀 모름 (순수 계산 레이어)
"""

from collections import defaultdict
from typing import Callable, Iterable, List, Optional, Tuple

import pandas as pd

from family_portfolio.backend.services.market_gain import decompose_market_gain
from family_portfolio.backend.services.models import Asset, PortfolioStats

AssetPredicate = Callable[[Asset], bool]

TOTAL_WORTH_COLUMNS = [
    "date",
    "total_value",
    "total_invested",
    "total_gain",
    "daily_return",
    "cumulative_return",
]


def aggregate_portfolio(
    assets: Iterable[Asset],
    predicate: Optional[AssetPredicate] = None,
) -> PortfolioStats:
    """
    포트폴리오 요약 통계

    - total_gain = total_value - total_invested
    - gain_percentage = total_gain / total_invested * 100 (원금 0이면 0)
    - by_category / by_owner 는 합계 0인 키도 포함 (차트에서 호출자가 거른다)
    """
    by_category = defaultdict(float)
    by_owner = defaultdict(float)
    total_value = 0.0
    total_invested = 0.0

    for asset in assets:
        if predicate is not None and not predicate(asset):
            continue

        current_value = float(asset.current_value)
        total_value += current_value
        total_invested += float(asset.purchase_amount)
        by_category[asset.category] += current_value
        by_owner[asset.owner_id] += current_value

    total_gain = total_value - total_invested
    gain_percentage = (total_gain / total_invested * 100) if total_invested > 0 else 0.0

    return PortfolioStats(
        total_value=total_value,
        total_invested=total_invested,
        total_gain=total_gain,
        gain_percentage=gain_percentage,
        by_category=dict(by_category),
        by_owner=dict(by_owner),
    )


def compare_filtered(
    assets: Iterable[Asset],
    predicate: AssetPredicate,
) -> Tuple[PortfolioStats, PortfolioStats]:
    """(필터 적용 통계, 전체 통계) - 예: 특정 가족 구성원 vs 가족 전체"""
    asset_list = list(assets)
    return aggregate_portfolio(asset_list, predicate), aggregate_portfolio(asset_list)


def owned_by(owner_id: str) -> AssetPredicate:
    return lambda asset: asset.owner_id == owner_id


def _asset_daily_frame(asset: Asset) -> pd.DataFrame:
    df = pd.DataFrame(
        [
            {
                "date": s.date,
                "value": float(s.value),
                "investment_change": float(s.investment_change or 0.0),
            }
            for s in asset.value_history
        ]
    )
    df["date"] = pd.to_datetime(df["date"])
    df = df.sort_values("date", kind="mergesort")

    # 같은 날짜: 값은 마지막, 원금 증감은 합계
    daily = df.groupby("date").agg(
        value=("value", "last"),
        investment_change=("investment_change", "sum"),
    )
    daily["invested"] = daily["investment_change"].cumsum()
    return daily[["value", "invested"]]


def calculate_total_worth_series(assets: Iterable[Asset]) -> pd.DataFrame:
    """
    자산별 스냅샷 -> 날짜별 총자산 시계열

    Returns
    -------
    pd.DataFrame
        date              : 모든 자산의 스냅샷 날짜 합집합 (오름차순)
        total_value       : 각 자산의 해당일 이전 마지막 평가액 합 (첫 스냅샷 이전이면 0)
        total_invested    : 각 자산의 investment_change 누적합의 합
        total_gain        : total_value - total_invested
        daily_return      : 직전 날짜 대비 시장 수익률 (원금 증감 제외, 0.10 = +10%)
        cumulative_return : daily_return 누적 (TWR)
    """
    frames = [_asset_daily_frame(a) for a in assets if a.value_history]
    if not frames:
        return pd.DataFrame(columns=TOTAL_WORTH_COLUMNS)

    all_dates = sorted(set().union(*(f.index for f in frames)))

    # =========================
    # 자산별로 전체 날짜에 forward-fill 후 합산
    # =========================
    total_value = pd.Series(0.0, index=all_dates)
    total_invested = pd.Series(0.0, index=all_dates)
    for f in frames:
        aligned = f.reindex(all_dates).ffill().fillna(0.0)
        total_value = total_value + aligned["value"]
        total_invested = total_invested + aligned["invested"]

    df = pd.DataFrame({
        "date": [d.date() for d in all_dates],
        "total_value": total_value.to_numpy(),
        "total_invested": total_invested.to_numpy(),
    })
    df["total_gain"] = df["total_value"] - df["total_invested"]

    # =========================
    # 일별 수익률 (원금 증감 제외)
    # =========================
    daily_returns = [0.0]
    for i in range(1, len(df)):
        flow = df.at[i, "total_invested"] - df.at[i - 1, "total_invested"]
        gain = decompose_market_gain(
            df.at[i, "total_value"], df.at[i - 1, "total_value"], flow
        )
        daily_returns.append(gain.market_gain_percent / 100)

    df["daily_return"] = daily_returns
    df["cumulative_return"] = (1 + df["daily_return"]).cumprod() - 1

    return df[TOTAL_WORTH_COLUMNS]
