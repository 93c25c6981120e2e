from __future__ import annotations

from datetime import date, datetime
from typing import Dict, Iterable, Mapping, Optional

import pandas as pd

from family_portfolio.backend.services.date_parser import parse_flexible_date
from family_portfolio.backend.services.models import HeatmapYearRow


SNAPSHOT_COLUMNS = [
    "id",
    "asset_id",
    "date",
    "value",
    "investment_change",
    "notes",
]

HEATMAP_COLUMNS = [
    "year",
    "month",
    "month_key",
    "value",
    "previous_value",
    "change_value",
    "change_percent",
    "exists",
]

YEAR_TOTAL_COLUMNS = [
    "year",
    "start_value",
    "end_value",
    "total_change",
    "total_return",
]

ALLOCATION_COLUMNS = [
    "key",
    "label",
    "value",
    "weight",
]


def _ensure_columns(df: pd.DataFrame, columns: Iterable[str]) -> pd.DataFrame:
    for col in columns:
        if col not in df.columns:
            df[col] = pd.NA
    return df


def _ensure_unique_columns(df: pd.DataFrame) -> pd.DataFrame:
    if df.columns.duplicated().any():
        df = df.loc[:, ~df.columns.duplicated()].copy()
    return df


def _to_date(value) -> Optional[date]:
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parse_flexible_date(value)


def _to_date_series(series: pd.Series) -> pd.Series:
    """
    행마다 개별 파싱 (pd.to_datetime은 첫 값으로 포맷을 추론해서
    '2024-01-15'와 '2024-02-15T00:00:00.000Z'가 섞이면 뒤쪽이 NaT가 된다)
    """
    return series.map(_to_date)


def normalize_snapshot_df(df: pd.DataFrame) -> pd.DataFrame:
    """
    asset_history 기반 스냅샷 DataFrame 정규화.
    - date는 date 타입으로 변환 (읽을 수 없으면 행 제거)
    - id는 정수형(Int64)
    - value/investment_change는 float, investment_change 결측은 0
    - notes 결측은 빈 문자열
    """
    if df is None or df.empty:
        return pd.DataFrame(columns=SNAPSHOT_COLUMNS)

    out = _ensure_unique_columns(df.copy())
    out = _ensure_columns(out, SNAPSHOT_COLUMNS)

    out["date"] = _to_date_series(out["date"])
    out["id"] = pd.to_numeric(out["id"], errors="coerce").astype("Int64")
    out["asset_id"] = out["asset_id"].astype("string")
    out["value"] = pd.to_numeric(out["value"], errors="coerce")
    out["investment_change"] = pd.to_numeric(out["investment_change"], errors="coerce").fillna(0.0)
    out["notes"] = out["notes"].fillna("").astype(str)

    return out.dropna(subset=["date", "value"])[SNAPSHOT_COLUMNS].reset_index(drop=True)


def heatmap_to_df(rows: Iterable[HeatmapYearRow]) -> pd.DataFrame:
    """
    HeatmapYearRow 목록 -> long 포맷 (year, month 1~12) DataFrame
    - 데이터 범위 밖 월(None 셀)은 포함하지 않음
    - altair rect 차트용
    """
    records = []
    for row in rows:
        for idx, cell in enumerate(row.cells):
            if cell is None:
                continue
            records.append({
                "year": row.year,
                "month": idx + 1,
                "month_key": cell.month,
                "value": cell.value,
                "previous_value": cell.previous_value,
                "change_value": cell.change_value,
                "change_percent": cell.change_percent,
                "exists": cell.exists,
            })

    if not records:
        return pd.DataFrame(columns=HEATMAP_COLUMNS)
    return pd.DataFrame(records, columns=HEATMAP_COLUMNS)


def year_totals_to_df(rows: Iterable[HeatmapYearRow]) -> pd.DataFrame:
    records = [
        {
            "year": r.year,
            "start_value": r.start_value,
            "end_value": r.end_value,
            "total_change": r.total_change,
            "total_return": r.total_return,
        }
        for r in rows
    ]
    if not records:
        return pd.DataFrame(columns=YEAR_TOTAL_COLUMNS)
    return pd.DataFrame(records, columns=YEAR_TOTAL_COLUMNS)


def allocation_to_df(
    totals: Mapping[str, float],
    labels: Optional[Dict[str, str]] = None,
) -> pd.DataFrame:
    """
    by_category / by_owner 매핑 -> 차트용 DataFrame
    - 합계 0 이하인 키는 제외
    - label은 lookup이 없으면 key 그대로
    """
    labels = labels or {}
    df = pd.DataFrame(
        [{"key": k, "label": labels.get(k, k), "value": float(v)} for k, v in totals.items()],
        columns=["key", "label", "value"],
    )
    df = df[df["value"] > 0].copy()
    if df.empty:
        return pd.DataFrame(columns=ALLOCATION_COLUMNS)

    df["weight"] = df["value"] / df["value"].sum()
    return df.sort_values("value", ascending=False).reset_index(drop=True)[ALLOCATION_COLUMNS]
