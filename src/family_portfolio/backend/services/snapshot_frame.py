# src/family_portfolio/backend/services/snapshot_frame.py
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

import pandas as pd

from family_portfolio.backend.services.data_contracts import normalize_snapshot_df
from family_portfolio.backend.services.date_parser import parse_flexible_date
from family_portfolio.backend.services.models import Asset, Snapshot


ASSET_REQUIRED_COLS = ["id", "name", "category", "owner_id"]
HISTORY_REQUIRED_COLS = ["asset_id", "date", "value"]

# 백업 JSON(camelCase) -> 내부 컬럼명
ASSET_RENAME_MAP = {
    "ownerId": "owner_id",
    "purchaseAmount": "purchase_amount",
    "purchaseDate": "purchase_date",
    "currentValue": "current_value",
}
HISTORY_RENAME_MAP = {
    "assetId": "asset_id",
    "investmentChange": "investment_change",
}


def _flatten_rows(rows: List[Dict[str, Any]]) -> pd.DataFrame:
    """
    Supabase(PostgREST) 응답 rows는 join/select에 따라 중첩 dict가 섞일 수 있음.
    json_normalize로 평탄화해 컬럼명을 안정적으로 확보한다.
    """
    if not rows:
        return pd.DataFrame()

    return pd.json_normalize(rows, sep=".")


def _strict_numeric(df: pd.DataFrame, col: str, default: float = 0.0) -> pd.Series:
    """
    - 콤마 등 로케일 포맷 제거
    - 변환 불가/결측은 default
    """
    if col not in df.columns:
        return pd.Series([default] * len(df), index=df.index, dtype="float64")

    s = df[col]
    if s.dtype == "object":
        s = s.astype(str).str.replace(",", "", regex=False).str.strip()
        s = s.replace({"None": "", "nan": "", "NaN": ""})

    return pd.to_numeric(s, errors="coerce").fillna(default).astype("float64")


def _check_required(df: pd.DataFrame, required_cols: List[str], rows: List[Dict[str, Any]], label: str) -> None:
    missing = [c for c in required_cols if c not in df.columns]
    if missing:
        sample_keys = list(rows[0].keys()) if rows else []
        raise KeyError(
            f"[snapshot_frame] Missing required {label} cols: {missing}. "
            f"Top-level keys(sample)={sample_keys}"
        )


def to_snapshot_df(
    rows: List[Dict[str, Any]],
    *,
    rename_map: Optional[Dict[str, str]] = None,
) -> pd.DataFrame:
    """
    asset_history rows -> 정규화된 DataFrame (SNAPSHOT_COLUMNS)

    핵심 정책
    1) 중첩 구조 평탄화(json_normalize)
    2) 필수 컬럼이 없으면 즉시 KeyError
    3) 날짜/값을 읽을 수 없는 행은 제외
    """
    df = _flatten_rows(rows)
    if df.empty:
        return normalize_snapshot_df(df)

    if rename_map:
        df = df.rename(columns=rename_map)

    _check_required(df, HISTORY_REQUIRED_COLS, rows, "history")
    return normalize_snapshot_df(df)


def _snapshots_from_df(df: pd.DataFrame) -> List[Snapshot]:
    out = []
    for r in df.itertuples(index=False):
        out.append(
            Snapshot(
                date=r.date,
                value=float(r.value),
                investment_change=float(r.investment_change),
                notes=r.notes,
                id=None if pd.isna(r.id) else int(r.id),
            )
        )
    return out


def rows_to_assets(
    asset_rows: List[Dict[str, Any]],
    history_rows: List[Dict[str, Any]],
    *,
    asset_rename_map: Optional[Dict[str, str]] = None,
    history_rename_map: Optional[Dict[str, str]] = None,
) -> List[Asset]:
    """
    assets rows + asset_history rows -> Asset 목록
    - history는 asset_id로 묶고, 저장된 순서를 그대로 유지 (정렬은 계산 레이어 책임)
    - 어떤 자산에도 속하지 않는 history row는 무시
    """
    assets_df = _flatten_rows(asset_rows)
    if assets_df.empty:
        return []

    if asset_rename_map:
        assets_df = assets_df.rename(columns=asset_rename_map)
    _check_required(assets_df, ASSET_REQUIRED_COLS, asset_rows, "asset")

    assets_df["purchase_amount"] = _strict_numeric(assets_df, "purchase_amount")
    assets_df["current_value"] = _strict_numeric(assets_df, "current_value")
    if "purchase_date" not in assets_df.columns:
        assets_df["purchase_date"] = None

    history_df = to_snapshot_df(history_rows, rename_map=history_rename_map)
    history_by_asset = {
        str(asset_id): _snapshots_from_df(group)
        for asset_id, group in history_df.groupby("asset_id", sort=False)
    }

    assets: List[Asset] = []
    for r in assets_df.to_dict(orient="records"):
        asset_id = str(r["id"])
        purchase_date = r.get("purchase_date")
        assets.append(
            Asset(
                id=asset_id,
                name=str(r["name"]),
                category=str(r["category"]),
                owner_id=str(r["owner_id"]),
                purchase_amount=float(r["purchase_amount"]),
                current_value=float(r["current_value"]),
                purchase_date=parse_flexible_date(purchase_date) if isinstance(purchase_date, str) else None,
                value_history=history_by_asset.get(asset_id, []),
            )
        )
    return assets


def assets_from_backup(document: Mapping[str, Any]) -> List[Asset]:
    """
    백업 JSON {persons, assets, history, categories, settings} -> Asset 목록 (읽기 전용)
    """
    return rows_to_assets(
        list(document.get("assets") or []),
        list(document.get("history") or []),
        asset_rename_map=ASSET_RENAME_MAP,
        history_rename_map=HISTORY_RENAME_MAP,
    )
