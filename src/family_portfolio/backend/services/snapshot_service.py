from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from family_portfolio.backend.infra.query import get_asset_history, get_assets
from family_portfolio.backend.infra.supabase_client import (
    get_assets_table,
    get_history_table,
    get_supabase_client,
)
from family_portfolio.backend.services.csv_snapshot_importer import (
    ImportSummary,
    parse_snapshot_csv,
)
from family_portfolio.backend.services.models import Asset, Snapshot
from family_portfolio.backend.services.snapshot_frame import rows_to_assets

logger = logging.getLogger(__name__)


class SnapshotService:
    """
    ✅ 스냅샷 저장소 (Supabase assets / asset_history)
    - 스냅샷 추가/수정/삭제 후 assets.purchase_amount / current_value 재계산
    - 계산 레이어는 이 클래스를 모른다
    """

    @staticmethod
    def validate_snapshot(snapshot: Snapshot) -> None:
        if snapshot.value < 0:
            raise ValueError("value must be >= 0")

    @staticmethod
    def load_assets(owner_id: Optional[str] = None) -> List[Asset]:
        asset_rows = get_assets(owner_id)
        if not asset_rows:
            return []
        asset_ids = [str(r["id"]) for r in asset_rows]
        history_rows = get_asset_history(asset_ids)
        return rows_to_assets(asset_rows, history_rows)

    @staticmethod
    def _get_asset_row(asset_id: str) -> Dict[str, Any]:
        supabase = get_supabase_client()
        rows = (
            supabase.table(get_assets_table())
            .select("id, purchase_amount, current_value")
            .eq("id", asset_id)
            .limit(1)
            .execute()
            .data
        )
        if not rows:
            raise ValueError(f"assets.id={asset_id} not found")
        return rows[0]

    @staticmethod
    def _get_snapshot_row(snapshot_id: int) -> Dict[str, Any]:
        supabase = get_supabase_client()
        rows = (
            supabase.table(get_history_table())
            .select("id, asset_id, investment_change")
            .eq("id", snapshot_id)
            .limit(1)
            .execute()
            .data
        )
        if not rows:
            raise ValueError(f"{get_history_table()}.id={snapshot_id} not found")
        return rows[0]

    @staticmethod
    def _adjust_purchase_amount(asset_id: str, delta: float) -> None:
        if delta == 0:
            return
        row = SnapshotService._get_asset_row(asset_id)
        new_amount = float(row.get("purchase_amount") or 0.0) + delta

        supabase = get_supabase_client()
        supabase.table(get_assets_table()).update(
            {"purchase_amount": new_amount}
        ).eq("id", asset_id).execute()

    @staticmethod
    def _refresh_current_value(asset_id: str) -> None:
        """가장 최근 스냅샷 값으로 current_value 갱신 (스냅샷이 없으면 유지)"""
        supabase = get_supabase_client()
        latest = (
            supabase.table(get_history_table())
            .select("value")
            .eq("asset_id", asset_id)
            .order("date", desc=True)
            .limit(1)
            .execute()
            .data
        )
        if not latest:
            return
        supabase.table(get_assets_table()).update(
            {"current_value": float(latest[0]["value"])}
        ).eq("id", asset_id).execute()

    @staticmethod
    def add_snapshot(asset_id: str, snapshot: Snapshot) -> Dict[str, Any]:
        SnapshotService.validate_snapshot(snapshot)
        SnapshotService._get_asset_row(asset_id)

        supabase = get_supabase_client()
        payload = {"asset_id": asset_id, **snapshot.to_payload()}
        resp = supabase.table(get_history_table()).insert(payload).execute()
        rows = resp.data or []
        if not rows:
            raise RuntimeError("Insert failed: no rows returned")

        SnapshotService._adjust_purchase_amount(asset_id, float(snapshot.investment_change or 0.0))
        SnapshotService._refresh_current_value(asset_id)
        return rows[0]

    @staticmethod
    def update_snapshot(snapshot_id: int, snapshot: Snapshot) -> Dict[str, Any]:
        SnapshotService.validate_snapshot(snapshot)
        old = SnapshotService._get_snapshot_row(snapshot_id)
        asset_id = str(old["asset_id"])

        supabase = get_supabase_client()
        resp = (
            supabase.table(get_history_table())
            .update(snapshot.to_payload())
            .eq("id", snapshot_id)
            .execute()
        )
        rows = resp.data or []
        if not rows:
            raise RuntimeError(f"{get_history_table()} update failed")

        # 원금 증감이 바뀐 만큼만 purchase_amount 반영
        delta = float(snapshot.investment_change or 0.0) - float(old.get("investment_change") or 0.0)
        SnapshotService._adjust_purchase_amount(asset_id, delta)
        SnapshotService._refresh_current_value(asset_id)
        return rows[0]

    @staticmethod
    def delete_snapshot(snapshot_id: int) -> None:
        old = SnapshotService._get_snapshot_row(snapshot_id)
        asset_id = str(old["asset_id"])

        # 행 삭제가 성공한 뒤에만 purchase_amount 반영
        supabase = get_supabase_client()
        supabase.table(get_history_table()).delete().eq("id", snapshot_id).execute()

        SnapshotService._adjust_purchase_amount(asset_id, -float(old.get("investment_change") or 0.0))
        SnapshotService._refresh_current_value(asset_id)

    @staticmethod
    def import_snapshots(asset_id: str, csv_text: str) -> ImportSummary:
        """
        CSV 텍스트 -> asset_history 일괄 입력
        - 읽을 수 없는 행은 사유와 함께 failed에 포함
        - 저장 실패 행도 failed에 포함하고 나머지 행은 계속 진행
        """
        results = parse_snapshot_csv(csv_text)

        succeeded = 0
        errors: List[str] = []

        for r in results:
            if r.record is None:
                errors.append(f"Row {r.row_number}: {r.reason}")
                continue
            try:
                SnapshotService.add_snapshot(asset_id, r.record)
                succeeded += 1
            except Exception as exc:
                logger.warning("snapshot import failed: asset_id=%s row=%s", asset_id, r.row_number, exc_info=True)
                errors.append(f"Row {r.row_number}: failed to import entry for {r.record.date.isoformat()} ({exc})")

        logger.info("[OK] asset_id=%s imported=%s failed=%s", asset_id, succeeded, len(errors))
        return ImportSummary(succeeded=succeeded, failed=len(errors), errors=errors)
