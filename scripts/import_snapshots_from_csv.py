from __future__ import annotations

import logging
import sys
import traceback
from pathlib import Path

import typer

# ✅ 프로젝트 루트를 PYTHONPATH에 추가 (설치 없이 실행해도 import 가능)
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from family_portfolio.backend.infra.supabase_client import get_log_level
from family_portfolio.backend.services.csv_snapshot_importer import (
    parse_snapshot_csv,
    summarize_import,
)
from family_portfolio.backend.services.snapshot_service import SnapshotService

app = typer.Typer(add_completion=False, help="Import asset value snapshots from a CSV export")


@app.command()
def main(
    asset_id: str = typer.Argument(..., help="assets.id to import into"),
    csv_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="CSV file (Date,Value,InvestmentChange,Notes)"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Parse and report only, do not write"),
):
    logging.basicConfig(level=get_log_level(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    raw_text = csv_path.read_text(encoding="utf-8-sig")

    if dry_run:
        summary = summarize_import(parse_snapshot_csv(raw_text))
    else:
        summary = SnapshotService.import_snapshots(asset_id, raw_text)

    print(f"[JOB] asset_id={asset_id} ok={summary.succeeded}, failed={summary.failed}")

    # 실패 사유는 앞부분만 출력 (로그 폭주 방지)
    for err in summary.errors[:20]:
        print(f"[FAILED] {err}")

    if summary.succeeded == 0 and summary.failed > 0:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    try:
        app()
    except Exception:
        print("[FATAL] import failed")
        print(traceback.format_exc())
        raise
