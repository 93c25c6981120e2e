"""
csv_snapshot_importer.py

[역할]
- 스프레드시트에서 내보낸 CSV 텍스트 -> Snapshot 후보 레코드
- 행마다 결과를 남긴다 (채택 / 거절 + 사유 + 원본 행)
- DB, Supabase를 모른다 (중복 날짜 처리는 저장소 책임)

[CSV 형식]
    Date,Value,InvestmentChange,Notes
    2024-01-15,10000,5000,"Initial deposit"
    15/02/2024,10500,0,"Monthly update, with comma"
"""

from __future__ import annotations

import csv
import logging
import math
from dataclasses import dataclass
from typing import Iterable, List, Optional

import pandas as pd

from family_portfolio.backend.services.date_parser import parse_flexible_date
from family_portfolio.backend.services.models import Snapshot

logger = logging.getLogger(__name__)

HEADER_MARKER = "date"
EXPORT_HEADERS = ["Date", "Value", "Investment Change", "Notes"]


@dataclass(frozen=True)
class ImportRowResult:
    """
    CSV 1행의 처리 결과
    - record가 있으면 채택, 없으면 reason에 거절 사유
    - row_number는 입력 텍스트 기준 1부터 시작하는 물리적 행 번호
    """
    row_number: int
    raw_line: str
    record: Optional[Snapshot] = None
    reason: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.record is not None


@dataclass(frozen=True)
class ImportSummary:
    succeeded: int
    failed: int
    errors: List[str]


def _is_blank(line: str) -> bool:
    return not line.replace(",", "").strip()


def _split_fields(line: str) -> List[str]:
    """
    쉼표 구분 + 큰따옴표 묶음 처리
    - 따옴표 안의 쉼표는 구분자가 아님
    - 따옴표 안의 "" 는 " 한 글자
    """
    reader = csv.reader([line], skipinitialspace=True)
    fields = next(reader, [])
    return [f.strip() for f in fields]


def _to_number(raw: Optional[str]) -> float:
    """숫자 변환 실패는 0 (원본 스프레드시트 관례)"""
    if raw is None:
        return 0.0
    cleaned = str(raw).replace(",", "").strip()
    if not cleaned:
        return 0.0
    v = pd.to_numeric(cleaned, errors="coerce")
    if pd.isna(v) or not math.isfinite(float(v)):
        return 0.0
    return float(v)


def _parse_line(row_number: int, line: str) -> ImportRowResult:
    try:
        fields = _split_fields(line)
    except csv.Error as exc:
        return ImportRowResult(row_number, line, reason=f"unreadable row ({exc})")

    padded = fields + [""] * max(0, 3 - len(fields))
    date_str, value_str, change_str = padded[0], padded[1], padded[2]
    notes = ",".join(padded[3:])

    parsed_date = parse_flexible_date(date_str)
    if parsed_date is None:
        return ImportRowResult(row_number, line, reason=f"unreadable date '{date_str}'")

    value = _to_number(value_str)
    if value <= 0:
        return ImportRowResult(row_number, line, reason="value must be greater than zero")

    record = Snapshot(
        date=parsed_date,
        value=value,
        investment_change=_to_number(change_str),
        notes=notes,
    )
    return ImportRowResult(row_number, line, record=record)


def parse_snapshot_csv(raw_text: str) -> List[ImportRowResult]:
    """
    CSV 텍스트 전체를 행 단위 결과로 변환한다.

    - 첫 행에 'date'(대소문자 무시)가 있으면 헤더로 보고 건너뜀
    - 빈 행(쉼표 제거 후 내용 없음)은 결과에 포함하지 않음
    - 출력 순서 = 입력 순서
    """
    if not raw_text:
        return []

    lines = raw_text.splitlines()
    start = 1 if lines and HEADER_MARKER in lines[0].lower() else 0

    results: List[ImportRowResult] = []
    for idx in range(start, len(lines)):
        line = lines[idx]
        if _is_blank(line):
            continue
        result = _parse_line(idx + 1, line)
        if not result.accepted:
            logger.debug("csv row %s rejected: %s", result.row_number, result.reason)
        results.append(result)

    accepted = sum(1 for r in results if r.accepted)
    logger.info("csv parsed: accepted=%s rejected=%s", accepted, len(results) - accepted)
    return results


def accepted_snapshots(results: Iterable[ImportRowResult]) -> List[Snapshot]:
    return [r.record for r in results if r.record is not None]


def summarize_import(results: Iterable[ImportRowResult]) -> ImportSummary:
    succeeded = 0
    errors: List[str] = []
    for r in results:
        if r.accepted:
            succeeded += 1
        else:
            errors.append(f"Row {r.row_number}: {r.reason}")
    return ImportSummary(succeeded=succeeded, failed=len(errors), errors=errors)


def _format_number(v: float) -> str:
    v = float(v)
    if v.is_integer():
        return str(int(v))
    return repr(v)


def export_snapshots_csv(snapshots: Iterable[Snapshot]) -> str:
    """
    스냅샷 -> CSV 텍스트 (오래된 순)
    - notes는 항상 따옴표로 감싸고 내부 " 는 "" 로 이스케이프
    - parse_snapshot_csv로 다시 읽을 수 있는 형식
    """
    ordered = sorted(snapshots, key=lambda s: s.date)
    lines = [",".join(EXPORT_HEADERS)]
    for s in ordered:
        notes = (s.notes or "").replace('"', '""')
        lines.append(
            ",".join([
                s.date.isoformat(),
                _format_number(s.value),
                _format_number(s.investment_change or 0.0),
                f'"{notes}"',
            ])
        )
    return "\n".join(lines)
