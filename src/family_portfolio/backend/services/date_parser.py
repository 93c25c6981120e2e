"""
date_parser.py

[역할]
- CSV/사용자 입력의 자유 형식 날짜 문자열을 date로 정규화
- 실패 시 예외 대신 None 반환 (호출자가 행 단위로 거절 사유를 남긴다)

[지원 형식] (시도 순서)
1) 연-월-일: 2024-01-15, 2024/01/15, 2024.1.5
   - 시각이 붙어도 됨: 2024-01-15T10:00:00Z, 2024-01-15 10:00:00+09:00
   - 날짜는 적힌 그대로 사용 (시간대 변환 없음)
2) 일-월-년: DD/MM/YYYY, DD-MM-YYYY (일-월-년 우선)
   - 일-월-년으로 불가능하고 두 번째 숫자가 12보다 크면 MM/DD/YYYY로 해석
   - 두 숫자가 모두 12 이하인 모호한 입력은 항상 일-월-년
- 뒤에 다른 문자가 붙은 입력은 읽지 않는다
"""

from __future__ import annotations

import re
from datetime import date
from typing import Optional

import pandas as pd

_YEAR_MONTH_DAY = re.compile(
    r"^(\d{4})[/.-](\d{1,2})[/.-](\d{1,2})"
    r"(?:[T ](\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?)(?:Z|[+-]\d{2}(?::?\d{2})?)?)?$"
)
_DAY_MONTH_YEAR = re.compile(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{4})$")


def _from_year_first(s: str) -> Optional[date]:
    match = _YEAR_MONTH_DAY.match(s)
    if not match:
        return None

    year, month, day = (int(g) for g in match.groups()[:3])
    normalized = f"{year:04d}-{month:02d}-{day:02d}"
    if match.group(4):
        normalized = f"{normalized}T{match.group(4)}"

    # 2024-02-30, 25:00 같은 값은 NaT
    ts = pd.to_datetime(normalized, format="ISO8601", errors="coerce")
    if pd.isna(ts):
        return None
    return ts.date()


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_flexible_date(text) -> Optional[date]:
    if not isinstance(text, str) or not text.strip():
        return None

    cleaned = text.strip()

    parsed = _from_year_first(cleaned)
    if parsed is not None:
        return parsed

    match = _DAY_MONTH_YEAR.match(cleaned)
    if not match:
        return None

    first, second, year = (int(g) for g in match.groups())

    parsed = _safe_date(year, second, first)
    if parsed is not None:
        return parsed

    # 미국식(MM/DD/YYYY)은 일-월-년 해석이 불가능할 때만
    if second > 12:
        return _safe_date(year, first, second)

    return None
