from typing import Any, List, Optional

from family_portfolio.backend.infra.supabase_client import (
    get_assets_table,
    get_history_table,
    get_supabase_client,
)


ALL_OWNERS_TOKEN = "__ALL__"


def get_assets(owner_id: Optional[str] = None) -> List[dict]:
    """자산 목록을 불러옵니다. owner_id가 "__ALL__"이거나 없으면 전체."""
    supabase = get_supabase_client()
    q = supabase.table(get_assets_table()).select("*").order("name")
    if owner_id and owner_id != ALL_OWNERS_TOKEN:
        q = q.eq("owner_id", owner_id)
    return q.execute().data or []


def build_history_query(
    select_cols: str = "id, asset_id, date, value, investment_change, notes",
    asset_ids: Optional[List[str]] = None,
):
    """
    asset_history 공통 쿼리 빌더
    - execute()는 여기서 하지 않는다(호출자가 마지막에 execute)
    """
    supabase = get_supabase_client()

    q = (
        supabase.table(get_history_table())
        .select(select_cols)
        .order("date")
    )

    if asset_ids is not None:
        q = q.in_("asset_id", asset_ids)

    return q


def get_asset_history(asset_ids: Optional[List[str]] = None) -> List[dict]:
    return fetch_all_pagination(build_history_query(asset_ids=asset_ids))


def fetch_all_pagination(query_builder: Any, batch_size: int = 1000) -> List[dict]:
    """
    Supabase 1000행 제한을 우회하기 위한 페이지네이션 헬퍼.
    query_builder는 .select()까지 완료된 상태여야 함.
    """
    all_rows = []
    start = 0
    while True:
        # .range(start, end)는 inclusive index
        end = start + batch_size - 1
        response = query_builder.range(start, end).execute()
        rows = response.data or []

        all_rows.extend(rows)

        if len(rows) < batch_size:
            break

        start += batch_size

    return all_rows
