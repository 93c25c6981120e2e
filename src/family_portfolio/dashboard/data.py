from typing import Dict, List, Optional

import streamlit as st

from family_portfolio.backend.infra.supabase_client import get_supabase_client
from family_portfolio.backend.services.models import Asset
from family_portfolio.backend.services.snapshot_service import SnapshotService


@st.cache_data(ttl=60)
def load_assets(owner_id: Optional[str] = None) -> List[Asset]:
    return SnapshotService.load_assets(owner_id)


@st.cache_data(ttl=3600)
def load_person_labels() -> Dict[str, str]:
    """
    owner_id → 이름 매핑용 lookup 로드
    """
    supabase = get_supabase_client()
    rows = supabase.table("persons").select("id, name").execute().data or []
    return {str(r["id"]): str(r["name"]) for r in rows}


@st.cache_data(ttl=3600)
def load_category_labels() -> Dict[str, str]:
    supabase = get_supabase_client()
    rows = supabase.table("categories").select("key, label").execute().data or []
    return {str(r["key"]): str(r["label"]) for r in rows}
