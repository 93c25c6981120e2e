# src/family_portfolio/dashboard/app.py
import streamlit as st

from family_portfolio.dashboard.data import (
    load_assets,
    load_category_labels,
    load_person_labels,
)
from family_portfolio.dashboard.render import (
    render_asset_heatmap_section,
    render_csv_import_section,
    render_history_section,
    render_owner_selector,
    render_portfolio_summary_section,
    render_total_worth_section,
)

st.set_page_config(
    page_title="Family Portfolio Dashboard",
    layout="wide"
)

st.title("📊 가족 자산 대시보드")

person_labels = load_person_labels()
category_labels = load_category_labels()

owner_id = render_owner_selector(person_labels)

# 전체 대비 비교를 위해 자산은 항상 전체 로드
assets = load_assets()
visible_assets = [a for a in assets if owner_id is None or a.owner_id == owner_id]

tab1, tab2 = st.tabs(["Dashboard", "Asset Detail"])

with tab1:
    render_portfolio_summary_section(assets, owner_id, person_labels, category_labels)
    st.divider()
    render_total_worth_section(visible_assets)

with tab2:
    if not visible_assets:
        st.info("선택한 구성원의 자산이 없습니다.")
        st.stop()

    labels = {a.id: f"{a.name} ({person_labels.get(a.owner_id, a.owner_id)})" for a in visible_assets}
    selected_id = st.selectbox("자산 선택", list(labels.keys()), format_func=labels.get)
    asset = next(a for a in visible_assets if a.id == selected_id)

    render_asset_heatmap_section(asset)
    st.divider()
    render_history_section(asset)
    st.divider()
    render_csv_import_section(asset)
