from typing import Dict, List, Optional

import altair as alt
import pandas as pd
import streamlit as st

from family_portfolio.backend.services.csv_snapshot_importer import (
    export_snapshots_csv,
    parse_snapshot_csv,
    summarize_import,
)
from family_portfolio.backend.services.data_contracts import (
    allocation_to_df,
    heatmap_to_df,
    year_totals_to_df,
)
from family_portfolio.backend.services.heatmap_calculator import build_heatmap
from family_portfolio.backend.services.market_gain import enrich_snapshot_history
from family_portfolio.backend.services.models import Asset
from family_portfolio.backend.services.portfolio_aggregator import (
    calculate_total_worth_series,
    compare_filtered,
    owned_by,
)
from family_portfolio.backend.services.return_statistics import summarize_heatmap
from family_portfolio.backend.services.snapshot_service import SnapshotService

MONTH_LABELS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def render_owner_selector(person_labels: Dict[str, str]) -> Optional[str]:
    options = ["__ALL__"] + list(person_labels.keys())
    selected = st.sidebar.selectbox(
        "가족 구성원",
        options,
        format_func=lambda k: "전체" if k == "__ALL__" else person_labels.get(k, k),
    )
    return None if selected == "__ALL__" else selected


def render_portfolio_summary_section(
    assets: List[Asset],
    owner_id: Optional[str],
    person_labels: Dict[str, str],
    category_labels: Dict[str, str],
):
    st.subheader("💰 포트폴리오 요약")

    if not assets:
        st.info("등록된 자산이 없습니다.")
        return

    predicate = owned_by(owner_id) if owner_id else (lambda a: True)
    stats, total = compare_filtered(assets, predicate)

    # =========================
    # 1) KPI 카드
    # =========================
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("평가금액", f"{stats.total_value:,.0f}")
    c2.metric("투자원금", f"{stats.total_invested:,.0f}")
    c3.metric("평가손익", f"{stats.total_gain:,.0f}", delta=f"{stats.gain_percentage:.2f}%")
    share = (stats.total_value / total.total_value * 100) if total.total_value > 0 else 0.0
    c4.metric("가족 전체 대비", f"{share:.1f}%")

    # =========================
    # 2) 자산 배분 (카테고리 / 소유자)
    # =========================
    left, right = st.columns(2)
    with left:
        _render_allocation_chart("카테고리별", allocation_to_df(stats.by_category, category_labels))
    with right:
        _render_allocation_chart("소유자별", allocation_to_df(total.by_owner, person_labels))


def _render_allocation_chart(title: str, df: pd.DataFrame):
    st.markdown(f"#### {title}")
    if df.empty:
        st.caption("표시할 데이터가 없습니다.")
        return

    chart = (
        alt.Chart(df)
        .mark_arc(innerRadius=50)
        .encode(
            theta=alt.Theta("value:Q"),
            color=alt.Color("label:N", title=None),
            tooltip=[
                alt.Tooltip("label:N", title="구분"),
                alt.Tooltip("value:Q", title="평가금액", format=",.0f"),
                alt.Tooltip("weight:Q", title="비중", format=".1%"),
            ],
        )
        .properties(height=280)
    )
    st.altair_chart(chart, use_container_width=True)


def render_total_worth_section(assets: List[Asset]):
    st.subheader("📈 총자산 추이")

    df = calculate_total_worth_series(assets)
    if df.empty:
        st.info("스냅샷 데이터가 없습니다.")
        return

    chart_df = df.copy()
    chart_df["date"] = pd.to_datetime(chart_df["date"])
    st.line_chart(chart_df.set_index("date")[["total_value", "total_invested"]], height=320)

    with st.expander("📄 원본 데이터 확인"):
        st.dataframe(df)

    st.caption("※ 수익률은 원금 납입/인출을 제외한 시장 수익 기준 (TWR)")


def render_asset_heatmap_section(asset: Asset):
    st.subheader(f"🗓️ 월별 수익률 - {asset.name}")

    rows = build_heatmap(asset)
    if not rows:
        st.info("스냅샷이 없습니다.")
        return

    # =========================
    # 1) 변동성 / 최고 / 최악의 달
    # =========================
    stats = summarize_heatmap(rows)
    latest = rows[0]
    c1, c2, c3, c4 = st.columns(4)
    c1.metric(f"{latest.year} 수익률", f"{latest.total_return:+.1f}%")
    c2.metric("변동성", f"{stats.volatility:.1f}%")
    c3.metric("최고의 달", f"{stats.best_month:+.1f}%")
    c4.metric("최악의 달", f"{stats.worst_month:+.1f}%")

    # =========================
    # 2) heatmap (gap 월은 회색)
    # =========================
    df = heatmap_to_df(rows)
    df["month_label"] = df["month"].map(lambda m: MONTH_LABELS[m - 1])
    df["year_label"] = df["year"].astype(str)

    base = alt.Chart(df).encode(
        x=alt.X("month_label:O", sort=MONTH_LABELS, title=None),
        y=alt.Y("year_label:O", sort="descending", title=None),
    )
    rect = base.mark_rect().encode(
        color=alt.condition(
            "datum.exists",
            alt.Color(
                "change_percent:Q",
                scale=alt.Scale(scheme="redyellowgreen", domainMid=0),
                title="%",
            ),
            alt.value("#e5e7eb"),
        ),
        tooltip=[
            alt.Tooltip("month_key:N", title="월"),
            alt.Tooltip("previous_value:Q", title="시작 평가액", format=",.0f"),
            alt.Tooltip("value:Q", title="종료 평가액", format=",.0f"),
            alt.Tooltip("change_value:Q", title="변동", format=",.0f"),
            alt.Tooltip("change_percent:Q", title="수익률(%)", format="+.1f"),
        ],
    )
    text = base.mark_text(fontSize=11).encode(
        text=alt.condition("datum.exists", alt.Text("change_percent:Q", format="+.1f"), alt.value("")),
    )
    st.altair_chart((rect + text).properties(height=40 * len(rows) + 40), use_container_width=True)

    with st.expander("📄 연도별 합계"):
        st.dataframe(year_totals_to_df(rows), width="stretch")


def render_history_section(asset: Asset):
    st.subheader("🧾 스냅샷 이력")

    history_df = enrich_snapshot_history(asset.value_history)
    if history_df.empty:
        st.info("스냅샷이 없습니다.")
        return

    st.dataframe(
        history_df.rename(
            columns={
                "date": "날짜",
                "value": "평가액",
                "investment_change": "원금 증감",
                "notes": "메모",
                "cum_invested": "누적 원금",
                "period_gl": "기간 손익",
                "period_gl_percent": "기간 수익률(%)",
                "cum_gl": "누적 손익",
                "roi": "ROI(%)",
            }
        ),
        width="stretch",
    )

    st.download_button(
        "CSV 내보내기",
        data=export_snapshots_csv(asset.value_history),
        file_name=f"{asset.name}.csv",
        mime="text/csv",
    )


def render_csv_import_section(asset: Asset):
    st.subheader("📥 스냅샷 CSV 가져오기")
    st.caption("형식: Date,Value,InvestmentChange,Notes (날짜는 YYYY-MM-DD 또는 DD/MM/YYYY)")

    uploaded_file = st.file_uploader("CSV 파일 업로드", type=["csv"], key=f"csv_{asset.id}")
    if not uploaded_file:
        return

    raw_text = uploaded_file.getvalue().decode("utf-8-sig")
    results = parse_snapshot_csv(raw_text)
    preview = summarize_import(results)

    if not results:
        st.error("업로드한 파일에 데이터가 없습니다.")
        return

    st.markdown("### ✅ 업로드 데이터 미리보기")
    st.dataframe(
        pd.DataFrame(
            [
                {
                    "행": r.row_number,
                    "날짜": r.record.date.isoformat() if r.record else None,
                    "평가액": r.record.value if r.record else None,
                    "원금 증감": r.record.investment_change if r.record else None,
                    "메모": r.record.notes if r.record else None,
                    "오류": r.reason,
                }
                for r in results
            ]
        ),
        width="stretch",
    )

    if preview.failed:
        st.warning(f"{preview.failed}개 행은 읽을 수 없어 제외됩니다.")

    if preview.succeeded and st.button("업로드 실행"):
        summary = SnapshotService.import_snapshots(asset.id, raw_text)
        st.success(f"총 {summary.succeeded}건이 등록되었습니다.")
        if summary.errors:
            st.dataframe(pd.DataFrame({"오류": summary.errors}))
        st.cache_data.clear()
