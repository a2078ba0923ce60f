"""
수익 페이지
===========
편곡 / Music Lab / 시퀀서 세 스트림 수익 카드 + 전체 요약 + 그룹별 테이블 + CSV 다운로드.

전체 요약의 기간은 사용자가 선택하고, '이번 달' 카드는 항상 현재 달 기준.
"""

import logging
from datetime import datetime

import plotly.graph_objects as go
import streamlit as st

from creator_earnings.config import settings
from creator_earnings.constants import CSV_MIME_TYPE, STREAM_LESSON, STREAM_SEQUENCER
from creator_earnings.dashboard_utils import (
    get_earnings_service,
    get_request_sequencer,
    render_grid,
    render_kpi_row,
)
from creator_earnings.services.period_filter import DateInterval, PeriodSelector
from creator_earnings.utils.formatters import (
    csv_filename,
    export_csv,
    format_currency,
    format_percentage,
    groups_to_dataframe,
    transactions_to_dataframe,
)
from creator_earnings.utils.validators import validate_date_range

logger = logging.getLogger(__name__)

PERIOD_LABELS = {
    PeriodSelector.ALL: "All Time",
    PeriodSelector.THIS_MONTH: "This Month",
    PeriodSelector.LAST_MONTH: "Last Month",
    PeriodSelector.LAST_3_MONTHS: "Last 3 Months",
    PeriodSelector.CUSTOM: "Custom Range",
}


def _money(amount):
    return format_currency(amount, settings.currency_symbol)


# ─── 헬퍼 ───

def _period_controls():
    """기간 선택 → (selector, custom_range)"""
    c1, c2 = st.columns([2, 3])
    with c1:
        period = st.selectbox(
            "Revenue Period",
            list(PERIOD_LABELS.keys()),
            format_func=lambda p: PERIOD_LABELS[p],
            key="earnings_period",
        )
    custom = None
    if period == PeriodSelector.CUSTOM:
        with c2:
            picked = st.date_input("Pick date range", value=(), key="earnings_range")
        if picked:
            start = picked[0]
            end = picked[1] if len(picked) > 1 else None
            custom = DateInterval(
                start=datetime.combine(start, datetime.min.time()),
                end=datetime.combine(end, datetime.max.time()) if end else None,
            )
            error = validate_date_range(custom)
            if error:
                logger.warning(f"{error.message}: {error.value}")
    return period, custom


def _stream_chart(summary):
    """스트림별 총액/순수익 막대 차트"""
    labels = ["Arrangement Songs", "Music Lab", "Sequencer"]
    gross = [summary.arrangement.gross, summary.lesson.gross, summary.sequencer.gross]
    net = [summary.arrangement.net, summary.lesson.net, summary.sequencer.net]

    fig = go.Figure()
    fig.add_trace(go.Bar(x=labels, y=gross, name="Gross Revenue", marker_color="rgba(99, 110, 250, 0.5)"))
    fig.add_trace(go.Bar(x=labels, y=net, name="Net Earnings", marker_color="rgba(0, 204, 150, 0.8)"))
    fig.update_layout(barmode="group", height=320, margin=dict(l=10, r=10, t=30, b=10))
    return fig


def _render_group_table(summary, stream: str, title: str):
    """그룹별 수익 테이블 + CSV 다운로드 + 거래 내역"""
    result = summary.stream(stream)
    st.subheader(title)

    if not result.groups:
        st.info("No sales yet.")
        return

    render_kpi_row([
        ("Net Earnings", _money(result.net)),
        ("Platform Fee", f"-{_money(result.fee)}"),
        ("Total Sales", f"{result.sale_count:,}"),
        ("Your Share", format_percentage(result.benefit_percentage)),
    ])

    df = groups_to_dataframe(result.groups, stream)
    st.dataframe(df, hide_index=True, width="stretch")

    st.download_button(
        "Export CSV",
        data=export_csv(result.groups, stream, quote_fields=settings.csv_quote_fields),
        file_name=csv_filename(stream, datetime.now()),
        mime=CSV_MIME_TYPE,
        key=f"csv_{stream}",
    )

    if st.toggle("Show Transaction History", key=f"tx_{stream}"):
        render_grid(transactions_to_dataframe(result.transactions, settings.currency_symbol),
                    key=f"grid_{stream}", height=320)


# ─── 메인 렌더 ───

def render(creator_id: str):
    """수익 페이지 렌더링"""

    st.title("Earnings")

    if not creator_id:
        st.info("Please select a specific creator to view their revenue data")
        return

    period, custom = _period_controls()

    sequencer_guard = get_request_sequencer()
    seq = sequencer_guard.next()
    service = get_earnings_service()
    try:
        summary = service.get_summary(creator_id, period, custom, request_seq=seq)
    finally:
        close = getattr(service.source, "close", None)
        if close:
            close()

    summary = sequencer_guard.resolve(seq, summary)

    for stream in summary.errors:
        st.error("Failed to load earnings")
        st.caption(f"{stream}: {summary.errors[stream]}")

    # ── 스트림 카드 ──
    c1, c2, c3 = st.columns(3)
    with c1:
        st.markdown("**🎵 Arrangement Songs**")
        st.caption("Benefits from: Song Published, Add to Library, Discount Code Cashback")
        bd = summary.arrangement.breakdown
        st.write(f"Song Published: {_money(bd.song_published)}")
        st.write(f"Add to Library: {_money(bd.add_to_library)}")
        st.write(f"Discount Code: {_money(bd.discount_code)}")
        st.write(f"Gross Revenue: {_money(summary.arrangement.gross)}")
        st.write(f"Platform Fee: {_money(0)}")
        st.metric("Net Earnings", _money(summary.arrangement.net))
    with c2:
        st.markdown("**🎓 Music Lab**")
        st.write(f"Gross Revenue: {_money(summary.lesson.gross)}")
        st.write(f"Platform Fee: -{_money(summary.lesson.fee)}")
        st.metric("Net Earnings", _money(summary.lesson.net))
    with c3:
        st.markdown("**🎹 Sequencer**")
        st.write(f"Gross Revenue: {_money(summary.sequencer.gross)}")
        st.write(f"Platform Fee: -{_money(summary.sequencer.fee)}")
        st.metric("Net Earnings", _money(summary.sequencer.net))

    st.divider()

    # ── 전체 요약 ──
    st.subheader("Total Revenue Summary")
    render_kpi_row([
        ("Total Gross Revenue", _money(summary.total_gross)),
        ("Total Platform Fee", f"-{_money(summary.total_fee)}"),
        ("Total Net Earnings", _money(summary.total_net)),
        ("Music Lab This Month", _money(summary.lesson_month_to_date_net)),
        ("Sequencer This Month", _money(summary.sequencer_month_to_date_net)),
    ])
    st.plotly_chart(_stream_chart(summary), width="stretch")

    st.divider()

    tab1, tab2 = st.tabs(["🎓 Music Lab", "🎹 Sequencer"])
    with tab1:
        _render_group_table(summary, STREAM_LESSON, "Earnings by Lesson")
    with tab2:
        _render_group_table(summary, STREAM_SEQUENCER, "Earnings by Song")
