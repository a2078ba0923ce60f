"""
대시보드 공통 유틸리티
=====================
수익 서비스 생성, 요청 순번 가드, KPI 카드/그리드 등 모든 페이지에서 공유하는 함수.
"""
import streamlit as st
import pandas as pd
from st_aggrid import AgGrid, GridOptionsBuilder

from creator_earnings.config import settings
from creator_earnings.services.revenue_source import create_revenue_source
from creator_earnings.services.summary import EarningsService, RequestSequencer


# ─── 서비스 ───

def get_earnings_service() -> EarningsService:
    """수익 조회 서비스 (렌더마다 생성, 사용 후 service.source.close())"""
    return EarningsService(
        create_revenue_source(settings),
        creator_share=settings.sequencer_creator_share,
        group_key=settings.lesson_group_key,
    )


def get_request_sequencer(key: str = "earnings_seq") -> RequestSequencer:
    """화면(세션)별 요청 순번 가드"""
    if key not in st.session_state:
        st.session_state[key] = RequestSequencer()
    return st.session_state[key]


# ─── AgGrid 래퍼 ───

def render_grid(df: pd.DataFrame, key: str, height: int = 450,
                page_size: int = 20, wide_cols: dict = None):
    """AgGrid 표준 래퍼 (일관된 설정)"""
    gb = GridOptionsBuilder.from_dataframe(df)
    gb.configure_pagination(paginationAutoPageSize=False, paginationPageSize=page_size)
    gb.configure_default_column(resizable=True, sorteable=True, filterable=True)
    if wide_cols:
        for col, width in wide_cols.items():
            gb.configure_column(col, width=width)
    grid_opts = gb.build()
    return AgGrid(df, gridOptions=grid_opts, height=height, theme="streamlit", key=key)


# ─── KPI 카드 ───

def render_kpi_row(metrics: list):
    """
    KPI 카드 행 렌더링.
    metrics: [(label, value, delta?, delta_color?), ...]
    """
    cols = st.columns(len(metrics))
    for col, item in zip(cols, metrics):
        label, value = item[0], item[1]
        delta = item[2] if len(item) > 2 else None
        delta_color = item[3] if len(item) > 3 else "normal"
        col.metric(label, value, delta=delta, delta_color=delta_color)
