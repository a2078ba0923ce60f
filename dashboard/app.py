"""크리에이터 수익 대시보드 - 메인 페이지

실행: streamlit run dashboard/app.py
"""
import logging
import sys
from pathlib import Path

import streamlit as st

# 프로젝트 루트 추가
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv
load_dotenv(Path(__file__).parent.parent / ".env")

from creator_earnings.config import settings
from creator_earnings.pages import earnings

logging.basicConfig(
    level=settings.log_level,
    format='[%(asctime)s] %(levelname)s [%(name)s] %(message)s',
)

st.set_page_config(
    page_title="크리에이터 수익 대시보드",
    page_icon="💰",
    layout="wide"
)

# ─── 사이드바 ───
with st.sidebar:
    st.header("Creator")
    creator_id = st.text_input(
        "Creator ID",
        value=st.query_params.get("creator", ""),
        placeholder="creator uuid",
    ).strip()
    st.caption(f"통화: {settings.currency_symbol} · 기준 시간대: {settings.report_timezone}")

earnings.render(creator_id)
