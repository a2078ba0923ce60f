"""데이터베이스 연결 및 세션 관리

로컬 SQLite / Supabase PostgreSQL 자동 분기:
  - DATABASE_URL에 postgresql:// 이 있으면 Supabase 사용
  - Streamlit secrets에 supabase 설정이 있으면 Supabase 사용
  - 없으면 로컬 SQLite 사용
"""
import os
import logging
from pathlib import Path
from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from creator_earnings.constants import TIMEOUT_CONFIG

_logger = logging.getLogger(__name__)

ROOT = Path(__file__).resolve().parent.parent


# ─── URL 결정 ───

def _resolve_database_url() -> str:
    """DATABASE_URL 결정: 환경변수 → Streamlit secrets → 설정 → 로컬 SQLite 순"""

    # 1) 환경변수
    url = os.environ.get("DATABASE_URL")
    if url:
        return url

    # 2) Streamlit secrets (Streamlit Cloud 배포 시)
    try:
        import streamlit as st
        supabase_url = st.secrets.get("supabase", {}).get("database_url")
        if supabase_url:
            return supabase_url
    except Exception:
        _logger.debug("Streamlit secrets 없음, 다음 설정으로 진행")

    # 3) config.py 설정
    from creator_earnings.config import settings
    if settings.supabase_database_url:
        return settings.supabase_database_url
    if settings.database_url and not _is_local_sqlite(settings.database_url):
        return settings.database_url

    # 4) 기본 로컬 SQLite
    db_path = ROOT / "creator_earnings.db"
    return f"sqlite:///{db_path}"


def _is_local_sqlite(url: str) -> bool:
    """로컬 SQLite 여부 판별"""
    return url.startswith("sqlite:///")


def _is_postgresql(url: str) -> bool:
    """PostgreSQL 여부 판별"""
    return url.startswith(("postgresql://", "postgres://"))


def _create_engine_for_url(url: str):
    """URL에 따라 적절한 엔진 생성"""
    if _is_local_sqlite(url):
        eng = create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": TIMEOUT_CONFIG["db_connect"]},
            echo=False,
            pool_pre_ping=True,
        )

        # SQLite WAL 모드 + busy_timeout
        @event.listens_for(eng, "connect")
        def _set_sqlite_pragma(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute(f"PRAGMA busy_timeout={TIMEOUT_CONFIG['db_busy']}")
            try:
                cursor.execute("PRAGMA journal_mode=WAL")
            except Exception:
                _logger.debug("WAL 모드 전환 실패 (DB 잠금), 기존 journal 모드 유지")
            cursor.close()
        return eng

    # Supabase PostgreSQL
    _logger.info("Supabase PostgreSQL 엔진으로 연결합니다.")
    return create_engine(
        url,
        echo=False,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
    )


def get_engine_for_db(db_path: str = None):
    """스크립트/테스트용 엔진 헬퍼

    - db_path가 None이면 전역 URL 로직 사용
    - db_path가 URL이면 해당 URL로 엔진 생성
    - db_path가 경로면 로컬 SQLite 엔진 생성
    """
    if db_path is None:
        return _create_engine_for_url(_resolve_database_url())
    if db_path.startswith(("sqlite://", "postgresql://", "postgres://")):
        return _create_engine_for_url(db_path)
    return _create_engine_for_url(f"sqlite:///{db_path}")


# ─── 모듈 레벨 전역 엔진 ───

_database_url = _resolve_database_url()
engine = _create_engine_for_url(_database_url)
_logger.info("DB 엔진 생성: %s", "Supabase PostgreSQL" if _is_postgresql(_database_url) else "로컬 SQLite")

# 세션 팩토리
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# 베이스 클래스
Base = declarative_base()


def get_db():
    """데이터베이스 세션 의존성"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    """데이터베이스 초기화 (테이블 생성)"""
    import creator_earnings.models  # noqa: F401  모델 등록
    Base.metadata.create_all(bind=bind or engine)
