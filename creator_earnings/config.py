"""애플리케이션 설정"""
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """환경변수 기반 설정"""

    # Database
    database_url: str = "sqlite:///./creator_earnings.db"

    # Supabase PostgreSQL (배포용)
    supabase_database_url: Optional[str] = None
    supabase_url: Optional[str] = None
    supabase_service_key: Optional[str] = None

    # 리포트 기준 시간대 (DB 타임스탬프를 이 시간대의 로컬 시각으로 변환)
    report_timezone: str = "Asia/Jakarta"

    # 수익 정산
    currency_symbol: str = "Rp"
    sequencer_creator_share: float = 0.70  # 시퀀서 크리에이터 몫 (70%)
    default_lesson_benefit_percentage: int = 70
    lesson_group_key: str = "title"  # title / id
    csv_quote_fields: bool = False  # True면 표준 CSV 인용 처리

    # API
    request_timeout: int = 30

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = False


# 전역 설정 인스턴스
settings = Settings()
