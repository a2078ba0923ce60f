"""FastAPI 메인 애플리케이션"""
import logging
from datetime import date, datetime, time
from typing import Optional

import requests
from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel
from sqlalchemy.orm import Session

from creator_earnings.api.supabase_client import SupabaseClient, SupabaseError
from creator_earnings.config import settings
from creator_earnings.constants import CSV_MIME_TYPE, EXPORTABLE_STREAMS
from creator_earnings.database import get_db
from creator_earnings.services.period_filter import DateInterval, PeriodSelector
from creator_earnings.services.revenue_source import create_revenue_source
from creator_earnings.services.summary import EarningsService
from creator_earnings.services.withdrawal import WithdrawalRequest, WithdrawalService
from creator_earnings.utils.formatters import csv_filename, export_csv
from creator_earnings.utils.validators import validate_date_range

# 로깅 설정
logging.basicConfig(
    level=settings.log_level,
    format='[%(asctime)s] %(levelname)s [%(name)s] %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)

logger = logging.getLogger(__name__)

# FastAPI 앱 생성
app = FastAPI(
    title="크리에이터 수익 대시보드",
    description="편곡 로열티 + Music Lab + 시퀀서 수익 집계/내보내기",
    version="0.1.0"
)

# CORS 설정
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ─── 의존성 ───

def get_earnings_service(db: Session = Depends(get_db)) -> EarningsService:
    """수익 조회 서비스 (요청마다 생성, DB 세션은 get_db 가 요청 종료 시 정리)"""
    return EarningsService(
        create_revenue_source(settings, db_session=db),
        creator_share=settings.sequencer_creator_share,
        group_key=settings.lesson_group_key,
    )


def get_withdrawal_service() -> WithdrawalService:
    """출금 서비스 (Supabase 미설정 시 503)"""
    try:
        client = SupabaseClient.from_settings(settings)
    except ValueError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return WithdrawalService(client)


def _custom_range(date_from: Optional[date], date_to: Optional[date]) -> Optional[DateInterval]:
    """날짜 파라미터 → 구간 (종료일은 그날의 마지막 시각까지)"""
    if date_from is None and date_to is None:
        return None
    interval = DateInterval(
        start=datetime.combine(date_from, time.min) if date_from else None,
        end=datetime.combine(date_to, time.max) if date_to else None,
    )
    error = validate_date_range(interval)
    if error:
        logger.warning(f"{error.message}: {error.value}")
    return interval


def _parse_period(period: str) -> PeriodSelector:
    try:
        return PeriodSelector.parse(period)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


# ─── 엔드포인트 ───

@app.on_event("startup")
async def startup_event():
    """앱 시작 시 실행"""
    logger.info("애플리케이션 시작")


@app.get("/")
async def root():
    """루트 엔드포인트"""
    return {
        "message": "크리에이터 수익 대시보드",
        "version": "0.1.0",
        "docs": "/docs"
    }


@app.get("/health")
async def health_check():
    """헬스 체크"""
    return {"status": "healthy"}


@app.get("/creators/{creator_id}/earnings")
def get_earnings(
    creator_id: str,
    period: str = Query("all"),
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    service: EarningsService = Depends(get_earnings_service),
):
    """기간별 수익 요약"""
    selector = _parse_period(period)
    summary = service.get_summary(creator_id, selector, _custom_range(date_from, date_to))
    return JSONResponse(jsonable_encoder(summary.to_dict()))


@app.get("/creators/{creator_id}/earnings/{stream}.csv")
def export_earnings_csv(
    creator_id: str,
    stream: str,
    period: str = Query("all"),
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    service: EarningsService = Depends(get_earnings_service),
):
    """레슨/시퀀서 그룹 요약 CSV 다운로드"""
    if stream not in EXPORTABLE_STREAMS:
        raise HTTPException(status_code=404, detail=f"CSV 내보내기 미지원 스트림: {stream}")
    selector = _parse_period(period)
    summary = service.get_summary(creator_id, selector, _custom_range(date_from, date_to))

    body = export_csv(summary.stream(stream).groups, stream, quote_fields=settings.csv_quote_fields)
    filename = csv_filename(stream, datetime.now())
    return Response(
        content=body,
        media_type=CSV_MIME_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.get("/creators/{creator_id}/discount-earnings")
def get_discount_earnings(
    creator_id: str,
    service: EarningsService = Depends(get_earnings_service),
):
    """할인 코드 캐시백 요약"""
    earnings = service.get_discount_earnings(creator_id)
    return JSONResponse(jsonable_encoder({
        "total_earnings": earnings.total_earnings,
        "total_uses": earnings.total_uses,
        "monthly_earnings": earnings.monthly_earnings,
        "entries": earnings.entries,
    }))


class WithdrawalIn(BaseModel):
    """출금 요청 바디"""
    amount: int
    method: str
    account_name: str = ""
    account_number: str = ""
    bank_name: Optional[str] = None
    notes: Optional[str] = None


@app.post("/creators/{creator_id}/withdrawals")
def request_withdrawal(
    creator_id: str,
    payload: WithdrawalIn,
    service: EarningsService = Depends(get_earnings_service),
    withdrawals: WithdrawalService = Depends(get_withdrawal_service),
):
    """출금 요청 (출금 가능액 = 전체 기간 순수익)"""
    available = service.get_summary(creator_id).total_net
    request = WithdrawalRequest(**payload.model_dump())
    try:
        quote, errors = withdrawals.submit(creator_id, request, available)
    except (SupabaseError, requests.RequestException) as e:
        logger.error(f"출금 요청 전송 실패: {e}")
        raise HTTPException(status_code=502, detail="출금 요청 전송에 실패했습니다")

    if errors:
        raise HTTPException(status_code=422, detail=jsonable_encoder(errors))
    return jsonable_encoder(quote)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "creator_earnings.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
