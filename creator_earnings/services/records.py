"""
수익 레코드 모듈
================
DB/Supabase 에서 읽어 온 원본 행을 불변 dataclass 로 변환.

- 숫자 필드의 null 은 0 으로 보정
- 타임스탬프는 ISO 문자열('Z' 포함) / datetime 모두 허용
- 시간대가 있는 값은 report_timezone 기준 로컬 시각(naive)으로 통일
- DB 컬럼의 naive 값은 UTC 로 간주 (모델 기본값이 utcnow)
"""
import logging
from dataclasses import dataclass
from datetime import datetime, date, timezone
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo

from creator_earnings.config import settings
from creator_earnings.constants import DEFAULT_LESSON_BENEFIT_PERCENTAGE, UNKNOWN_TITLE
from creator_earnings.utils.rounding import round_half_away

logger = logging.getLogger(__name__)


# ─── 보정 헬퍼 ───

def coalesce_int(value: Any) -> int:
    """null/빈 값 → 0, 그 외 정수 변환"""
    if value is None or value == "":
        return 0
    try:
        return round_half_away(value)
    except (TypeError, ValueError, ArithmeticError):
        logger.warning(f"숫자 변환 실패, 0으로 처리: {value!r}")
        return 0


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    타임스탬프 파싱

    Args:
        value: datetime / date / ISO 문자열 / None

    Returns:
        report_timezone 기준 naive datetime (파싱 불가 시 None)
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        ts = value
    elif isinstance(value, date):
        ts = datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            ts = datetime.fromisoformat(text)
        except ValueError:
            logger.warning(f"타임스탬프 파싱 실패: {value!r}")
            return None
    return to_local_naive(ts)


def to_local_naive(ts: datetime) -> datetime:
    """시간대가 있는 datetime → report_timezone 로컬 시각 (tzinfo 제거)"""
    if ts.tzinfo is None:
        return ts
    return ts.astimezone(ZoneInfo(settings.report_timezone)).replace(tzinfo=None)


def local_now() -> datetime:
    """report_timezone 기준 현재 로컬 시각 (naive)"""
    return datetime.now(ZoneInfo(settings.report_timezone)).replace(tzinfo=None)


def from_db_timestamp(ts: Optional[datetime]) -> Optional[datetime]:
    """DB 타임스탬프 → 로컬 시각. naive 값은 UTC 로 간주"""
    if ts is None:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return to_local_naive(ts)


def to_db_timestamp(local: Optional[datetime]) -> Optional[datetime]:
    """로컬 시각 → DB 비교용 naive UTC"""
    if local is None:
        return None
    if local.tzinfo is None:
        local = local.replace(tzinfo=ZoneInfo(settings.report_timezone))
    return local.astimezone(timezone.utc).replace(tzinfo=None)


# ─── 레코드 ───

@dataclass(frozen=True)
class BenefitRecord:
    """편곡 로열티 원장 1건"""
    creator_id: str
    amount: int
    benefit_type: str
    created_at: Optional[datetime] = None
    is_production: bool = True

    @classmethod
    def from_row(cls, row: Dict) -> "BenefitRecord":
        return cls(
            creator_id=str(row.get("creator_id") or ""),
            amount=coalesce_int(row.get("amount")),
            benefit_type=row.get("benefit_type") or "",
            created_at=parse_timestamp(row.get("created_at")),
            is_production=bool(row.get("is_production", True)),
        )


@dataclass(frozen=True)
class LessonSaleRecord:
    """레슨 판매 1건 (서버 측 집계 쿼리 결과 행)"""
    lesson_id: str
    lesson_title: str
    transaction_date: Optional[datetime]
    buyer_name: str
    total_amount: int
    benefit_percentage: int
    creator_net_amount: int
    platform_fee_amount: int
    status: str = "paid"

    @classmethod
    def from_row(cls, row: Dict) -> "LessonSaleRecord":
        pct = row.get("benefit_percentage")
        return cls(
            lesson_id=str(row.get("lesson_id") or ""),
            lesson_title=row.get("lesson_title") or UNKNOWN_TITLE,
            transaction_date=parse_timestamp(row.get("transaction_date")),
            buyer_name=row.get("buyer_name") or "",
            total_amount=coalesce_int(row.get("total_amount")),
            benefit_percentage=DEFAULT_LESSON_BENEFIT_PERCENTAGE if pct is None else coalesce_int(pct),
            creator_net_amount=coalesce_int(row.get("creator_net_amount")),
            platform_fee_amount=coalesce_int(row.get("platform_fee_amount")),
            status=row.get("status") or "",
        )


@dataclass(frozen=True)
class SequencerEnrollmentRecord:
    """시퀀서 구매 1건 (결제 + 곡 소유자 조인 결과)"""
    enrollment_id: str
    sequencer_file_id: str
    song_title: str
    song_owner_id: Optional[str]
    buyer_id: Optional[str]
    amount: int
    paid_at: Optional[datetime]
    enrolled_at: Optional[datetime]
    payment_status: Optional[str]

    @property
    def effective_date(self) -> Optional[datetime]:
        """기간 필터 기준 시각 (결제 시각 없으면 등록 시각)"""
        return self.paid_at or self.enrolled_at

    @classmethod
    def from_row(cls, row: Dict) -> "SequencerEnrollmentRecord":
        return cls(
            enrollment_id=str(row.get("enrollment_id") or row.get("id") or ""),
            sequencer_file_id=str(row.get("sequencer_file_id") or ""),
            song_title=row.get("song_title") or UNKNOWN_TITLE,
            song_owner_id=row.get("song_owner_id"),
            buyer_id=row.get("buyer_id"),
            amount=coalesce_int(row.get("amount")),
            paid_at=parse_timestamp(row.get("paid_at")),
            enrolled_at=parse_timestamp(row.get("enrolled_at")),
            payment_status=row.get("payment_status"),
        )


@dataclass(frozen=True)
class DiscountBenefitRecord:
    """할인 코드 캐시백 1건"""
    id: str
    code: str
    original_amount: int
    discount_amount: int
    creator_benefit_amount: int
    created_at: Optional[datetime]

    @classmethod
    def from_row(cls, row: Dict) -> "DiscountBenefitRecord":
        return cls(
            id=str(row.get("id") or ""),
            code=row.get("code") or "",
            original_amount=coalesce_int(row.get("original_amount")),
            discount_amount=coalesce_int(row.get("discount_amount")),
            creator_benefit_amount=coalesce_int(row.get("creator_benefit_amount")),
            created_at=parse_timestamp(row.get("created_at")),
        )
