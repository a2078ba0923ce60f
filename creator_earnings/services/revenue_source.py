"""
수익 레코드 소스 모듈
=====================
세 스트림의 원본 레코드를 읽어 오는 조회 계약과 두 가지 구현.

    - SqlRevenueSource: SQLAlchemy 세션 (로컬 SQLite / Supabase PostgreSQL 직결)
    - SupabaseRevenueSource: Supabase REST(PostgREST) API

두 구현 모두 같은 메서드를 제공:
    list_benefit_records(creator_id, is_production=True, date_from=None, date_to=None)
    get_lesson_earnings_breakdown(creator_id)
    list_sequencer_enrollments(is_production=True)
    list_discount_benefits(creator_id, is_production=True)

편곡만 기간 조건을 쿼리에 포함하고, 레슨/시퀀서는 호출 측에서 기간 필터를 적용.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional
from zoneinfo import ZoneInfo

from creator_earnings.constants import (
    DEFAULT_BUYER_NAME,
    DEFAULT_LESSON_BENEFIT_PERCENTAGE,
    LESSON_BENEFIT_CONFIG_TYPE,
    LESSON_EARNINGS_RPC,
    PAYMENT_STATUS_PAID,
    UNKNOWN_TITLE,
)
from creator_earnings.services.aggregators import split_amount
from creator_earnings.services.records import (
    BenefitRecord,
    DiscountBenefitRecord,
    LessonSaleRecord,
    SequencerEnrollmentRecord,
    from_db_timestamp,
    to_db_timestamp,
)

logger = logging.getLogger(__name__)


def lesson_sale_from_payment(
    lesson_id: str,
    lesson_title: str,
    transaction_date: Optional[datetime],
    buyer_name: Optional[str],
    amount: int,
    benefit_percentage: int,
    status: str,
) -> LessonSaleRecord:
    """레슨 결제 1건 → 판매 레코드 (배분율로 순수익/수수료 분리)"""
    net, fee = split_amount(amount or 0, benefit_percentage / 100)
    return LessonSaleRecord(
        lesson_id=lesson_id,
        lesson_title=lesson_title or UNKNOWN_TITLE,
        transaction_date=transaction_date,
        buyer_name=buyer_name or DEFAULT_BUYER_NAME,
        total_amount=amount or 0,
        benefit_percentage=benefit_percentage,
        creator_net_amount=net,
        platform_fee_amount=fee,
        status=status,
    )


# ─── SQLAlchemy ───

class SqlRevenueSource:
    """
    DB 직결 수익 레코드 소스

    DB 의 naive 타임스탬프는 UTC 로 저장된 값으로 보고 report_timezone 로컬 시각으로 변환해 반환.
    기간 조건(로컬 시각)은 UTC 로 바꿔 쿼리에 넣는다.

    레슨 집계는 호스팅 RPC 와 같은 방식:
    결제 완료 건 + 거래 시점을 포함하는 creator_benefit_configs(lesson) 배분율 (없으면 70%)
    """

    def __init__(self, db_session=None, default_lesson_percentage: int = DEFAULT_LESSON_BENEFIT_PERCENTAGE):
        """
        Args:
            db_session: SQLAlchemy 세션 (없으면 자동 생성)
            default_lesson_percentage: 배분율 설정이 없을 때 크리에이터 몫(%)
        """
        if db_session is None:
            from creator_earnings.database import SessionLocal
            db_session = SessionLocal()
            self._own_session = True
        else:
            self._own_session = False
        self.db = db_session
        self.default_lesson_percentage = default_lesson_percentage

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        if self._own_session:
            self.db.close()

    def list_benefit_records(
        self,
        creator_id: str,
        is_production: bool = True,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> List[BenefitRecord]:
        """편곡 로열티 원장 (기간 조건 쿼리 포함)"""
        from creator_earnings.models import CreatorBenefit

        query = self.db.query(CreatorBenefit).filter(
            CreatorBenefit.creator_id == creator_id,
            CreatorBenefit.is_production == is_production,
        )
        if date_from is not None:
            query = query.filter(CreatorBenefit.created_at >= to_db_timestamp(date_from))
        if date_to is not None:
            query = query.filter(CreatorBenefit.created_at <= to_db_timestamp(date_to))

        return [
            BenefitRecord(
                creator_id=b.creator_id,
                amount=b.amount or 0,
                benefit_type=b.benefit_type or "",
                created_at=from_db_timestamp(b.created_at),
                is_production=b.is_production,
            )
            for b in query.all()
        ]

    def _lesson_percentage(self, configs: list, when: Optional[datetime]) -> int:
        """거래 시점을 포함하는 최신 배분율 설정"""
        for config in configs:
            if config.covers(when):
                return config.benefit_percentage
        return self.default_lesson_percentage

    def get_lesson_earnings_breakdown(self, creator_id: str) -> List[LessonSaleRecord]:
        """레슨 판매 내역 (결제 완료 건, 거래일 최신순)"""
        from creator_earnings.models import CreatorBenefitConfig, Lesson, LessonPayment

        configs = (
            self.db.query(CreatorBenefitConfig)
            .filter(
                CreatorBenefitConfig.creator_id == creator_id,
                CreatorBenefitConfig.benefit_type == LESSON_BENEFIT_CONFIG_TYPE,
                CreatorBenefitConfig.is_production.is_(True),
            )
            .order_by(CreatorBenefitConfig.created_at.desc())
            .all()
        )

        rows = (
            self.db.query(LessonPayment, Lesson)
            .join(Lesson, LessonPayment.lesson_id == Lesson.id)
            .filter(
                Lesson.creator_id == creator_id,
                LessonPayment.status == PAYMENT_STATUS_PAID,
                LessonPayment.is_production.is_(True),
            )
            .order_by(LessonPayment.paid_at.desc())
            .all()
        )

        records = []
        for payment, lesson in rows:
            when = payment.paid_at or payment.created_at
            records.append(lesson_sale_from_payment(
                lesson_id=lesson.id,
                lesson_title=lesson.title,
                transaction_date=from_db_timestamp(when),
                buyer_name=payment.buyer_name,
                amount=payment.amount or 0,
                benefit_percentage=self._lesson_percentage(configs, when),
                status=payment.status,
            ))
        return records

    def list_sequencer_enrollments(self, is_production: bool = True) -> List[SequencerEnrollmentRecord]:
        """시퀀서 구매 전체 (결제 + 곡 소유자 조인, 크리에이터/상태/기간 필터는 호출 측)"""
        from creator_earnings.models import Payment, SequencerEnrollment, SequencerFile, Song

        rows = (
            self.db.query(SequencerEnrollment, Payment, Song)
            .outerjoin(Payment, SequencerEnrollment.payment_id == Payment.id)
            .outerjoin(SequencerFile, SequencerEnrollment.sequencer_file_id == SequencerFile.id)
            .outerjoin(Song, SequencerFile.song_id == Song.id)
            .filter(SequencerEnrollment.is_production == is_production)
            .all()
        )

        return [
            SequencerEnrollmentRecord(
                enrollment_id=enrollment.id,
                sequencer_file_id=enrollment.sequencer_file_id,
                song_title=(song.title if song else None) or UNKNOWN_TITLE,
                song_owner_id=song.user_id if song else None,
                buyer_id=enrollment.user_id,
                amount=(payment.amount if payment else 0) or 0,
                paid_at=from_db_timestamp(payment.paid_at) if payment else None,
                enrolled_at=from_db_timestamp(enrollment.enrolled_at),
                payment_status=payment.status if payment else None,
            )
            for enrollment, payment, song in rows
        ]

    def list_discount_benefits(self, creator_id: str, is_production: bool = True) -> List[DiscountBenefitRecord]:
        """할인 코드 캐시백 내역 (최신순)"""
        from creator_earnings.models import CreatorDiscountBenefit, DiscountCode

        rows = (
            self.db.query(CreatorDiscountBenefit, DiscountCode)
            .join(DiscountCode, CreatorDiscountBenefit.discount_code_id == DiscountCode.id)
            .filter(
                CreatorDiscountBenefit.creator_id == creator_id,
                CreatorDiscountBenefit.is_production == is_production,
            )
            .order_by(CreatorDiscountBenefit.created_at.desc())
            .all()
        )
        return [
            DiscountBenefitRecord(
                id=benefit.id,
                code=code.code,
                original_amount=benefit.original_amount or 0,
                discount_amount=benefit.discount_amount or 0,
                creator_benefit_amount=benefit.creator_benefit_amount or 0,
                created_at=from_db_timestamp(benefit.created_at),
            )
            for benefit, code in rows
        ]


# ─── Supabase REST ───

class SupabaseRevenueSource:
    """Supabase REST API 수익 레코드 소스"""

    SEQUENCER_SELECT = (
        "id,sequencer_file_id,user_id,enrolled_at,"
        "payment:payments!sequencer_enrollments_payment_id_fkey(amount,status,paid_at),"
        "sequencer_file:sequencer_files!sequencer_enrollments_sequencer_file_id_fkey("
        "id,song:songs!sequencer_files_song_id_fkey(id,title,artist,user_id))"
    )
    DISCOUNT_SELECT = (
        "id,original_amount,discount_amount,creator_benefit_amount,created_at,"
        "discount_codes!inner(code)"
    )

    def __init__(self, client, timezone: str = "Asia/Jakarta"):
        """
        Args:
            client: SupabaseClient
            timezone: 기간 경계(naive 로컬 시각)에 붙일 시간대
        """
        self.client = client
        self.timezone = timezone

    def _iso(self, ts: datetime) -> str:
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=ZoneInfo(self.timezone))
        return ts.isoformat()

    @staticmethod
    def _bool(value: bool) -> str:
        return "true" if value else "false"

    def list_benefit_records(
        self,
        creator_id: str,
        is_production: bool = True,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> List[BenefitRecord]:
        filters = [
            ("creator_id", f"eq.{creator_id}"),
            ("is_production", f"eq.{self._bool(is_production)}"),
        ]
        if date_from is not None:
            filters.append(("created_at", f"gte.{self._iso(date_from)}"))
        if date_to is not None:
            filters.append(("created_at", f"lte.{self._iso(date_to)}"))

        rows = self.client.select("creator_benefits", "creator_id,amount,benefit_type,created_at", filters)
        return [BenefitRecord.from_row({"creator_id": creator_id, **row}) for row in rows]

    def get_lesson_earnings_breakdown(self, creator_id: str) -> List[LessonSaleRecord]:
        rows = self.client.rpc(LESSON_EARNINGS_RPC, {"target_creator_id": creator_id}) or []
        return [LessonSaleRecord.from_row(row) for row in rows]

    def list_sequencer_enrollments(self, is_production: bool = True) -> List[SequencerEnrollmentRecord]:
        rows = self.client.select(
            "sequencer_enrollments",
            self.SEQUENCER_SELECT,
            [("is_production", f"eq.{self._bool(is_production)}")],
        )
        return [SequencerEnrollmentRecord.from_row(_flatten_enrollment(row)) for row in rows]

    def list_discount_benefits(self, creator_id: str, is_production: bool = True) -> List[DiscountBenefitRecord]:
        rows = self.client.select(
            "creator_discount_benefits",
            self.DISCOUNT_SELECT,
            [("creator_id", f"eq.{creator_id}"), ("is_production", f"eq.{self._bool(is_production)}")],
            order="created_at.desc",
        )
        return [
            DiscountBenefitRecord.from_row({**row, "code": (row.get("discount_codes") or {}).get("code")})
            for row in rows
        ]


def _flatten_enrollment(row: Dict) -> Dict:
    """임베디드 조인 응답(payment / sequencer_file.song) → 평탄화"""
    payment = row.get("payment") or {}
    song = (row.get("sequencer_file") or {}).get("song") or {}
    return {
        "enrollment_id": row.get("id"),
        "sequencer_file_id": row.get("sequencer_file_id"),
        "song_title": song.get("title"),
        "song_owner_id": song.get("user_id"),
        "buyer_id": row.get("user_id"),
        "amount": payment.get("amount"),
        "paid_at": payment.get("paid_at"),
        "enrolled_at": row.get("enrolled_at"),
        "payment_status": payment.get("status"),
    }


def create_revenue_source(settings, db_session=None):
    """설정에 따라 소스 선택 (Supabase URL/키가 있으면 REST, 없으면 DB 직결)

    db_session 을 넘기면 DB 직결 소스가 그 세션을 사용 (정리는 호출 측 책임)
    """
    if settings.supabase_url and settings.supabase_service_key:
        from creator_earnings.api.supabase_client import SupabaseClient
        logger.info("Supabase REST 수익 소스 사용")
        return SupabaseRevenueSource(SupabaseClient.from_settings(settings), timezone=settings.report_timezone)
    logger.info("DB 직결 수익 소스 사용")
    return SqlRevenueSource(db_session, default_lesson_percentage=settings.default_lesson_benefit_percentage)
