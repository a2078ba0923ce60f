"""
스트림별 수익 집계 모듈
=======================
편곡(arrangement) / 레슨(lesson) / 시퀀서(sequencer) 세 스트림을 각각 독립적으로
총액(gross) · 순수익(net) · 플랫폼 수수료(fee) 로 접어(fold) 올리고,
그룹별 요약 행을 만든다.

규칙:
    - 편곡: 수수료 0 → net = gross
    - 레슨: 건별 net 은 서버 집계값 사용, fee = gross - net
    - 시퀀서: fee = round_half_away(amount × (1 - 크리에이터 몫)), net = amount - fee
    - 반올림은 정수 통화 단위에서 0 에서 먼 쪽으로 (half away from zero)
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from creator_earnings.constants import (
    BENEFIT_SONG_PUBLISH,
    BENEFIT_LIBRARY_ADD,
    BENEFIT_DISCOUNT_CODE,
    DEFAULT_LESSON_BENEFIT_PERCENTAGE,
    DEFAULT_SEQUENCER_CREATOR_SHARE,
    PAYMENT_STATUS_PAID,
)
from creator_earnings.services.period_filter import DateInterval, month_start
from creator_earnings.services.records import (
    BenefitRecord,
    DiscountBenefitRecord,
    LessonSaleRecord,
    SequencerEnrollmentRecord,
)
from creator_earnings.utils.rounding import round_half_away

logger = logging.getLogger(__name__)


# ─── 반올림 / 분배 ───

def split_amount(gross: int, share_fraction: float) -> Tuple[int, int]:
    """
    총액을 크리에이터 몫/플랫폼 수수료로 분배

    Args:
        gross: 총액 (정수 통화 단위)
        share_fraction: 크리에이터 몫 (0.0 ~ 1.0)

    Returns:
        (net, fee), 항상 gross == net + fee
    """
    platform_fraction = Decimal(1) - Decimal(str(share_fraction))
    fee = round_half_away(Decimal(gross) * platform_fraction)
    return gross - fee, fee


# ─── 결과 타입 ───

class LessonGroupKey(str, Enum):
    """레슨 그룹핑 기준 (기본 title: 같은 제목의 서로 다른 레슨은 하나로 합쳐짐)"""
    TITLE = "title"
    ID = "id"


@dataclass
class EarningGroup:
    """그룹별(레슨/시퀀서 파일) 요약 행"""
    key: str
    title: str
    sale_count: int = 0
    gross_revenue: int = 0
    platform_fee: int = 0
    net_earnings: int = 0

    def add(self, gross: int, net: int):
        self.sale_count += 1
        self.gross_revenue += gross
        self.net_earnings += net
        self.platform_fee += gross - net


@dataclass
class ArrangementBreakdown:
    """편곡 수익 혜택 유형별 내역"""
    song_published: int = 0
    add_to_library: int = 0
    discount_code: int = 0


@dataclass
class ArrangementResult:
    """편곡 스트림 집계 결과"""
    gross: int = 0
    net: int = 0
    breakdown: ArrangementBreakdown = field(default_factory=ArrangementBreakdown)
    record_count: int = 0

    @property
    def fee(self) -> int:
        return self.gross - self.net


@dataclass
class SaleLine:
    """거래 내역 1행 (대시보드 Transaction History)"""
    key: str
    title: str
    buyer: str
    date: Optional[datetime]
    gross: int
    fee: int
    net: int


@dataclass
class StreamResult:
    """레슨/시퀀서 스트림 집계 결과"""
    gross: int = 0
    net: int = 0
    sale_count: int = 0
    groups: List[EarningGroup] = field(default_factory=list)
    transactions: List[SaleLine] = field(default_factory=list)
    benefit_percentage: int = DEFAULT_LESSON_BENEFIT_PERCENTAGE

    @property
    def fee(self) -> int:
        return self.gross - self.net


@dataclass
class DiscountEarnings:
    """할인 코드 캐시백 요약"""
    total_earnings: int = 0
    total_uses: int = 0
    monthly_earnings: int = 0
    entries: List[DiscountBenefitRecord] = field(default_factory=list)


_BREAKDOWN_FIELDS = {
    BENEFIT_SONG_PUBLISH: "song_published",
    BENEFIT_LIBRARY_ADD: "add_to_library",
    BENEFIT_DISCOUNT_CODE: "discount_code",
}


# ─── 편곡 ───

def aggregate_arrangement(creator_id: str, records: Iterable[BenefitRecord]) -> ArrangementResult:
    """
    편곡 로열티 집계

    기간 필터는 조회 쿼리에서 이미 적용됨 (여기서는 날짜를 보지 않음).
    알 수 없는 benefit_type 은 내역에서 빠지지만 gross 에는 포함.
    """
    result = ArrangementResult()
    for record in records:
        if record.creator_id and record.creator_id != creator_id:
            continue
        result.gross += record.amount
        result.record_count += 1
        attr = _BREAKDOWN_FIELDS.get(record.benefit_type)
        if attr:
            setattr(result.breakdown, attr, getattr(result.breakdown, attr) + record.amount)
        else:
            logger.debug(f"알 수 없는 혜택 유형 (내역 제외): {record.benefit_type!r}")
    # 편곡 곡은 플랫폼 수수료 없음
    result.net = result.gross
    return result


# ─── 공통 그룹핑 ───

def _fold_sales(lines: List[SaleLine]) -> StreamResult:
    result = StreamResult()
    groups: Dict[str, EarningGroup] = {}
    for line in lines:
        result.gross += line.gross
        result.net += line.net
        result.sale_count += 1
        group = groups.get(line.key)
        if group is None:
            group = groups[line.key] = EarningGroup(key=line.key, title=line.title)
        group.add(line.gross, line.net)
    result.groups = list(groups.values())
    result.transactions = lines
    return result


# ─── 레슨 ───

def aggregate_lessons(
    records: Iterable[LessonSaleRecord],
    interval: Optional[DateInterval] = None,
    group_key: LessonGroupKey = LessonGroupKey.TITLE,
) -> StreamResult:
    """
    레슨 판매 집계 (조회 후 클라이언트 측 기간 필터)

    Args:
        records: 크리에이터의 레슨 판매 레코드 (서버 집계 결과)
        interval: 기간 (None = 전체)
        group_key: 그룹핑 기준 (title / id)
    """
    group_key = LessonGroupKey(group_key)
    lines = []
    benefit_percentage = DEFAULT_LESSON_BENEFIT_PERCENTAGE
    for record in records:
        if interval is not None and not interval.contains(record.transaction_date):
            continue
        key = record.lesson_title if group_key == LessonGroupKey.TITLE else record.lesson_id
        lines.append(SaleLine(
            key=key,
            title=record.lesson_title,
            buyer=record.buyer_name,
            date=record.transaction_date,
            gross=record.total_amount,
            fee=record.total_amount - record.creator_net_amount,
            net=record.creator_net_amount,
        ))
        # 화면 표시용: 마지막 거래의 배분율
        benefit_percentage = record.benefit_percentage

    result = _fold_sales(lines)
    result.benefit_percentage = benefit_percentage
    return result


# ─── 시퀀서 ───

def aggregate_sequencer(
    creator_id: str,
    records: Iterable[SequencerEnrollmentRecord],
    interval: Optional[DateInterval] = None,
    creator_share: float = DEFAULT_SEQUENCER_CREATOR_SHARE,
) -> StreamResult:
    """
    시퀀서 판매 집계

    곡 소유자 == creator_id, 결제 상태 == paid, 결제 시각이 기간 내인 건만 포함.
    파일(sequencer_file_id) 단위로 그룹핑.
    """
    lines = []
    for record in records:
        if record.song_owner_id != creator_id or record.payment_status != PAYMENT_STATUS_PAID:
            continue
        if interval is not None and not interval.contains(record.effective_date):
            continue
        net, fee = split_amount(record.amount, creator_share)
        lines.append(SaleLine(
            key=record.sequencer_file_id,
            title=record.song_title,
            buyer=record.buyer_id or "",
            date=record.effective_date,
            gross=record.amount,
            fee=fee,
            net=net,
        ))

    result = _fold_sales(lines)
    result.benefit_percentage = round_half_away(Decimal(str(creator_share)) * 100)
    return result


# ─── 이번 달 누적 ───

def month_to_date_net(lines: Iterable[SaleLine], now: datetime) -> int:
    """이번 달 1일 00:00 이후 거래의 순수익 합계"""
    first_day = month_start(now)
    return sum(line.net for line in lines if line.date is not None and line.date >= first_day)


# ─── 할인 코드 ───

def aggregate_discount_benefits(
    records: Iterable[DiscountBenefitRecord],
    now: datetime,
) -> DiscountEarnings:
    """할인 코드 캐시백 총액/사용 횟수/이번 달 금액"""
    first_day = month_start(now)
    entries = list(records)
    earnings = DiscountEarnings(entries=sorted(
        entries,
        key=lambda r: r.created_at or datetime.min,
        reverse=True,
    ))
    for record in entries:
        earnings.total_earnings += record.creator_benefit_amount
        earnings.total_uses += 1
        if record.created_at is not None and record.created_at >= first_day:
            earnings.monthly_earnings += record.creator_benefit_amount
    return earnings
