"""
수익 요약 모듈
==============
세 스트림의 집계 결과를 합쳐 전체 총액/순수익/수수료와 이번 달 누적 금액을 만든다.

사용법:
    service = EarningsService(SqlRevenueSource())
    summary = service.get_summary("creator-uuid", PeriodSelector.THIS_MONTH)
    print(summary.total_net)

조회 실패한 스트림은 0 으로 처리하고 state.errors 에 기록 (전체 요약은 항상 생성).
"""
import itertools
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

import requests
from sqlalchemy.exc import SQLAlchemyError

from creator_earnings.api.supabase_client import SupabaseError
from creator_earnings.constants import (
    DEFAULT_SEQUENCER_CREATOR_SHARE,
    STREAM_ARRANGEMENT,
    STREAM_LESSON,
    STREAM_SEQUENCER,
)
from creator_earnings.services.aggregators import (
    ArrangementResult,
    DiscountEarnings,
    LessonGroupKey,
    StreamResult,
    aggregate_arrangement,
    aggregate_discount_benefits,
    aggregate_lessons,
    aggregate_sequencer,
    month_to_date_net,
)
from creator_earnings.services.period_filter import DateInterval, PeriodSelector, resolve_period
from creator_earnings.services.records import (
    BenefitRecord,
    LessonSaleRecord,
    SequencerEnrollmentRecord,
    local_now,
)

logger = logging.getLogger(__name__)

# 스트림 조회 실패로 간주하는 예외 (그 외 예외는 버그이므로 그대로 전파)
FETCH_ERRORS = (SQLAlchemyError, requests.RequestException, SupabaseError)


@dataclass
class DashboardQueryState:
    """요청 단위 조회 상태 (조회 조건 + 조회된 원본 레코드)"""
    creator_id: Optional[str]
    period: PeriodSelector = PeriodSelector.ALL
    custom_range: Optional[DateInterval] = None
    now: datetime = field(default_factory=local_now)
    request_seq: int = 0
    benefit_records: List[BenefitRecord] = field(default_factory=list)
    lesson_records: List[LessonSaleRecord] = field(default_factory=list)
    sequencer_records: List[SequencerEnrollmentRecord] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def interval(self) -> Optional[DateInterval]:
        return resolve_period(self.period, self.now, self.custom_range)


@dataclass
class RevenueSummary:
    """대시보드 수익 요약 (저장하지 않음, 요청마다 새로 계산)"""
    arrangement: ArrangementResult = field(default_factory=ArrangementResult)
    lesson: StreamResult = field(default_factory=StreamResult)
    sequencer: StreamResult = field(default_factory=StreamResult)
    total_gross: int = 0
    total_net: int = 0
    lesson_month_to_date_net: int = 0
    sequencer_month_to_date_net: int = 0
    period: PeriodSelector = PeriodSelector.ALL
    interval: Optional[DateInterval] = None
    errors: Dict[str, str] = field(default_factory=dict)
    request_seq: int = 0

    @property
    def total_fee(self) -> int:
        return self.total_gross - self.total_net

    @classmethod
    def empty(cls) -> "RevenueSummary":
        """0 요약 (크리에이터 미지정 등)"""
        return cls()

    def stream(self, name: str):
        """스트림명 → 집계 결과"""
        streams = {
            STREAM_ARRANGEMENT: self.arrangement,
            STREAM_LESSON: self.lesson,
            STREAM_SEQUENCER: self.sequencer,
        }
        if name not in streams:
            raise KeyError(f"알 수 없는 스트림: {name}")
        return streams[name]

    def to_dict(self) -> Dict:
        """API 응답용 직렬화"""
        return {
            "period": self.period.value,
            "interval": {
                "from": self.interval.start if self.interval else None,
                "to": self.interval.end if self.interval else None,
            },
            "arrangement": {
                "gross": self.arrangement.gross,
                "net": self.arrangement.net,
                "fee": self.arrangement.fee,
                "breakdown": {
                    "song_published": self.arrangement.breakdown.song_published,
                    "add_to_library": self.arrangement.breakdown.add_to_library,
                    "discount_code": self.arrangement.breakdown.discount_code,
                },
            },
            STREAM_LESSON: _stream_dict(self.lesson, self.lesson_month_to_date_net),
            STREAM_SEQUENCER: _stream_dict(self.sequencer, self.sequencer_month_to_date_net),
            "total_gross": self.total_gross,
            "total_net": self.total_net,
            "total_fee": self.total_fee,
            "errors": dict(self.errors),
        }


def _stream_dict(result: StreamResult, month_to_date: int) -> Dict:
    return {
        "gross": result.gross,
        "net": result.net,
        "fee": result.fee,
        "sale_count": result.sale_count,
        "benefit_percentage": result.benefit_percentage,
        "month_to_date_net": month_to_date,
        "groups": [
            {
                "key": g.key,
                "title": g.title,
                "sale_count": g.sale_count,
                "gross_revenue": g.gross_revenue,
                "platform_fee": g.platform_fee,
                "net_earnings": g.net_earnings,
            }
            for g in result.groups
        ],
    }


def compute_summary(
    state: DashboardQueryState,
    creator_share: float = DEFAULT_SEQUENCER_CREATOR_SHARE,
    group_key: LessonGroupKey = LessonGroupKey.TITLE,
) -> RevenueSummary:
    """
    조회 상태 → 수익 요약 (순수 함수)

    이번 달 누적(month-to-date)은 사용자가 고른 기간과 무관하게
    조회된 전체 레코드에서 이번 달 1일 이후 건만 합산.
    """
    interval = state.interval

    arrangement = aggregate_arrangement(state.creator_id, state.benefit_records)
    lesson = aggregate_lessons(state.lesson_records, interval, group_key)
    sequencer = aggregate_sequencer(state.creator_id, state.sequencer_records, interval, creator_share)

    # 기간 필터 없는 전체 거래 기준 이번 달 누적
    lesson_all = lesson if interval is None else aggregate_lessons(state.lesson_records, None, group_key)
    sequencer_all = sequencer if interval is None else aggregate_sequencer(
        state.creator_id, state.sequencer_records, None, creator_share)

    return RevenueSummary(
        arrangement=arrangement,
        lesson=lesson,
        sequencer=sequencer,
        total_gross=arrangement.gross + lesson.gross + sequencer.gross,
        total_net=arrangement.net + lesson.net + sequencer.net,
        lesson_month_to_date_net=month_to_date_net(lesson_all.transactions, state.now),
        sequencer_month_to_date_net=month_to_date_net(sequencer_all.transactions, state.now),
        period=state.period,
        interval=interval,
        errors=dict(state.errors),
        request_seq=state.request_seq,
    )


class RequestSequencer:
    """
    요청 순번 가드

    기간 필터를 빠르게 바꿀 때 늦게 도착한 이전 응답이 최신 결과를 덮어쓰지 않도록
    가장 최근에 발급한 순번의 응답만 반영.
    """

    def __init__(self):
        self._counter = itertools.count(1)
        self._latest = 0
        self.current: Optional[RevenueSummary] = None

    def next(self) -> int:
        """새 요청 순번 발급"""
        self._latest = next(self._counter)
        return self._latest

    @property
    def latest(self) -> int:
        return self._latest

    def is_latest(self, seq: int) -> bool:
        return seq == self._latest

    def apply(self, seq: int, summary: RevenueSummary) -> bool:
        """
        응답 반영

        Returns:
            반영 여부 (이전 요청의 응답이면 False)
        """
        if not self.is_latest(seq):
            logger.warning(f"이전 요청 응답 폐기: seq={seq}, latest={self._latest}")
            return False
        self.current = summary
        return True

    def resolve(self, seq: int, summary: RevenueSummary) -> RevenueSummary:
        """응답 반영 후 화면에 표시할 요약 (폐기된 응답이면 마지막 반영분, 없으면 받은 응답)"""
        if self.apply(seq, summary):
            return summary
        return self.current or summary


class EarningsService:
    """
    크리에이터 수익 조회 서비스

    세 스트림을 각각 조회 → 집계 → 요약. 스트림 간 의존성 없음.
    """

    def __init__(
        self,
        source,
        creator_share: float = DEFAULT_SEQUENCER_CREATOR_SHARE,
        group_key: LessonGroupKey = LessonGroupKey.TITLE,
    ):
        """
        Args:
            source: 수익 레코드 소스 (SqlRevenueSource / SupabaseRevenueSource)
            creator_share: 시퀀서 크리에이터 몫
            group_key: 레슨 그룹핑 기준
        """
        self.source = source
        self.creator_share = creator_share
        self.group_key = LessonGroupKey(group_key)

    def _fetch(self, stream: str, state: DashboardQueryState, func, *args, **kwargs) -> list:
        """스트림 조회 (실패 시 빈 리스트 + 오류 기록)"""
        try:
            return list(func(*args, **kwargs))
        except FETCH_ERRORS as e:
            logger.exception(f"[{stream}] 수익 조회 실패: creator={state.creator_id}")
            state.errors[stream] = str(e)[:500]
            return []

    def load_state(
        self,
        creator_id: str,
        period=PeriodSelector.ALL,
        custom_range: Optional[DateInterval] = None,
        now: Optional[datetime] = None,
        request_seq: int = 0,
    ) -> DashboardQueryState:
        """세 스트림 원본 레코드 조회"""
        state = DashboardQueryState(
            creator_id=creator_id,
            period=PeriodSelector.parse(period),
            custom_range=custom_range,
            now=now or local_now(),
            request_seq=request_seq,
        )
        interval = state.interval

        # 편곡: 기간 조건을 쿼리에 포함
        state.benefit_records = self._fetch(
            STREAM_ARRANGEMENT, state, self.source.list_benefit_records,
            creator_id, is_production=True,
            date_from=interval.start if interval else None,
            date_to=interval.end if interval else None,
        )
        # 레슨/시퀀서: 전체 조회 후 집계 단계에서 기간 필터
        state.lesson_records = self._fetch(
            STREAM_LESSON, state, self.source.get_lesson_earnings_breakdown, creator_id,
        )
        state.sequencer_records = self._fetch(
            STREAM_SEQUENCER, state, self.source.list_sequencer_enrollments, is_production=True,
        )

        logger.debug(
            f"수익 레코드 조회 완료: creator={creator_id}, "
            f"편곡 {len(state.benefit_records)}건, 레슨 {len(state.lesson_records)}건, "
            f"시퀀서 {len(state.sequencer_records)}건"
        )
        return state

    def get_summary(
        self,
        creator_id: Optional[str],
        period=PeriodSelector.ALL,
        custom_range: Optional[DateInterval] = None,
        now: Optional[datetime] = None,
        request_seq: int = 0,
    ) -> RevenueSummary:
        """수익 요약 (크리에이터 미지정 시 조회 없이 0 요약)"""
        if not creator_id or not str(creator_id).strip():
            logger.info("크리에이터 미지정, 빈 요약 반환")
            return RevenueSummary.empty()

        state = self.load_state(creator_id, period, custom_range, now, request_seq)
        return compute_summary(state, self.creator_share, self.group_key)

    def get_discount_earnings(self, creator_id: Optional[str], now: Optional[datetime] = None) -> DiscountEarnings:
        """할인 코드 캐시백 요약"""
        if not creator_id:
            return DiscountEarnings()
        now = now or local_now()
        try:
            records = self.source.list_discount_benefits(creator_id, is_production=True)
        except FETCH_ERRORS:
            logger.exception(f"할인 코드 수익 조회 실패: creator={creator_id}")
            records = []
        return aggregate_discount_benefits(records, now)
