"""
기간 필터 모듈
==============
기간 선택값(all / this_month / last_month / last_3_months / custom)을
양 끝을 포함하는 구체적 날짜 구간으로 변환.

사용법:
    interval = resolve_period(PeriodSelector.LAST_MONTH, datetime.now())
    if interval is None:
        ...  # 전체 기간
    elif interval.contains(record.created_at):
        ...

last_3_months 는 90일 롤링이 아니라 "이번 달 포함 달력 기준 3개월" 구간.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

# 월말 = 다음 달 1일 직전의 마지막 시각
ONE_INSTANT = timedelta(microseconds=1)


class PeriodSelector(str, Enum):
    """기간 선택값"""
    ALL = "all"
    THIS_MONTH = "this_month"
    LAST_MONTH = "last_month"
    LAST_3_MONTHS = "last_3_months"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, value) -> "PeriodSelector":
        """문자열 → PeriodSelector (알 수 없는 값은 ValueError)"""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"알 수 없는 기간: {value!r}") from None


@dataclass(frozen=True)
class DateInterval:
    """양 끝 포함 구간 (None 인 쪽은 무제한)"""
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @property
    def is_unbounded(self) -> bool:
        return self.start is None and self.end is None

    @property
    def is_inverted(self) -> bool:
        """start > end 인 잘못된 구간 여부 (검증은 하지 않고 판별만)"""
        return self.start is not None and self.end is not None and self.start > self.end

    def contains(self, ts: Optional[datetime]) -> bool:
        """구간 포함 여부 (타임스탬프 없는 레코드는 무제한 구간에만 포함)"""
        if ts is None:
            return self.is_unbounded
        if self.start is not None and ts < self.start:
            return False
        if self.end is not None and ts > self.end:
            return False
        return True


# ─── 달력 헬퍼 ───

def month_start(ts: datetime) -> datetime:
    """해당 월의 첫 시각"""
    return ts.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def shift_months(ts: datetime, months: int) -> datetime:
    """월 단위 이동 (결과는 해당 월 1일 00:00)"""
    index = ts.year * 12 + (ts.month - 1) + months
    year, month = divmod(index, 12)
    return month_start(ts).replace(year=year, month=month + 1)


def month_end(ts: datetime) -> datetime:
    """해당 월의 마지막 시각 (23:59:59.999999)"""
    return shift_months(ts, 1) - ONE_INSTANT


def resolve_period(
    selector,
    now: datetime,
    custom: Optional[DateInterval] = None,
) -> Optional[DateInterval]:
    """
    기간 선택값 → 날짜 구간

    Args:
        selector: PeriodSelector 또는 문자열
        now: 기준 시각 (테스트/재현을 위해 항상 외부에서 주입)
        custom: selector 가 custom 일 때 사용할 구간

    Returns:
        DateInterval, 전체 기간이면 None
    """
    selector = PeriodSelector.parse(selector)

    if selector == PeriodSelector.THIS_MONTH:
        return DateInterval(month_start(now), month_end(now))

    if selector == PeriodSelector.LAST_MONTH:
        last_month = shift_months(now, -1)
        return DateInterval(last_month, month_end(last_month))

    if selector == PeriodSelector.LAST_3_MONTHS:
        return DateInterval(shift_months(now, -2), month_end(now))

    if selector == PeriodSelector.CUSTOM:
        return custom

    return None
