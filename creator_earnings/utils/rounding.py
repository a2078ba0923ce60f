"""정수 통화 단위 반올림"""
from decimal import Decimal, ROUND_HALF_UP


def round_half_away(value) -> int:
    """정수 단위 반올림 (0.5 는 0 에서 먼 쪽으로)"""
    # Decimal 의 ROUND_HALF_UP 은 부호와 무관하게 절댓값 기준 반올림
    return int(Decimal(str(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))
