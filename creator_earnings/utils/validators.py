"""
입력 검증 모듈
==============
출금 요청, 사용자 지정 기간 검증

사용법:
    validator = WithdrawalValidator()
    errors = validator.validate(request, available=350000)
    if errors:
        print(f"검증 실패: {errors}")
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, List, Optional

from creator_earnings.constants import MIN_WITHDRAWAL, WITHDRAWAL_BANKS, WITHDRAWAL_METHODS
from creator_earnings.utils.formatters import format_currency
from creator_earnings.utils.rounding import round_half_away

logger = logging.getLogger(__name__)


@dataclass
class ValidationError:
    """검증 오류"""
    field: str
    message: str
    value: Any = None


class WithdrawalValidator:
    """
    출금 요청 검증기

    금액 범위(최소 Rp 50.000 ~ 출금 가능액), 출금 수단, 계좌 정보 검증
    """

    MIN_AMOUNT = MIN_WITHDRAWAL

    def validate_amount(self, amount: Any, available: int) -> Optional[ValidationError]:
        """
        출금 금액 검증

        Args:
            amount: 요청 금액
            available: 출금 가능 금액 (순수익 잔액)

        Returns:
            ValidationError 또는 None (유효한 경우)
        """
        if isinstance(amount, int) and not isinstance(amount, bool):
            value = amount
        elif isinstance(amount, (float, Decimal)):
            try:
                value = round_half_away(amount)
            except (ArithmeticError, ValueError):
                return ValidationError("amount", "금액이 숫자가 아닙니다", amount)
        else:
            # 'Rp100.000' 같은 표시 문자열 허용
            digits = "".join(ch for ch in str(amount) if ch.isdigit())
            if not digits:
                return ValidationError("amount", "금액이 숫자가 아닙니다", amount)
            value = int(digits)

        if value < self.MIN_AMOUNT:
            return ValidationError("amount", f"최소 출금액은 {format_currency(self.MIN_AMOUNT)} 입니다", value)
        if value > available:
            return ValidationError("amount", "출금 가능 금액을 초과했습니다", value)
        return None

    def validate_method(self, method: str) -> Optional[ValidationError]:
        """출금 수단 검증"""
        if method not in WITHDRAWAL_METHODS:
            return ValidationError("method", f"지원하지 않는 출금 수단: {method}", method)
        return None

    def validate(self, request, available: int) -> List[ValidationError]:
        """
        출금 요청 전체 검증

        Args:
            request: amount / method / account_name / account_number / bank_name 속성을 가진 객체
            available: 출금 가능 금액

        Returns:
            오류 리스트 (빈 리스트면 유효)
        """
        errors = []

        error = self.validate_amount(request.amount, available)
        if error:
            errors.append(error)

        error = self.validate_method(request.method)
        if error:
            errors.append(error)

        if not (request.account_name or "").strip():
            errors.append(ValidationError("account_name", "예금주명이 비어 있습니다"))
        if not (request.account_number or "").strip():
            errors.append(ValidationError("account_number", "계좌/전화번호가 비어 있습니다"))
        if request.method == "bank":
            if not (request.bank_name or "").strip():
                errors.append(ValidationError("bank_name", "은행을 선택하세요"))
            elif request.bank_name not in WITHDRAWAL_BANKS:
                errors.append(ValidationError("bank_name", f"지원하지 않는 은행: {request.bank_name}", request.bank_name))

        if errors:
            logger.info(f"출금 요청 검증 실패: {[e.field for e in errors]}")
        return errors


def validate_date_range(interval) -> Optional[ValidationError]:
    """사용자 지정 기간 검증 (시작 > 종료 이면 오류)"""
    if interval is not None and interval.is_inverted:
        return ValidationError(
            "date_range",
            "시작일이 종료일보다 늦습니다",
            (interval.start, interval.end),
        )
    return None
