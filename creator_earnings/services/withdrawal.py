"""
출금 요청 모듈
==============
출금 수수료 계산 + 검증 + 서버리스 함수(send-withdrawal-request) 호출

사용법:
    service = WithdrawalService(supabase_client)
    quote, errors = service.submit("creator-uuid", request, available=350000)
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from creator_earnings.constants import WITHDRAWAL_FUNCTION, WITHDRAWAL_METHODS
from creator_earnings.utils.validators import ValidationError, WithdrawalValidator

logger = logging.getLogger(__name__)


@dataclass
class WithdrawalRequest:
    """출금 요청 입력"""
    amount: int
    method: str
    account_name: str = ""
    account_number: str = ""
    bank_name: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class WithdrawalQuote:
    """출금 금액/수수료/실수령액"""
    amount: int
    fee: int
    net: int
    method: str


def withdrawal_fee(method: str) -> int:
    """출금 수단별 고정 수수료 (알 수 없는 수단은 0)"""
    info = WITHDRAWAL_METHODS.get(method)
    return info["fee"] if info else 0


def quote_withdrawal(amount: int, method: str) -> WithdrawalQuote:
    """출금 견적"""
    fee = withdrawal_fee(method)
    return WithdrawalQuote(amount=amount, fee=fee, net=amount - fee, method=method)


class WithdrawalService:
    """출금 요청 처리"""

    def __init__(self, client, validator: Optional[WithdrawalValidator] = None):
        """
        Args:
            client: SupabaseClient (invoke_function 제공)
            validator: 출금 검증기
        """
        self.client = client
        self.validator = validator or WithdrawalValidator()

    def submit(
        self,
        creator_id: str,
        request: WithdrawalRequest,
        available: int,
    ) -> Tuple[Optional[WithdrawalQuote], List[ValidationError]]:
        """
        출금 요청 전송

        Returns:
            (견적, 검증 오류 리스트), 오류가 있으면 함수 호출하지 않음

        Raises:
            SupabaseError / requests.RequestException: 함수 호출 실패
        """
        errors = self.validator.validate(request, available)
        if errors:
            return None, errors

        quote = quote_withdrawal(int(request.amount), request.method)
        method_info = WITHDRAWAL_METHODS[request.method]
        self.client.invoke_function(WITHDRAWAL_FUNCTION, {
            "creator_id": creator_id,
            "amount": quote.amount,
            "fee": quote.fee,
            "net_amount": quote.net,
            "method": method_info["name"],
            "bank_name": request.bank_name,
            "account_name": request.account_name,
            "account_number": request.account_number,
            "notes": request.notes,
            "available_balance": available,
        })
        logger.info(f"출금 요청 전송: creator={creator_id}, amount={quote.amount}, method={request.method}")
        return quote, []
