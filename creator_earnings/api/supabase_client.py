"""
Supabase REST 클라이언트
========================
PostgREST 테이블 조회, RPC 호출, Edge Function 호출

사용법:
    client = SupabaseClient(url="https://xxx.supabase.co", service_key="...")
    rows = client.select("creator_benefits", "amount,benefit_type",
                         filters=[("creator_id", "eq.abc"), ("is_production", "eq.true")])
    rows = client.rpc("get_creator_lesson_earnings_breakdown", {"target_creator_id": "abc"})
"""
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import requests

from creator_earnings.constants import TIMEOUT_CONFIG

logger = logging.getLogger(__name__)


class SupabaseError(Exception):
    """Supabase API 오류"""
    def __init__(self, code: str, message: str, status_code: int = 0):
        self.code = code
        self.message = message
        self.status_code = status_code
        super().__init__(f"[{code}] {message}")


class SupabaseClient:
    """Supabase PostgREST / Functions 클라이언트"""

    REST_PATH = "/rest/v1"
    FUNCTIONS_PATH = "/functions/v1"

    def __init__(
        self,
        url: str,
        service_key: str,
        timeout: int = TIMEOUT_CONFIG["api_request"],
        session: Optional[requests.Session] = None,
    ):
        self.url = url.rstrip("/")
        self.service_key = service_key
        self.timeout = timeout
        self._session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings) -> "SupabaseClient":
        """설정 객체로 생성 (URL/키 없으면 ValueError)"""
        if not settings.supabase_url or not settings.supabase_service_key:
            raise ValueError("SUPABASE_URL / SUPABASE_SERVICE_KEY 가 설정되지 않았습니다")
        return cls(settings.supabase_url, settings.supabase_service_key, timeout=settings.request_timeout)

    def _headers(self) -> Dict[str, str]:
        return {
            "apikey": self.service_key,
            "Authorization": f"Bearer {self.service_key}",
            "Content-Type": "application/json",
        }

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Sequence[Tuple[str, str]]] = None,
        data: Optional[Dict] = None,
    ) -> Any:
        """
        공통 요청

        Args:
            method: HTTP 메서드
            path: URL 경로 (/rest/v1/...)
            params: 쿼리 파라미터 (같은 키 반복 가능하도록 튜플 리스트)
            data: 요청 바디 (JSON)

        Returns:
            응답 JSON (본문 없으면 None)

        Raises:
            SupabaseError: 2xx 이외 응답
            requests.RequestException: 네트워크 오류
        """
        url = f"{self.url}{path}"
        logger.debug(f"Supabase {method} {path} params={params}")

        resp = self._session.request(
            method, url,
            params=list(params) if params else None,
            json=data,
            headers=self._headers(),
            timeout=self.timeout,
        )

        if not 200 <= resp.status_code < 300:
            code, message = str(resp.status_code), resp.text[:500]
            try:
                body = resp.json()
                if isinstance(body, dict):
                    code = str(body.get("code") or code)
                    message = body.get("message") or body.get("error") or message
            except ValueError:
                pass
            raise SupabaseError(code, message, resp.status_code)

        if not resp.content or not resp.content.strip():
            return None
        return resp.json()

    # ─── PostgREST ───

    def select(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[List[Tuple[str, str]]] = None,
        order: Optional[str] = None,
    ) -> List[Dict]:
        """
        테이블 조회

        Args:
            table: 테이블명
            columns: select 절 (임베디드 조인 포함 가능)
            filters: [(컬럼, "eq.값"), ...]
            order: 정렬 ("created_at.desc")
        """
        params = [("select", columns)]
        params.extend(filters or [])
        if order:
            params.append(("order", order))
        return self._request("GET", f"{self.REST_PATH}/{table}", params=params) or []

    def rpc(self, function: str, args: Optional[Dict] = None) -> Any:
        """DB 함수(RPC) 호출"""
        return self._request("POST", f"{self.REST_PATH}/rpc/{function}", data=args or {})

    # ─── Edge Functions ───

    def invoke_function(self, name: str, payload: Optional[Dict] = None) -> Any:
        """서버리스 함수 호출"""
        logger.info(f"Edge Function 호출: {name}")
        return self._request("POST", f"{self.FUNCTIONS_PATH}/{name}", data=payload or {})
