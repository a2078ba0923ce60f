"""비즈니스 상수 - 매직넘버 중앙 관리"""

# ─────────────────────────────────────────────
# 수익 스트림
# ─────────────────────────────────────────────
STREAM_ARRANGEMENT = "arrangement"
STREAM_LESSON = "lesson"
STREAM_SEQUENCER = "sequencer"

# CSV 내보내기가 가능한 스트림 (그룹 테이블이 있는 것만)
EXPORTABLE_STREAMS = (STREAM_LESSON, STREAM_SEQUENCER)

# ─────────────────────────────────────────────
# 편곡(arrangement) 혜택 유형 (플랫폼 수수료 0%)
# ─────────────────────────────────────────────
BENEFIT_SONG_PUBLISH = "song_publish"
BENEFIT_LIBRARY_ADD = "library_add"
BENEFIT_DISCOUNT_CODE = "discount_code"

# ─────────────────────────────────────────────
# 레슨 / 시퀀서 수익 배분
# ─────────────────────────────────────────────
DEFAULT_SEQUENCER_CREATOR_SHARE = 0.70  # 크리에이터 70% / 플랫폼 30%
DEFAULT_LESSON_BENEFIT_PERCENTAGE = 70
LESSON_BENEFIT_CONFIG_TYPE = "lesson"  # creator_benefit_configs.benefit_type

PAYMENT_STATUS_PAID = "paid"

UNKNOWN_TITLE = "Unknown"
DEFAULT_BUYER_NAME = "User"

# ─────────────────────────────────────────────
# CSV 내보내기 헤더 (대시보드 테이블과 동일한 컬럼명)
# ─────────────────────────────────────────────
CSV_HEADERS = {
    STREAM_LESSON: ["Music Lab", "Sales", "Gross Revenue", "Platform Fee", "Net Earnings"],
    STREAM_SEQUENCER: ["Song Title", "Sales", "Gross Revenue", "Platform Fee", "Net Earnings"],
}
CSV_MIME_TYPE = "text/csv"

# ─────────────────────────────────────────────
# 출금 (Rupiah 단위)
# ─────────────────────────────────────────────
MIN_WITHDRAWAL = 50000
WITHDRAWAL_METHODS = {
    "bank": {"name": "Bank Transfer", "fee": 2500, "processing": "1-2 business days"},
    "gopay": {"name": "GoPay", "fee": 1500, "processing": "Instant"},
    "ovo": {"name": "OVO", "fee": 1500, "processing": "Instant"},
    "dana": {"name": "DANA", "fee": 1500, "processing": "Instant"},
}
WITHDRAWAL_BANKS = [
    "Bank Central Asia (BCA)", "Bank Mandiri", "Bank Negara Indonesia (BNI)",
    "Bank Rakyat Indonesia (BRI)", "Bank CIMB Niaga", "Bank Danamon",
    "Bank Permata", "Bank Maybank", "Bank OCBC NISP", "Jenius",
]
WITHDRAWAL_FUNCTION = "send-withdrawal-request"

# ─────────────────────────────────────────────
# Supabase RPC / 테이블
# ─────────────────────────────────────────────
LESSON_EARNINGS_RPC = "get_creator_lesson_earnings_breakdown"

TIMEOUT_CONFIG = {
    "api_request": 30,          # API 요청 타임아웃 (초)
    "db_busy": 30000,           # SQLite busy 타임아웃 (ms)
    "db_connect": 30,           # DB 연결 타임아웃 (초)
}
