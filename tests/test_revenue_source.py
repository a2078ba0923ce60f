"""
revenue_source.py 테스트
========================
SqlRevenueSource (임시 SQLite DB), SupabaseRevenueSource (requests 세션 mock)
"""
import pytest
import sys
import tempfile
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock

# 프로젝트 루트 추가
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy.orm import sessionmaker

from creator_earnings.api.supabase_client import SupabaseClient, SupabaseError
from creator_earnings.database import Base, get_engine_for_db
from creator_earnings.models import (
    CreatorBenefit,
    CreatorBenefitConfig,
    CreatorDiscountBenefit,
    DiscountCode,
    Lesson,
    LessonPayment,
    Payment,
    SequencerEnrollment,
    SequencerFile,
    Song,
)
from creator_earnings.services.records import (
    BenefitRecord,
    LessonSaleRecord,
    SequencerEnrollmentRecord,
    coalesce_int,
    from_db_timestamp,
    local_now,
    parse_timestamp,
    to_db_timestamp,
)
from creator_earnings.services.revenue_source import (
    SqlRevenueSource,
    SupabaseRevenueSource,
    create_revenue_source,
)

CREATOR = "creator-1"


def _response(status_code=200, body=b"[]", json_data=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.content = body
    resp.text = body.decode()
    resp.json.return_value = json_data if json_data is not None else []
    return resp


class TestSqlRevenueSource:
    """SqlRevenueSource 테스트 (임시 SQLite)"""

    def setup_method(self):
        """테스트용 임시 DB 생성"""
        self.temp_db = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
        self.db_path = self.temp_db.name
        self.engine = get_engine_for_db(self.db_path)
        Base.metadata.create_all(bind=self.engine)
        self.db = sessionmaker(bind=self.engine)()
        self.source = SqlRevenueSource(self.db)

    def teardown_method(self):
        """임시 DB 정리"""
        self.db.close()
        self.engine.dispose()  # SQLite 연결 해제
        self.temp_db.close()
        try:
            Path(self.db_path).unlink(missing_ok=True)
        except PermissionError:
            pass

    # ─── 편곡 ───

    def test_benefit_records_date_pushdown(self):
        """기간 경계가 쿼리에 포함됨 (양 끝 포함)"""
        self.db.add_all([
            CreatorBenefit(creator_id=CREATOR, amount=1000, benefit_type="song_publish",
                           created_at=datetime(2024, 3, 1)),
            CreatorBenefit(creator_id=CREATOR, amount=2000, benefit_type="library_add",
                           created_at=datetime(2024, 2, 28)),
            CreatorBenefit(creator_id=CREATOR, amount=4000, benefit_type="library_add",
                           created_at=datetime(2024, 3, 5), is_production=False),
            CreatorBenefit(creator_id="other", amount=8000, benefit_type="song_publish",
                           created_at=datetime(2024, 3, 5)),
        ])
        self.db.commit()

        records = self.source.list_benefit_records(
            CREATOR, date_from=datetime(2024, 3, 1), date_to=datetime(2024, 3, 31, 23, 59, 59))
        assert [r.amount for r in records] == [1000]

        all_records = self.source.list_benefit_records(CREATOR)
        assert sorted(r.amount for r in all_records) == [1000, 2000]

    def test_benefit_records_month_boundary_in_local_time(self):
        """UTC 로 저장된 값은 자카르타 로컬 달 경계로 필터"""
        self.db.add_all([
            # 로컬 2024-04-01 01:00
            CreatorBenefit(creator_id=CREATOR, amount=1000, benefit_type="song_publish",
                           created_at=datetime(2024, 3, 31, 18, 0)),
            # 로컬 2024-03-01 00:00 (시작 경계 포함)
            CreatorBenefit(creator_id=CREATOR, amount=2000, benefit_type="song_publish",
                           created_at=datetime(2024, 2, 29, 17, 0)),
        ])
        self.db.commit()

        march = self.source.list_benefit_records(
            CREATOR, date_from=datetime(2024, 3, 1), date_to=datetime(2024, 3, 31, 23, 59, 59, 999999))
        assert [(r.amount, r.created_at) for r in march] == [(2000, datetime(2024, 3, 1))]

        april = self.source.list_benefit_records(CREATOR, date_from=datetime(2024, 4, 1))
        assert [(r.amount, r.created_at) for r in april] == [(1000, datetime(2024, 4, 1, 1, 0))]

    # ─── 레슨 ───

    def test_lesson_breakdown_uses_covering_config(self):
        """거래 시점을 포함하는 배분율 사용, 없으면 70%"""
        lesson = Lesson(id="l1", creator_id=CREATOR, title="Piano", price=100000)
        self.db.add(lesson)
        self.db.add(CreatorBenefitConfig(
            creator_id=CREATOR, benefit_type="lesson", benefit_percentage=80,
            period_start_date=datetime(2024, 1, 1), period_end_date=datetime(2024, 1, 31, 23, 59, 59),
            created_at=datetime(2023, 12, 20),
        ))
        self.db.add_all([
            LessonPayment(lesson_id="l1", buyer_name="Budi", amount=100000, status="paid",
                          paid_at=datetime(2024, 1, 15)),
            LessonPayment(lesson_id="l1", buyer_name=None, amount=100000, status="paid",
                          paid_at=datetime(2024, 2, 15)),
            LessonPayment(lesson_id="l1", buyer_name="Sari", amount=100000, status="pending",
                          paid_at=datetime(2024, 2, 16)),
        ])
        self.db.commit()

        records = self.source.get_lesson_earnings_breakdown(CREATOR)

        assert len(records) == 2
        feb, jan = records  # 거래일 최신순
        assert feb.benefit_percentage == 70
        assert feb.creator_net_amount == 70000
        assert feb.platform_fee_amount == 30000
        assert feb.buyer_name == "User"
        assert jan.benefit_percentage == 80
        assert jan.creator_net_amount == 80000
        assert jan.lesson_title == "Piano"

    def test_lesson_breakdown_other_creator(self):
        self.db.add(Lesson(id="l2", creator_id="other", title="Drums"))
        self.db.add(LessonPayment(lesson_id="l2", amount=5000, status="paid", paid_at=datetime(2024, 2, 1)))
        self.db.commit()
        assert self.source.get_lesson_earnings_breakdown(CREATOR) == []

    # ─── 시퀀서 ───

    def test_sequencer_enrollments_joined(self):
        """결제 + 곡 소유자 조인, 결제 없는 등록도 포함"""
        self.db.add(Song(id="s1", user_id=CREATOR, title="Song A"))
        self.db.add(SequencerFile(id="f1", song_id="s1", price=50000))
        self.db.add(Payment(id="p1", amount=50000, status="paid", paid_at=datetime(2024, 3, 2)))
        self.db.add_all([
            SequencerEnrollment(id="e1", sequencer_file_id="f1", user_id="u1", payment_id="p1",
                                enrolled_at=datetime(2024, 3, 1)),
            SequencerEnrollment(id="e2", sequencer_file_id="f1", user_id="u2", payment_id=None,
                                enrolled_at=datetime(2024, 3, 3)),
            SequencerEnrollment(id="e3", sequencer_file_id="f1", user_id="u3", payment_id=None,
                                enrolled_at=datetime(2024, 3, 3), is_production=False),
        ])
        self.db.commit()

        records = {r.enrollment_id: r for r in self.source.list_sequencer_enrollments()}

        assert set(records) == {"e1", "e2"}
        assert records["e1"].song_owner_id == CREATOR
        assert records["e1"].song_title == "Song A"
        assert records["e1"].amount == 50000
        assert records["e1"].payment_status == "paid"
        assert records["e2"].amount == 0
        assert records["e2"].payment_status is None
        assert records["e2"].effective_date == datetime(2024, 3, 3, 7, 0)  # UTC 저장값 → 자카르타

    # ─── 할인 코드 ───

    def test_discount_benefits_newest_first(self):
        self.db.add(DiscountCode(id="c1", code="BUDI10", creator_id=CREATOR))
        self.db.add_all([
            CreatorDiscountBenefit(id="d1", creator_id=CREATOR, discount_code_id="c1",
                                   original_amount=100000, discount_amount=10000,
                                   creator_benefit_amount=5000, created_at=datetime(2024, 2, 1)),
            CreatorDiscountBenefit(id="d2", creator_id=CREATOR, discount_code_id="c1",
                                   original_amount=50000, discount_amount=5000,
                                   creator_benefit_amount=2500, created_at=datetime(2024, 3, 1)),
        ])
        self.db.commit()

        records = self.source.list_discount_benefits(CREATOR)
        assert [r.id for r in records] == ["d2", "d1"]
        assert records[0].code == "BUDI10"


class TestSupabaseRevenueSource:
    """SupabaseRevenueSource 테스트 (HTTP mock)"""

    def setup_method(self):
        self.session = MagicMock()
        self.client = SupabaseClient("https://demo.supabase.co/", "service-key", session=self.session)
        self.source = SupabaseRevenueSource(self.client, timezone="Asia/Jakarta")

    def _last_call(self):
        args, kwargs = self.session.request.call_args
        return args, kwargs

    def test_benefit_filters(self):
        """eq/gte/lte 필터 + 로컬 시간대 ISO 경계"""
        self.session.request.return_value = _response(
            body=b"[...]",
            json_data=[{"amount": 1000, "benefit_type": "song_publish", "created_at": "2024-03-01T03:00:00Z"}],
        )
        records = self.source.list_benefit_records(
            CREATOR, date_from=datetime(2024, 3, 1), date_to=datetime(2024, 3, 31, 23, 59, 59))

        (method, url), kwargs = self._last_call()
        assert method == "GET"
        assert url == "https://demo.supabase.co/rest/v1/creator_benefits"
        params = kwargs["params"]
        assert ("creator_id", f"eq.{CREATOR}") in params
        assert ("is_production", "eq.true") in params
        assert ("created_at", "gte.2024-03-01T00:00:00+07:00") in params
        assert ("created_at", "lte.2024-03-31T23:59:59+07:00") in params
        assert kwargs["headers"]["apikey"] == "service-key"

        assert records[0].creator_id == CREATOR
        assert records[0].created_at == datetime(2024, 3, 1, 10, 0)  # UTC 03:00 → 자카르타 10:00

    def test_lesson_rpc(self):
        self.session.request.return_value = _response(body=b"[...]", json_data=[{
            "lesson_id": "l1", "lesson_title": None, "transaction_date": "2024-03-02T00:00:00+07:00",
            "buyer_name": "Budi", "total_amount": 100000, "benefit_percentage": None,
            "creator_net_amount": 70000, "platform_fee_amount": 30000, "status": "paid",
        }])
        records = self.source.get_lesson_earnings_breakdown(CREATOR)

        (method, url), kwargs = self._last_call()
        assert method == "POST"
        assert url.endswith("/rest/v1/rpc/get_creator_lesson_earnings_breakdown")
        assert kwargs["json"] == {"target_creator_id": CREATOR}
        assert records[0].lesson_title == "Unknown"
        assert records[0].benefit_percentage == 70
        assert records[0].transaction_date == datetime(2024, 3, 2)

    def test_sequencer_flattened(self):
        """임베디드 조인 응답 평탄화"""
        self.session.request.return_value = _response(body=b"[...]", json_data=[{
            "id": "e1", "sequencer_file_id": "f1", "user_id": "u1", "enrolled_at": None,
            "payment": {"amount": 50000, "status": "paid", "paid_at": "2024-03-01T00:00:00+07:00"},
            "sequencer_file": {"id": "f1", "song": {"id": "s1", "title": "Song A", "user_id": CREATOR}},
        }])
        record = self.source.list_sequencer_enrollments()[0]

        assert record.song_owner_id == CREATOR
        assert record.amount == 50000
        assert record.payment_status == "paid"
        assert record.effective_date == datetime(2024, 3, 1)

    def test_error_response(self):
        """2xx 이외 응답 → SupabaseError"""
        self.session.request.return_value = _response(
            status_code=401, body=b'{"code":"PGRST301","message":"JWT expired"}',
            json_data={"code": "PGRST301", "message": "JWT expired"},
        )
        with pytest.raises(SupabaseError) as exc:
            self.source.list_sequencer_enrollments()
        assert exc.value.code == "PGRST301"
        assert exc.value.status_code == 401

    def test_empty_body(self):
        self.session.request.return_value = _response(body=b"")
        assert self.source.list_benefit_records(CREATOR) == []


class TestCreateRevenueSource:
    """소스 선택 테스트"""

    def test_supabase_when_configured(self):
        settings = SimpleNamespace(
            supabase_url="https://demo.supabase.co", supabase_service_key="key",
            request_timeout=10, report_timezone="Asia/Jakarta",
        )
        source = create_revenue_source(settings)
        assert isinstance(source, SupabaseRevenueSource)
        assert source.client.timeout == 10

    def test_sql_by_default(self):
        settings = SimpleNamespace(supabase_url=None, supabase_service_key=None,
                                   default_lesson_benefit_percentage=65)
        with create_revenue_source(settings) as source:
            assert isinstance(source, SqlRevenueSource)
            assert source.default_lesson_percentage == 65


class TestParseTimestamp:
    """타임스탬프 파싱 테스트"""

    def test_z_suffix(self):
        assert parse_timestamp("2024-03-01T17:30:00Z") == datetime(2024, 3, 2, 0, 30)

    def test_invalid(self):
        assert parse_timestamp("not-a-date") is None
        assert parse_timestamp(None) is None

    def test_aware_value_converted(self):
        ts = datetime(2024, 3, 31, 18, 0, tzinfo=timezone.utc)
        assert parse_timestamp(ts) == datetime(2024, 4, 1, 1, 0)


class TestDbTimestamp:
    """DB 타임스탬프 변환 테스트 (naive 값은 UTC)"""

    def test_naive_treated_as_utc(self):
        assert from_db_timestamp(datetime(2024, 3, 31, 18, 0)) == datetime(2024, 4, 1, 1, 0)

    def test_aware_value(self):
        # psycopg2 timestamptz 는 aware datetime 으로 반환됨
        ts = datetime(2024, 3, 31, 18, 0, tzinfo=timezone.utc)
        result = from_db_timestamp(ts)
        assert result == datetime(2024, 4, 1, 1, 0)
        assert result.tzinfo is None

    def test_none(self):
        assert from_db_timestamp(None) is None
        assert to_db_timestamp(None) is None

    def test_local_bound_to_utc(self):
        assert to_db_timestamp(datetime(2024, 4, 1)) == datetime(2024, 3, 31, 17, 0)
        assert from_db_timestamp(to_db_timestamp(datetime(2024, 4, 1))) == datetime(2024, 4, 1)

    def test_local_now(self):
        expected = datetime.now(ZoneInfo("Asia/Jakarta")).replace(tzinfo=None)
        now = local_now()
        assert now.tzinfo is None
        assert abs(now - expected) < timedelta(seconds=5)


class TestNullFields:
    """null 숫자 필드 → 0"""

    def test_benefit_amount(self):
        record = BenefitRecord.from_row({"amount": None, "benefit_type": "song_publish", "created_at": None})
        assert record.amount == 0
        assert record.created_at is None

    def test_lesson_amounts(self):
        record = LessonSaleRecord.from_row({
            "lesson_id": "l1",
            "total_amount": None,
            "creator_net_amount": None,
            "platform_fee_amount": None,
            "benefit_percentage": None,
        })
        assert record.total_amount == 0
        assert record.creator_net_amount == 0
        assert record.platform_fee_amount == 0
        assert record.benefit_percentage == 70

    def test_sequencer_amount(self):
        record = SequencerEnrollmentRecord.from_row({"id": "e1", "amount": None, "paid_at": None})
        assert record.amount == 0
        assert record.effective_date is None

    def test_coalesce_rounds_half_away(self):
        assert coalesce_int(2.5) == 3
        assert coalesce_int(-2.5) == -3
        assert coalesce_int("1500.5") == 1501
        assert coalesce_int("") == 0
        assert coalesce_int("abc") == 0
