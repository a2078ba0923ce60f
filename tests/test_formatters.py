"""
formatters.py 테스트
====================
루피아 표시, CSV 내보내기, 파일명
"""
import pytest
import re
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

# 프로젝트 루트 추가
sys.path.insert(0, str(Path(__file__).parent.parent))

from creator_earnings.services.aggregators import EarningGroup, SaleLine
from creator_earnings.utils.formatters import (
    csv_filename,
    export_csv,
    format_currency,
    format_percentage,
    groups_to_dataframe,
    iso_timestamp,
    transactions_to_dataframe,
)


class TestFormatCurrency:
    """format_currency 테스트"""

    def test_thousands_separator(self):
        assert format_currency(1234567) == "Rp\u00a01.234.567"
        assert format_currency(500) == "Rp\u00a0500"

    def test_zero_and_none(self):
        assert format_currency(0) == "Rp\u00a00"
        assert format_currency(None) == "Rp\u00a00"

    def test_negative(self):
        assert format_currency(-30000) == "-Rp\u00a030.000"

    def test_symbol_separated_by_nbsp(self):
        text = format_currency(1500, symbol="IDR")
        assert text == "IDR\u00a01.500"
        assert " " not in text

    def test_percentage(self):
        assert format_percentage(70) == "70%"


class TestExportCsv:
    """export_csv 테스트"""

    def setup_method(self):
        self.groups = [
            EarningGroup("l1", "Piano Basics", 3, 300000, 90000, 210000),
            EarningGroup("l2", "Guitar 101", 1, 80000, 24000, 56000),
        ]

    def test_lesson_csv(self):
        """헤더 + 그룹별 1행, 줄바꿈 '\\n', 마지막 줄바꿈 없음"""
        body = export_csv(self.groups, "lesson")
        assert body == (
            "Music Lab,Sales,Gross Revenue,Platform Fee,Net Earnings\n"
            "Piano Basics,3,300000,90000,210000\n"
            "Guitar 101,1,80000,24000,56000"
        )

    def test_sequencer_header(self):
        body = export_csv([], "sequencer")
        assert body == "Song Title,Sales,Gross Revenue,Platform Fee,Net Earnings"

    def test_naive_join_keeps_commas(self):
        """기본 모드는 제목의 쉼표를 이스케이프하지 않음"""
        body = export_csv([EarningGroup("s1", "Hello, World", 1, 10, 3, 7)], "sequencer")
        assert body.splitlines()[1] == "Hello, World,1,10,3,7"

    def test_quoted_mode(self):
        """quote_fields=True 면 표준 CSV 인용"""
        body = export_csv([EarningGroup("s1", 'Say "Hi", Bye', 1, 10, 3, 7)], "sequencer", quote_fields=True)
        assert body.splitlines()[1] == '"Say ""Hi"", Bye",1,10,3,7'
        assert not body.endswith("\n")

    def test_unknown_stream(self):
        with pytest.raises(KeyError):
            export_csv(self.groups, "arrangement")

    def test_dataframe_columns_match_csv(self):
        df = groups_to_dataframe(self.groups, "lesson")
        assert list(df.columns) == ["Music Lab", "Sales", "Gross Revenue", "Platform Fee", "Net Earnings"]
        assert df["Net Earnings"].sum() == 266000


class TestFilename:
    """csv_filename 테스트"""

    def test_utc_with_milliseconds(self):
        now = datetime(2024, 3, 5, 14, 7, 9, 123456, tzinfo=timezone.utc)
        assert csv_filename("lesson", now) == "lesson-earnings-2024-03-05T14:07:09.123Z.csv"

    def test_converts_to_utc(self):
        """로컬 시간대 값은 UTC 로 변환"""
        jakarta = timezone(timedelta(hours=7))
        now = datetime(2024, 3, 5, 2, 0, 0, tzinfo=jakarta)
        assert iso_timestamp(now) == "2024-03-04T19:00:00.000Z"

    def test_naive_pattern(self):
        name = csv_filename("sequencer", datetime.now())
        assert re.fullmatch(r"sequencer-earnings-\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z\.csv", name)


class TestTransactionsDataFrame:
    """거래 내역 DataFrame 테스트"""

    def test_newest_first(self):
        lines = [
            SaleLine("l1", "Piano", "Budi", datetime(2024, 3, 1), 100000, 30000, 70000),
            SaleLine("l1", "Piano", "Sari", datetime(2024, 3, 9), 100000, 30000, 70000),
            SaleLine("l1", "Piano", "Tono", None, 100000, 30000, 70000),
        ]
        df = transactions_to_dataframe(lines)
        assert list(df["Buyer"]) == ["Sari", "Budi", "Tono"]
        assert df.iloc[0]["Date"] == "09/03/2024"
        assert df.iloc[0]["Net"] == "Rp\u00a070.000"

    def test_empty(self):
        df = transactions_to_dataframe([])
        assert df.empty
        assert "Net" in df.columns
