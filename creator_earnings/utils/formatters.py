"""
표시/내보내기 포맷터
===================
루피아 금액 표시, 그룹 요약 CSV 내보내기, 대시보드 테이블용 DataFrame 변환
"""
import csv
import io
from datetime import datetime, timezone
from typing import Iterable, List, Optional

import pandas as pd

from creator_earnings.constants import CSV_HEADERS


def format_currency(amount: Optional[int], symbol: str = "Rp") -> str:
    """정수 금액 → 'Rp 1.234.567' (id-ID 천단위 점, 소수점 없음, 기호 뒤 공백은 U+00A0)"""
    value = int(amount or 0)
    digits = f"{abs(value):,}".replace(",", ".")
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}\u00a0{digits}"


def format_percentage(value) -> str:
    """70 → '70%'"""
    return f"{int(value)}%"


def _group_row(group) -> list:
    return [group.title, group.sale_count, group.gross_revenue, group.platform_fee, group.net_earnings]


def export_csv(groups: Iterable, stream: str, quote_fields: bool = False) -> str:
    """
    그룹 요약 → CSV 문자열

    Args:
        groups: EarningGroup 리스트
        stream: lesson / sequencer (헤더 선택)
        quote_fields: False 면 단순 쉼표 결합 (제목의 쉼표/따옴표 이스케이프 안 함),
                      True 면 csv 모듈 최소 인용

    Returns:
        헤더 + 그룹별 1행, 줄바꿈은 '\\n'
    """
    if stream not in CSV_HEADERS:
        raise KeyError(f"CSV 내보내기를 지원하지 않는 스트림: {stream}")
    headers = CSV_HEADERS[stream]
    rows = [_group_row(g) for g in groups]

    if quote_fields:
        buf = io.StringIO()
        writer = csv.writer(buf, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
        writer.writerow(headers)
        writer.writerows(rows)
        return buf.getvalue().rstrip("\n")

    lines = [",".join(headers)]
    lines.extend(",".join(str(v) for v in row) for row in rows)
    return "\n".join(lines)


def iso_timestamp(now: datetime) -> str:
    """UTC ISO 타임스탬프 (밀리초 + 'Z', naive 값은 시스템 로컬 시각으로 간주)"""
    now = now.astimezone(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def csv_filename(stream: str, now: datetime) -> str:
    """'<stream>-earnings-<ISO>.csv'"""
    return f"{stream}-earnings-{iso_timestamp(now)}.csv"


def groups_to_dataframe(groups: Iterable, stream: str) -> pd.DataFrame:
    """그룹 요약 → DataFrame (CSV 와 같은 컬럼명)"""
    columns = CSV_HEADERS[stream]
    return pd.DataFrame([_group_row(g) for g in groups], columns=columns)


def transactions_to_dataframe(lines: Iterable, symbol: str = "Rp") -> pd.DataFrame:
    """거래 내역 → 표시용 DataFrame (최신순)"""
    records: List[dict] = [
        {
            "Date": line.date.strftime("%d/%m/%Y") if line.date else "-",
            "Title": line.title,
            "Buyer": line.buyer,
            "Amount": format_currency(line.gross, symbol),
            "Platform Fee": format_currency(line.fee, symbol),
            "Net": format_currency(line.net, symbol),
            "_sort": line.date or datetime.min,
        }
        for line in lines
    ]
    if not records:
        return pd.DataFrame(columns=["Date", "Title", "Buyer", "Amount", "Platform Fee", "Net"])
    df = pd.DataFrame(records).sort_values("_sort", ascending=False)
    return df.drop(columns="_sort").reset_index(drop=True)
