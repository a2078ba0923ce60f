"""
수익 CSV 내보내기 스크립트
=========================
크리에이터의 레슨/시퀀서 그룹별 수익 요약을 CSV 파일로 저장

사용법:
    python scripts/export_earnings.py --creator <uuid>                       # 레슨, 전체 기간
    python scripts/export_earnings.py --creator <uuid> --stream sequencer --period this_month
    python scripts/export_earnings.py --creator <uuid> --period custom --from 2024-01-01 --to 2024-01-31
"""
import sys
import argparse
import logging
from datetime import date, datetime, time
from pathlib import Path

# 프로젝트 루트
ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))

from dotenv import load_dotenv
load_dotenv(ROOT / ".env")

from creator_earnings.config import settings
from creator_earnings.constants import EXPORTABLE_STREAMS
from creator_earnings.services.period_filter import DateInterval, PeriodSelector
from creator_earnings.services.revenue_source import create_revenue_source
from creator_earnings.services.summary import EarningsService
from creator_earnings.utils.formatters import csv_filename, export_csv, format_currency
from creator_earnings.utils.validators import validate_date_range

logging.basicConfig(
    level=settings.log_level,
    format='[%(asctime)s] %(levelname)s [%(name)s] %(message)s',
)
logger = logging.getLogger(__name__)


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"날짜 형식 오류 (YYYY-MM-DD): {value}")


def main():
    parser = argparse.ArgumentParser(description="크리에이터 수익 CSV 내보내기")
    parser.add_argument("--creator", type=str, required=True, help="크리에이터 ID")
    parser.add_argument("--stream", choices=EXPORTABLE_STREAMS, default="lesson", help="스트림 (기본 lesson)")
    parser.add_argument("--period", choices=[p.value for p in PeriodSelector], default="all",
                        help="기간 (기본 all)")
    parser.add_argument("--from", dest="date_from", type=_parse_date, default=None, help="시작일 (custom)")
    parser.add_argument("--to", dest="date_to", type=_parse_date, default=None, help="종료일 (custom)")
    parser.add_argument("--output", type=str, default=None, help="저장 경로 (기본: 자동 파일명)")
    args = parser.parse_args()

    custom = None
    if args.date_from or args.date_to:
        custom = DateInterval(
            start=datetime.combine(args.date_from, time.min) if args.date_from else None,
            end=datetime.combine(args.date_to, time.max) if args.date_to else None,
        )
        error = validate_date_range(custom)
        if error:
            logger.warning(f"{error.message}: {error.value}")
        if args.period == "all":
            args.period = "custom"

    source = create_revenue_source(settings)
    try:
        service = EarningsService(
            source,
            creator_share=settings.sequencer_creator_share,
            group_key=settings.lesson_group_key,
        )
        summary = service.get_summary(args.creator, args.period, custom)
    finally:
        close = getattr(source, "close", None)
        if close:
            close()

    if summary.errors:
        for stream, message in summary.errors.items():
            logger.error(f"[{stream}] 조회 실패: {message}")

    result = summary.stream(args.stream)
    body = export_csv(result.groups, args.stream, quote_fields=settings.csv_quote_fields)
    output = Path(args.output) if args.output else ROOT / csv_filename(args.stream, datetime.now())
    output.write_text(body, encoding="utf-8")

    # 리포트
    print("\n" + "=" * 60)
    print(f"{args.stream} 수익 내보내기 ({summary.period.value})")
    print("=" * 60)
    print(f"  그룹 {len(result.groups):5d} | 판매 {result.sale_count:5d}")
    print(f"  총액   {format_currency(result.gross, settings.currency_symbol)}")
    print(f"  수수료 {format_currency(result.fee, settings.currency_symbol)}")
    print(f"  순수익 {format_currency(result.net, settings.currency_symbol)}")
    print("=" * 60)
    print(f"\n저장: {output}")

    if summary.errors.get(args.stream):
        sys.exit(1)


if __name__ == "__main__":
    main()
