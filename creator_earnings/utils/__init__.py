"""유틸리티 모듈"""

from .formatters import format_currency, export_csv, csv_filename
from .validators import ValidationError, WithdrawalValidator

__all__ = [
    "format_currency",
    "export_csv",
    "csv_filename",
    "ValidationError",
    "WithdrawalValidator",
]
