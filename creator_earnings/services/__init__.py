"""서비스 모듈"""
from creator_earnings.services.period_filter import PeriodSelector, DateInterval, resolve_period
from creator_earnings.services.revenue_source import SqlRevenueSource, SupabaseRevenueSource, create_revenue_source
from creator_earnings.services.summary import EarningsService, RevenueSummary, RequestSequencer, compute_summary
from creator_earnings.services.withdrawal import WithdrawalService, WithdrawalRequest, quote_withdrawal

__all__ = [
    'PeriodSelector',
    'DateInterval',
    'resolve_period',
    'SqlRevenueSource',
    'SupabaseRevenueSource',
    'create_revenue_source',
    'EarningsService',
    'RevenueSummary',
    'RequestSequencer',
    'compute_summary',
    'WithdrawalService',
    'WithdrawalRequest',
    'quote_withdrawal',
]
