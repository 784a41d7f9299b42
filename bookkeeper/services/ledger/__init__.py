"""
Services du grand livre.
"""
from bookkeeper.services.ledger.balance import AccountBalance, BalanceEngine
from bookkeeper.services.ledger.chart_of_accounts import (
    AccountRelations,
    AccountView,
    ChartOfAccountsService,
    SeedResult,
    default_normal_balance,
    normalize_account_type,
)
from bookkeeper.services.ledger.journal import JournalService
from bookkeeper.services.ledger.reports import (
    BalanceSheetReport,
    CashFlowReport,
    IncomeStatementReport,
    ReportGenerator,
    ReportStatus,
    TrialBalanceReport,
)

__all__ = [
    "AccountBalance",
    "BalanceEngine",
    "AccountRelations",
    "AccountView",
    "ChartOfAccountsService",
    "SeedResult",
    "default_normal_balance",
    "normalize_account_type",
    "JournalService",
    "BalanceSheetReport",
    "CashFlowReport",
    "IncomeStatementReport",
    "ReportGenerator",
    "ReportStatus",
    "TrialBalanceReport",
]
