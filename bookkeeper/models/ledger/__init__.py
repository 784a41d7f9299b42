"""
Models du grand livre: plan comptable, ecritures, etats financiers.
"""
from bookkeeper.models.ledger.account import ChartAccount, AccountType, NormalBalance
from bookkeeper.models.ledger.template import ChartAccountTemplate
from bookkeeper.models.ledger.settings import AccountingSettings, ACCOUNT_REFERENCE_COLUMNS
from bookkeeper.models.ledger.journal import (
    JournalEntry,
    JournalLine,
    JournalEntryStatus,
    CashFlowCategory,
    COUNTED_STATUSES,
)
from bookkeeper.models.ledger.statement import FinancialStatement, StatementType, STATEMENT_LABELS

__all__ = [
    # Plan comptable
    "ChartAccount",
    "AccountType",
    "NormalBalance",
    "ChartAccountTemplate",
    "AccountingSettings",
    "ACCOUNT_REFERENCE_COLUMNS",
    # Ecritures
    "JournalEntry",
    "JournalLine",
    "JournalEntryStatus",
    "CashFlowCategory",
    "COUNTED_STATUSES",
    # Etats financiers
    "FinancialStatement",
    "StatementType",
    "STATEMENT_LABELS",
]
