"""
Repositories du grand livre.
Acces aux donnees avec isolation multi-tenant.
"""
from bookkeeper.repositories.ledger.account import ChartAccountRepository
from bookkeeper.repositories.ledger.settings import AccountingSettingsRepository
from bookkeeper.repositories.ledger.template import ChartAccountTemplateRepository
from bookkeeper.repositories.ledger.journal import (
    JournalEntryRepository,
    JournalLineRepository,
    LineAggregate,
    CashLine,
)
from bookkeeper.repositories.ledger.statement import FinancialStatementRepository

__all__ = [
    "ChartAccountRepository",
    "AccountingSettingsRepository",
    "ChartAccountTemplateRepository",
    "JournalEntryRepository",
    "JournalLineRepository",
    "LineAggregate",
    "CashLine",
    "FinancialStatementRepository",
]
