"""
Services metier pour Bookkeeper API
"""
from bookkeeper.services.tenant import TenantResolver
from bookkeeper.services.ledger import (
    BalanceEngine,
    ChartOfAccountsService,
    JournalService,
    ReportGenerator,
)

__all__ = [
    "TenantResolver",
    "BalanceEngine",
    "ChartOfAccountsService",
    "JournalService",
    "ReportGenerator",
]
