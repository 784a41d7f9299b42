"""
Repositories pour Bookkeeper API
Pattern Repository pour l'acces aux donnees
"""
from bookkeeper.repositories.base import (
    BaseRepository,
    TenantAwareBaseRepository,
    RepositoryException,
    TenantIsolationError,
)
from bookkeeper.repositories.user_role import UserRoleRepository
from bookkeeper.repositories.ledger import (
    ChartAccountRepository,
    AccountingSettingsRepository,
    ChartAccountTemplateRepository,
    JournalEntryRepository,
    JournalLineRepository,
    FinancialStatementRepository,
)

__all__ = [
    "BaseRepository",
    "TenantAwareBaseRepository",
    "RepositoryException",
    "TenantIsolationError",
    "UserRoleRepository",
    "ChartAccountRepository",
    "AccountingSettingsRepository",
    "ChartAccountTemplateRepository",
    "JournalEntryRepository",
    "JournalLineRepository",
    "FinancialStatementRepository",
]
