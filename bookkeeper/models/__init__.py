"""
Modeles SQLAlchemy pour Bookkeeper API
Export tous les modeles pour faciliter les imports

Modules disponibles:
- base: Classes de base et mixins (Base, TimestampMixin, TenantMixin, etc.)
- user_role: rattachement sous-utilisateur -> proprietaire du livre
- ledger: plan comptable, ecritures, etats financiers
"""
from bookkeeper.models.base import Base, TimestampMixin, TenantMixin, CreatedAtMixin
from bookkeeper.models.user_role import UserRole
from bookkeeper.models.ledger import (
    ChartAccount,
    AccountType,
    NormalBalance,
    ChartAccountTemplate,
    AccountingSettings,
    JournalEntry,
    JournalLine,
    JournalEntryStatus,
    CashFlowCategory,
    FinancialStatement,
    StatementType,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "TenantMixin",
    "CreatedAtMixin",
    "UserRole",
    "ChartAccount",
    "AccountType",
    "NormalBalance",
    "ChartAccountTemplate",
    "AccountingSettings",
    "JournalEntry",
    "JournalLine",
    "JournalEntryStatus",
    "CashFlowCategory",
    "FinancialStatement",
    "StatementType",
]
