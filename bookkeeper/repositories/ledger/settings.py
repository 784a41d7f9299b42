"""
Repository pour AccountingSettings.
"""
from typing import Optional

from sqlalchemy import or_

from bookkeeper.models.ledger.settings import AccountingSettings, ACCOUNT_REFERENCE_COLUMNS
from bookkeeper.repositories.base import TenantAwareBaseRepository


class AccountingSettingsRepository(TenantAwareBaseRepository[AccountingSettings]):
    """Parametres comptables du tenant (une ligne au plus)."""
    model = AccountingSettings

    def get_current(self) -> Optional[AccountingSettings]:
        return self._tenant_query().first()

    def get_or_create(self) -> AccountingSettings:
        """Retourne les parametres du tenant, crees vides si absents."""
        settings = self.get_current()
        if settings is None:
            settings = self.create({"chart_accounts_seeded": False})
        return settings

    def references_account(self, account_id: int) -> bool:
        """
        True si l'une des colonnes de compte par defaut pointe sur account_id.
        Les erreurs SQL remontent a l'appelant.
        """
        conditions = [
            getattr(AccountingSettings, column) == account_id
            for column in ACCOUNT_REFERENCE_COLUMNS
        ]
        query = self._tenant_query().filter(or_(*conditions))
        return self.session.query(query.exists()).scalar()

    def mark_seeded(self) -> AccountingSettings:
        settings = self.get_or_create()
        settings.chart_accounts_seeded = True
        self.session.flush()
        return settings
