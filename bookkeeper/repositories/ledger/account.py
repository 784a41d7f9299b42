"""
Repository pour ChartAccount.
"""
from typing import List, Optional, Set

from bookkeeper.models.ledger.account import ChartAccount
from bookkeeper.repositories.base import TenantAwareBaseRepository


class ChartAccountRepository(TenantAwareBaseRepository[ChartAccount]):
    """
    Repository du plan comptable.
    Isolation multi-tenant obligatoire.
    """
    model = ChartAccount

    def list_ordered(self, active_only: bool = False) -> List[ChartAccount]:
        """Comptes du tenant tries par code."""
        query = self._tenant_query()
        if active_only:
            query = query.filter(ChartAccount.is_active.is_(True))
        return query.order_by(ChartAccount.code).all()

    def get_by_code(self, code: str) -> Optional[ChartAccount]:
        """Recupere un compte par son code dans le tenant."""
        return self._tenant_query().filter(ChartAccount.code == code).first()

    def code_exists(self, code: str, exclude_id: Optional[int] = None) -> bool:
        """True si le code est deja utilise (hors compte exclude_id)."""
        query = self._tenant_query().filter(ChartAccount.code == code)
        if exclude_id is not None:
            query = query.filter(ChartAccount.id != exclude_id)
        return self.session.query(query.exists()).scalar()

    def parent_ids(self) -> Set[int]:
        """IDs des comptes ayant au moins un enfant."""
        rows = (
            self.session.query(ChartAccount.parent_id)
            .filter(
                ChartAccount.tenant_id == self.tenant_id,
                ChartAccount.parent_id.isnot(None),
            )
            .distinct()
            .all()
        )
        return {row.parent_id for row in rows}
