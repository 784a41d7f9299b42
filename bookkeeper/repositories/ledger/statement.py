"""
Repository pour FinancialStatement.

Les etats financiers sont en ajout seul: update et delete sont refuses.
"""
from typing import Any, Dict, List, Optional

from sqlalchemy import desc

from bookkeeper.core.exceptions import ImmutableSnapshotError
from bookkeeper.models.ledger.statement import FinancialStatement
from bookkeeper.repositories.base import TenantAwareBaseRepository


class FinancialStatementRepository(TenantAwareBaseRepository[FinancialStatement]):
    """Instantanes d'etats financiers du tenant."""
    model = FinancialStatement

    def list_recent(self, period: Optional[str] = None) -> List[FinancialStatement]:
        """Etats du tenant, plus recents d'abord."""
        query = self._tenant_query()
        if period:
            query = query.filter(FinancialStatement.period == period)
        return query.order_by(desc(FinancialStatement.created_at), desc(FinancialStatement.id)).all()

    def update(self, id: int, data: Dict[str, Any]) -> Optional[FinancialStatement]:
        raise ImmutableSnapshotError(details={"statement_id": id})

    def delete(self, id: int) -> bool:
        raise ImmutableSnapshotError(details={"statement_id": id})
