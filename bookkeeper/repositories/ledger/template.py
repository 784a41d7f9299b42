"""
Repository pour le plan comptable modele (global).
"""
from typing import List

from bookkeeper.models.ledger.template import ChartAccountTemplate
from bookkeeper.repositories.base import BaseRepository


class ChartAccountTemplateRepository(BaseRepository[ChartAccountTemplate]):
    """Plan modele partage par tous les tenants."""
    model = ChartAccountTemplate

    def list_active(self) -> List[ChartAccountTemplate]:
        """Lignes actives, parents avant enfants."""
        return (
            self.session.query(ChartAccountTemplate)
            .filter(ChartAccountTemplate.is_active.is_(True))
            .order_by(ChartAccountTemplate.level, ChartAccountTemplate.code)
            .all()
        )
