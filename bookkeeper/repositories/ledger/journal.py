"""
Repository pour JournalEntry et JournalLine.

Les agregations de soldes sont faites en SQL (GROUP BY compte) et
ne comptent que les ecritures posted/reversed.
"""
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import desc, func, select

from bookkeeper.core.money import money
from bookkeeper.models.ledger.account import ChartAccount
from bookkeeper.models.ledger.journal import (
    COUNTED_STATUSES,
    CashFlowCategory,
    JournalEntry,
    JournalLine,
)
from bookkeeper.repositories.base import BaseRepository, TenantAwareBaseRepository


@dataclass(frozen=True)
class LineAggregate:
    """Somme des lignes d'un compte."""
    account_id: int
    account_tenant_id: int
    total_debit: Decimal
    total_credit: Decimal


@dataclass(frozen=True)
class CashLine:
    """Ligne passee sur un compte de tresorerie, avec le contexte de l'ecriture."""
    entry_id: int
    entry_date: date
    entry_description: str
    cash_flow_category: Optional[CashFlowCategory]
    account_id: int
    description: Optional[str]
    debit_amount: Decimal
    credit_amount: Decimal


class JournalEntryRepository(TenantAwareBaseRepository[JournalEntry]):
    """
    Repository des en-tetes d'ecriture.
    Isolation multi-tenant obligatoire.
    """
    model = JournalEntry

    def list_recent(self) -> List[JournalEntry]:
        """Ecritures du tenant, date decroissante puis creation decroissante."""
        return (
            self._tenant_query()
            .order_by(
                desc(JournalEntry.entry_date),
                desc(JournalEntry.created_at),
                desc(JournalEntry.id),
            )
            .all()
        )

    def get_by_idempotency_key(self, key: str) -> Optional[JournalEntry]:
        return self._tenant_query().filter(JournalEntry.idempotency_key == key).first()


class JournalLineRepository(BaseRepository[JournalLine]):
    """
    Repository des lignes d'ecriture.

    Les lignes n'ont pas de tenant_id: toute lecture passe par une
    jointure sur l'en-tete filtree par tenant.
    """
    model = JournalLine

    def bulk_create(self, journal_entry_id: int, lines: Sequence[Dict[str, Any]]) -> List[JournalLine]:
        """Insere toutes les lignes d'une ecriture."""
        objects = [
            JournalLine(journal_entry_id=journal_entry_id, **line)
            for line in lines
        ]
        self.session.add_all(objects)
        self.session.flush()
        return objects

    def exists_for_account(self, account_id: int) -> bool:
        """True si au moins une ligne reference le compte (tous statuts)."""
        query = select(JournalLine.id).where(JournalLine.account_id == account_id).limit(1)
        return self.session.execute(query).first() is not None

    def aggregate_by_account(
        self,
        tenant_id: int,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        account_id: Optional[int] = None,
    ) -> List[LineAggregate]:
        """
        Somme debit/credit par compte pour les ecritures comptabilisees.

        Args:
            tenant_id: Tenant des ecritures
            from_date: Date de debut incluse (optionnelle)
            to_date: Date de fin incluse (optionnelle)
            account_id: Restreint a un compte (optionnel)

        Returns:
            Une ligne par compte mouvemente, avec le tenant du compte joint
        """
        total_debit = func.coalesce(func.sum(JournalLine.debit_amount), 0)
        total_credit = func.coalesce(func.sum(JournalLine.credit_amount), 0)
        query = (
            select(
                JournalLine.account_id,
                ChartAccount.tenant_id,
                total_debit.label("total_debit"),
                total_credit.label("total_credit"),
            )
            .join(JournalEntry, JournalLine.journal_entry_id == JournalEntry.id)
            .join(ChartAccount, JournalLine.account_id == ChartAccount.id)
            .where(
                JournalEntry.tenant_id == tenant_id,
                JournalEntry.status.in_(COUNTED_STATUSES),
            )
            .group_by(JournalLine.account_id, ChartAccount.tenant_id)
        )
        if from_date is not None:
            query = query.where(JournalEntry.entry_date >= from_date)
        if to_date is not None:
            query = query.where(JournalEntry.entry_date <= to_date)
        if account_id is not None:
            query = query.where(JournalLine.account_id == account_id)

        return [
            LineAggregate(
                account_id=row[0],
                account_tenant_id=row[1],
                total_debit=money(row[2]),
                total_credit=money(row[3]),
            )
            for row in self.session.execute(query).all()
        ]

    def lines_for_accounts(
        self,
        tenant_id: int,
        account_ids: Sequence[int],
        from_date: date,
        to_date: date,
    ) -> List[CashLine]:
        """Lignes comptabilisees des comptes donnes sur la periode."""
        if not account_ids:
            return []
        query = (
            select(
                JournalEntry.id,
                JournalEntry.entry_date,
                JournalEntry.description,
                JournalEntry.cash_flow_category,
                JournalLine.account_id,
                JournalLine.description,
                JournalLine.debit_amount,
                JournalLine.credit_amount,
            )
            .join(JournalEntry, JournalLine.journal_entry_id == JournalEntry.id)
            .where(
                JournalEntry.tenant_id == tenant_id,
                JournalEntry.status.in_(COUNTED_STATUSES),
                JournalEntry.entry_date >= from_date,
                JournalEntry.entry_date <= to_date,
                JournalLine.account_id.in_(list(account_ids)),
            )
            .order_by(JournalEntry.entry_date, JournalEntry.id, JournalLine.line_number)
        )
        return [
            CashLine(
                entry_id=row[0],
                entry_date=row[1],
                entry_description=row[2] or "",
                cash_flow_category=row[3],
                account_id=row[4],
                description=row[5],
                debit_amount=money(row[6]),
                credit_amount=money(row[7]),
            )
            for row in self.session.execute(query).all()
        ]
