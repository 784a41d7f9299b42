"""
JournalEntry / JournalLine - Ecritures comptables en partie double.

Une ecriture et ses lignes sont creees ensemble et ne sont plus modifiees;
seul le statut evolue (draft -> posted -> reversed via contre-passation).
"""
from datetime import date
from decimal import Decimal
from typing import Optional, List
import enum

from sqlalchemy import BigInteger, CheckConstraint, Date, ForeignKey, Index, Integer, Text, UniqueConstraint
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookkeeper.models.base import (
    Base, BigIntPK, CreatedAtMixin, Money, TimestampMixin, TenantMixin, enum_values
)
from bookkeeper.models.ledger.account import ChartAccount


class JournalEntryStatus(str, enum.Enum):
    """Statut d'une ecriture."""
    DRAFT = "draft"
    POSTED = "posted"
    REVERSED = "reversed"


# Statuts comptabilises dans les soldes (une ecriture contre-passee reste
# au livre, son ecriture inverse la neutralise)
COUNTED_STATUSES = (JournalEntryStatus.POSTED, JournalEntryStatus.REVERSED)


class CashFlowCategory(str, enum.Enum):
    """Categorie de flux de tresorerie, attribuee a la saisie."""
    OPERATING = "operating"
    INVESTING = "investing"
    FINANCING = "financing"


class JournalEntry(Base, TimestampMixin, TenantMixin):
    """
    En-tete d'ecriture avec totaux denormalises.
    """
    __tablename__ = "journal_entries"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    entry_number: Mapped[str] = mapped_column(Text, nullable=False)
    entry_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    reference: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[JournalEntryStatus] = mapped_column(
        SQLEnum(JournalEntryStatus, name="journal_entry_status", values_callable=enum_values),
        default=JournalEntryStatus.POSTED,
        nullable=False
    )

    total_debit: Mapped[Decimal] = mapped_column(Money, default=Decimal("0.00"), nullable=False)
    total_credit: Mapped[Decimal] = mapped_column(Money, default=Decimal("0.00"), nullable=False)

    cash_flow_category: Mapped[Optional[CashFlowCategory]] = mapped_column(
        SQLEnum(CashFlowCategory, name="cash_flow_category", values_callable=enum_values),
        nullable=True
    )
    # Cle fournie par l'appelant pour rendre la saisie rejouable
    idempotency_key: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    reversal_of_id: Mapped[Optional[int]] = mapped_column(
        BigInteger,
        ForeignKey("journal_entries.id", ondelete="RESTRICT"),
        nullable=True
    )

    # Relations
    lines: Mapped[List["JournalLine"]] = relationship(
        "JournalLine",
        back_populates="entry",
        lazy="selectin",
        order_by="JournalLine.line_number",
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "idempotency_key", name="uq_journal_entries_tenant_idempotency"),
        Index("ix_journal_entries_tenant_date", "tenant_id", "entry_date"),
        Index("ix_journal_entries_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<JournalEntry(id={self.id}, number={self.entry_number}, status={self.status})>"


class JournalLine(Base, CreatedAtMixin):
    """
    Ligne d'ecriture: un compte, un montant au debit ou au credit.
    """
    __tablename__ = "journal_entry_lines"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    journal_entry_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("journal_entries.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    account_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("chart_accounts.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    debit_amount: Mapped[Decimal] = mapped_column(Money, default=Decimal("0.00"), nullable=False)
    credit_amount: Mapped[Decimal] = mapped_column(Money, default=Decimal("0.00"), nullable=False)
    line_number: Mapped[int] = mapped_column(Integer, nullable=False)

    # Relations
    entry: Mapped["JournalEntry"] = relationship("JournalEntry", back_populates="lines")
    account: Mapped["ChartAccount"] = relationship("ChartAccount", lazy="joined")

    __table_args__ = (
        Index("ix_journal_entry_lines_entry_line", "journal_entry_id", "line_number"),
        CheckConstraint("debit_amount >= 0 AND credit_amount >= 0", name="ck_journal_entry_lines_positive"),
    )

    def __repr__(self) -> str:
        return (
            f"<JournalLine(entry={self.journal_entry_id}, account={self.account_id}, "
            f"debit={self.debit_amount}, credit={self.credit_amount})>"
        )
