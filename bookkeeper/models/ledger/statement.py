"""
FinancialStatement - Instantane immuable d'un etat financier genere.
Regenerer un etat pour la meme periode ajoute une ligne, jamais de mise a jour.
"""
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional
import enum

from sqlalchemy import JSON, Boolean, Date, Index, Text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from bookkeeper.models.base import Base, BigIntPK, CreatedAtMixin, Money, TenantMixin, enum_values


class StatementType(str, enum.Enum):
    """Types d'etats financiers."""
    BALANCE_SHEET = "balance_sheet"
    INCOME_STATEMENT = "income_statement"
    CASH_FLOW = "cash_flow"
    TRIAL_BALANCE = "trial_balance"

    @property
    def label(self) -> str:
        return STATEMENT_LABELS[self]


STATEMENT_LABELS = {
    StatementType.BALANCE_SHEET: "Balance Sheet",
    StatementType.INCOME_STATEMENT: "Income Statement",
    StatementType.CASH_FLOW: "Cash Flow Statement",
    StatementType.TRIAL_BALANCE: "Trial Balance",
}


class FinancialStatement(Base, CreatedAtMixin, TenantMixin):
    """
    Etat financier fige (status 'final').

    Les totaux utiles au filtrage sont en colonnes; le detail complet
    du rapport est conserve dans payload.
    """
    __tablename__ = "financial_statements"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    type: Mapped[StatementType] = mapped_column(
        SQLEnum(StatementType, name="statement_type", values_callable=enum_values),
        nullable=False
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    period: Mapped[str] = mapped_column(Text, nullable=False)  # YYYY-MM
    from_date: Mapped[date] = mapped_column(Date, nullable=False)
    to_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(Text, default="final", nullable=False)

    # Bilan
    total_assets: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    total_liabilities: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    total_equity: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    # Compte de resultat
    total_revenue: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    total_costs: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    total_expenses: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    net_income: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    # Flux de tresorerie
    operating_cash_flow: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    investing_cash_flow: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    financing_cash_flow: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    net_cash_flow: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    # Balance de verification
    total_debits: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    total_credits: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    is_balanced: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)

    payload: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)

    __table_args__ = (
        Index("ix_financial_statements_tenant_period", "tenant_id", "period"),
    )

    def __repr__(self) -> str:
        return f"<FinancialStatement(id={self.id}, type={self.type}, period={self.period})>"
