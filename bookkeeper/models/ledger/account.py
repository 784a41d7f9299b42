"""
ChartAccount - Plan comptable d'un tenant.
Hierarchie parent/enfant, type canonique et sens normal du solde.
"""
from decimal import Decimal
from typing import Optional, List
import enum

from sqlalchemy import BigInteger, Boolean, ForeignKey, Index, Integer, Text, UniqueConstraint
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookkeeper.models.base import Base, BigIntPK, Money, TimestampMixin, TenantMixin, enum_values


class AccountType(str, enum.Enum):
    """Les six types canoniques du plan comptable."""
    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    INCOME = "income"
    COST = "cost"
    EXPENSE = "expense"

    @property
    def is_debit_nature(self) -> bool:
        """True pour les types dont le solde naturel est debiteur."""
        return self in (AccountType.ASSET, AccountType.EXPENSE, AccountType.COST)


class NormalBalance(str, enum.Enum):
    """Sens normal du solde."""
    DEBIT = "debit"
    CREDIT = "credit"


class ChartAccount(Base, TimestampMixin, TenantMixin):
    """
    Compte du plan comptable.

    Les comptes de niveau 1-2 et les comptes ayant des enfants sont des
    comptes de regroupement: aucune ecriture ne doit y etre passee.
    La colonne balance est une vue materialisee du grand livre,
    recalculee par ChartOfAccountsService.refresh_stored_balances.
    """
    __tablename__ = "chart_accounts"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    type: Mapped[AccountType] = mapped_column(
        SQLEnum(AccountType, name="account_type", values_callable=enum_values),
        nullable=False
    )
    normal_balance: Mapped[NormalBalance] = mapped_column(
        SQLEnum(NormalBalance, name="normal_balance", values_callable=enum_values),
        nullable=False
    )
    level: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    parent_id: Mapped[Optional[int]] = mapped_column(
        BigInteger,
        ForeignKey("chart_accounts.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    allow_posting: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_bank_account: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    balance: Mapped[Decimal] = mapped_column(Money, default=Decimal("0.00"), nullable=False)

    # Relations
    parent: Mapped[Optional["ChartAccount"]] = relationship(
        "ChartAccount",
        remote_side="ChartAccount.id",
        back_populates="children"
    )
    children: Mapped[List["ChartAccount"]] = relationship(
        "ChartAccount",
        back_populates="parent"
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "code", name="uq_chart_accounts_tenant_code"),
        Index("ix_chart_accounts_tenant_type", "tenant_id", "type"),
    )

    def __repr__(self) -> str:
        return f"<ChartAccount(id={self.id}, code={self.code}, type={self.type})>"
