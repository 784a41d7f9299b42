"""
AccountingSettings - Comptes par defaut d'un tenant.
Ses colonnes *_account_id sont des references qui bloquent la suppression d'un compte.
"""
from typing import Optional

from sqlalchemy import BigInteger, Boolean, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from bookkeeper.models.base import Base, BigIntPK, TimestampMixin

# Colonnes verifiees avant suppression d'un compte
ACCOUNT_REFERENCE_COLUMNS = (
    "ap_account_id",
    "ar_account_id",
    "sales_account_id",
    "sales_tax_account_id",
    "ap_bank_account_id",
)


def _account_fk():
    return mapped_column(
        BigInteger,
        ForeignKey("chart_accounts.id", ondelete="RESTRICT"),
        nullable=True
    )


class AccountingSettings(Base, TimestampMixin):
    """Parametres comptables (un enregistrement par tenant)."""
    __tablename__ = "accounting_settings"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    tenant_id: Mapped[int] = mapped_column(BigInteger, nullable=False, unique=True)

    ap_account_id: Mapped[Optional[int]] = _account_fk()
    ar_account_id: Mapped[Optional[int]] = _account_fk()
    sales_account_id: Mapped[Optional[int]] = _account_fk()
    sales_tax_account_id: Mapped[Optional[int]] = _account_fk()
    ap_bank_account_id: Mapped[Optional[int]] = _account_fk()

    chart_accounts_seeded: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        return f"<AccountingSettings(tenant_id={self.tenant_id})>"
