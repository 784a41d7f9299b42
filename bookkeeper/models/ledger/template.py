"""
ChartAccountTemplate - Plan comptable modele, global a tous les tenants.
Copie dans le plan d'un tenant par ChartOfAccountsService.seed_from_template.
"""
from typing import Optional

from sqlalchemy import Boolean, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from bookkeeper.models.base import Base, BigIntPK


class ChartAccountTemplate(Base):
    """Ligne du plan comptable modele (type en texte libre, normalise au seed)."""
    __tablename__ = "chart_accounts_template"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(Text, nullable=False)
    normal_balance: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    level: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    parent_code: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    allow_posting: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_bank_account: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        return f"<ChartAccountTemplate(code={self.code}, type={self.type})>"
