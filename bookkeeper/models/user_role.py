"""
Model UserRole - rattachement d'un sous-utilisateur au livre d'un proprietaire.

Un utilisateur sans ligne dans user_roles est son propre tenant.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, DateTime, Index, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from bookkeeper.models.base import Base, BigIntPK


class UserRole(Base):
    """
    Association utilisateur -> proprietaire du livre.

    Attributs:
        user_id: Utilisateur authentifie (sous-utilisateur)
        role: Role metier (comptable, lecteur...), informatif
        owner_user_id: Proprietaire du livre, utilise comme tenant_id
        created_at: Date d'assignation; la ligne la plus recente l'emporte
    """

    __tablename__ = "user_roles"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    role: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    owner_user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    __table_args__ = (
        Index("ix_user_roles_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<UserRole(user_id={self.user_id}, owner_user_id={self.owner_user_id})>"
