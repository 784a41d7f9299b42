"""
Classes de base et mixins pour les modeles SQLAlchemy
Multi-tenant avec timestamps automatiques
Compatible SQLAlchemy 2.0 avec Mapped types
"""
from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Integer, Numeric, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# SQLite n'auto-incremente que les colonnes INTEGER PRIMARY KEY
BigIntPK = BigInteger().with_variant(Integer, "sqlite")

# Montants monetaires: 2 decimales
Money = Numeric(18, 2, asdecimal=True)


class Base(DeclarativeBase):
    """Classe de base pour tous les modeles SQLAlchemy"""
    pass


class CreatedAtMixin:
    """Mixin pour les tables en ajout seul (pas de updated_at)"""
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )


class TimestampMixin(CreatedAtMixin):
    """
    Mixin pour ajouter created_at et updated_at automatiques.
    updated_at est mis a jour automatiquement a chaque modification.
    """
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )


class TenantMixin:
    """
    Mixin pour l'isolation multi-tenant.
    Toutes les tables tenant-aware heritent de ce mixin.
    """
    tenant_id: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        index=True
    )



def enum_values(enum_cls):
    """Persiste la valeur (minuscule) des enums et non le nom du membre."""
    return [member.value for member in enum_cls]
