"""
Resultat explicite des lectures tolerantes.

Les lectures d'agregats et de rapports ne levent pas en cas d'echec de
la base: elles retournent un resultat vide marque "degraded", pour que
l'appelant distingue "aucune donnee" de "requete en echec".

Usage:
    result = balance_engine.get_balances(tenant_id)
    if result.is_degraded:
        ...
    rows = result.data
"""
import enum
import logging
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from bookkeeper.core.exceptions import ReportDegradedError

T = TypeVar("T")


class ReadStatus(str, enum.Enum):
    """Statut d'une lecture."""
    OK = "ok"
    DEGRADED = "degraded"


class ReportStatus(str, enum.Enum):
    """Statut d'un etat financier genere."""
    COMPLETE = "complete"
    DEGRADED = "degraded"


@dataclass(frozen=True)
class ReadResult(Generic[T]):
    """
    Donnees lues avec leur statut.

    Attributes:
        data: Donnees (vides si degraded)
        status: ok ou degraded
        error_kind: Nom de la classe d'erreur si degraded
        message: Message d'erreur si degraded
    """
    data: T
    status: ReadStatus = ReadStatus.OK
    error_kind: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def ok(cls, data: T) -> "ReadResult[T]":
        return cls(data=data)

    @classmethod
    def degraded(cls, empty: T, error: Exception) -> "ReadResult[T]":
        """Construit un resultat vide a partir de l'erreur de lecture."""
        return cls(
            data=empty,
            status=ReadStatus.DEGRADED,
            error_kind=type(error).__name__,
            message=str(error),
        )

    @property
    def is_ok(self) -> bool:
        return self.status == ReadStatus.OK

    @property
    def is_degraded(self) -> bool:
        return self.status == ReadStatus.DEGRADED

    def unwrap(self) -> T:
        """
        Retourne les donnees ou leve si la lecture a echoue.

        Raises:
            ReportDegradedError: Si le resultat est degraded
        """
        if self.is_degraded:
            raise ReportDegradedError(details={
                "error_kind": self.error_kind,
                "reason": self.message,
            })
        return self.data


def degrade(
    logger: logging.Logger,
    operation: str,
    tenant_id: int,
    error: Exception,
    empty: T,
) -> ReadResult[T]:
    """Log l'echec de lecture en warning et retourne un resultat degraded."""
    logger.warning(
        f"Lecture degradee pour {operation} (tenant={tenant_id}): "
        f"{type(error).__name__}: {error}"
    )
    return ReadResult.degraded(empty, error)
