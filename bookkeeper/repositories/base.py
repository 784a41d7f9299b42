"""
Repositories de base pour Bookkeeper.

- BaseRepository: tables globales (plan modele, rattachements utilisateurs)
  et tables sans tenant_id propre (lignes d'ecriture).
- TenantAwareBaseRepository: tables d'un livre. Chaque requete est filtree
  par le tenant_id fixe a la construction; un objet d'un autre tenant est
  traite comme inexistant.

Les lignes d'ecriture n'ont pas de tenant_id: leur repository passe par
une jointure sur l'en-tete (voir JournalLineRepository).
"""
import logging
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy.orm import Query, Session, SessionTransaction

from bookkeeper.models.base import Base

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)


class RepositoryException(Exception):
    """Erreur de construction ou d'usage d'un repository"""
    pass


class TenantIsolationError(RepositoryException):
    """Repository tenant-aware construit sur un model sans tenant_id"""
    pass


class BaseRepository(Generic[ModelType]):
    """
    Acces non filtre par tenant.

    Usage:
        class ChartAccountTemplateRepository(BaseRepository[ChartAccountTemplate]):
            model = ChartAccountTemplate
    """

    model: Type[ModelType]

    def __init__(self, session: Session):
        self.session = session

    def get(self, id: int) -> Optional[ModelType]:
        return self.session.get(self.model, id)

    def create(self, data: Dict[str, Any]) -> ModelType:
        """Ajoute l'objet et flush pour obtenir son ID."""
        obj = self.model(**data)
        self.session.add(obj)
        self.session.flush()
        return obj


class TenantAwareBaseRepository(Generic[ModelType]):
    """
    Acces restreint a un livre.

    Usage:
        class ChartAccountRepository(TenantAwareBaseRepository[ChartAccount]):
            model = ChartAccount

        accounts = ChartAccountRepository(session, tenant_id=1)
        accounts.get(42)  # None si le compte 42 appartient a un autre livre
    """

    model: Type[ModelType]

    def __init__(self, session: Session, tenant_id: int):
        """
        Raises:
            TenantIsolationError: Si le model n'a pas de colonne tenant_id
        """
        if not hasattr(self.model, "tenant_id"):
            raise TenantIsolationError(
                f"{self.model.__name__} n'a pas de tenant_id: utiliser BaseRepository"
            )
        self.session = session
        self._tenant_id = tenant_id

    @property
    def tenant_id(self) -> int:
        return self._tenant_id

    def _tenant_query(self) -> Query:
        """Point de depart de toute lecture: Query filtree sur le tenant."""
        return self.session.query(self.model).filter(
            self.model.tenant_id == self._tenant_id
        )

    def atomic(self) -> SessionTransaction:
        """
        SAVEPOINT: les ecritures du bloc sont validees ensemble ou annulees
        ensemble, sans toucher au reste de la transaction.

        Usage:
            with entries.atomic():
                entry = entries.create(header)
                lines.bulk_create(entry.id, rows)
        """
        return self.session.begin_nested()

    def get(self, id: int) -> Optional[ModelType]:
        """L'objet s'il existe dans ce tenant, sinon None."""
        return self._tenant_query().filter(self.model.id == id).first()

    def get_many(self, ids: List[int]) -> List[ModelType]:
        """Objets du tenant parmi ids; les IDs inconnus ou etrangers sont absents du resultat."""
        if not ids:
            return []
        return self._tenant_query().filter(self.model.id.in_(ids)).all()

    def create(self, data: Dict[str, Any]) -> ModelType:
        """
        Cree l'objet dans ce tenant.

        Un tenant_id present dans data est ecrase par celui du repository.
        """
        obj = self.model(**{**data, "tenant_id": self._tenant_id})
        self.session.add(obj)
        self.session.flush()
        return obj

    def update(self, id: int, data: Dict[str, Any]) -> Optional[ModelType]:
        """
        Applique data aux attributs existants de l'objet.

        tenant_id n'est jamais modifiable: la cle est ignoree et loggee.

        Returns:
            L'objet modifie, None s'il est absent du tenant
        """
        obj = self.get(id)
        if obj is None:
            return None

        if "tenant_id" in data:
            logger.warning(f"Changement de tenant_id refuse pour {self.model.__name__} id={id}")
        for key, value in data.items():
            if key != "tenant_id" and hasattr(obj, key):
                setattr(obj, key, value)

        self.session.flush()
        return obj

    def delete(self, id: int) -> bool:
        """False si l'objet est absent du tenant."""
        obj = self.get(id)
        if obj is None:
            return False
        self.session.delete(obj)
        self.session.flush()
        return True

    def count(self) -> int:
        return self._tenant_query().count()
