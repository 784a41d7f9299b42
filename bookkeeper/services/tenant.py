"""
Service TenantResolver pour Bookkeeper
Associe un utilisateur authentifie au livre (tenant) qu'il manipule
"""
import logging
from typing import Dict

from sqlalchemy.exc import SQLAlchemyError

from bookkeeper.repositories.user_role import UserRoleRepository

logger = logging.getLogger(__name__)


class TenantResolver:
    """
    Resout user_id -> tenant_id.

    Un sous-utilisateur rattache a un proprietaire via user_roles travaille
    dans le livre du proprietaire; sans rattachement, l'utilisateur est
    son propre tenant.

    Le cache est propre a l'instance: la couche HTTP cree un resolver par
    requete, aucun resultat n'est partage entre utilisateurs.
    """

    def __init__(self, user_role_repository: UserRoleRepository):
        self.user_role_repository = user_role_repository
        self._cache: Dict[int, int] = {}

    def resolve(self, user_id: int) -> int:
        """
        Retourne le tenant de l'utilisateur. Ne leve jamais.

        Args:
            user_id: Utilisateur authentifie

        Returns:
            owner_user_id du rattachement le plus recent, sinon user_id
        """
        if user_id in self._cache:
            return self._cache[user_id]

        tenant_id = user_id
        try:
            mapping = self.user_role_repository.get_latest_for_user(user_id)
        except SQLAlchemyError as exc:
            # Meme traitement que "aucun rattachement"
            logger.warning(
                f"Resolution tenant en echec pour user_id={user_id}, "
                f"repli sur le propre livre: {exc}"
            )
            mapping = None

        if mapping is not None and mapping.owner_user_id:
            tenant_id = mapping.owner_user_id
            logger.debug(f"user_id={user_id} rattache au tenant {tenant_id}")

        self._cache[user_id] = tenant_id
        return tenant_id
