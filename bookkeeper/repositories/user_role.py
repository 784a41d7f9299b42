"""
Repository pour UserRole (table globale, non tenant-aware).
Lu par le TenantResolver pour trouver le proprietaire du livre.
"""
from typing import Optional

from sqlalchemy import desc

from bookkeeper.models.user_role import UserRole
from bookkeeper.repositories.base import BaseRepository


class UserRoleRepository(BaseRepository[UserRole]):
    """Repository des rattachements utilisateur -> proprietaire."""
    model = UserRole

    def get_latest_for_user(self, user_id: int) -> Optional[UserRole]:
        """
        Retourne le rattachement le plus recent d'un utilisateur.

        Args:
            user_id: Utilisateur authentifie

        Returns:
            Le UserRole le plus recent ou None
        """
        return (
            self.session.query(UserRole)
            .filter(UserRole.user_id == user_id)
            .order_by(desc(UserRole.created_at), desc(UserRole.id))
            .first()
        )
