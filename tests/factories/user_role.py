"""
Factory pour les rattachements utilisateur -> proprietaire.
"""
from factory import Sequence

from bookkeeper.models.user_role import UserRole
from tests.factories.base import PersistedFactory


class UserRoleFactory(PersistedFactory):
    """
    Usage:
        UserRoleFactory.create(db_session=db_session, user_id=7, owner_user_id=1)
    """

    class Meta:
        model = UserRole

    user_id = Sequence(lambda n: n + 100)
    role = "accountant"
    owner_user_id = 1
