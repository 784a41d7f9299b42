"""
Tests comportementaux pour TenantResolver.
Verifie la resolution user -> tenant et le repli sur le propre livre.
"""
import pytest
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError


class TestTenantResolver:
    """Tests pour TenantResolver.resolve."""

    @pytest.fixture
    def mock_user_role_repo(self):
        return MagicMock()

    @pytest.fixture
    def resolver(self, mock_user_role_repo):
        from bookkeeper.services.tenant import TenantResolver
        return TenantResolver(mock_user_role_repo)

    @pytest.mark.unit
    def test_returns_owner_when_mapping_exists(self, resolver, mock_user_role_repo):
        """Un sous-utilisateur travaille dans le livre de son proprietaire."""
        mock_user_role_repo.get_latest_for_user.return_value = MagicMock(owner_user_id=1)

        assert resolver.resolve(7) == 1
        mock_user_role_repo.get_latest_for_user.assert_called_once_with(7)

    @pytest.mark.unit
    def test_returns_user_id_without_mapping(self, resolver, mock_user_role_repo):
        mock_user_role_repo.get_latest_for_user.return_value = None

        assert resolver.resolve(42) == 42

    @pytest.mark.unit
    def test_falls_back_to_user_id_on_lookup_failure(self, resolver, mock_user_role_repo):
        """Une erreur SQL est traitee comme 'aucun rattachement', sans lever."""
        mock_user_role_repo.get_latest_for_user.side_effect = OperationalError(
            "SELECT 1", {}, Exception("connection lost")
        )

        assert resolver.resolve(5) == 5

    @pytest.mark.unit
    def test_caches_result_per_instance(self, resolver, mock_user_role_repo):
        mock_user_role_repo.get_latest_for_user.return_value = MagicMock(owner_user_id=3)

        assert resolver.resolve(9) == 3
        assert resolver.resolve(9) == 3
        assert mock_user_role_repo.get_latest_for_user.call_count == 1

    @pytest.mark.unit
    def test_cache_is_not_shared_between_instances(self, mock_user_role_repo):
        from bookkeeper.services.tenant import TenantResolver

        mock_user_role_repo.get_latest_for_user.return_value = MagicMock(owner_user_id=3)
        TenantResolver(mock_user_role_repo).resolve(9)

        mock_user_role_repo.get_latest_for_user.return_value = None
        assert TenantResolver(mock_user_role_repo).resolve(9) == 9
