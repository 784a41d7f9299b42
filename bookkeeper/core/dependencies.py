"""
Dependencies FastAPI pour Bookkeeper
Injection de la session, de l'utilisateur, du tenant et des services.

Le tenant n'est jamais lu dans la requete: il est resolu a partir de
l'utilisateur appelant par le TenantResolver.
"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from bookkeeper.core.database import get_db
from bookkeeper.core.exceptions import UserRequired
from bookkeeper.core.logging import set_request_context
from bookkeeper.repositories.user_role import UserRoleRepository
from bookkeeper.services.ledger import (
    BalanceEngine,
    ChartOfAccountsService,
    JournalService,
    ReportGenerator,
)
from bookkeeper.services.tenant import TenantResolver


# ============================================
# Identite et tenant
# ============================================

def get_current_user_id(request: Request) -> int:
    """
    Recupere l'utilisateur extrait par UserContextMiddleware.

    Raises:
        UserRequired: Si aucun utilisateur valide n'est associe a la requete
    """
    user_id = getattr(request.state, "user_id", None)
    if not user_id:
        raise UserRequired()
    return user_id


def get_tenant_resolver(db: Session = Depends(get_db)) -> TenantResolver:
    """Fournit un TenantResolver neuf (cache limite a la requete)"""
    return TenantResolver(UserRoleRepository(db))


def get_current_tenant_id(
    request: Request,
    user_id: int = Depends(get_current_user_id),
    resolver: TenantResolver = Depends(get_tenant_resolver),
) -> int:
    """
    Resout le tenant de l'utilisateur courant.

    Le resultat est stocke dans request.state.tenant_id et dans le
    contexte de logging.

    Returns:
        ID du tenant
    """
    tenant_id = getattr(request.state, "tenant_id", None)
    if tenant_id is None:
        tenant_id = resolver.resolve(user_id)
        request.state.tenant_id = tenant_id
        set_request_context(tenant_id=tenant_id)
    return tenant_id


# ============================================
# Services du grand livre
# ============================================

def get_balance_engine(db: Session = Depends(get_db)) -> BalanceEngine:
    """Fournit le BalanceEngine"""
    return BalanceEngine(db)


def get_chart_of_accounts_service(
    db: Session = Depends(get_db),
    balance_engine: BalanceEngine = Depends(get_balance_engine),
) -> ChartOfAccountsService:
    """Fournit le service plan comptable"""
    return ChartOfAccountsService(db, balance_engine=balance_engine)


def get_journal_service(db: Session = Depends(get_db)) -> JournalService:
    """Fournit le service de saisie des ecritures"""
    return JournalService(db)


def get_report_generator(
    db: Session = Depends(get_db),
    balance_engine: BalanceEngine = Depends(get_balance_engine),
) -> ReportGenerator:
    """Fournit le generateur d'etats financiers"""
    return ReportGenerator(db, balance_engine=balance_engine)


__all__ = [
    "get_db",
    "get_current_user_id",
    "get_tenant_resolver",
    "get_current_tenant_id",
    "get_balance_engine",
    "get_chart_of_accounts_service",
    "get_journal_service",
    "get_report_generator",
]
