"""
API Endpoints du grand livre.
Plan comptable, ecritures, soldes et etats financiers.

Le tenant est toujours resolu depuis l'utilisateur appelant; aucun
endpoint n'accepte de tenant_id en parametre.
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from bookkeeper.core.dependencies import (
    get_balance_engine,
    get_chart_of_accounts_service,
    get_current_tenant_id,
    get_journal_service,
    get_report_generator,
)
from bookkeeper.schemas.base import ReadResponse
from bookkeeper.schemas.ledger import (
    AccountBalanceRead,
    AccountBalanceValue,
    AccountCreate,
    AccountRead,
    AccountRelationsRead,
    AccountUpdate,
    AccountViewRead,
    BalanceSheetRead,
    CashFlowRead,
    IncomeStatementRead,
    JournalEntryCreate,
    JournalEntryRead,
    JournalEntryReverse,
    SeedResultRead,
    StatementCreate,
    StatementRead,
    TrialBalanceRead,
)
from bookkeeper.services.ledger import (
    BalanceEngine,
    ChartOfAccountsService,
    JournalService,
    ReportGenerator,
)

router = APIRouter(prefix="/ledger", tags=["Ledger"])


# =============================================================================
# Plan comptable
# =============================================================================

@router.get("/accounts", response_model=ReadResponse[AccountViewRead], summary="Plan comptable")
def list_accounts(
    tenant_id: int = Depends(get_current_tenant_id),
    service: ChartOfAccountsService = Depends(get_chart_of_accounts_service)
):
    """Comptes du tenant tries par code, avec posting_allowed calcule."""
    result = service.get_all(tenant_id)
    return ReadResponse.from_result(
        result, [AccountViewRead.model_validate(view) for view in result.data]
    )


@router.post("/accounts", response_model=AccountRead, status_code=201, summary="Creer un compte")
def create_account(
    data: AccountCreate,
    tenant_id: int = Depends(get_current_tenant_id),
    service: ChartOfAccountsService = Depends(get_chart_of_accounts_service)
):
    return service.create(tenant_id, data.model_dump(exclude_none=True))


@router.get("/accounts/balances", response_model=ReadResponse[AccountBalanceRead], summary="Soldes des comptes")
def list_account_balances(
    as_of: Optional[date] = Query(None, description="Date de fin incluse"),
    tenant_id: int = Depends(get_current_tenant_id),
    balance_engine: BalanceEngine = Depends(get_balance_engine)
):
    """Soldes calcules depuis les ecritures comptabilisees."""
    result = balance_engine.get_balances(tenant_id, as_of=as_of)
    return ReadResponse.from_result(
        result, [AccountBalanceRead.model_validate(row) for row in result.data]
    )


@router.post("/accounts/balances/refresh", summary="Rafraichir les soldes stockes")
def refresh_account_balances(
    tenant_id: int = Depends(get_current_tenant_id),
    service: ChartOfAccountsService = Depends(get_chart_of_accounts_service)
):
    return {"updated": service.refresh_stored_balances(tenant_id)}


@router.post("/accounts/seed", response_model=SeedResultRead, summary="Initialiser depuis le plan modele")
def seed_accounts(
    tenant_id: int = Depends(get_current_tenant_id),
    service: ChartOfAccountsService = Depends(get_chart_of_accounts_service)
):
    return service.seed_from_template(tenant_id)


@router.get("/accounts/{account_id}", response_model=AccountRead, summary="Detail d'un compte")
def get_account(
    account_id: int,
    tenant_id: int = Depends(get_current_tenant_id),
    service: ChartOfAccountsService = Depends(get_chart_of_accounts_service)
):
    return service.get_account(tenant_id, account_id)


@router.patch("/accounts/{account_id}", response_model=AccountRead, summary="Modifier un compte")
def update_account(
    account_id: int,
    data: AccountUpdate,
    tenant_id: int = Depends(get_current_tenant_id),
    service: ChartOfAccountsService = Depends(get_chart_of_accounts_service)
):
    return service.update(tenant_id, account_id, data.model_dump(exclude_unset=True))


@router.delete("/accounts/{account_id}", status_code=204, summary="Supprimer un compte")
def delete_account(
    account_id: int,
    tenant_id: int = Depends(get_current_tenant_id),
    service: ChartOfAccountsService = Depends(get_chart_of_accounts_service)
):
    """Refuse (409) si le compte est reference par les parametres ou une ecriture."""
    service.delete(tenant_id, account_id)
    return Response(status_code=204)


@router.get("/accounts/{account_id}/relations", response_model=AccountRelationsRead, summary="References du compte")
def get_account_relations(
    account_id: int,
    tenant_id: int = Depends(get_current_tenant_id),
    service: ChartOfAccountsService = Depends(get_chart_of_accounts_service)
):
    service.get_account(tenant_id, account_id)  # Verifier existence
    return service.check_relations(tenant_id, account_id)


@router.get("/accounts/{account_id}/balance", response_model=AccountBalanceValue, summary="Solde d'un compte")
def get_account_balance(
    account_id: int,
    as_of: Optional[date] = Query(None, description="Date de fin incluse"),
    tenant_id: int = Depends(get_current_tenant_id),
    balance_engine: BalanceEngine = Depends(get_balance_engine)
):
    result = balance_engine.get_account_balance(tenant_id, account_id, as_of=as_of)
    return AccountBalanceValue(
        account_id=account_id,
        as_of=as_of,
        balance=result.data,
        status=result.status.value,
        error_kind=result.error_kind,
    )


# =============================================================================
# Ecritures
# =============================================================================

@router.get("/journal-entries", response_model=ReadResponse[JournalEntryRead], summary="Liste des ecritures")
def list_journal_entries(
    tenant_id: int = Depends(get_current_tenant_id),
    service: JournalService = Depends(get_journal_service)
):
    result = service.get_all(tenant_id)
    return ReadResponse.from_result(
        result, [JournalEntryRead.model_validate(entry) for entry in result.data]
    )


@router.post("/journal-entries", response_model=JournalEntryRead, status_code=201, summary="Saisir une ecriture")
def post_journal_entry(
    data: JournalEntryCreate,
    tenant_id: int = Depends(get_current_tenant_id),
    service: JournalService = Depends(get_journal_service)
):
    """
    Enregistre une ecriture equilibree et ses lignes.

    Une ecriture desequilibree est refusee (422) sans rien persister.
    Rejouer la meme idempotency_key retourne l'ecriture existante.
    """
    return service.post_entry(tenant_id, data.header(), data.line_dicts())


@router.get("/journal-entries/{entry_id}", response_model=JournalEntryRead, summary="Detail d'une ecriture")
def get_journal_entry(
    entry_id: int,
    tenant_id: int = Depends(get_current_tenant_id),
    service: JournalService = Depends(get_journal_service)
):
    return service.get_entry(tenant_id, entry_id)


@router.post("/journal-entries/{entry_id}/post", response_model=JournalEntryRead, summary="Comptabiliser un brouillon")
def post_draft_entry(
    entry_id: int,
    tenant_id: int = Depends(get_current_tenant_id),
    service: JournalService = Depends(get_journal_service)
):
    return service.post_draft(tenant_id, entry_id)


@router.post(
    "/journal-entries/{entry_id}/reverse",
    response_model=JournalEntryRead,
    status_code=201,
    summary="Contre-passer une ecriture"
)
def reverse_journal_entry(
    entry_id: int,
    data: Optional[JournalEntryReverse] = None,
    tenant_id: int = Depends(get_current_tenant_id),
    service: JournalService = Depends(get_journal_service)
):
    data = data or JournalEntryReverse()
    return service.reverse_entry(
        tenant_id,
        entry_id,
        reversal_date=data.reversal_date,
        entry_number=data.entry_number,
    )


# =============================================================================
# Etats financiers
# =============================================================================

@router.get("/reports/trial-balance", response_model=TrialBalanceRead, summary="Balance de verification")
def get_trial_balance(
    as_of: Optional[date] = Query(None),
    tenant_id: int = Depends(get_current_tenant_id),
    generator: ReportGenerator = Depends(get_report_generator)
):
    return TrialBalanceRead.model_validate(generator.generate_trial_balance(tenant_id, as_of=as_of))


@router.get("/reports/balance-sheet", response_model=BalanceSheetRead, summary="Bilan")
def get_balance_sheet(
    as_of: Optional[date] = Query(None),
    tenant_id: int = Depends(get_current_tenant_id),
    generator: ReportGenerator = Depends(get_report_generator)
):
    return BalanceSheetRead.model_validate(generator.generate_balance_sheet(tenant_id, as_of=as_of))


@router.get("/reports/income-statement", response_model=IncomeStatementRead, summary="Compte de resultat")
def get_income_statement(
    from_date: date = Query(...),
    to_date: date = Query(...),
    tenant_id: int = Depends(get_current_tenant_id),
    generator: ReportGenerator = Depends(get_report_generator)
):
    return IncomeStatementRead.model_validate(
        generator.generate_income_statement(tenant_id, from_date, to_date)
    )


@router.get("/reports/cash-flow", response_model=CashFlowRead, summary="Tableau des flux de tresorerie")
def get_cash_flow(
    from_date: date = Query(...),
    to_date: date = Query(...),
    tenant_id: int = Depends(get_current_tenant_id),
    generator: ReportGenerator = Depends(get_report_generator)
):
    return CashFlowRead.model_validate(
        generator.generate_cash_flow_statement(tenant_id, from_date, to_date)
    )


@router.get("/statements", response_model=ReadResponse[StatementRead], summary="Etats figes")
def list_statements(
    period: Optional[str] = Query(None, description="Filtre YYYY-MM"),
    tenant_id: int = Depends(get_current_tenant_id),
    generator: ReportGenerator = Depends(get_report_generator)
):
    result = generator.list_statements(tenant_id, period=period)
    return ReadResponse.from_result(
        result, [StatementRead.model_validate(statement) for statement in result.data]
    )


@router.post("/statements", response_model=StatementRead, status_code=201, summary="Figer un etat")
def create_statement(
    data: StatementCreate,
    tenant_id: int = Depends(get_current_tenant_id),
    generator: ReportGenerator = Depends(get_report_generator)
):
    """
    Genere l'etat du mois et l'ajoute a l'historique.

    Les etats deja figes ne sont jamais modifies; 503 si les donnees
    n'ont pas pu etre lues.
    """
    return generator.create_statement(tenant_id, data.type, data.period, name=data.name)
