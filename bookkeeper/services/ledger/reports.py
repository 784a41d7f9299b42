"""
ReportGenerator - etats financiers derives du grand livre.

Etats produits:
- Balance de verification (trial balance)
- Bilan (balance sheet)
- Compte de resultat (income statement)
- Tableau des flux de tresorerie (cash flow)

Chaque etat porte un status "complete" ou "degraded": un livre vide suite
a un echec de lecture ne se confond pas avec un livre reellement vide.

Les etats peuvent etre figes en FinancialStatement (ajout seul).
"""
import calendar
import enum
import logging
import re
from dataclasses import asdict, dataclass, is_dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bookkeeper.core.config import get_settings
from bookkeeper.core.exceptions import InvalidPeriodError, ReportDegradedError
from bookkeeper.core.money import ZERO, is_zero, money, money_sum
from bookkeeper.core.result import ReadResult, ReportStatus, degrade
from bookkeeper.models.ledger.account import AccountType
from bookkeeper.models.ledger.journal import CashFlowCategory
from bookkeeper.models.ledger.statement import FinancialStatement, StatementType
from bookkeeper.repositories.ledger.account import ChartAccountRepository
from bookkeeper.repositories.ledger.journal import CashLine, JournalLineRepository
from bookkeeper.repositories.ledger.statement import FinancialStatementRepository
from bookkeeper.services.ledger.balance import AccountBalance, BalanceEngine

logger = logging.getLogger(__name__)


# Mots-cles du libelle, testes dans cet ordre quand l'ecriture n'a pas de categorie
CASH_FLOW_KEYWORDS: Tuple[Tuple[CashFlowCategory, Tuple[str, ...]], ...] = (
    (CashFlowCategory.OPERATING, ("venta", "cobro", "ingreso", "nómina", "alquiler", "servicios")),
    (CashFlowCategory.INVESTING, ("compra activo", "inversión", "equipo")),
    (CashFlowCategory.FINANCING, ("préstamo", "capital", "dividendo")),
)

PERIOD_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")


def classify_cash_flow(
    description: str,
    category: Optional[CashFlowCategory] = None,
) -> Tuple[CashFlowCategory, str]:
    """
    Categorie de flux d'une ecriture.

    Returns:
        (categorie, origine) ou origine vaut "tag", "keyword" ou "default"
    """
    if category is not None:
        return CashFlowCategory(category), "tag"
    text = (description or "").lower()
    for candidate, keywords in CASH_FLOW_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return candidate, "keyword"
    return CashFlowCategory.OPERATING, "default"


def month_range(period: str) -> Tuple[date, date]:
    """
    Premier et dernier jour d'une periode YYYY-MM.

    Raises:
        InvalidPeriodError: Format invalide ou mois hors 01-12
    """
    match = PERIOD_PATTERN.match(str(period or "").strip())
    if not match:
        raise InvalidPeriodError(f"Period must be formatted YYYY-MM, got {period!r}")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise InvalidPeriodError(f"Invalid month in period {period!r}")
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def jsonable(value: Any) -> Any:
    """Convertit un etat (dataclasses, Decimal, dates, enums) en JSON."""
    if is_dataclass(value):
        return jsonable(asdict(value))
    if isinstance(value, dict):
        return {key: jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [jsonable(item) for item in value]
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    return value


# =============================================================================
# Etats
# =============================================================================

@dataclass(frozen=True)
class ReportLine:
    """Compte dans un etat: balance affichee et solde signe par type."""
    account_id: int
    code: str
    name: str
    type: AccountType
    balance: Decimal
    signed_balance: Decimal


@dataclass(frozen=True)
class TrialBalanceReport:
    as_of: Optional[date]
    accounts: Tuple[AccountBalance, ...]
    total_debits: Decimal
    total_credits: Decimal
    is_balanced: bool
    status: ReportStatus = ReportStatus.COMPLETE
    error_kind: Optional[str] = None


@dataclass(frozen=True)
class BalanceSheetReport:
    as_of: Optional[date]
    assets: Tuple[ReportLine, ...]
    liabilities: Tuple[ReportLine, ...]
    equity: Tuple[ReportLine, ...]
    total_assets: Decimal
    total_liabilities: Decimal
    total_equity: Decimal
    # Resultat non encore solde en capitaux propres (produits - couts - charges)
    unclosed_earnings: Decimal
    status: ReportStatus = ReportStatus.COMPLETE
    error_kind: Optional[str] = None


@dataclass(frozen=True)
class IncomeStatementReport:
    from_date: date
    to_date: date
    income: Tuple[ReportLine, ...]
    costs: Tuple[ReportLine, ...]
    expenses: Tuple[ReportLine, ...]
    total_income: Decimal
    total_costs: Decimal
    total_expenses: Decimal
    net_income: Decimal
    status: ReportStatus = ReportStatus.COMPLETE
    error_kind: Optional[str] = None


@dataclass(frozen=True)
class CashFlowLine:
    entry_id: int
    entry_date: date
    description: str
    account_id: int
    amount: Decimal  # debit - credit sur le compte de tresorerie
    category: CashFlowCategory
    classified_by: str


@dataclass(frozen=True)
class CashFlowReport:
    from_date: date
    to_date: date
    lines: Tuple[CashFlowLine, ...]
    operating_cash_flow: Decimal
    investing_cash_flow: Decimal
    financing_cash_flow: Decimal
    net_cash_flow: Decimal
    heuristic_lines: int  # lignes classees par mot-cle ou par defaut
    status: ReportStatus = ReportStatus.COMPLETE
    error_kind: Optional[str] = None


def _status(*results: ReadResult) -> Tuple[ReportStatus, Optional[str]]:
    for result in results:
        if result.is_degraded:
            return ReportStatus.DEGRADED, result.error_kind
    return ReportStatus.COMPLETE, None


def _lines(rows: Sequence[AccountBalance], account_type: AccountType, absolute: bool = True) -> Tuple[ReportLine, ...]:
    return tuple(
        ReportLine(
            account_id=row.account_id,
            code=row.code,
            name=row.name,
            type=row.type,
            balance=abs(row.signed_balance) if absolute else row.signed_balance,
            signed_balance=row.signed_balance,
        )
        for row in rows
        if row.type == account_type
    )


class ReportGenerator:
    """
    Generation des etats financiers d'un tenant.
    """

    def __init__(self, db: Session, balance_engine: Optional[BalanceEngine] = None):
        self.db = db
        self.settings = get_settings()
        self.balance_engine = balance_engine or BalanceEngine(db)
        self.line_repository = JournalLineRepository(db)

    # =========================================================================
    # BALANCE DE VERIFICATION
    # =========================================================================

    def generate_trial_balance(self, tenant_id: int, as_of: Optional[date] = None) -> TrialBalanceReport:
        """
        Balance de verification depuis LEDGER_TRIAL_BALANCE_START jusqu'a as_of.

        is_balanced = |total debits - total credits| < LEDGER_BALANCE_TOLERANCE
        """
        result = self.balance_engine.get_trial_balance(tenant_id, to_date=as_of)
        rows = result.data
        total_debits = money_sum(row.total_debit for row in rows)
        total_credits = money_sum(row.total_credit for row in rows)
        status, error_kind = _status(result)
        return TrialBalanceReport(
            as_of=as_of,
            accounts=tuple(rows),
            total_debits=total_debits,
            total_credits=total_credits,
            is_balanced=is_zero(total_debits - total_credits, self.settings.LEDGER_BALANCE_TOLERANCE),
            status=status,
            error_kind=error_kind,
        )

    # =========================================================================
    # BILAN
    # =========================================================================

    def generate_balance_sheet(self, tenant_id: int, as_of: Optional[date] = None) -> BalanceSheetReport:
        """
        Bilan a une date.

        Les totaux sont des sommes de soldes signes (un compte de contrepartie
        vient en deduction); chaque compte est affiche en valeur absolue.
        L'egalite actif = passif + capitaux propres n'est pas verifiee ici.
        """
        result = self.balance_engine.get_balances(tenant_id, as_of=as_of)
        rows = result.data

        assets = _lines(rows, AccountType.ASSET)
        liabilities = _lines(rows, AccountType.LIABILITY)
        equity = _lines(rows, AccountType.EQUITY)

        total_income = money_sum(r.signed_balance for r in rows if r.type == AccountType.INCOME)
        total_costs = money_sum(r.signed_balance for r in rows if r.type == AccountType.COST)
        total_expenses = money_sum(r.signed_balance for r in rows if r.type == AccountType.EXPENSE)

        status, error_kind = _status(result)
        return BalanceSheetReport(
            as_of=as_of,
            assets=assets,
            liabilities=liabilities,
            equity=equity,
            total_assets=money_sum(line.signed_balance for line in assets),
            total_liabilities=money_sum(line.signed_balance for line in liabilities),
            total_equity=money_sum(line.signed_balance for line in equity),
            unclosed_earnings=money(total_income - total_costs - total_expenses),
            status=status,
            error_kind=error_kind,
        )

    # =========================================================================
    # COMPTE DE RESULTAT
    # =========================================================================

    def generate_income_statement(self, tenant_id: int, from_date: date, to_date: date) -> IncomeStatementReport:
        """
        Compte de resultat sur une periode.

        Les produits gardent leur signe (un compte de contrepartie de produit
        vient en deduction); couts et charges sont pris en valeur absolue.
        net_income = produits - couts - charges
        """
        if from_date > to_date:
            raise InvalidPeriodError(f"from_date {from_date} is after to_date {to_date}")

        result = self.balance_engine.get_balances(tenant_id, as_of=to_date, from_date=from_date)
        rows = result.data

        income = _lines(rows, AccountType.INCOME, absolute=False)
        costs = _lines(rows, AccountType.COST)
        expenses = _lines(rows, AccountType.EXPENSE)

        total_income = money_sum(line.balance for line in income)
        total_costs = money_sum(line.balance for line in costs)
        total_expenses = money_sum(line.balance for line in expenses)

        status, error_kind = _status(result)
        return IncomeStatementReport(
            from_date=from_date,
            to_date=to_date,
            income=income,
            costs=costs,
            expenses=expenses,
            total_income=total_income,
            total_costs=total_costs,
            total_expenses=total_expenses,
            net_income=money(total_income - total_costs - total_expenses),
            status=status,
            error_kind=error_kind,
        )

    # =========================================================================
    # FLUX DE TRESORERIE
    # =========================================================================

    def _cash_account_ids(self, tenant_id: int) -> List[int]:
        """Comptes bancaires ou dont le code commence par un prefixe de tresorerie."""
        prefixes = tuple(self.settings.get_cash_account_prefixes())
        return [
            account.id
            for account in ChartAccountRepository(self.db, tenant_id).list_ordered()
            if account.is_bank_account or (prefixes and account.code.startswith(prefixes))
        ]

    def _read_cash_lines(self, tenant_id: int, from_date: date, to_date: date) -> ReadResult[List[CashLine]]:
        try:
            account_ids = self._cash_account_ids(tenant_id)
            lines = self.line_repository.lines_for_accounts(tenant_id, account_ids, from_date, to_date)
        except SQLAlchemyError as exc:
            return degrade(logger, "generate_cash_flow_statement", tenant_id, exc, [])
        return ReadResult.ok(lines)

    def generate_cash_flow_statement(self, tenant_id: int, from_date: date, to_date: date) -> CashFlowReport:
        """
        Flux de tresorerie: mouvements des comptes de tresorerie classes en
        operating / investing / financing.

        La categorie vient de l'ecriture (cash_flow_category); a defaut, du
        libelle par mots-cles, et sinon operating.
        """
        if from_date > to_date:
            raise InvalidPeriodError(f"from_date {from_date} is after to_date {to_date}")

        result = self._read_cash_lines(tenant_id, from_date, to_date)
        totals: Dict[CashFlowCategory, Decimal] = {category: ZERO for category in CashFlowCategory}
        lines = []
        heuristic = 0
        for cash_line in result.data:
            category, origin = classify_cash_flow(cash_line.entry_description, cash_line.cash_flow_category)
            amount = money(cash_line.debit_amount - cash_line.credit_amount)
            totals[category] += amount
            if origin != "tag":
                heuristic += 1
            lines.append(CashFlowLine(
                entry_id=cash_line.entry_id,
                entry_date=cash_line.entry_date,
                description=cash_line.entry_description,
                account_id=cash_line.account_id,
                amount=amount,
                category=category,
                classified_by=origin,
            ))

        if heuristic:
            logger.debug(f"{heuristic} lignes de tresorerie classees sans categorie explicite tenant={tenant_id}")

        operating = money(totals[CashFlowCategory.OPERATING])
        investing = money(totals[CashFlowCategory.INVESTING])
        financing = money(totals[CashFlowCategory.FINANCING])
        status, error_kind = _status(result)
        return CashFlowReport(
            from_date=from_date,
            to_date=to_date,
            lines=tuple(lines),
            operating_cash_flow=operating,
            investing_cash_flow=investing,
            financing_cash_flow=financing,
            net_cash_flow=money(operating + investing + financing),
            heuristic_lines=heuristic,
            status=status,
            error_kind=error_kind,
        )

    # =========================================================================
    # ETATS FIGES
    # =========================================================================

    def create_statement(
        self,
        tenant_id: int,
        statement_type: StatementType,
        period: str,
        name: Optional[str] = None,
    ) -> FinancialStatement:
        """
        Genere un etat pour le mois YYYY-MM et l'ajoute aux etats figes.

        Regenerer la meme periode cree une nouvelle ligne; les precedentes
        ne sont jamais modifiees.

        Raises:
            InvalidPeriodError: Periode mal formee
            ReportDegradedError: Donnees incompletes, rien n'est fige
        """
        statement_type = StatementType(statement_type)
        from_date, to_date = month_range(period)

        columns: Dict[str, Any]
        if statement_type == StatementType.BALANCE_SHEET:
            report = self.generate_balance_sheet(tenant_id, as_of=to_date)
            columns = {
                "total_assets": report.total_assets,
                "total_liabilities": report.total_liabilities,
                "total_equity": report.total_equity,
            }
        elif statement_type == StatementType.INCOME_STATEMENT:
            report = self.generate_income_statement(tenant_id, from_date, to_date)
            columns = {
                "total_revenue": report.total_income,
                "total_costs": report.total_costs,
                "total_expenses": report.total_expenses,
                "net_income": report.net_income,
            }
        elif statement_type == StatementType.CASH_FLOW:
            report = self.generate_cash_flow_statement(tenant_id, from_date, to_date)
            columns = {
                "operating_cash_flow": report.operating_cash_flow,
                "investing_cash_flow": report.investing_cash_flow,
                "financing_cash_flow": report.financing_cash_flow,
                "net_cash_flow": report.net_cash_flow,
            }
        else:
            report = self.generate_trial_balance(tenant_id, as_of=to_date)
            columns = {
                "total_debits": report.total_debits,
                "total_credits": report.total_credits,
                "is_balanced": report.is_balanced,
            }

        if report.status == ReportStatus.DEGRADED:
            logger.warning(
                f"Etat {statement_type.value} {period} non fige: lecture degradee "
                f"({report.error_kind}) tenant={tenant_id}"
            )
            raise ReportDegradedError(details={"type": statement_type.value, "period": period})

        statement = FinancialStatementRepository(self.db, tenant_id).create({
            "type": statement_type,
            "name": name or f"{statement_type.label} {period}",
            "period": period,
            "from_date": from_date,
            "to_date": to_date,
            "status": "final",
            "payload": jsonable(report),
            **columns,
        })
        logger.info(f"Etat fige: {statement.name} id={statement.id} tenant={tenant_id}")
        return statement

    def list_statements(self, tenant_id: int, period: Optional[str] = None) -> ReadResult[List[FinancialStatement]]:
        """Etats figes du tenant, plus recents d'abord (lecture tolerante)."""
        try:
            return ReadResult.ok(FinancialStatementRepository(self.db, tenant_id).list_recent(period))
        except SQLAlchemyError as exc:
            return degrade(logger, "list_statements", tenant_id, exc, [])
