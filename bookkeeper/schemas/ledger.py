"""
Schemas Pydantic du grand livre.
Plan comptable, ecritures, soldes, etats financiers.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import Field

from bookkeeper.core.result import ReportStatus
from bookkeeper.models.ledger.account import AccountType, NormalBalance
from bookkeeper.models.ledger.journal import CashFlowCategory, JournalEntryStatus
from bookkeeper.models.ledger.statement import StatementType
from bookkeeper.schemas.base import BaseSchema, TimestampSchema


# =============================================================================
# Plan comptable
# =============================================================================

class AccountCreate(BaseSchema):
    """Creation d'un compte (type en texte libre, normalise par le service)"""
    code: str = Field(..., min_length=1, max_length=50, description="Code unique dans le tenant")
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    type: str = Field("asset", description="asset, liability, equity, income, cost, expense (ou variantes)")
    normal_balance: Optional[str] = Field(None, description="debit ou credit; deduit du type si absent")
    level: Optional[int] = Field(None, ge=1)
    parent_id: Optional[int] = None
    is_active: bool = True
    allow_posting: bool = True
    is_bank_account: bool = False


class AccountUpdate(BaseSchema):
    """Mise a jour partielle d'un compte"""
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    type: Optional[str] = None
    normal_balance: Optional[str] = None
    level: Optional[int] = Field(None, ge=1)
    parent_id: Optional[int] = None
    is_active: Optional[bool] = None
    allow_posting: Optional[bool] = None
    is_bank_account: Optional[bool] = None


class AccountRead(TimestampSchema):
    """Compte persiste"""
    id: int
    tenant_id: int
    code: str
    name: str
    description: Optional[str] = None
    type: AccountType
    normal_balance: NormalBalance
    level: int
    parent_id: Optional[int] = None
    is_active: bool
    allow_posting: bool
    is_bank_account: bool
    balance: Decimal


class AccountViewRead(BaseSchema):
    """Compte du plan avec posting_allowed calcule"""
    id: int
    code: str
    name: str
    description: Optional[str] = None
    type: AccountType
    normal_balance: NormalBalance
    level: int
    parent_id: Optional[int] = None
    is_active: bool
    allow_posting: bool
    posting_allowed: bool
    is_bank_account: bool
    balance: Decimal


class AccountRelationsRead(BaseSchema):
    has_accounting_settings: bool
    has_journal_entries: bool


class SeedResultRead(BaseSchema):
    created: int


class AccountBalanceRead(BaseSchema):
    """Solde agrege d'un compte"""
    account_id: int
    code: str
    name: str
    type: AccountType
    normal_balance: NormalBalance
    level: int
    parent_id: Optional[int] = None
    is_bank_account: bool
    total_debit: Decimal
    total_credit: Decimal
    balance: Decimal
    signed_balance: Decimal


class AccountBalanceValue(BaseSchema):
    """Solde d'un compte a une date"""
    account_id: int
    as_of: Optional[date] = None
    balance: Decimal
    status: str = "ok"
    error_kind: Optional[str] = None


# =============================================================================
# Ecritures
# =============================================================================

class JournalLineCreate(BaseSchema):
    """Ligne d'ecriture; montants absents = 0"""
    account_id: int
    description: Optional[str] = None
    debit_amount: Optional[Decimal] = None
    credit_amount: Optional[Decimal] = None
    line_number: Optional[int] = Field(None, ge=1)


class JournalEntryCreate(BaseSchema):
    """Ecriture a saisir"""
    entry_number: str = Field(..., min_length=1, max_length=50)
    entry_date: date
    description: str = ""
    reference: Optional[str] = None
    status: Optional[JournalEntryStatus] = None
    cash_flow_category: Optional[CashFlowCategory] = None
    idempotency_key: Optional[str] = Field(None, max_length=255)
    lines: List[JournalLineCreate] = []

    def header(self) -> Dict[str, Any]:
        return self.model_dump(exclude={"lines"}, exclude_none=True)

    def line_dicts(self) -> List[Dict[str, Any]]:
        return [line.model_dump(exclude_none=True) for line in self.lines]


class JournalEntryReverse(BaseSchema):
    reversal_date: Optional[date] = None
    entry_number: Optional[str] = Field(None, min_length=1, max_length=50)


class JournalLineRead(BaseSchema):
    id: int
    account_id: int
    description: Optional[str] = None
    debit_amount: Decimal
    credit_amount: Decimal
    line_number: int


class JournalEntryRead(TimestampSchema):
    id: int
    tenant_id: int
    entry_number: str
    entry_date: date
    description: str
    reference: Optional[str] = None
    status: JournalEntryStatus
    total_debit: Decimal
    total_credit: Decimal
    cash_flow_category: Optional[CashFlowCategory] = None
    idempotency_key: Optional[str] = None
    reversal_of_id: Optional[int] = None
    lines: List[JournalLineRead] = []


# =============================================================================
# Etats financiers
# =============================================================================

class ReportLineRead(BaseSchema):
    account_id: int
    code: str
    name: str
    type: AccountType
    balance: Decimal
    signed_balance: Decimal


class TrialBalanceRead(BaseSchema):
    as_of: Optional[date] = None
    accounts: List[AccountBalanceRead]
    total_debits: Decimal
    total_credits: Decimal
    is_balanced: bool
    status: ReportStatus
    error_kind: Optional[str] = None


class BalanceSheetRead(BaseSchema):
    as_of: Optional[date] = None
    assets: List[ReportLineRead]
    liabilities: List[ReportLineRead]
    equity: List[ReportLineRead]
    total_assets: Decimal
    total_liabilities: Decimal
    total_equity: Decimal
    unclosed_earnings: Decimal
    status: ReportStatus
    error_kind: Optional[str] = None


class IncomeStatementRead(BaseSchema):
    from_date: date
    to_date: date
    income: List[ReportLineRead]
    costs: List[ReportLineRead]
    expenses: List[ReportLineRead]
    total_income: Decimal
    total_costs: Decimal
    total_expenses: Decimal
    net_income: Decimal
    status: ReportStatus
    error_kind: Optional[str] = None


class CashFlowLineRead(BaseSchema):
    entry_id: int
    entry_date: date
    description: str
    account_id: int
    amount: Decimal
    category: CashFlowCategory
    classified_by: str


class CashFlowRead(BaseSchema):
    from_date: date
    to_date: date
    lines: List[CashFlowLineRead]
    operating_cash_flow: Decimal
    investing_cash_flow: Decimal
    financing_cash_flow: Decimal
    net_cash_flow: Decimal
    heuristic_lines: int
    status: ReportStatus
    error_kind: Optional[str] = None


class StatementCreate(BaseSchema):
    type: StatementType
    period: str = Field(..., description="Mois au format YYYY-MM")
    name: Optional[str] = Field(None, max_length=255)


class StatementRead(BaseSchema):
    id: int
    tenant_id: int
    type: StatementType
    name: str
    period: str
    from_date: date
    to_date: date
    status: str = "final"
    total_assets: Optional[Decimal] = None
    total_liabilities: Optional[Decimal] = None
    total_equity: Optional[Decimal] = None
    total_revenue: Optional[Decimal] = None
    total_costs: Optional[Decimal] = None
    total_expenses: Optional[Decimal] = None
    net_income: Optional[Decimal] = None
    operating_cash_flow: Optional[Decimal] = None
    investing_cash_flow: Optional[Decimal] = None
    financing_cash_flow: Optional[Decimal] = None
    net_cash_flow: Optional[Decimal] = None
    total_debits: Optional[Decimal] = None
    total_credits: Optional[Decimal] = None
    is_balanced: Optional[bool] = None
    payload: Dict[str, Any]
    created_at: Optional[datetime] = None
