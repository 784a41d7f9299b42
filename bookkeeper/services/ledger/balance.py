"""
BalanceEngine - soldes calcules a la demande depuis le grand livre.

Aucun solde courant n'est maintenu: chaque lecture re-agrege les lignes
des ecritures comptabilisees (posted/reversed). Les resultats sont donc
toujours coherents avec le livre, au prix d'un cout proportionnel a
l'historique.

Les lectures sont tolerantes: un echec SQL retourne un ReadResult
"degraded" et vide, jamais une exception.
"""
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bookkeeper.core.config import get_settings
from bookkeeper.core.exceptions import AccountNotFoundError
from bookkeeper.core.money import ZERO, money
from bookkeeper.core.result import ReadResult, degrade
from bookkeeper.models.ledger.account import AccountType, ChartAccount, NormalBalance
from bookkeeper.repositories.ledger.account import ChartAccountRepository
from bookkeeper.repositories.ledger.journal import JournalLineRepository, LineAggregate

logger = logging.getLogger(__name__)


def normal_signed(normal_balance: NormalBalance, debit: Decimal, credit: Decimal) -> Decimal:
    """Solde dans le sens normal du compte."""
    if normal_balance == NormalBalance.DEBIT:
        return money(debit - credit)
    return money(credit - debit)


def type_signed(account_type: AccountType, debit: Decimal, credit: Decimal) -> Decimal:
    """
    Solde signe d'apres le type du compte.

    asset, expense, cost -> debit - credit
    liability, equity, income -> credit - debit
    """
    if AccountType(account_type).is_debit_nature:
        return money(debit - credit)
    return money(credit - debit)


@dataclass(frozen=True)
class AccountBalance:
    """Solde agrege d'un compte."""
    account_id: int
    code: str
    name: str
    type: AccountType
    normal_balance: NormalBalance
    level: int
    parent_id: Optional[int]
    is_bank_account: bool
    total_debit: Decimal
    total_credit: Decimal
    balance: Decimal         # signe selon normal_balance
    signed_balance: Decimal  # signe selon le type

    @classmethod
    def build(cls, account: ChartAccount, debit: Decimal = ZERO, credit: Decimal = ZERO) -> "AccountBalance":
        return cls(
            account_id=account.id,
            code=account.code,
            name=account.name,
            type=account.type,
            normal_balance=account.normal_balance,
            level=account.level,
            parent_id=account.parent_id,
            is_bank_account=account.is_bank_account,
            total_debit=money(debit),
            total_credit=money(credit),
            balance=normal_signed(account.normal_balance, debit, credit),
            signed_balance=type_signed(account.type, debit, credit),
        )


class BalanceEngine:
    """
    Agregation des lignes comptabilisees par compte.
    """

    def __init__(self, db: Session):
        self.db = db
        self.line_repository = JournalLineRepository(db)

    def _accounts(self, tenant_id: int) -> ChartAccountRepository:
        return ChartAccountRepository(self.db, tenant_id)

    def get_balances(
        self,
        tenant_id: int,
        as_of: Optional[date] = None,
        from_date: Optional[date] = None,
    ) -> ReadResult[List[AccountBalance]]:
        """
        Soldes de tous les comptes actifs du tenant.

        Args:
            tenant_id: Tenant
            as_of: Date de fin incluse (None = tout l'historique)
            from_date: Date de debut incluse (None = depuis l'origine)

        Returns:
            ReadResult avec une ligne par compte actif, trie par code
        """
        try:
            accounts = self._accounts(tenant_id).list_ordered(active_only=True)
            aggregates = self.line_repository.aggregate_by_account(
                tenant_id, from_date=from_date, to_date=as_of
            )
        except SQLAlchemyError as exc:
            return degrade(logger, "get_balances", tenant_id, exc, [])

        totals: Dict[int, LineAggregate] = {agg.account_id: agg for agg in aggregates}
        balances = []
        for account in accounts:
            agg = totals.get(account.id)
            if agg is None:
                balances.append(AccountBalance.build(account))
            else:
                balances.append(AccountBalance.build(account, agg.total_debit, agg.total_credit))
        return ReadResult.ok(balances)

    def get_account_balance(
        self,
        tenant_id: int,
        account_id: int,
        as_of: Optional[date] = None,
    ) -> ReadResult[Decimal]:
        """
        Solde d'un compte a une date, signe d'apres son type.

        Le sens est deduit du type et non de normal_balance, pour resister
        a un normal_balance mal configure.

        Raises:
            AccountNotFoundError: Si le compte n'existe pas dans le tenant
        """
        try:
            account = self._accounts(tenant_id).get(account_id)
        except SQLAlchemyError as exc:
            return degrade(logger, "get_account_balance", tenant_id, exc, ZERO)
        if account is None:
            raise AccountNotFoundError(account_id)

        try:
            aggregates = self.line_repository.aggregate_by_account(
                tenant_id, to_date=as_of, account_id=account_id
            )
        except SQLAlchemyError as exc:
            return degrade(logger, "get_account_balance", tenant_id, exc, ZERO)

        debit = sum((agg.total_debit for agg in aggregates), ZERO)
        credit = sum((agg.total_credit for agg in aggregates), ZERO)
        return ReadResult.ok(type_signed(account.type, debit, credit))

    def get_trial_balance(
        self,
        tenant_id: int,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> ReadResult[List[AccountBalance]]:
        """
        Balance de verification: debit/credit par compte mouvemente sur la periode.

        Chaque ligne agregee re-verifie que le compte joint appartient bien
        au tenant demande; une ligne d'un autre tenant est ecartee et loggee.

        Args:
            tenant_id: Tenant
            from_date: Debut inclus (defaut LEDGER_TRIAL_BALANCE_START)
            to_date: Fin incluse (None = sans borne)
        """
        if from_date is None:
            from_date = date.fromisoformat(get_settings().LEDGER_TRIAL_BALANCE_START)

        try:
            aggregates = self.line_repository.aggregate_by_account(
                tenant_id, from_date=from_date, to_date=to_date
            )
            own = []
            for agg in aggregates:
                if agg.account_tenant_id != tenant_id:
                    logger.error(
                        f"Ligne hors tenant ecartee de la balance: account_id={agg.account_id} "
                        f"tenant du compte={agg.account_tenant_id}, tenant demande={tenant_id}"
                    )
                    continue
                own.append(agg)
            accounts = {
                account.id: account
                for account in self._accounts(tenant_id).get_many([agg.account_id for agg in own])
            }
        except SQLAlchemyError as exc:
            return degrade(logger, "get_trial_balance", tenant_id, exc, [])

        rows = [
            AccountBalance.build(accounts[agg.account_id], agg.total_debit, agg.total_credit)
            for agg in own
            if agg.account_id in accounts
        ]
        rows.sort(key=lambda row: row.code)
        return ReadResult.ok(rows)

