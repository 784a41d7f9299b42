"""
Service ChartOfAccounts pour Bookkeeper.

Gestion du plan comptable d'un tenant:
- CRUD avec normalisation des types saisis en texte libre
- sens normal du solde par defaut selon le type
- hierarchie parent/enfant et comptes de regroupement
- controle des references avant suppression
- initialisation depuis le plan modele
"""
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from bookkeeper.core.exceptions import (
    AccountCodeExistsError,
    AccountHasRelationsError,
    AccountNotFoundError,
    InvalidAccountError,
)
from bookkeeper.core.result import ReadResult, degrade
from bookkeeper.models.ledger.account import AccountType, ChartAccount, NormalBalance
from bookkeeper.repositories.ledger.account import ChartAccountRepository
from bookkeeper.repositories.ledger.journal import JournalLineRepository
from bookkeeper.repositories.ledger.settings import AccountingSettingsRepository
from bookkeeper.repositories.ledger.template import ChartAccountTemplateRepository
from bookkeeper.services.ledger.balance import AccountBalance, BalanceEngine

logger = logging.getLogger(__name__)


# Orthographes acceptees pour le type de compte
ACCOUNT_TYPE_ALIASES: Dict[str, AccountType] = {
    "asset": AccountType.ASSET,
    "assets": AccountType.ASSET,
    "activo": AccountType.ASSET,
    "activos": AccountType.ASSET,
    "liability": AccountType.LIABILITY,
    "liabilities": AccountType.LIABILITY,
    "pasivo": AccountType.LIABILITY,
    "pasivos": AccountType.LIABILITY,
    "equity": AccountType.EQUITY,
    "patrimonio": AccountType.EQUITY,
    "capital": AccountType.EQUITY,
    "income": AccountType.INCOME,
    "incomes": AccountType.INCOME,
    "ingreso": AccountType.INCOME,
    "ingresos": AccountType.INCOME,
    "cost": AccountType.COST,
    "costs": AccountType.COST,
    "costo": AccountType.COST,
    "costos": AccountType.COST,
    "expense": AccountType.EXPENSE,
    "expenses": AccountType.EXPENSE,
    "gasto": AccountType.EXPENSE,
    "gastos": AccountType.EXPENSE,
}

# Champs modifiables via create/update (balance est recalcule, jamais saisi)
WRITABLE_FIELDS = (
    "code",
    "name",
    "description",
    "type",
    "normal_balance",
    "level",
    "parent_id",
    "is_active",
    "allow_posting",
    "is_bank_account",
)

# Colonnes NOT NULL: une mise a jour ne peut pas les remettre a null
NON_NULLABLE_FIELDS = (
    "code",
    "name",
    "type",
    "level",
    "is_active",
    "allow_posting",
    "is_bank_account",
)

CODE_CONSTRAINT = "uq_chart_accounts_tenant_code"


def normalize_account_type(value: Any) -> AccountType:
    """
    Ramene une saisie libre a l'un des six types canoniques.
    Une valeur inconnue ou vide donne asset.
    """
    if isinstance(value, AccountType):
        return value
    key = str(value or "").strip().lower()
    return ACCOUNT_TYPE_ALIASES.get(key, AccountType.ASSET)


def default_normal_balance(account_type: AccountType) -> NormalBalance:
    """debit pour asset/expense, credit pour les autres types."""
    if account_type in (AccountType.ASSET, AccountType.EXPENSE):
        return NormalBalance.DEBIT
    return NormalBalance.CREDIT


def normalize_normal_balance(value: Any) -> Optional[NormalBalance]:
    """debit/credit (insensible a la casse); None si absent ou inconnu."""
    if isinstance(value, NormalBalance):
        return value
    key = str(value or "").strip().lower()
    try:
        return NormalBalance(key)
    except ValueError:
        return None


def is_code_conflict(exc: IntegrityError) -> bool:
    """
    True si la violation porte sur l'unicite (tenant_id, code).

    PostgreSQL donne le nom de la contrainte (diag.constraint_name),
    SQLite seulement les colonnes dans le message.
    """
    diag = getattr(exc.orig, "diag", None)
    constraint = getattr(diag, "constraint_name", None)
    if constraint:
        return constraint == CODE_CONSTRAINT
    message = str(exc.orig)
    return CODE_CONSTRAINT in message or "chart_accounts.tenant_id, chart_accounts.code" in message


@dataclass(frozen=True)
class AccountView:
    """Compte tel que presente a l'utilisateur."""
    id: int
    code: str
    name: str
    description: Optional[str]
    type: AccountType
    normal_balance: NormalBalance
    level: int
    parent_id: Optional[int]
    is_active: bool
    allow_posting: bool
    posting_allowed: bool  # faux pour les comptes de regroupement
    is_bank_account: bool
    balance: Decimal


@dataclass(frozen=True)
class AccountRelations:
    """References existantes vers un compte."""
    has_accounting_settings: bool
    has_journal_entries: bool

    @property
    def has_relations(self) -> bool:
        return self.has_accounting_settings or self.has_journal_entries


@dataclass(frozen=True)
class SeedResult:
    created: int


class ChartOfAccountsService:
    """
    Service du plan comptable.
    """

    def __init__(self, db: Session, balance_engine: Optional[BalanceEngine] = None):
        self.db = db
        self.balance_engine = balance_engine or BalanceEngine(db)
        self.line_repository = JournalLineRepository(db)
        self.template_repository = ChartAccountTemplateRepository(db)

    def _accounts(self, tenant_id: int) -> ChartAccountRepository:
        return ChartAccountRepository(self.db, tenant_id)

    # =========================================================================
    # LECTURE
    # =========================================================================

    def get_all(self, tenant_id: int) -> ReadResult[List[AccountView]]:
        """
        Plan comptable du tenant, trie par code.

        posting_allowed vaut False pour les niveaux 1-2 et pour tout
        compte ayant des enfants, quel que soit allow_posting.
        """
        repo = self._accounts(tenant_id)
        try:
            accounts = repo.list_ordered()
            parents = repo.parent_ids()
        except SQLAlchemyError as exc:
            return degrade(logger, "chart_of_accounts.get_all", tenant_id, exc, [])

        views = []
        for account in accounts:
            level = account.level or 1
            is_control = level <= 2 or account.id in parents
            views.append(AccountView(
                id=account.id,
                code=account.code,
                name=account.name,
                description=account.description,
                type=account.type,
                normal_balance=account.normal_balance,
                level=level,
                parent_id=account.parent_id,
                is_active=account.is_active,
                allow_posting=account.allow_posting,
                posting_allowed=False if is_control else account.allow_posting,
                is_bank_account=account.is_bank_account,
                balance=account.balance,
            ))
        return ReadResult.ok(views)

    def get_balances(
        self,
        tenant_id: int,
        as_of: Optional[date] = None,
    ) -> ReadResult[List[AccountBalance]]:
        """Soldes calcules depuis le grand livre (voir BalanceEngine)."""
        return self.balance_engine.get_balances(tenant_id, as_of=as_of)

    def get_account(self, tenant_id: int, account_id: int) -> ChartAccount:
        """
        Recupere un compte du tenant.

        Raises:
            AccountNotFoundError: Si absent du tenant
        """
        account = self._accounts(tenant_id).get(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account

    def resolve_account_id(self, tenant_id: int, code: str) -> Optional[int]:
        """ID du compte portant ce code dans le tenant, None sinon."""
        account = self._accounts(tenant_id).get_by_code(str(code).strip())
        return account.id if account else None

    # =========================================================================
    # ECRITURE
    # =========================================================================

    def _clean(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Ne garde que les champs modifiables et normalise les enums."""
        ignored = set(data) - set(WRITABLE_FIELDS)
        if ignored:
            logger.debug(f"Champs de compte ignores: {sorted(ignored)}")
        cleaned = {key: data[key] for key in WRITABLE_FIELDS if key in data}
        if "code" in cleaned:
            cleaned["code"] = str(cleaned["code"] or "").strip()
            if not cleaned["code"]:
                raise InvalidAccountError("Account code is required")
        if "type" in cleaned:
            cleaned["type"] = normalize_account_type(cleaned["type"])
        if "normal_balance" in cleaned:
            cleaned["normal_balance"] = normalize_normal_balance(cleaned["normal_balance"])
        return cleaned

    def _apply_parent(
        self,
        repo: ChartAccountRepository,
        data: Dict[str, Any],
        account_id: Optional[int] = None,
    ) -> None:
        parent_id = data.get("parent_id")
        if parent_id is None:
            return
        if account_id is not None and parent_id == account_id:
            raise InvalidAccountError("An account cannot be its own parent")
        parent = repo.get(parent_id)
        if parent is None:
            raise AccountNotFoundError(parent_id)
        if account_id is not None:
            self._check_cycle(repo, parent, account_id)
        if data.get("level") is None:
            data["level"] = (parent.level or 1) + 1

    def _check_cycle(self, repo: ChartAccountRepository, parent: ChartAccount, account_id: int) -> None:
        """Remonte les ancetres du futur parent: le compte ne doit pas y figurer."""
        seen = set()
        ancestor = parent
        while ancestor is not None and ancestor.id not in seen:
            if ancestor.id == account_id:
                raise InvalidAccountError(
                    "Parent would create a cycle in the account hierarchy",
                    details={"account_id": account_id, "parent_id": parent.id},
                )
            seen.add(ancestor.id)
            ancestor = repo.get(ancestor.parent_id) if ancestor.parent_id is not None else None

    def _write(self, repo: ChartAccountRepository, code: Optional[str], write):
        """
        Execute l'ecriture dans un SAVEPOINT.

        Seule la contrainte d'unicite du code devient 409; toute autre
        violation d'integrite est une donnee de compte invalide (422).
        """
        try:
            with repo.atomic():
                return write()
        except IntegrityError as exc:
            if is_code_conflict(exc):
                logger.warning(f"Code de compte deja utilise (code={code}): {exc.orig}")
                raise AccountCodeExistsError(code) from exc
            logger.warning(f"Ecriture refusee sur le plan comptable (code={code}): {exc.orig}")
            raise InvalidAccountError(details={"code": code}) from exc

    def create(self, tenant_id: int, data: Dict[str, Any]) -> ChartAccount:
        """
        Cree un compte.

        Args:
            tenant_id: Tenant
            data: code, name, type (texte libre), normal_balance?, parent_id?...

        Returns:
            Le compte cree

        Raises:
            InvalidAccountError: Code ou nom absent
            AccountCodeExistsError: Code deja utilise dans le tenant
            AccountNotFoundError: parent_id inconnu dans le tenant
        """
        repo = self._accounts(tenant_id)
        # null sur une colonne NOT NULL = valeur par defaut a la creation
        cleaned = self._clean({
            key: value for key, value in data.items()
            if value is not None or key not in NON_NULLABLE_FIELDS
        })
        if not cleaned.get("code") or not cleaned.get("name"):
            raise InvalidAccountError("Account code and name are required")

        cleaned["type"] = normalize_account_type(cleaned.get("type"))
        if cleaned.get("normal_balance") is None:
            cleaned["normal_balance"] = default_normal_balance(cleaned["type"])

        if repo.code_exists(cleaned["code"]):
            raise AccountCodeExistsError(cleaned["code"])

        self._apply_parent(repo, cleaned)
        if cleaned.get("level") is None:
            cleaned["level"] = 1

        account = self._write(repo, cleaned["code"], lambda: repo.create(cleaned))
        logger.info(f"Compte cree: {account.code} ({account.type.value}) tenant={tenant_id}")
        return account

    def update(self, tenant_id: int, account_id: int, data: Dict[str, Any]) -> ChartAccount:
        """
        Met a jour un compte (champs fournis uniquement).

        Raises:
            AccountNotFoundError: Compte ou parent absent du tenant
            AccountCodeExistsError: Nouveau code deja utilise
            InvalidAccountError: null sur un champ obligatoire, ou parent
                creant un cycle dans la hierarchie
        """
        repo = self._accounts(tenant_id)
        account = repo.get(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)

        nulls = sorted(key for key in NON_NULLABLE_FIELDS if key in data and data[key] is None)
        if nulls:
            raise InvalidAccountError(
                f"Fields cannot be null: {', '.join(nulls)}",
                details={"fields": nulls},
            )

        cleaned = self._clean(data)
        if "normal_balance" in cleaned and cleaned["normal_balance"] is None:
            cleaned["normal_balance"] = default_normal_balance(
                cleaned.get("type", account.type)
            )
        if "code" in cleaned and repo.code_exists(cleaned["code"], exclude_id=account_id):
            raise AccountCodeExistsError(cleaned["code"])
        self._apply_parent(repo, cleaned, account_id=account_id)

        updated = self._write(
            repo, cleaned.get("code", account.code), lambda: repo.update(account_id, cleaned)
        )
        logger.info(f"Compte mis a jour: {updated.code} tenant={tenant_id}")
        return updated

    def check_relations(self, tenant_id: int, account_id: int) -> AccountRelations:
        """
        Cherche les references au compte dans les parametres comptables
        et dans les lignes d'ecriture.

        Les erreurs SQL ne sont pas interceptees: une suppression ne doit
        jamais avoir lieu sur un controle incomplet.
        """
        settings_repo = AccountingSettingsRepository(self.db, tenant_id)
        return AccountRelations(
            has_accounting_settings=settings_repo.references_account(account_id),
            has_journal_entries=self.line_repository.exists_for_account(account_id),
        )

    def delete(self, tenant_id: int, account_id: int) -> None:
        """
        Supprime un compte non reference.

        Raises:
            AccountNotFoundError: Si absent du tenant
            AccountHasRelationsError: Si reference par les parametres ou une ligne
        """
        repo = self._accounts(tenant_id)
        if repo.get(account_id) is None:
            raise AccountNotFoundError(account_id)

        relations = self.check_relations(tenant_id, account_id)
        if relations.has_relations:
            logger.warning(
                f"Suppression refusee pour le compte {account_id}: "
                f"settings={relations.has_accounting_settings} "
                f"lignes={relations.has_journal_entries}"
            )
            raise AccountHasRelationsError(
                account_id,
                has_accounting_settings=relations.has_accounting_settings,
                has_journal_entries=relations.has_journal_entries,
            )

        repo.delete(account_id)
        logger.info(f"Compte supprime: {account_id} tenant={tenant_id}")

    def seed_from_template(self, tenant_id: int) -> SeedResult:
        """
        Copie le plan modele dans le plan du tenant.

        Les lignes dont le code (nettoye) est vide ou deja present sont
        ignorees; les parents sont relies par parent_code.
        """
        repo = self._accounts(tenant_id)
        templates = self.template_repository.list_active()
        existing = {account.code.strip(): account.id for account in repo.list_ordered()}

        created = 0
        with repo.atomic():
            for row in templates:
                code = str(row.code or "").strip()
                if not code or code in existing:
                    continue

                account_type = normalize_account_type(row.type)
                parent_code = str(row.parent_code or "").strip()
                account = repo.create({
                    "code": code,
                    "name": row.name,
                    "description": row.description,
                    "type": account_type,
                    "normal_balance": (
                        normalize_normal_balance(row.normal_balance)
                        or default_normal_balance(account_type)
                    ),
                    "level": row.level or 1,
                    "parent_id": existing.get(parent_code) if parent_code else None,
                    "is_active": row.is_active is not False,
                    "allow_posting": row.allow_posting is not False,
                    "is_bank_account": bool(row.is_bank_account),
                })
                existing[code] = account.id
                created += 1

            AccountingSettingsRepository(self.db, tenant_id).mark_seeded()

        logger.info(f"Plan comptable initialise: {created} comptes crees tenant={tenant_id}")
        return SeedResult(created=created)

    def refresh_stored_balances(self, tenant_id: int) -> int:
        """
        Recalcule la colonne balance depuis le grand livre.

        La colonne n'est qu'une vue materialisee: elle n'est jamais
        saisie directement.

        Returns:
            Nombre de comptes dont le solde a change

        Raises:
            ReportDegradedError: Si les soldes n'ont pas pu etre lus
        """
        balances = self.balance_engine.get_balances(tenant_id).unwrap()
        repo = self._accounts(tenant_id)
        accounts = {account.id: account for account in repo.list_ordered(active_only=True)}

        changed = 0
        for row in balances:
            account = accounts.get(row.account_id)
            if account is not None and account.balance != row.balance:
                account.balance = row.balance
                changed += 1
        self.db.flush()
        logger.info(f"Soldes materialises rafraichis: {changed} comptes tenant={tenant_id}")
        return changed
