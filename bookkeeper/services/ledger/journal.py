"""
Service JournalLedger pour Bookkeeper.

Saisie des ecritures en partie double:
1. normalisation des lignes (montants, libelle, numero de ligne)
2. controle de l'equilibre debit/credit arrondi a 2 decimales
3. controle des comptes dans le tenant
4. ecriture de l'en-tete et des lignes dans un meme SAVEPOINT

Toute erreur de validation est levee avant la moindre ecriture.
"""
import logging
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Sequence

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from bookkeeper.core.exceptions import (
    AccountNotFoundError,
    InvalidEntryStatusError,
    InvalidJournalEntryError,
    JournalEntryNotFoundError,
    LedgerWriteError,
    UnbalancedEntryError,
)
from bookkeeper.core.money import money, money_sum
from bookkeeper.core.result import ReadResult, degrade
from bookkeeper.models.ledger.journal import CashFlowCategory, JournalEntry, JournalEntryStatus
from bookkeeper.repositories.ledger.account import ChartAccountRepository
from bookkeeper.repositories.ledger.journal import JournalEntryRepository, JournalLineRepository

logger = logging.getLogger(__name__)

# Statuts autorises a la creation
CREATABLE_STATUSES = (JournalEntryStatus.DRAFT, JournalEntryStatus.POSTED)


def normalize_lines(lines: Sequence[Mapping[str, Any]], entry_description: str) -> List[Dict[str, Any]]:
    """
    Normalise les lignes d'une ecriture.

    - debit_amount / credit_amount absents -> 0, arrondis a 2 decimales
    - description absente -> libelle de l'ecriture
    - line_number absent -> position (1-indexed)

    Raises:
        InvalidJournalEntryError: Aucune ligne, compte absent ou montant negatif
    """
    if not lines:
        raise InvalidJournalEntryError("A journal entry needs at least one line")

    normalized = []
    for index, line in enumerate(lines):
        account_id = line.get("account_id")
        if account_id is None:
            raise InvalidJournalEntryError(
                f"Line {index + 1} has no account",
                details={"line": index + 1},
            )
        try:
            debit = money(line.get("debit_amount"))
            credit = money(line.get("credit_amount"))
        except ArithmeticError as exc:
            raise InvalidJournalEntryError(
                f"Line {index + 1} has an invalid amount",
                details={"line": index + 1},
            ) from exc
        if debit < 0 or credit < 0:
            raise InvalidJournalEntryError(
                f"Line {index + 1} has a negative amount",
                details={"line": index + 1, "debit_amount": str(debit), "credit_amount": str(credit)},
            )
        normalized.append({
            "account_id": account_id,
            "description": line.get("description") or entry_description,
            "debit_amount": debit,
            "credit_amount": credit,
            "line_number": line.get("line_number") or index + 1,
        })
    return normalized


def check_balance(lines: Sequence[Mapping[str, Any]]) -> tuple:
    """
    Verifie round(sum(debit), 2) == round(sum(credit), 2) sur les lignes
    deja arrondies par normalize_lines (les montants stockes balancent).

    Returns:
        (total_debit, total_credit)

    Raises:
        UnbalancedEntryError: Si les totaux different
    """
    total_debit = money_sum(line["debit_amount"] for line in lines)
    total_credit = money_sum(line["credit_amount"] for line in lines)
    if total_debit != total_credit:
        raise UnbalancedEntryError(total_debit, total_credit)
    return total_debit, total_credit


class JournalService:
    """
    Service de saisie et de consultation des ecritures.
    """

    def __init__(self, db: Session):
        self.db = db
        self.line_repository = JournalLineRepository(db)

    def _entries(self, tenant_id: int) -> JournalEntryRepository:
        return JournalEntryRepository(self.db, tenant_id)

    # =========================================================================
    # SAISIE
    # =========================================================================

    def post_entry(
        self,
        tenant_id: int,
        header: Mapping[str, Any],
        lines: Sequence[Mapping[str, Any]],
    ) -> JournalEntry:
        """
        Valide et enregistre une ecriture avec ses lignes.

        Args:
            tenant_id: Tenant de l'ecriture
            header: entry_number, entry_date, description, reference?, status?,
                cash_flow_category?, idempotency_key?
            lines: account_id, description?, debit_amount?, credit_amount?, line_number?

        Returns:
            L'ecriture creee (ou l'ecriture existante pour une cle d'idempotence deja vue)

        Raises:
            InvalidJournalEntryError: Ecriture mal formee
            InvalidEntryStatusError: Statut initial autre que draft/posted
            UnbalancedEntryError: Debits et credits differents
            AccountNotFoundError: Compte inconnu dans le tenant
            LedgerWriteError: Echec d'ecriture (rien n'est persiste)
        """
        entries = self._entries(tenant_id)

        idempotency_key = header.get("idempotency_key")
        if idempotency_key:
            existing = entries.get_by_idempotency_key(idempotency_key)
            if existing is not None:
                logger.info(
                    f"Ecriture deja enregistree pour la cle {idempotency_key}: "
                    f"id={existing.id} tenant={tenant_id}"
                )
                return existing

        entry_data = self._build_header(header)
        normalized = normalize_lines(lines, entry_data["description"])
        total_debit, total_credit = check_balance(normalized)
        self._check_accounts(tenant_id, normalized)

        entry_data.update({"total_debit": total_debit, "total_credit": total_credit})

        try:
            with entries.atomic():
                entry = entries.create(entry_data)
                self.line_repository.bulk_create(entry.id, normalized)
        except IntegrityError as exc:
            if idempotency_key:
                existing = entries.get_by_idempotency_key(idempotency_key)
                if existing is not None:
                    return existing
            logger.error(f"Ecriture {entry_data['entry_number']} rejetee par la base: {exc.orig}")
            raise LedgerWriteError(details={"entry_number": entry_data["entry_number"]}) from exc
        except SQLAlchemyError as exc:
            logger.error(f"Echec d'ecriture de {entry_data['entry_number']} tenant={tenant_id}: {exc}")
            raise LedgerWriteError(details={"entry_number": entry_data["entry_number"]}) from exc

        self.db.expire(entry, ["lines"])
        logger.info(
            f"Ecriture {entry.entry_number} enregistree: id={entry.id} "
            f"{len(normalized)} lignes total={total_debit} status={entry.status.value} tenant={tenant_id}"
        )
        return entry

    def _build_header(self, header: Mapping[str, Any]) -> Dict[str, Any]:
        entry_number = str(header.get("entry_number") or "").strip()
        if not entry_number:
            raise InvalidJournalEntryError("entry_number is required")
        entry_date = header.get("entry_date")
        if entry_date is None:
            raise InvalidJournalEntryError("entry_date is required")
        if isinstance(entry_date, str):
            try:
                entry_date = date.fromisoformat(entry_date)
            except ValueError as exc:
                raise InvalidJournalEntryError(f"Invalid entry_date: {entry_date}") from exc

        status = header.get("status") or JournalEntryStatus.POSTED
        try:
            status = JournalEntryStatus(status)
        except ValueError as exc:
            raise InvalidEntryStatusError(f"Unknown status: {status}") from exc
        if status not in CREATABLE_STATUSES:
            raise InvalidEntryStatusError(f"A new entry cannot be created as {status.value}")

        category = header.get("cash_flow_category")
        if category is not None:
            try:
                category = CashFlowCategory(category)
            except ValueError as exc:
                raise InvalidJournalEntryError(f"Unknown cash flow category: {category}") from exc

        return {
            "entry_number": entry_number,
            "entry_date": entry_date,
            "description": header.get("description") or "",
            "reference": header.get("reference"),
            "status": status,
            "cash_flow_category": category,
            "idempotency_key": header.get("idempotency_key"),
            "reversal_of_id": header.get("reversal_of_id"),
        }

    def _check_accounts(self, tenant_id: int, lines: Sequence[Mapping[str, Any]]) -> None:
        """Chaque compte reference doit exister dans le tenant."""
        account_ids = sorted({line["account_id"] for line in lines})
        found = {account.id for account in ChartAccountRepository(self.db, tenant_id).get_many(account_ids)}
        for account_id in account_ids:
            if account_id not in found:
                raise AccountNotFoundError(account_id)

    def post_draft(self, tenant_id: int, entry_id: int) -> JournalEntry:
        """
        Passe un brouillon au statut posted.

        Raises:
            JournalEntryNotFoundError: Ecriture absente du tenant
            InvalidEntryStatusError: L'ecriture n'est pas un brouillon
        """
        entry = self.get_entry(tenant_id, entry_id)
        if entry.status != JournalEntryStatus.DRAFT:
            raise InvalidEntryStatusError(
                f"Only draft entries can be posted (entry is {entry.status.value})"
            )
        check_balance([
            {"debit_amount": line.debit_amount, "credit_amount": line.credit_amount}
            for line in entry.lines
        ])
        entry.status = JournalEntryStatus.POSTED
        self.db.flush()
        logger.info(f"Brouillon {entry.entry_number} comptabilise tenant={tenant_id}")
        return entry

    def reverse_entry(
        self,
        tenant_id: int,
        entry_id: int,
        reversal_date: Optional[date] = None,
        entry_number: Optional[str] = None,
    ) -> JournalEntry:
        """
        Contre-passe une ecriture: nouvelle ecriture aux debits/credits
        inverses, l'originale passe au statut reversed.

        Returns:
            L'ecriture de contre-passation

        Raises:
            JournalEntryNotFoundError: Ecriture absente du tenant
            InvalidEntryStatusError: L'ecriture n'est pas posted
        """
        original = self.get_entry(tenant_id, entry_id)
        if original.status != JournalEntryStatus.POSTED:
            raise InvalidEntryStatusError(
                f"Only posted entries can be reversed (entry is {original.status.value})"
            )

        header = {
            "entry_number": entry_number or f"{original.entry_number}-R",
            "entry_date": reversal_date or date.today(),
            "description": (
                f"Reversal of {original.entry_number}: {original.description}"
                if original.description else f"Reversal of {original.entry_number}"
            ),
            "reference": original.reference,
            "status": JournalEntryStatus.POSTED,
            "cash_flow_category": original.cash_flow_category,
            "reversal_of_id": original.id,
        }
        lines = [
            {
                "account_id": line.account_id,
                "description": line.description,
                "debit_amount": line.credit_amount,
                "credit_amount": line.debit_amount,
                "line_number": line.line_number,
            }
            for line in original.lines
        ]

        with self._entries(tenant_id).atomic():
            reversal = self.post_entry(tenant_id, header, lines)
            original.status = JournalEntryStatus.REVERSED
            self.db.flush()

        logger.info(
            f"Ecriture {original.entry_number} contre-passee par {reversal.entry_number} tenant={tenant_id}"
        )
        return reversal

    # =========================================================================
    # LECTURE
    # =========================================================================

    def get_all(self, tenant_id: int) -> ReadResult[List[JournalEntry]]:
        """Ecritures du tenant, plus recentes d'abord (lecture tolerante)."""
        try:
            return ReadResult.ok(self._entries(tenant_id).list_recent())
        except SQLAlchemyError as exc:
            return degrade(logger, "journal.get_all", tenant_id, exc, [])

    def get_entry(self, tenant_id: int, entry_id: int) -> JournalEntry:
        """
        Raises:
            JournalEntryNotFoundError: Ecriture absente du tenant
        """
        entry = self._entries(tenant_id).get(entry_id)
        if entry is None:
            raise JournalEntryNotFoundError(entry_id)
        return entry
