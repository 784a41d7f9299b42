"""
Exceptions applicatives pour Bookkeeper API.

Ces exceptions sont utilisees par les services et automatiquement
converties en responses HTTP par le exception handler.

Usage:
    from bookkeeper.core.exceptions import UnbalancedEntryError
    raise UnbalancedEntryError(total_debit, total_credit)

Le exception handler convertira en:
    HTTP 422: {"error": "UNBALANCED_ENTRY", "message": "..."}

Trois familles d'erreurs metier:
- Validation (ecriture desequilibree, compte inconnu): rien n'est ecrit,
  l'appelant corrige et recommence.
- Integrite referentielle (suppression bloquee): jamais rejouee.
- Echec d'ecriture en base: la transaction de l'ecriture est annulee.
"""
from decimal import Decimal
from typing import Optional, Dict, Any


class AppException(Exception):
    """
    Exception de base pour l'application.

    Toutes les exceptions metier heritent de cette classe.
    Fournit status_code HTTP et error_code pour le client.
    """
    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"
    message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message or self.__class__.message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialise l'exception pour la response JSON"""
        result = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Request Exceptions (401)
# =============================================================================

class UserRequired(AppException):
    """Identite de l'appelant absente ou invalide"""
    status_code = 401
    error_code = "USER_REQUIRED"
    message = "Caller identity header is missing or invalid"


# =============================================================================
# Validation Exceptions (422)
# =============================================================================

class ValidationError(AppException):
    """Erreur de validation"""
    status_code = 422
    error_code = "VALIDATION_ERROR"
    message = "Validation failed"


class UnbalancedEntryError(ValidationError):
    """Debits et credits d'une ecriture differents apres arrondi a 2 decimales"""
    error_code = "UNBALANCED_ENTRY"
    message = "Journal entry is not balanced between debits and credits"

    def __init__(self, total_debit: Decimal, total_credit: Decimal):
        super().__init__(details={
            "total_debit": str(total_debit),
            "total_credit": str(total_credit),
        })
        self.total_debit = total_debit
        self.total_credit = total_credit


class InvalidJournalEntryError(ValidationError):
    """Ecriture mal formee (aucune ligne, montant negatif...)"""
    error_code = "INVALID_JOURNAL_ENTRY"
    message = "Invalid journal entry"


class InvalidEntryStatusError(ValidationError):
    """Transition de statut interdite pour cette ecriture"""
    error_code = "INVALID_ENTRY_STATUS"
    message = "Journal entry status does not allow this operation"


class InvalidPeriodError(ValidationError):
    """Periode de rapport invalide (format YYYY-MM ou dates inversees)"""
    error_code = "INVALID_PERIOD"
    message = "Invalid reporting period"


class InvalidAccountError(ValidationError):
    """Donnees de compte invalides (hierarchie, code vide...)"""
    error_code = "INVALID_ACCOUNT"
    message = "Invalid account data"


# =============================================================================
# Resource Exceptions (404, 409)
# =============================================================================

class NotFound(AppException):
    """Resource non trouvee"""
    status_code = 404
    error_code = "NOT_FOUND"
    message = "Resource not found"

    def __init__(self, resource: str = None):
        message = f"{resource} not found" if resource else None
        super().__init__(message=message)


class AccountNotFoundError(NotFound):
    """Compte inexistant dans le tenant courant"""
    error_code = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_id: Any):
        super().__init__(resource=f"Account {account_id}")
        self.account_id = account_id


class JournalEntryNotFoundError(NotFound):
    """Ecriture inexistante dans le tenant courant"""
    error_code = "JOURNAL_ENTRY_NOT_FOUND"

    def __init__(self, entry_id: int):
        super().__init__(resource=f"Journal entry {entry_id}")
        self.entry_id = entry_id


class AlreadyExists(AppException):
    """Resource existe deja"""
    status_code = 409
    error_code = "ALREADY_EXISTS"
    message = "Resource already exists"


class AccountCodeExistsError(AlreadyExists):
    """Code de compte deja utilise dans le tenant"""
    error_code = "ACCOUNT_CODE_EXISTS"

    def __init__(self, code: str):
        super().__init__(message=f"Account code {code} already exists")
        self.code = code


class AccountHasRelationsError(AppException):
    """Suppression refusee: le compte est reference"""
    status_code = 409
    error_code = "ACCOUNT_HAS_RELATIONS"
    message = "Cannot delete account with existing relations"

    def __init__(self, account_id: int, has_accounting_settings: bool, has_journal_entries: bool):
        super().__init__(details={
            "account_id": account_id,
            "has_accounting_settings": has_accounting_settings,
            "has_journal_entries": has_journal_entries,
        })
        self.account_id = account_id


class ImmutableSnapshotError(AppException):
    """Les etats financiers generes ne se modifient pas"""
    status_code = 409
    error_code = "IMMUTABLE_SNAPSHOT"
    message = "Financial statement snapshots are append-only"


# =============================================================================
# Server-side Exceptions (500, 503)
# =============================================================================

class LedgerWriteError(AppException):
    """Echec d'ecriture en base; l'ecriture complete a ete annulee"""
    status_code = 500
    error_code = "LEDGER_WRITE_FAILED"
    message = "Journal entry could not be written; nothing was persisted"


class ReportDegradedError(AppException):
    """Donnees du rapport incompletes suite a un echec de lecture"""
    status_code = 503
    error_code = "REPORT_DEGRADED"
    message = "Report data could not be read completely"
