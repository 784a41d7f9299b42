"""
Factories pour les ecritures.

Elles ecrivent directement en base, sans les controles de JournalService:
a reserver aux situations que le service refuserait de produire.
"""
from datetime import date
from decimal import Decimal

from factory import Sequence

from bookkeeper.models.ledger.journal import JournalEntry, JournalEntryStatus, JournalLine
from tests.factories.base import PersistedFactory


class JournalEntryFactory(PersistedFactory):
    """En-tete d'ecriture posted sans lignes."""

    class Meta:
        model = JournalEntry

    tenant_id = 1
    entry_number = Sequence(lambda n: f"JE-F{n:04d}")
    entry_date = date(2024, 1, 15)
    description = "Ecriture de test"
    reference = None
    status = JournalEntryStatus.POSTED
    total_debit = Decimal("0.00")
    total_credit = Decimal("0.00")
    cash_flow_category = None
    idempotency_key = None
    reversal_of_id = None


class JournalLineFactory(PersistedFactory):
    """Ligne d'ecriture; journal_entry_id et account_id a fournir."""

    class Meta:
        model = JournalLine

    description = None
    debit_amount = Decimal("0.00")
    credit_amount = Decimal("0.00")
    line_number = Sequence(lambda n: n + 1)
