"""
Tests d'integration pour JournalService.
Saisie atomique, idempotence, brouillons et contre-passations.
"""
from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from bookkeeper.core.exceptions import (
    AccountNotFoundError,
    InvalidEntryStatusError,
    InvalidJournalEntryError,
    LedgerWriteError,
    UnbalancedEntryError,
)
from bookkeeper.models.ledger.journal import JournalEntry, JournalEntryStatus, JournalLine
from bookkeeper.repositories.ledger.journal import JournalLineRepository
from bookkeeper.services.ledger import BalanceEngine, JournalService


def _header(number="JE-0001", **extra):
    header = {"entry_number": number, "entry_date": date(2024, 1, 15), "description": "Venta mostrador"}
    header.update(extra)
    return header


def _sale(chart, amount="100"):
    return [
        {"account_id": chart["cash"].id, "debit_amount": amount},
        {"account_id": chart["sales"].id, "credit_amount": amount},
    ]


def _counts(db_session):
    return db_session.query(JournalEntry).count(), db_session.query(JournalLine).count()


class TestPostEntry:

    @pytest.mark.integration
    def test_balanced_entry_is_persisted_with_lines(self, db_session, chart):
        service = JournalService(db_session)

        entry = service.post_entry(1, _header(), _sale(chart))

        assert entry.id is not None
        assert entry.tenant_id == 1
        assert entry.status == JournalEntryStatus.POSTED
        assert entry.total_debit == entry.total_credit == Decimal("100.00")
        assert [line.line_number for line in entry.lines] == [1, 2]
        assert entry.lines[0].description == "Venta mostrador"

    @pytest.mark.integration
    def test_trial_balance_after_balanced_post(self, db_session, chart):
        """Une vente de 100: caisse au debit, ventes au credit, balance equilibree."""
        JournalService(db_session).post_entry(1, _header(), _sale(chart))

        rows = BalanceEngine(db_session).get_trial_balance(1).unwrap()

        by_code = {row.code: row for row in rows}
        assert by_code["1111"].total_debit == Decimal("100.00")
        assert by_code["4010"].total_credit == Decimal("100.00")
        assert sum(row.total_debit for row in rows) == sum(row.total_credit for row in rows)

    @pytest.mark.integration
    def test_unbalanced_entry_persists_nothing(self, db_session, chart):
        service = JournalService(db_session)

        with pytest.raises(UnbalancedEntryError):
            service.post_entry(1, _header(), [
                {"account_id": chart["cash"].id, "debit_amount": 100},
                {"account_id": chart["sales"].id, "credit_amount": 90},
            ])

        assert _counts(db_session) == (0, 0)

    @pytest.mark.integration
    def test_unknown_account_is_rejected_before_write(self, db_session, chart):
        with pytest.raises(AccountNotFoundError):
            JournalService(db_session).post_entry(1, _header(), [
                {"account_id": chart["cash"].id, "debit_amount": 10},
                {"account_id": 999999, "credit_amount": 10},
            ])

        assert _counts(db_session) == (0, 0)

    @pytest.mark.integration
    def test_line_failure_leaves_no_orphan_header(self, db_session, chart):
        """Un echec d'insertion des lignes annule aussi l'en-tete."""
        failure = OperationalError("INSERT INTO journal_entry_lines", {}, Exception("disk full"))

        with patch.object(JournalLineRepository, "bulk_create", side_effect=failure):
            with pytest.raises(LedgerWriteError):
                JournalService(db_session).post_entry(1, _header(), _sale(chart))

        assert _counts(db_session) == (0, 0)

    @pytest.mark.integration
    def test_entry_cannot_be_created_as_reversed(self, db_session, chart):
        with pytest.raises(InvalidEntryStatusError):
            JournalService(db_session).post_entry(1, _header(status="reversed"), _sale(chart))

    @pytest.mark.integration
    def test_missing_entry_number_is_rejected(self, db_session, chart):
        with pytest.raises(InvalidJournalEntryError):
            JournalService(db_session).post_entry(1, _header(number="  "), _sale(chart))

    @pytest.mark.integration
    def test_iso_date_string_is_accepted(self, db_session, chart):
        entry = JournalService(db_session).post_entry(1, _header(entry_date="2024-03-01"), _sale(chart))

        assert entry.entry_date == date(2024, 3, 1)


class TestIdempotency:

    @pytest.mark.integration
    def test_same_key_returns_existing_entry(self, db_session, chart):
        service = JournalService(db_session)

        first = service.post_entry(1, _header(idempotency_key="sale-42"), _sale(chart))
        second = service.post_entry(1, _header(number="JE-0002", idempotency_key="sale-42"), _sale(chart))

        assert second.id == first.id
        assert _counts(db_session) == (1, 2)

    @pytest.mark.integration
    def test_without_key_retries_double_post(self, db_session, chart):
        service = JournalService(db_session)

        service.post_entry(1, _header(), _sale(chart))
        service.post_entry(1, _header(), _sale(chart))

        assert _counts(db_session) == (2, 4)


class TestDraftsAndReversals:

    @pytest.mark.integration
    def test_draft_is_excluded_until_posted(self, db_session, chart):
        service = JournalService(db_session)
        engine = BalanceEngine(db_session)

        draft = service.post_entry(1, _header(status="draft"), _sale(chart))
        assert engine.get_account_balance(1, chart["cash"].id).unwrap() == Decimal("0.00")

        posted = service.post_draft(1, draft.id)

        assert posted.status == JournalEntryStatus.POSTED
        assert engine.get_account_balance(1, chart["cash"].id).unwrap() == Decimal("100.00")

    @pytest.mark.integration
    def test_post_draft_rejects_posted_entry(self, db_session, chart):
        service = JournalService(db_session)
        entry = service.post_entry(1, _header(), _sale(chart))

        with pytest.raises(InvalidEntryStatusError):
            service.post_draft(1, entry.id)

    @pytest.mark.integration
    def test_reversal_neutralizes_original(self, db_session, chart):
        service = JournalService(db_session)
        original = service.post_entry(1, _header(cash_flow_category="operating"), _sale(chart, "250"))

        reversal = service.reverse_entry(1, original.id, reversal_date=date(2024, 1, 20))

        db_session.refresh(original)
        assert original.status == JournalEntryStatus.REVERSED
        assert reversal.reversal_of_id == original.id
        assert reversal.entry_number == "JE-0001-R"
        assert reversal.description == "Reversal of JE-0001: Venta mostrador"
        assert reversal.cash_flow_category == original.cash_flow_category
        assert reversal.lines[0].credit_amount == Decimal("250.00")
        assert BalanceEngine(db_session).get_account_balance(1, chart["cash"].id).unwrap() == Decimal("0.00")

    @pytest.mark.integration
    def test_reversed_entry_cannot_be_reversed_again(self, db_session, chart):
        service = JournalService(db_session)
        original = service.post_entry(1, _header(), _sale(chart))
        service.reverse_entry(1, original.id)

        with pytest.raises(InvalidEntryStatusError):
            service.reverse_entry(1, original.id, entry_number="JE-0001-R2")


class TestJournalReads:

    @pytest.mark.integration
    def test_get_all_orders_by_date_descending(self, db_session, chart):
        service = JournalService(db_session)
        service.post_entry(1, _header(number="JE-A", entry_date=date(2024, 1, 1)), _sale(chart))
        service.post_entry(1, _header(number="JE-B", entry_date=date(2024, 2, 1)), _sale(chart))

        result = service.get_all(1)

        assert result.is_ok
        assert [entry.entry_number for entry in result.data] == ["JE-B", "JE-A"]

    @pytest.mark.integration
    def test_get_all_degrades_on_read_failure(self, db_session, chart):
        from bookkeeper.repositories.ledger.journal import JournalEntryRepository

        failure = OperationalError("SELECT", {}, Exception("timeout"))
        with patch.object(JournalEntryRepository, "list_recent", side_effect=failure):
            result = JournalService(db_session).get_all(1)

        assert result.is_degraded
        assert result.data == []
        assert result.error_kind == "OperationalError"
