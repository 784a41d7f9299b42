"""
Tests comportementaux pour la validation des ecritures.
normalize_lines et check_balance n'ecrivent rien en base.
"""
from decimal import Decimal

import pytest


class TestNormalizeLines:

    @pytest.mark.unit
    def test_missing_amounts_become_zero_and_description_is_inherited(self):
        from bookkeeper.services.ledger.journal import normalize_lines

        lines = normalize_lines(
            [
                {"account_id": 1, "debit_amount": "100"},
                {"account_id": 2, "credit_amount": 100, "description": "Contrepartie"},
            ],
            "Vente comptoir",
        )

        assert lines[0]["credit_amount"] == Decimal("0.00")
        assert lines[0]["debit_amount"] == Decimal("100.00")
        assert lines[0]["description"] == "Vente comptoir"
        assert lines[1]["description"] == "Contrepartie"
        assert [line["line_number"] for line in lines] == [1, 2]

    @pytest.mark.unit
    def test_amounts_are_rounded_to_cents(self):
        from bookkeeper.services.ledger.journal import normalize_lines

        lines = normalize_lines([{"account_id": 1, "debit_amount": "10.005"}], "")

        assert lines[0]["debit_amount"] == Decimal("10.01")

    @pytest.mark.unit
    def test_explicit_line_number_is_kept(self):
        from bookkeeper.services.ledger.journal import normalize_lines

        lines = normalize_lines([{"account_id": 1, "line_number": 10}], "")

        assert lines[0]["line_number"] == 10

    @pytest.mark.unit
    @pytest.mark.parametrize("lines", [
        [],
        [{"debit_amount": 10}],
        [{"account_id": 1, "debit_amount": -5}],
        [{"account_id": 1, "credit_amount": "abc"}],
    ])
    def test_malformed_lines_are_rejected(self, lines):
        from bookkeeper.core.exceptions import InvalidJournalEntryError
        from bookkeeper.services.ledger.journal import normalize_lines

        with pytest.raises(InvalidJournalEntryError):
            normalize_lines(lines, "x")


class TestCheckBalance:

    @pytest.mark.unit
    def test_balanced_lines_return_totals(self):
        from bookkeeper.services.ledger.journal import check_balance

        total_debit, total_credit = check_balance([
            {"debit_amount": Decimal("60.00"), "credit_amount": Decimal("0.00")},
            {"debit_amount": Decimal("40.00"), "credit_amount": Decimal("0.00")},
            {"debit_amount": Decimal("0.00"), "credit_amount": Decimal("100.00")},
        ])

        assert total_debit == total_credit == Decimal("100.00")

    @pytest.mark.unit
    def test_unbalanced_lines_raise(self):
        from bookkeeper.core.exceptions import UnbalancedEntryError
        from bookkeeper.services.ledger.journal import check_balance

        with pytest.raises(UnbalancedEntryError) as exc_info:
            check_balance([
                {"debit_amount": Decimal("100.00"), "credit_amount": Decimal("0.00")},
                {"debit_amount": Decimal("0.00"), "credit_amount": Decimal("99.99")},
            ])

        assert exc_info.value.total_debit == Decimal("100.00")
        assert exc_info.value.total_credit == Decimal("99.99")

    @pytest.mark.unit
    def test_sub_cent_lines_are_rounded_before_totals(self):
        """0.005 + 0.005 est stocke 0.01 + 0.01: l'ecriture ne balance plus contre 0.01."""
        from bookkeeper.core.exceptions import UnbalancedEntryError
        from bookkeeper.services.ledger.journal import check_balance, normalize_lines

        lines = normalize_lines([
            {"account_id": 1, "debit_amount": "0.005"},
            {"account_id": 2, "debit_amount": "0.005"},
            {"account_id": 3, "credit_amount": "0.01"},
        ], "Redondeo")

        assert [line["debit_amount"] for line in lines[:2]] == [Decimal("0.01"), Decimal("0.01")]
        with pytest.raises(UnbalancedEntryError) as exc_info:
            check_balance(lines)

        assert exc_info.value.total_debit == Decimal("0.02")
        assert exc_info.value.total_credit == Decimal("0.01")
