"""
Tests comportementaux pour les regles du plan comptable.
Normalisation des types saisis librement et sens normal par defaut.
"""
import pytest


class TestAccountTypeNormalization:

    @pytest.mark.unit
    @pytest.mark.parametrize("raw,expected", [
        ("asset", "asset"),
        ("Activos", "asset"),
        ("  pasivo ", "liability"),
        ("patrimonio", "equity"),
        ("capital", "equity"),
        ("ingresos", "income"),
        ("costo", "cost"),
        ("GASTOS", "expense"),
    ])
    def test_known_spellings_map_to_canonical_type(self, raw, expected):
        from bookkeeper.services.ledger.chart_of_accounts import normalize_account_type

        assert normalize_account_type(raw).value == expected

    @pytest.mark.unit
    @pytest.mark.parametrize("raw", ["", None, "misc", "banco"])
    def test_unknown_type_defaults_to_asset(self, raw):
        from bookkeeper.models.ledger.account import AccountType
        from bookkeeper.services.ledger.chart_of_accounts import normalize_account_type

        assert normalize_account_type(raw) == AccountType.ASSET


class TestDefaultNormalBalance:

    @pytest.mark.unit
    def test_debit_only_for_asset_and_expense(self):
        from bookkeeper.models.ledger.account import AccountType, NormalBalance
        from bookkeeper.services.ledger.chart_of_accounts import default_normal_balance

        assert default_normal_balance(AccountType.ASSET) == NormalBalance.DEBIT
        assert default_normal_balance(AccountType.EXPENSE) == NormalBalance.DEBIT
        for account_type in (AccountType.LIABILITY, AccountType.EQUITY, AccountType.INCOME, AccountType.COST):
            assert default_normal_balance(account_type) == NormalBalance.CREDIT

    @pytest.mark.unit
    def test_normalize_normal_balance_is_case_insensitive(self):
        from bookkeeper.models.ledger.account import NormalBalance
        from bookkeeper.services.ledger.chart_of_accounts import normalize_normal_balance

        assert normalize_normal_balance("DEBIT") == NormalBalance.DEBIT
        assert normalize_normal_balance(" credit ") == NormalBalance.CREDIT
        assert normalize_normal_balance("sideways") is None
        assert normalize_normal_balance(None) is None


class TestSignedBalances:
    """Le signe d'un solde suit le type du compte."""

    @pytest.mark.unit
    def test_debit_nature_types(self):
        from decimal import Decimal
        from bookkeeper.models.ledger.account import AccountType
        from bookkeeper.services.ledger.balance import type_signed

        for account_type in (AccountType.ASSET, AccountType.EXPENSE, AccountType.COST):
            assert type_signed(account_type, Decimal("100"), Decimal("30")) == Decimal("70.00")

    @pytest.mark.unit
    def test_credit_nature_types(self):
        from decimal import Decimal
        from bookkeeper.models.ledger.account import AccountType
        from bookkeeper.services.ledger.balance import type_signed

        for account_type in (AccountType.LIABILITY, AccountType.EQUITY, AccountType.INCOME):
            assert type_signed(account_type, Decimal("100"), Decimal("30")) == Decimal("-70.00")
