"""
Tests d'isolation multi-tenant.
Un tenant ne voit ni ne mouvemente les comptes ou ecritures d'un autre.
"""
from datetime import date

import pytest

from bookkeeper.core.exceptions import AccountNotFoundError, JournalEntryNotFoundError
from bookkeeper.models.ledger.account import AccountType, NormalBalance
from bookkeeper.models.ledger.journal import JournalEntry
from bookkeeper.repositories.ledger.account import ChartAccountRepository
from bookkeeper.services.ledger import ChartOfAccountsService, JournalService, ReportGenerator
from tests.factories import ChartAccountFactory


@pytest.fixture
def other_tenant(db_session):
    return {
        "cash": ChartAccountFactory.create(db_session=db_session, tenant_id=2, code="1111"),
        "sales": ChartAccountFactory.create(db_session=db_session, tenant_id=2, code="4010", name="Ventas"),
    }


def _header(number="JE-1"):
    return {"entry_number": number, "entry_date": date(2024, 1, 5), "description": "Venta"}


class TestTenantIsolation:

    @pytest.mark.integration
    def test_posting_to_foreign_account_is_rejected(self, db_session, chart, other_tenant):
        with pytest.raises(AccountNotFoundError):
            JournalService(db_session).post_entry(1, _header(), [
                {"account_id": chart["cash"].id, "debit_amount": 10},
                {"account_id": other_tenant["sales"].id, "credit_amount": 10},
            ])

        assert db_session.query(JournalEntry).count() == 0

    @pytest.mark.integration
    def test_entries_are_invisible_to_other_tenants(self, db_session, chart, other_tenant):
        service = JournalService(db_session)
        entry = service.post_entry(1, _header(), [
            {"account_id": chart["cash"].id, "debit_amount": 10},
            {"account_id": chart["sales"].id, "credit_amount": 10},
        ])

        assert service.get_all(2).data == []
        with pytest.raises(JournalEntryNotFoundError):
            service.get_entry(2, entry.id)
        with pytest.raises(JournalEntryNotFoundError):
            service.reverse_entry(2, entry.id)

    @pytest.mark.integration
    def test_chart_reads_are_scoped(self, db_session, chart, other_tenant):
        views = ChartOfAccountsService(db_session).get_all(2).data

        assert {view.id for view in views} == {other_tenant["cash"].id, other_tenant["sales"].id}

    @pytest.mark.integration
    def test_foreign_account_cannot_be_updated_or_deleted(self, db_session, chart, other_tenant):
        service = ChartOfAccountsService(db_session)

        with pytest.raises(AccountNotFoundError):
            service.update(1, other_tenant["cash"].id, {"name": "Hack"})
        with pytest.raises(AccountNotFoundError):
            service.delete(1, other_tenant["cash"].id)

        assert ChartAccountRepository(db_session, 2).get(other_tenant["cash"].id).name != "Hack"

    @pytest.mark.integration
    def test_repository_forces_its_tenant_on_create(self, db_session):
        account = ChartAccountRepository(db_session, 1).create({
            "tenant_id": 2,
            "code": "1000",
            "name": "Caja",
            "type": AccountType.ASSET,
            "normal_balance": NormalBalance.DEBIT,
        })

        assert account.tenant_id == 1

    @pytest.mark.integration
    def test_reports_only_include_own_ledger(self, db_session, chart, other_tenant):
        JournalService(db_session).post_entry(2, _header(), [
            {"account_id": other_tenant["cash"].id, "debit_amount": 900},
            {"account_id": other_tenant["sales"].id, "credit_amount": 900},
        ])

        report = ReportGenerator(db_session).generate_trial_balance(1)

        assert report.accounts == ()
        assert report.total_debits == 0
