"""
Tests E2E de l'API grand livre.
Identification par X-User-ID, saisie, etats et format des erreurs.
"""
from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from bookkeeper.repositories.ledger.journal import JournalLineRepository
from tests.factories import UserRoleFactory

API = "/api/v1/ledger"


def _create_accounts(client, headers):
    accounts = {}
    for key, code, name, account_type in (
        ("cash", "1111", "Caja", "activo"),
        ("capital", "3110", "Capital social", "patrimonio"),
        ("sales", "4010", "Ventas", "ingresos"),
        ("rent", "6010", "Alquileres", "gastos"),
    ):
        response = client.post(
            f"{API}/accounts",
            json={"code": code, "name": name, "type": account_type, "level": 3},
            headers=headers,
        )
        assert response.status_code == 201, response.text
        accounts[key] = response.json()["id"]
    return accounts


def _entry(accounts, number="JE-1", amount="150.00", **extra):
    payload = {
        "entry_number": number,
        "entry_date": "2024-01-10",
        "description": "Venta mostrador",
        "lines": [
            {"account_id": accounts["cash"], "debit_amount": amount},
            {"account_id": accounts["sales"], "credit_amount": amount},
        ],
    }
    payload.update(extra)
    return payload


class TestRequestContext:

    @pytest.mark.e2e
    def test_health_needs_no_user(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    @pytest.mark.e2e
    def test_ready_checks_database(self, client):
        response = client.get("/ready")

        assert response.status_code == 200
        assert response.json()["database"] == "ok"

    @pytest.mark.e2e
    def test_missing_user_header_is_rejected(self, client):
        response = client.get(f"{API}/accounts")

        assert response.status_code == 401
        assert response.json()["error"] == "USER_REQUIRED"

    @pytest.mark.e2e
    def test_invalid_user_header_is_rejected(self, client):
        response = client.get(f"{API}/accounts", headers={"X-User-ID": "abc"})

        assert response.status_code == 401
        assert response.json()["error"] == "INVALID_USER"

    @pytest.mark.e2e
    def test_request_id_is_echoed(self, client, owner_headers):
        response = client.get(f"{API}/accounts", headers={**owner_headers, "X-Request-ID": "req-42"})

        assert response.status_code == 200
        assert response.headers["X-Request-ID"] == "req-42"


class TestAccountsApi:

    @pytest.mark.e2e
    def test_create_and_list_accounts(self, client, owner_headers):
        _create_accounts(client, owner_headers)

        response = client.get(f"{API}/accounts", headers=owner_headers)

        body = response.json()
        assert body["status"] == "ok"
        assert [row["code"] for row in body["data"]] == ["1111", "3110", "4010", "6010"]
        rent = body["data"][-1]
        assert rent["type"] == "expense"
        assert rent["normal_balance"] == "debit"
        assert rent["posting_allowed"] is True

    @pytest.mark.e2e
    def test_duplicate_code_returns_conflict(self, client, owner_headers):
        _create_accounts(client, owner_headers)

        response = client.post(f"{API}/accounts", json={"code": "1111", "name": "Otra caja"}, headers=owner_headers)

        assert response.status_code == 409
        assert response.json()["error"] == "ACCOUNT_CODE_EXISTS"

    @pytest.mark.e2e
    def test_unknown_field_is_a_validation_error(self, client, owner_headers):
        response = client.post(
            f"{API}/accounts",
            json={"code": "1111", "name": "Caja", "tenant_id": 2},
            headers=owner_headers,
        )

        assert response.status_code == 422
        assert response.json()["error"] == "VALIDATION_ERROR"

    @pytest.mark.e2e
    def test_patch_with_null_type_is_rejected(self, client, owner_headers):
        accounts = _create_accounts(client, owner_headers)

        response = client.patch(f"{API}/accounts/{accounts['capital']}", json={"type": None}, headers=owner_headers)

        assert response.status_code == 422
        assert response.json()["error"] == "INVALID_ACCOUNT"
        account = client.get(f"{API}/accounts/{accounts['capital']}", headers=owner_headers).json()
        assert account["type"] == "equity"

    @pytest.mark.e2e
    def test_referenced_account_cannot_be_deleted(self, client, owner_headers):
        accounts = _create_accounts(client, owner_headers)
        client.post(f"{API}/journal-entries", json=_entry(accounts), headers=owner_headers)

        relations = client.get(f"{API}/accounts/{accounts['cash']}/relations", headers=owner_headers)
        blocked = client.delete(f"{API}/accounts/{accounts['cash']}", headers=owner_headers)
        deleted = client.delete(f"{API}/accounts/{accounts['rent']}", headers=owner_headers)

        assert relations.json() == {"has_accounting_settings": False, "has_journal_entries": True}
        assert blocked.status_code == 409
        assert blocked.json()["error"] == "ACCOUNT_HAS_RELATIONS"
        assert deleted.status_code == 204

    @pytest.mark.e2e
    def test_account_balance_endpoint(self, client, owner_headers):
        accounts = _create_accounts(client, owner_headers)
        client.post(f"{API}/journal-entries", json=_entry(accounts), headers=owner_headers)

        response = client.get(f"{API}/accounts/{accounts['cash']}/balance", headers=owner_headers)

        assert response.status_code == 200
        assert Decimal(str(response.json()["balance"])) == Decimal("150.00")
        assert response.json()["status"] == "ok"


class TestJournalApi:

    @pytest.mark.e2e
    def test_post_entry_and_read_trial_balance(self, client, owner_headers):
        accounts = _create_accounts(client, owner_headers)

        created = client.post(f"{API}/journal-entries", json=_entry(accounts), headers=owner_headers)
        report = client.get(f"{API}/reports/trial-balance", headers=owner_headers)

        assert created.status_code == 201
        assert created.json()["status"] == "posted"
        assert len(created.json()["lines"]) == 2
        body = report.json()
        assert Decimal(str(body["total_debits"])) == Decimal("150.00")
        assert Decimal(str(body["total_credits"])) == Decimal("150.00")
        assert body["is_balanced"] is True
        assert body["status"] == "complete"

    @pytest.mark.e2e
    def test_unbalanced_entry_returns_422(self, client, owner_headers):
        accounts = _create_accounts(client, owner_headers)
        payload = _entry(accounts)
        payload["lines"][1]["credit_amount"] = "149.00"

        response = client.post(f"{API}/journal-entries", json=payload, headers=owner_headers)
        listing = client.get(f"{API}/journal-entries", headers=owner_headers)

        assert response.status_code == 422
        assert response.json()["error"] == "UNBALANCED_ENTRY"
        assert listing.json()["data"] == []

    @pytest.mark.e2e
    def test_idempotency_key_replay_returns_same_entry(self, client, owner_headers):
        accounts = _create_accounts(client, owner_headers)
        payload = _entry(accounts, idempotency_key="pos-0001")

        first = client.post(f"{API}/journal-entries", json=payload, headers=owner_headers)
        second = client.post(f"{API}/journal-entries", json=payload, headers=owner_headers)

        assert first.json()["id"] == second.json()["id"]
        assert len(client.get(f"{API}/journal-entries", headers=owner_headers).json()["data"]) == 1

    @pytest.mark.e2e
    def test_reverse_entry(self, client, owner_headers):
        accounts = _create_accounts(client, owner_headers)
        entry_id = client.post(f"{API}/journal-entries", json=_entry(accounts), headers=owner_headers).json()["id"]

        reversal = client.post(
            f"{API}/journal-entries/{entry_id}/reverse",
            json={"reversal_date": "2024-01-20"},
            headers=owner_headers,
        )
        original = client.get(f"{API}/journal-entries/{entry_id}", headers=owner_headers)
        balance = client.get(f"{API}/accounts/{accounts['cash']}/balance", headers=owner_headers)

        assert reversal.status_code == 201
        assert reversal.json()["reversal_of_id"] == entry_id
        assert original.json()["status"] == "reversed"
        assert Decimal(str(balance.json()["balance"])) == Decimal("0")

    @pytest.mark.e2e
    def test_unknown_entry_returns_404(self, client, owner_headers):
        response = client.get(f"{API}/journal-entries/999", headers=owner_headers)

        assert response.status_code == 404
        assert response.json()["error"] == "JOURNAL_ENTRY_NOT_FOUND"


class TestTenantResolution:

    @pytest.mark.e2e
    def test_sub_user_works_in_owner_book(self, client, db_session, owner_headers):
        accounts = _create_accounts(client, owner_headers)
        client.post(f"{API}/journal-entries", json=_entry(accounts), headers=owner_headers)
        UserRoleFactory.create(db_session=db_session, user_id=7, owner_user_id=1)

        as_sub_user = client.get(f"{API}/journal-entries", headers={"X-User-ID": "7"})
        as_stranger = client.get(f"{API}/journal-entries", headers={"X-User-ID": "8"})

        assert len(as_sub_user.json()["data"]) == 1
        assert as_stranger.json()["data"] == []

    @pytest.mark.e2e
    def test_other_tenant_account_is_not_found(self, client, owner_headers):
        accounts = _create_accounts(client, owner_headers)

        response = client.get(f"{API}/accounts/{accounts['cash']}", headers={"X-User-ID": "2"})

        assert response.status_code == 404
        assert response.json()["error"] == "ACCOUNT_NOT_FOUND"


class TestReportsApi:

    @pytest.mark.e2e
    def test_income_statement_with_inverted_period(self, client, owner_headers):
        response = client.get(
            f"{API}/reports/income-statement",
            params={"from_date": "2024-02-01", "to_date": "2024-01-01"},
            headers=owner_headers,
        )

        assert response.status_code == 422
        assert response.json()["error"] == "INVALID_PERIOD"

    @pytest.mark.e2e
    def test_balance_sheet_and_cash_flow(self, client, owner_headers):
        accounts = _create_accounts(client, owner_headers)
        client.post(
            f"{API}/journal-entries",
            json={
                "entry_number": "JE-0",
                "entry_date": "2024-01-02",
                "description": "Aporte",
                "cash_flow_category": "financing",
                "lines": [
                    {"account_id": accounts["cash"], "debit_amount": "1000"},
                    {"account_id": accounts["capital"], "credit_amount": "1000"},
                ],
            },
            headers=owner_headers,
        )
        client.post(f"{API}/journal-entries", json=_entry(accounts), headers=owner_headers)

        sheet = client.get(f"{API}/reports/balance-sheet", params={"as_of": "2024-01-31"}, headers=owner_headers)
        flows = client.get(
            f"{API}/reports/cash-flow",
            params={"from_date": "2024-01-01", "to_date": "2024-01-31"},
            headers=owner_headers,
        )

        assert Decimal(str(sheet.json()["total_assets"])) == Decimal("1150.00")
        assert Decimal(str(sheet.json()["unclosed_earnings"])) == Decimal("150.00")
        assert Decimal(str(flows.json()["financing_cash_flow"])) == Decimal("1000.00")
        assert Decimal(str(flows.json()["operating_cash_flow"])) == Decimal("150.00")

    @pytest.mark.e2e
    def test_degraded_report_is_flagged(self, client, owner_headers):
        failure = OperationalError("SELECT", {}, Exception("connection reset"))

        with patch.object(JournalLineRepository, "aggregate_by_account", side_effect=failure):
            response = client.get(f"{API}/reports/trial-balance", headers=owner_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"
        assert response.json()["error_kind"] == "OperationalError"


class TestStatementsApi:

    @pytest.mark.e2e
    def test_create_and_list_statements(self, client, owner_headers):
        accounts = _create_accounts(client, owner_headers)
        client.post(f"{API}/journal-entries", json=_entry(accounts), headers=owner_headers)

        created = client.post(
            f"{API}/statements",
            json={"type": "income_statement", "period": "2024-01"},
            headers=owner_headers,
        )
        listing = client.get(f"{API}/statements", params={"period": "2024-01"}, headers=owner_headers)

        assert created.status_code == 201
        assert created.json()["name"] == "Income Statement 2024-01"
        assert Decimal(str(created.json()["net_income"])) == Decimal("150.00")
        assert [row["id"] for row in listing.json()["data"]] == [created.json()["id"]]

    @pytest.mark.e2e
    def test_invalid_period_returns_422(self, client, owner_headers):
        response = client.post(
            f"{API}/statements",
            json={"type": "balance_sheet", "period": "2024-13"},
            headers=owner_headers,
        )

        assert response.status_code == 422
        assert response.json()["error"] == "INVALID_PERIOD"

    @pytest.mark.e2e
    def test_degraded_statement_returns_503(self, client, owner_headers):
        failure = OperationalError("SELECT", {}, Exception("connection reset"))

        with patch.object(JournalLineRepository, "aggregate_by_account", side_effect=failure):
            response = client.post(
                f"{API}/statements",
                json={"type": "balance_sheet", "period": "2024-01"},
                headers=owner_headers,
            )

        assert response.status_code == 503
        assert response.json()["error"] == "REPORT_DEGRADED"
