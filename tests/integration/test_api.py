"""Integration tests for API endpoints"""

import logging
import pytest
from unittest.mock import AsyncMock, patch
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from finance_flow.domain.exceptions import AdviceServiceError
from finance_flow.infrastructure.clients.advisor import FinancialAdviceOutput

pytestmark = pytest.mark.integration


def laptop_payload(**overrides) -> dict:
    payload = {
        "description": "Laptop",
        "amount_cents": 30000,
        "date": "2024-01-15",
        "method": "credit",
        "source": {"type": "card", "id": "card-1"},
        "installments": 3,
    }
    payload.update(overrides)
    return payload


def salary_payload(**overrides) -> dict:
    payload = {
        "description": "Salary",
        "amount_cents": 100000,
        "date": "2024-01-05",
        "source": {"type": "bank", "id": "account-1"},
    }
    payload.update(overrides)
    return payload


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient, reference_data):
    """Test Prometheus metrics endpoint"""
    client.post("/v1/expenses", json=laptop_payload())

    response = client.get("/metrics")
    assert response.status_code == 200
    assert "finance_expense_records_written_total" in response.text
    assert "http_request_duration_seconds" in response.text


def test_request_id_header(client: TestClient):
    response = client.get("/health")
    assert response.headers["X-Request-ID"]


# Expenses


def test_create_credit_expense_fans_out(client: TestClient, reference_data):
    """POST /v1/expenses with 3 installments stores 3 monthly records"""
    response = client.post("/v1/expenses", json=laptop_payload())

    assert response.status_code == 201
    records = response.json()
    assert [r["amount_cents"] for r in records] == [10000, 10000, 10000]
    assert [r["date"] for r in records] == ["2024-01-15", "2024-02-15", "2024-03-15"]
    assert [r["description"] for r in records] == ["Laptop (1/3)", "Laptop (2/3)", "Laptop (3/3)"]
    assert len({r["installment_group_id"] for r in records}) == 1

    february = client.get("/v1/expenses", params={"year": 2024, "month": 2}).json()
    assert [r["description"] for r in february] == ["Laptop (2/3)"]


def test_create_debit_expense_ignores_installments(client: TestClient, reference_data):
    response = client.post(
        "/v1/expenses",
        json=laptop_payload(method="debit", source={"type": "bank", "id": "account-1"}, installments=6),
    )

    assert response.status_code == 201
    records = response.json()
    assert len(records) == 1
    assert records[0]["installment_group_id"] is None
    assert records[0]["amount_cents"] == 30000


def test_create_cash_expense_needs_no_reference(client: TestClient):
    response = client.post(
        "/v1/expenses",
        json=laptop_payload(method="cash", source={"type": "cash", "id": "cash"}, installments=None),
    )
    assert response.status_code == 201


def test_create_expense_unknown_source(client: TestClient, reference_data):
    response = client.post("/v1/expenses", json=laptop_payload(source={"type": "card", "id": "card-999"}))

    assert response.status_code == 422
    assert client.get("/v1/expenses").json() == []


def test_create_expense_invalid_body(client: TestClient, reference_data):
    assert client.post("/v1/expenses", json=laptop_payload(amount_cents=0)).status_code == 422
    assert client.post("/v1/expenses", json=laptop_payload(installments=0)).status_code == 422
    assert client.post("/v1/expenses", json=laptop_payload(description="")).status_code == 422
    # Too small to give each installment a cent
    assert client.post("/v1/expenses", json=laptop_payload(amount_cents=2)).status_code == 422


def test_get_expense_and_group(client: TestClient, reference_data):
    records = client.post("/v1/expenses", json=laptop_payload()).json()

    single = client.get(f"/v1/expenses/{records[1]['id']}")
    assert single.status_code == 200
    assert single.json()["description"] == "Laptop (2/3)"

    group = client.get(f"/v1/expenses/{records[2]['id']}/group").json()
    assert [r["id"] for r in group] == [r["id"] for r in records]

    assert client.get("/v1/expenses/missing").status_code == 404
    assert client.get("/v1/expenses/missing/group").status_code == 404


def test_delete_member_cascades_to_group(client: TestClient, reference_data):
    records = client.post("/v1/expenses", json=laptop_payload()).json()

    response = client.delete(f"/v1/expenses/{records[1]['id']}")

    assert response.status_code == 200
    assert response.json() == {"deleted": 3}
    assert client.get("/v1/expenses").json() == []


def test_delete_missing_expense(client: TestClient):
    response = client.delete("/v1/expenses/missing")
    assert response.status_code == 200
    assert response.json() == {"deleted": 0}


def test_update_expense_regroups(client: TestClient, reference_data):
    records = client.post("/v1/expenses", json=laptop_payload()).json()
    old_ids = {r["id"] for r in records}

    response = client.put(
        f"/v1/expenses/{records[0]['id']}",
        json=laptop_payload(description="Laptop (1/3)", amount_cents=40000, installments=4),
    )

    assert response.status_code == 200
    updated = response.json()
    assert len(updated) == 4
    assert [r["description"] for r in updated][0] == "Laptop (1/4)"
    assert sum(r["amount_cents"] for r in updated) == 40000

    stored = client.get("/v1/expenses").json()
    assert len(stored) == 4
    assert not old_ids & {r["id"] for r in stored}


def test_update_with_group_total_keeps_purchase_total(client: TestClient, reference_data):
    """PUT takes the purchase total; summing the group keeps it unchanged"""
    records = client.post("/v1/expenses", json=laptop_payload()).json()
    member = client.get(f"/v1/expenses/{records[1]['id']}").json()
    group = client.get(f"/v1/expenses/{member['id']}/group").json()

    response = client.put(
        f"/v1/expenses/{member['id']}",
        json=laptop_payload(
            description="Laptop Pro",
            amount_cents=sum(r["amount_cents"] for r in group),
            date=group[0]["date"],
        ),
    )

    assert response.status_code == 200
    updated = response.json()
    assert [(r["description"], r["amount_cents"]) for r in updated] == [
        ("Laptop Pro (1/3)", 10000),
        ("Laptop Pro (2/3)", 10000),
        ("Laptop Pro (3/3)", 10000),
    ]
    assert [r["date"] for r in updated] == ["2024-01-15", "2024-02-15", "2024-03-15"]


def test_expense_mutations_log_one_outcome_each(client: TestClient, reference_data, caplog):
    caplog.set_level(logging.INFO)
    records = client.post("/v1/expenses", json=laptop_payload()).json()
    updated = client.put(f"/v1/expenses/{records[0]['id']}", json=laptop_payload(installments=2)).json()
    client.delete(f"/v1/expenses/{updated[0]['id']}")

    outcomes = [r for r in caplog.records if r.getMessage() == "Expense change completed"]
    assert [r.step for r in outcomes] == ["expense_add", "expense_update", "expense_delete"]
    assert not [r for r in caplog.records if r.name.startswith("finance_flow.domain")]


def test_update_missing_expense(client: TestClient, reference_data):
    response = client.put("/v1/expenses/missing", json=laptop_payload())
    assert response.status_code == 404


def test_list_month_requires_year(client: TestClient):
    assert client.get("/v1/expenses", params={"month": 2}).status_code == 422


# Incomes


def test_income_crud(client: TestClient, reference_data):
    created = client.post("/v1/incomes", json=salary_payload())
    assert created.status_code == 201
    income_id = created.json()["id"]

    updated = client.put(f"/v1/incomes/{income_id}", json=salary_payload(amount_cents=120000))
    assert updated.status_code == 200
    assert client.get(f"/v1/incomes/{income_id}").json()["amount_cents"] == 120000

    january = client.get("/v1/incomes", params={"year": 2024, "month": 1}).json()
    assert [i["id"] for i in january] == [income_id]

    assert client.delete(f"/v1/incomes/{income_id}").json() == {"deleted": 1}
    assert client.get(f"/v1/incomes/{income_id}").status_code == 404


def test_income_rejects_card_source(client: TestClient, reference_data):
    response = client.post("/v1/incomes", json=salary_payload(source={"type": "card", "id": "card-1"}))
    assert response.status_code == 422


def test_update_missing_income(client: TestClient, reference_data):
    assert client.put("/v1/incomes/missing", json=salary_payload()).status_code == 404


# Summary


def test_monthly_summary(client: TestClient, reference_data):
    """Jan +1000/-400, Feb +500/-200 → Feb carry 600, balance 900"""
    client.post("/v1/incomes", json=salary_payload(amount_cents=100000, date="2024-01-05"))
    client.post("/v1/incomes", json=salary_payload(amount_cents=50000, date="2024-02-05"))
    client.post(
        "/v1/expenses",
        json=laptop_payload(amount_cents=40000, date="2024-01-20", method="debit",
                            source={"type": "bank", "id": "account-1"}, installments=None),
    )
    client.post(
        "/v1/expenses",
        json=laptop_payload(amount_cents=20000, date="2024-02-20", method="debit",
                            source={"type": "bank", "id": "account-1"}, installments=None, is_saving=True),
    )

    response = client.get("/v1/summary/monthly", params={"reference_date": "2024-02-15"})

    assert response.status_code == 200
    data = response.json()
    assert data["total_income_cents"] == 50000
    assert data["total_expenses_cents"] == 20000
    assert data["carry_over_cents"] == 60000
    assert data["balance_cents"] == 90000
    assert data["total_savings_cents"] == 20000
    assert data["savings_goal_percent"] == 10
    assert data["savings_target_cents"] == 5000


def test_yearly_series_and_years(client: TestClient, reference_data):
    client.post("/v1/incomes", json=salary_payload(date="2023-06-01"))
    client.post("/v1/expenses", json=laptop_payload(date="2024-11-15"))

    yearly = client.get("/v1/summary/yearly", params={"year": 2024}).json()
    assert yearly["year"] == 2024
    assert len(yearly["months"]) == 12
    assert yearly["months"][10]["expense_cents"] == 10000
    assert yearly["months"][11]["expense_cents"] == 10000
    assert yearly["months"][0]["expense_cents"] == 0

    assert client.get("/v1/summary/years").json() == {"years": [2025, 2024, 2023]}


# Reference data


def test_banks_accounts_cards_wallets(client: TestClient):
    bank = client.post("/v1/banks", json={"name": "Galicia"})
    assert bank.status_code == 201
    bank_id = bank.json()["id"]

    account = client.post(f"/v1/banks/{bank_id}/accounts", json={"name": "Cuenta Corriente"})
    assert account.status_code == 201
    account_id = account.json()["id"]
    assert client.get("/v1/banks").json()[0]["accounts"][0]["id"] == account_id

    card = client.post(
        "/v1/cards",
        json={"name": "Mastercard", "bank_id": bank_id, "last_four_digits": "1234", "closing_day": 20, "due_day": 3},
    )
    assert card.status_code == 201

    wallet = client.post("/v1/wallets", json={"name": "Uala"})
    assert wallet.status_code == 201

    expense = laptop_payload(source={"type": "card", "id": card.json()["id"]})
    assert client.post("/v1/expenses", json=expense).status_code == 201
    income = salary_payload(source={"type": "wallet", "id": wallet.json()["id"]})
    assert client.post("/v1/incomes", json=income).status_code == 201

    assert client.delete(f"/v1/banks/{bank_id}/accounts/{account_id}").status_code == 204
    assert client.get("/v1/banks").json()[0]["accounts"] == []


def test_card_requires_existing_bank(client: TestClient):
    response = client.post(
        "/v1/cards",
        json={"name": "Visa", "bank_id": "nope", "last_four_digits": "1234", "closing_day": 20, "due_day": 3},
    )
    assert response.status_code == 422


def test_account_on_missing_bank(client: TestClient):
    assert client.post("/v1/banks/nope/accounts", json={"name": "X"}).status_code == 404


def test_savings_goal(client: TestClient):
    assert client.get("/v1/settings/savings-goal").json() == {"goal": 10}
    assert client.put("/v1/settings/savings-goal", json={"goal": 25}).json() == {"goal": 25}
    assert client.get("/v1/settings/savings-goal").json() == {"goal": 25}
    assert client.put("/v1/settings/savings-goal", json={"goal": 101}).status_code == 422


# Bulk data


def test_export_reset_import_round_trip(client: TestClient, reference_data):
    client.post("/v1/expenses", json=laptop_payload())
    client.post("/v1/incomes", json=salary_payload())
    client.put("/v1/settings/savings-goal", json={"goal": 30})

    snapshot = client.get("/v1/data/export").json()
    assert len(snapshot["expenses"]) == 3
    assert len(snapshot["incomes"]) == 1
    assert snapshot["savings_goal"] == 30

    assert client.post("/v1/data/reset").status_code == 204
    assert client.get("/v1/expenses").json() == []
    assert client.get("/v1/banks").json() == []

    restored = client.post("/v1/data/import", json=snapshot)
    assert restored.status_code == 200
    assert restored.json() == snapshot

    # Groups survive the round trip
    first = snapshot["expenses"][0]["id"]
    assert client.delete(f"/v1/expenses/{first}").json() == {"deleted": 3}


def test_import_replaces_existing_data(client: TestClient, reference_data):
    client.post("/v1/incomes", json=salary_payload())

    response = client.post("/v1/data/import", json={"wallets": [{"id": "w-9", "name": "Brubank"}]})

    assert response.status_code == 200
    assert client.get("/v1/incomes").json() == []
    assert [w["id"] for w in client.get("/v1/wallets").json()] == ["w-9"]


def test_export_csv(client: TestClient, reference_data):
    client.post("/v1/incomes", json=salary_payload(amount_cents=123456))
    client.post(
        "/v1/expenses",
        json=laptop_payload(amount_cents=4550, method="debit", source={"type": "bank", "id": "account-1"}),
    )

    response = client.get("/v1/data/export.csv")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    lines = response.text.strip().split("\n")
    assert lines[0] == "type,date,description,amount,source,method"
    assert lines[1] == "income,2024-01-05,Salary,1234.56,bank,N/A"
    assert lines[2] == "expense,2024-01-15,Laptop,-45.50,bank,debit"


# Advice


@patch("finance_flow.infrastructure.clients.advisor.AdvisorClient.get_advice", new_callable=AsyncMock)
def test_advice_uses_records_in_range(mock_advice: AsyncMock, client: TestClient, reference_data):
    mock_advice.return_value = FinancialAdviceOutput(advice="## Spend less on laptops")
    client.post("/v1/expenses", json=laptop_payload())
    client.post("/v1/incomes", json=salary_payload(date="2024-06-01"))

    response = client.post("/v1/advice", json={"start_date": "2024-02-01", "end_date": "2024-02-29"})

    assert response.status_code == 200
    assert response.json() == {"advice": "## Spend less on laptops"}
    advice_input = mock_advice.call_args.args[0]
    assert advice_input.start_date == "2024-02-01"
    assert "Laptop (2/3)" in advice_input.expense_data
    assert "Laptop (1/3)" not in advice_input.expense_data
    assert advice_input.income_data == "[]"


def test_advice_rejects_inverted_range(client: TestClient):
    response = client.post("/v1/advice", json={"start_date": "2024-03-01", "end_date": "2024-02-01"})
    assert response.status_code == 422


@patch("finance_flow.infrastructure.clients.advisor.AdvisorClient.get_advice", new_callable=AsyncMock)
def test_advice_service_failure(mock_advice: AsyncMock, client: TestClient):
    mock_advice.side_effect = AdviceServiceError("Advice API timeout after 30.0s")

    response = client.post("/v1/advice", json={"start_date": "2024-01-01", "end_date": "2024-01-31"})

    assert response.status_code == 503


def test_import_rejects_account_shared_by_two_banks(client: TestClient, reference_data):
    snapshot = {
        "banks": [
            {"id": "b1", "name": "Galicia", "accounts": [{"id": "acc", "name": "Caja"}]},
            {"id": "b2", "name": "Santander", "accounts": [{"id": "acc", "name": "Caja"}]},
        ],
    }

    response = client.post("/v1/data/import", json=snapshot)

    assert response.status_code == 422
    assert "acc" in response.json()["detail"]
    # Nothing was replaced
    assert [b["id"] for b in client.get("/v1/banks").json()] == ["bank-1"]
    assert [w["id"] for w in client.get("/v1/wallets").json()] == ["wallet-1"]


def test_import_rejects_repeated_account_in_one_bank(client: TestClient, reference_data):
    snapshot = {
        "banks": [
            {
                "id": "b1",
                "name": "Galicia",
                "accounts": [{"id": "acc", "name": "Caja"}, {"id": "acc", "name": "Cuenta Corriente"}],
            },
        ],
    }

    response = client.post("/v1/data/import", json=snapshot)

    assert response.status_code == 422
    assert [b["id"] for b in client.get("/v1/banks").json()] == ["bank-1"]


@patch("finance_flow.api.v1.data.DataRepository.clear")
def test_reset_storage_failure(mock_clear, client: TestClient, reference_data):
    mock_clear.side_effect = OperationalError("DELETE FROM expense", {}, Exception("database is locked"))
    client.post("/v1/expenses", json=laptop_payload())

    response = client.post("/v1/data/reset")

    assert response.status_code == 503
    assert len(client.get("/v1/expenses").json()) == 3
