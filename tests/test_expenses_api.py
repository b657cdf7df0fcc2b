from decimal import Decimal

import pytest

from tests.conftest import register_and_login

EXPENSES = "/api/v1/expenses"


def add_expense(client, headers, **overrides):
    payload = {
        "description": "Printer paper",
        "amount": "200",
        "category": "office_supplies",
        "expense_date": "2024-01-10",
    }
    payload.update(overrides)
    response = client.post(EXPENSES, headers=headers, json=payload)
    assert response.status_code == 201
    return response.json()


def test_create_expense_computes_vat(client, auth_headers):
    expense = add_expense(client, auth_headers)

    assert expense["id"].startswith("EXP-")
    assert expense["status"] == "draft"
    assert Decimal(expense["vat_amount"]) == Decimal("15.00")
    assert Decimal(expense["total_amount"]) == Decimal("215.00")

    no_vat = add_expense(client, auth_headers, apply_vat=False)
    assert Decimal(no_vat["vat_amount"]) == Decimal("0")
    assert Decimal(no_vat["total_amount"]) == Decimal("200.00")


def test_expense_date_defaults_to_today(client, auth_headers):
    response = client.post(EXPENSES, headers=auth_headers, json={"description": "Taxi", "amount": "15"})
    assert response.status_code == 201
    assert response.json()["expense_date"]
    assert response.json()["category"] == "other"


@pytest.mark.parametrize("amount", ["0", "-10", "abc"])
def test_amount_must_be_positive(client, auth_headers, amount):
    response = client.post(EXPENSES, headers=auth_headers, json={"description": "Bad", "amount": amount})
    assert response.status_code == 422


def test_update_recomputes_totals(client, auth_headers):
    expense = add_expense(client, auth_headers)

    response = client.put(f"{EXPENSES}/{expense['id']}", headers=auth_headers, json={"amount": "1000"})
    assert response.status_code == 200
    assert Decimal(response.json()["vat_amount"]) == Decimal("75.00")
    assert Decimal(response.json()["total_amount"]) == Decimal("1075.00")

    response = client.put(f"{EXPENSES}/{expense['id']}", headers=auth_headers, json={"apply_vat": False})
    assert Decimal(response.json()["total_amount"]) == Decimal("1000.00")

    response = client.put(f"{EXPENSES}/EXP-MISSING", headers=auth_headers, json={"amount": "1"})
    assert response.status_code == 404


@pytest.mark.parametrize("amount", ["0", "-1"])
def test_update_cannot_zero_out_amount(client, auth_headers, amount):
    expense = add_expense(client, auth_headers)

    response = client.put(f"{EXPENSES}/{expense['id']}", headers=auth_headers, json={"amount": amount})
    assert response.status_code == 422

    stored = client.get(f"{EXPENSES}/{expense['id']}", headers=auth_headers).json()
    assert Decimal(stored["amount"]) == Decimal("200")


def test_status_moves_freely(client, auth_headers):
    expense = add_expense(client, auth_headers)
    url = f"{EXPENSES}/{expense['id']}/status"

    for status in ("approved", "rejected", "pending", "draft", "approved"):
        response = client.patch(url, headers=auth_headers, json={"status": status})
        assert response.status_code == 200
        assert response.json()["status"] == status

    response = client.patch(url, headers=auth_headers, json={"status": "archived"})
    assert response.status_code == 422


def test_list_filters_and_total(client, auth_headers):
    paper = add_expense(client, auth_headers)
    add_expense(client, auth_headers, description="Flight to Abuja", amount="50000", category="travel",
                expense_date="2024-02-01", apply_vat=False)
    add_expense(client, auth_headers, description="Team lunch", amount="100", category="meals")
    client.patch(f"{EXPENSES}/{paper['id']}/status", headers=auth_headers, json={"status": "approved"})

    body = client.get(EXPENSES, headers=auth_headers).json()
    assert body["total"] == 3
    assert Decimal(body["total_amount"]) == Decimal("50322.50")

    body = client.get(EXPENSES, headers=auth_headers, params={"status": "approved"}).json()
    assert [e["id"] for e in body["expenses"]] == [paper["id"]]

    body = client.get(EXPENSES, headers=auth_headers, params={"vat_only": True}).json()
    assert body["total"] == 2

    body = client.get(EXPENSES, headers=auth_headers, params={"search": "office"}).json()
    assert [e["id"] for e in body["expenses"]] == [paper["id"]]

    body = client.get(EXPENSES, headers=auth_headers, params={"search": "abuja"}).json()
    assert body["total"] == 1

    body = client.get(EXPENSES, headers=auth_headers, params={"category": "meals"}).json()
    assert body["expenses"][0]["description"] == "Team lunch"

    body = client.get(
        EXPENSES, headers=auth_headers, params={"start_date": "2024-01-15", "end_date": "2024-12-31"}
    ).json()
    assert body["total"] == 1


def test_summary(client, auth_headers):
    approved = add_expense(client, auth_headers, amount="1000")
    pending = add_expense(client, auth_headers, amount="400")
    client.patch(f"{EXPENSES}/{approved['id']}/status", headers=auth_headers, json={"status": "approved"})
    client.patch(f"{EXPENSES}/{pending['id']}/status", headers=auth_headers, json={"status": "pending"})

    body = client.get(f"{EXPENSES}/summary", headers=auth_headers).json()
    assert body["count"] == 2
    assert Decimal(body["total_expenses"]) == Decimal("1505.00")
    assert Decimal(body["approved_amount"]) == Decimal("1000.00")
    assert Decimal(body["approved_vat"]) == Decimal("75.00")
    assert body["pending_count"] == 1
    assert body["counts_by_status"]["approved"] == 1


def test_grouped_by_month(client, auth_headers):
    add_expense(client, auth_headers, expense_date="2024-01-20")
    add_expense(client, auth_headers, expense_date="2024-01-05", apply_vat=False)
    add_expense(client, auth_headers, expense_date="2023-12-01")

    body = client.get(f"{EXPENSES}/grouped", headers=auth_headers).json()
    assert body["total"] == 3
    assert [(g["month"], len(g["expenses"])) for g in body["groups"]] == [
        ("January 2024", 2),
        ("December 2023", 1),
    ]

    body = client.get(f"{EXPENSES}/grouped", headers=auth_headers, params={"vat_only": True}).json()
    assert body["total"] == 2


def test_delete_and_scope(client, auth_headers):
    expense = add_expense(client, auth_headers)
    other = register_and_login(client, "other@example.com", "password123")

    assert client.get(f"{EXPENSES}/{expense['id']}", headers=other).status_code == 404
    assert client.delete(f"{EXPENSES}/{expense['id']}", headers=other).status_code == 404

    assert client.delete(f"{EXPENSES}/{expense['id']}", headers=auth_headers).status_code == 204
    assert client.get(f"{EXPENSES}/{expense['id']}", headers=auth_headers).status_code == 404
