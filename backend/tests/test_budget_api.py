from decimal import Decimal
from uuid import uuid4

from fastapi.testclient import TestClient

from app.main import app

client = TestClient(app)


def user_headers() -> dict[str, str]:
    return {"X-User-Id": f"budget-{uuid4()}"}


def create_account(headers: dict[str, str], name: str, balance: str, account_type: str = "checking") -> str:
    res = client.post(
        "/api/budget/accounts",
        json={"name": name, "type": account_type, "balance": balance},
        headers=headers,
    )
    assert res.status_code == 201
    return res.json()["id"]


def balances(headers: dict[str, str]) -> dict[str, Decimal]:
    res = client.get("/api/budget/accounts", headers=headers)
    assert res.status_code == 200
    return {row["id"]: Decimal(row["balance"]) for row in res.json()}


def test_transfer_expense_delete_over_http() -> None:
    headers = user_headers()
    a = create_account(headers, "A", "100.00")
    b = create_account(headers, "B", "50.00")

    res = client.post(
        "/api/budget/accounts/transfer",
        json={"fromAccountId": a, "toAccountId": b, "amount": "30"},
        headers=headers,
    )
    assert res.status_code == 200
    assert res.json() == {"success": True}
    assert balances(headers) == {a: Decimal("70"), b: Decimal("80")}
    assert client.get("/api/budget/transactions", headers=headers).json() == []

    tx_res = client.post(
        "/api/budget/transactions",
        json={"type": "expense", "amount": "20", "accountId": a, "description": "groceries"},
        headers=headers,
    )
    assert tx_res.status_code == 201
    tx = tx_res.json()
    assert tx["type"] == "expense"
    assert Decimal(tx["amount"]) == Decimal("20")
    assert tx["accountId"] == a
    assert balances(headers)[a] == Decimal("50")

    listed = client.get("/api/budget/transactions", headers=headers).json()
    assert [row["id"] for row in listed] == [tx["id"]]

    assert client.delete(f"/api/budget/transactions/{tx['id']}", headers=headers).status_code == 204
    assert client.delete(f"/api/budget/transactions/{tx['id']}", headers=headers).status_code == 204
    assert balances(headers) == {a: Decimal("70"), b: Decimal("80")}


def test_transfer_rejects_bad_amount() -> None:
    headers = user_headers()
    a = create_account(headers, "A", "100")
    b = create_account(headers, "B", "0")

    for amount in ["abc", "-5", "0"]:
        res = client.post(
            "/api/budget/accounts/transfer",
            json={"fromAccountId": a, "toAccountId": b, "amount": amount},
            headers=headers,
        )
        assert res.status_code == 400
        body = res.json()
        assert body["error"]["code"] == "INVALID_AMOUNT"
        assert body["error"]["details"][0]["field"] == "amount"
    assert balances(headers) == {a: Decimal("100"), b: Decimal("0")}


def test_transfer_rejects_same_and_unknown_accounts() -> None:
    headers = user_headers()
    a = create_account(headers, "A", "100")

    same = client.post(
        "/api/budget/accounts/transfer",
        json={"fromAccountId": a, "toAccountId": a, "amount": "10"},
        headers=headers,
    )
    assert same.status_code == 400
    assert same.json()["error"]["code"] == "VALIDATION_ERROR"
    assert same.json()["error"]["details"][0]["field"] == "toAccountId"

    unknown = client.post(
        "/api/budget/accounts/transfer",
        json={"fromAccountId": a, "toAccountId": str(uuid4()), "amount": "10"},
        headers=headers,
    )
    assert unknown.status_code == 400
    assert unknown.json()["error"]["code"] == "INVALID_ACCOUNT"
    assert balances(headers) == {a: Decimal("100")}


def test_accounts_are_isolated_per_user() -> None:
    owner = user_headers()
    intruder = user_headers()
    a = create_account(owner, "A", "100")
    theirs = create_account(intruder, "Mine", "5")

    assert list(balances(intruder)) == [theirs]
    res = client.post(
        "/api/budget/accounts/transfer",
        json={"fromAccountId": a, "toAccountId": theirs, "amount": "10"},
        headers=intruder,
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_ACCOUNT"
    assert balances(owner) == {a: Decimal("100")}


def test_transaction_validation_errors() -> None:
    headers = user_headers()
    a = create_account(headers, "A", "100")

    bad_type = client.post(
        "/api/budget/transactions",
        json={"type": "refund", "amount": "5", "accountId": a},
        headers=headers,
    )
    assert bad_type.status_code == 400
    assert bad_type.json()["error"]["code"] == "VALIDATION_ERROR"
    assert bad_type.json()["error"]["details"][0]["field"] == "type"

    bad_amount = client.post(
        "/api/budget/transactions",
        json={"type": "income", "amount": "twelve", "accountId": a},
        headers=headers,
    )
    assert bad_amount.status_code == 400
    assert bad_amount.json()["error"]["code"] == "INVALID_AMOUNT"

    missing_account = client.post(
        "/api/budget/transactions",
        json={"type": "income", "amount": "5", "accountId": str(uuid4())},
        headers=headers,
    )
    assert missing_account.status_code == 404
    assert missing_account.json()["error"]["code"] == "NOT_FOUND"

    assert client.get("/api/budget/transactions", headers=headers).json() == []
    assert balances(headers) == {a: Decimal("100")}


def test_update_account_fields_and_balance_override() -> None:
    headers = user_headers()
    a = create_account(headers, "Wallet", "20", account_type="cash")

    res = client.put(
        f"/api/budget/accounts/{a}",
        json={"name": "Pocket", "color": "#00FF00", "balance": "42.5"},
        headers=headers,
    )
    assert res.status_code == 200
    body = res.json()
    assert body["name"] == "Pocket"
    assert body["type"] == "cash"
    assert body["color"] == "#00FF00"
    assert Decimal(body["balance"]) == Decimal("42.50")

    bad = client.put(f"/api/budget/accounts/{a}", json={"name": "X", "balance": "n/a"}, headers=headers)
    assert bad.status_code == 400
    assert client.get("/api/budget/accounts", headers=headers).json()[0]["name"] == "Pocket"

    missing = client.put(f"/api/budget/accounts/{uuid4()}", json={"name": "Ghost"}, headers=headers)
    assert missing.status_code == 404


def test_delete_account_is_idempotent() -> None:
    headers = user_headers()
    a = create_account(headers, "Old", "0")

    assert client.delete(f"/api/budget/accounts/{a}", headers=headers).status_code == 204
    assert client.delete(f"/api/budget/accounts/{a}", headers=headers).status_code == 204
    assert balances(headers) == {}


def test_categories_crud() -> None:
    headers = user_headers()
    res = client.post("/api/budget/categories", json={"name": "Food", "type": "expense"}, headers=headers)
    assert res.status_code == 201
    category_id = res.json()["id"]

    updated = client.put(f"/api/budget/categories/{category_id}", json={"icon": "utensils"}, headers=headers)
    assert updated.status_code == 200
    assert updated.json()["icon"] == "utensils"
    assert updated.json()["name"] == "Food"

    a = create_account(headers, "A", "10")
    tx = client.post(
        "/api/budget/transactions",
        json={"type": "expense", "amount": "2.50", "accountId": a, "categoryId": category_id},
        headers=headers,
    )
    assert tx.status_code == 201
    assert tx.json()["categoryId"] == category_id


def test_opening_balance_outside_storage_range_is_rejected() -> None:
    headers = user_headers()
    for balance in ["1e30", 1e30, "1000000000000"]:
        res = client.post("/api/budget/accounts", json={"name": "Big", "balance": balance}, headers=headers)
        assert res.status_code == 400
        error = res.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"][0]["field"] == "balance"
    assert balances(headers) == {}


def test_balance_accepts_numbers_on_create_and_update() -> None:
    headers = user_headers()
    created = client.post("/api/budget/accounts", json={"name": "Jar", "balance": 12.5}, headers=headers)
    assert created.status_code == 201
    account_id = created.json()["id"]

    res = client.put(f"/api/budget/accounts/{account_id}", json={"balance": 20.25}, headers=headers)
    assert res.status_code == 200
    assert balances(headers) == {account_id: Decimal("20.25")}

    too_big = client.put(f"/api/budget/accounts/{account_id}", json={"balance": "5e12"}, headers=headers)
    assert too_big.status_code == 400
    assert balances(headers) == {account_id: Decimal("20.25")}
