from decimal import Decimal


def test_top_up_review_flow(client, student_headers, admin_headers, test_student, wallet_balance):
    r = client.post(
        "/api/v1/wallet/topup",
        json={"amount": "100.00", "senderWalletNumber": "01012345678"},
        headers=student_headers,
    )
    assert r.status_code == 201
    tx = r.json()
    assert tx["status"] == "PENDING"
    assert tx["type"] == "TOP_UP"
    assert tx["amount"] == "100.00"
    assert tx["senderWalletRef"] == "01012345678"
    assert wallet_balance(test_student.id) == Decimal("500.00")

    r = client.get("/api/v1/transaction/pending", headers=admin_headers)
    assert r.status_code == 200
    assert [item["id"] for item in r.json()] == [tx["id"]]

    r = client.patch(
        "/api/v1/transaction",
        json={"transactionId": tx["id"], "status": "APPROVED"},
        headers=admin_headers,
    )
    assert r.status_code == 200
    assert r.json()["status"] == "APPROVED"
    assert r.json()["resolvedAt"] is not None
    assert wallet_balance(test_student.id) == Decimal("600.00")

    # A second decision is refused and moves no money
    r = client.patch(
        "/api/v1/transaction",
        json={"transactionId": tx["id"], "status": "REJECTED"},
        headers=admin_headers,
    )
    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "ALREADY_RESOLVED"
    assert wallet_balance(test_student.id) == Decimal("600.00")


def test_wallet_shows_balance_and_history(client, student_headers):
    client.post(
        "/api/v1/wallet/topup",
        json={"amount": 25, "senderWalletNumber": "0100"},
        headers=student_headers,
    )

    r = client.get("/api/v1/wallet", headers=student_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["balance"] == "500.00"
    assert [tx["amount"] for tx in body["transactions"]] == ["25.00"]


def test_top_up_validation(client, student_headers):
    r = client.post(
        "/api/v1/wallet/topup",
        json={"amount": "0.50", "senderWalletNumber": "0100"},
        headers=student_headers,
    )
    assert r.status_code == 422

    r = client.post(
        "/api/v1/wallet/topup",
        json={"amount": "10.00"},
        headers=student_headers,
    )
    assert r.status_code == 422

    r = client.post(
        "/api/v1/wallet/topup",
        json={"amount": "10.001", "senderWalletNumber": "0100"},
        headers=student_headers,
    )
    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "VALIDATION_ERROR"


def test_transaction_decision_must_be_final(client, admin_headers):
    r = client.patch(
        "/api/v1/transaction",
        json={"transactionId": "01HZZZZZZZZZZZZZZZZZZZZZZZ", "status": "PENDING"},
        headers=admin_headers,
    )
    assert r.status_code == 422

    r = client.patch(
        "/api/v1/transaction",
        json={"transactionId": "01HZZZZZZZZZZZZZZZZZZZZZZZ", "status": "APPROVED"},
        headers=admin_headers,
    )
    assert r.status_code == 404
    assert r.json()["detail"]["code"] == "TRANSACTION_NOT_FOUND"


def test_transaction_listing_is_admin_only(client, student_headers, admin_headers):
    for amount in ("10.00", "20.00", "30.00"):
        client.post(
            "/api/v1/wallet/topup",
            json={"amount": amount, "senderWalletNumber": "0100"},
            headers=student_headers,
        )

    r = client.get("/api/v1/transaction", headers=student_headers)
    assert r.status_code == 403

    r = client.get(
        "/api/v1/transaction",
        params={"status": "PENDING", "type": "TOP_UP", "page": 1, "pageSize": 2},
        headers=admin_headers,
    )
    assert r.status_code == 200
    body = r.json()
    assert body["total"] == 3
    assert body["pageSize"] == 2
    assert len(body["items"]) == 2
