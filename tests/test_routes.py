from decimal import Decimal

from tests.conftest import ADMIN_PIN


def money(value):
    return Decimal(str(value))


def _new_client(client, headers, name="Amina Khalid", phone="0501112222"):
    response = client.post("/clients", json={"name": name, "phone": phone}, headers=headers)
    assert response.status_code == 201
    return response.json()["id"]


def _add_product(client, headers, name="Shirt", price="10", dry_clean_price="15"):
    response = client.post(
        "/products",
        json={"name": name, "price": price, "dry_clean_price": dry_clean_price},
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()["id"]


class TestAuth:
    def test_root(self, client):
        assert client.get("/").json() == {"status": "Backend running successfully"}

    def test_first_user_bootstraps_then_logs_in(self, client):
        response = client.post(
            "/auth/register",
            json={
                "name": "Sara",
                "email": "Sara@Laundry.ae",
                "password": "open-sesame",
                "role": "admin",
                "pin": "4321",
            },
        )
        assert response.status_code == 201
        assert response.json()["email"] == "sara@laundry.ae"

        response = client.post(
            "/auth/login",
            data={"username": "sara@laundry.ae", "password": "open-sesame"},
        )
        assert response.status_code == 200
        token = response.json()["access_token"]

        response = client.get("/clients", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200

    def test_later_registration_needs_admin(self, client, cashier_headers):
        payload = {
            "name": "Noor",
            "email": "noor@laundry.ae",
            "password": "pw",
            "role": "cashier",
        }

        assert client.post("/auth/register", json=payload).status_code == 401
        assert client.post("/auth/register", json=payload, headers=cashier_headers).status_code == 403

    def test_wrong_password(self, client, admin_user):
        response = client.post(
            "/auth/login",
            data={"username": admin_user.email, "password": "nope"},
        )
        assert response.status_code == 401

    def test_routes_need_a_token(self, client):
        assert client.get("/clients").status_code == 401


class TestClientLedgerRoutes:
    def test_deposit_bill_and_bulk_payment(self, client, admin_headers):
        client_id = _new_client(client, admin_headers)

        response = client.post(
            f"/clients/{client_id}/deposit",
            json={"amount": "100", "payment_method": "card"},
            headers=admin_headers,
        )
        assert response.status_code == 201
        assert response.json()["type"] == "deposit"

        for amount in ("30", "20", "10"):
            response = client.post(
                f"/clients/{client_id}/bill", json={"amount": amount}, headers=admin_headers
            )
            assert response.status_code == 201

        response = client.post(
            f"/clients/{client_id}/pay-all",
            json={"amount": "45", "method": "deposit"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert money(body["total_applied"]) == Decimal("45")
        assert money(body["remaining_amount"]) == Decimal("0")
        assert [row["is_paid"] for row in body["applied_bills"]] == [True, False]

        ledger = client.get(f"/clients/{client_id}/ledger", headers=admin_headers).json()
        assert money(ledger["credit_available"]) == Decimal("55")
        assert money(ledger["unpaid_due"]) == Decimal("15")
        assert money(ledger["net_position"]) == Decimal("-40")
        assert money(ledger["bill_ledger"][-1]["running_balance"]) == Decimal("40")
        assert len(ledger["credit_ledger"]) == len(ledger["transactions"]) == 5
        assert money(ledger["client"]["balance"]) == Decimal("5")

        due = client.get("/clients/due", headers=admin_headers).json()
        assert due[0]["client_id"] == client_id
        assert money(due[0]["total_due"]) == Decimal("15")

    def test_error_kinds(self, client, admin_headers):
        client_id = _new_client(client, admin_headers)

        response = client.get("/clients/999", headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["kind"] == "NotFound"

        response = client.post(
            f"/clients/{client_id}/pay-all", json={"amount": "10"}, headers=admin_headers
        )
        assert response.status_code == 400
        assert response.json()["kind"] == "NothingToPay"

        bill_id = client.post(
            f"/clients/{client_id}/bill", json={"amount": "25"}, headers=admin_headers
        ).json()["id"]
        response = client.post(
            f"/bills/{bill_id}/pay",
            json={"amount": "25", "method": "deposit"},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert response.json()["kind"] == "InsufficientCredit"

        response = client.post(
            f"/bills/{bill_id}/pay", json={"amount": "-1"}, headers=admin_headers
        )
        assert response.json()["kind"] == "InvalidInput"

        for amount in ("1e30", "10000000000", "NaN"):
            response = client.post(
                f"/bills/{bill_id}/pay", json={"amount": amount}, headers=admin_headers
            )
            assert response.status_code == 400
            assert response.json()["kind"] == "InvalidInput"

        response = client.delete(f"/clients/{client_id}", headers=admin_headers)
        assert response.status_code == 409
        assert response.json()["kind"] == "Conflict"

    def test_pay_then_delete_client(self, client, admin_headers):
        client_id = _new_client(client, admin_headers)
        bill_id = client.post(
            f"/clients/{client_id}/bill", json={"amount": "5"}, headers=admin_headers
        ).json()["id"]

        response = client.post(
            f"/bills/{bill_id}/pay", json={"amount": "5", "method": "cash"}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["bill"]["is_paid"] is True

        assert client.delete(f"/clients/{client_id}", headers=admin_headers).status_code == 204
        assert client.get(f"/clients/{client_id}", headers=admin_headers).status_code == 404

    def test_cashier_cannot_delete_clients(self, client, cashier_headers):
        client_id = _new_client(client, cashier_headers)

        assert client.delete(f"/clients/{client_id}", headers=cashier_headers).status_code == 403

    def test_only_deposits_are_corrected(self, client, admin_headers):
        client_id = _new_client(client, admin_headers)
        deposit_id = client.post(
            f"/clients/{client_id}/deposit", json={"amount": "50"}, headers=admin_headers
        ).json()["id"]
        client.post(f"/clients/{client_id}/bill", json={"amount": "20"}, headers=admin_headers)

        response = client.put(
            f"/transactions/{deposit_id}", json={"amount": "40"}, headers=admin_headers
        )
        assert response.status_code == 200
        assert money(response.json()["amount"]) == Decimal("40")

        entries = client.get(f"/clients/{client_id}/transactions", headers=admin_headers).json()
        bill_entry = next(tx for tx in entries if tx["type"] == "bill")
        response = client.put(
            f"/transactions/{bill_entry['id']}", json={"amount": "1"}, headers=admin_headers
        )
        assert response.status_code == 409

        customer = client.get(f"/clients/{client_id}", headers=admin_headers).json()
        assert money(customer["deposit"]) == Decimal("40")


class TestOrderRoutes:
    def test_order_edit_and_delete(self, client, admin_headers):
        _add_product(client, admin_headers)

        response = client.post(
            "/orders",
            json={
                "client_name": "Walk-in Customer",
                "client_phone": "0507776666",
                "items": [{"name": "Shirt", "quantity": 2}],
            },
            headers=admin_headers,
        )
        assert response.status_code == 201
        order = response.json()
        assert order["bill_id"] is not None
        assert money(order["final_amount"]) == Decimal("20")

        response = client.put(
            f"/orders/{order['id']}/items",
            json={"pin": "0000", "items": [{"name": "Shirt", "quantity": 3}]},
            headers=admin_headers,
        )
        assert response.status_code == 401
        assert response.json()["kind"] == "CredentialDenied"

        response = client.put(
            f"/orders/{order['id']}/items",
            json={"pin": ADMIN_PIN, "items": [{"name": "Shirt", "quantity": 3}]},
            headers=admin_headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert money(body["new_amount"]) == Decimal("30")
        assert body["edited_by"] == "Sara"
        assert "by Sara" in body["bill"]["notes"]

        response = client.delete(f"/orders/{order['id']}", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["bill_deleted"] is True
        assert client.get(f"/bills/{order['bill_id']}", headers=admin_headers).status_code == 404

    def test_attach_to_other_clients_bill(self, client, admin_headers):
        _add_product(client, admin_headers)
        first = _new_client(client, admin_headers, "First", "0501000001")
        second = _new_client(client, admin_headers, "Second", "0501000002")

        order = client.post(
            "/orders",
            json={"client_id": first, "items": [{"name": "Shirt", "quantity": 1}]},
            headers=admin_headers,
        ).json()

        response = client.post(
            "/orders",
            json={
                "client_id": second,
                "bill_id": order["bill_id"],
                "items": [{"name": "Shirt", "quantity": 1}],
            },
            headers=admin_headers,
        )
        assert response.status_code == 409
        assert response.json()["kind"] == "InvalidTarget"


class TestReportRoutes:
    def test_revenue_summary(self, client, admin_headers):
        client_id = _new_client(client, admin_headers)
        for amount in ("40", "10"):
            client.post(f"/clients/{client_id}/bill", json={"amount": amount}, headers=admin_headers)
        client.post(
            f"/clients/{client_id}/pay-all",
            json={"amount": "40", "method": "card"},
            headers=admin_headers,
        )

        report = client.get("/reports/revenue", headers=admin_headers).json()

        assert report["bill_count"] == 2
        assert report["paid_bill_count"] == 1
        assert money(report["total_billed"]) == Decimal("50")
        assert money(report["total_pending"]) == Decimal("10")
        assert report["payments_by_method"][0]["payment_method"] == "card"

    def test_bad_date(self, client, admin_headers):
        response = client.get("/reports/revenue?from_date=yesterday", headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["kind"] == "InvalidInput"
