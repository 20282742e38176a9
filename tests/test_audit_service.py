from decimal import Decimal

import pytest
from sqlalchemy.exc import SQLAlchemyError

from laundry_ledger.models.audit_log import AuditLog
from laundry_ledger.services import ledger_store
from laundry_ledger.services.audit_service import log_action, log_auth_event


def _entries(db):
    return db.query(AuditLog).order_by(AuditLog.id).all()


class TestLogAction:
    def test_client_row(self, db_session, make_client, admin_user):
        client = make_client()

        log_action(db_session, admin_user.id, "CREATE_CLIENT", entity=client, details="created")

        entry = _entries(db_session)[-1]
        assert (entry.entity_type, entry.entity_id) == ("Client", client.id)
        assert entry.details == "created"
        assert entry.user_id == admin_user.id

    def test_ledger_row_carries_its_client(self, db_session, make_client, admin_user):
        client = make_client()
        bill = ledger_store.add_manual_bill(db_session, client.id, Decimal("25"))

        log_action(db_session, admin_user.id, "ADD_BILL", entity=bill, details="Manual bill of 25.00")

        entry = _entries(db_session)[-1]
        assert (entry.entity_type, entry.entity_id) == ("Bill", bill.id)
        assert entry.details == f"Client #{client.id} | Manual bill of 25.00"

    def test_deleted_row_is_still_described(self, db_session, make_client, admin_user):
        client = make_client()
        tx = ledger_store.add_deposit(db_session, client.id, Decimal("30"))
        tx_id = tx.id
        db_session.refresh(tx)

        ledger_store.delete_transaction(db_session, tx_id)
        log_action(db_session, admin_user.id, "DELETE_TRANSACTION", entity=tx)

        entry = _entries(db_session)[-1]
        assert (entry.entity_type, entry.entity_id) == ("Transaction", tx_id)
        assert entry.details == f"Client #{client.id}"

    def test_explicit_type_without_a_row(self, db_session, admin_user):
        log_action(db_session, admin_user.id, "DELETE_BILL", entity_type="Bill", entity_id=7)

        entry = _entries(db_session)[-1]
        assert (entry.entity_type, entry.entity_id, entry.details) == ("Bill", 7, None)

    def test_needs_a_type(self, db_session, admin_user):
        with pytest.raises(ValueError):
            log_action(db_session, admin_user.id, "SOMETHING")

    def test_write_failure_is_logged_not_raised(self, db_session, make_client, admin_user, monkeypatch, caplog):
        client = make_client()

        def failing_commit():
            raise SQLAlchemyError("audit_logs is locked")

        monkeypatch.setattr(db_session, "commit", failing_commit)
        log_action(db_session, admin_user.id, "CREATE_CLIENT", entity=client)
        monkeypatch.undo()

        assert "Failed to write audit entry CREATE_CLIENT" in caplog.text
        assert db_session.query(AuditLog).count() == 0


class TestRouteAuditing:
    def test_deposit_is_audited_against_the_transaction(self, client, db_session, admin_headers):
        client_id = client.post(
            "/clients", json={"name": "Huda", "phone": "0502223333"}, headers=admin_headers
        ).json()["id"]
        tx_id = client.post(
            f"/clients/{client_id}/deposit", json={"amount": "60"}, headers=admin_headers
        ).json()["id"]

        entry = (
            db_session.query(AuditLog)
            .filter(AuditLog.action == "ADD_DEPOSIT")
            .one()
        )
        assert (entry.entity_type, entry.entity_id) == ("Transaction", tx_id)
        assert entry.details.startswith(f"Client #{client_id} | Deposit added: 60")

    def test_auth_event(self, db_session, admin_user):
        log_auth_event(db_session, "AUTH_LOGIN_FAILED", "nobody@laundry.ae", details="Invalid credentials")

        entry = _entries(db_session)[-1]
        assert entry.entity_type == "Auth"
        assert entry.details == "Email: nobody@laundry.ae | Invalid credentials"
