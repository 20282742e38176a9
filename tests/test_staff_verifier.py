import pytest

from laundry_ledger.core.errors import CredentialDenied
from laundry_ledger.services.staff_verifier import Identity, PinStaffVerifier

from tests.conftest import ADMIN_PIN, CASHIER_PIN


class TestPinStaffVerifier:
    def test_pin_identifies_staff_member(self, db_session, admin_user, cashier_user):
        verifier = PinStaffVerifier(db_session)

        assert verifier.verify(CASHIER_PIN) == Identity(
            user_id=cashier_user.id, name="Omar", role="cashier"
        )
        assert verifier.verify(f" {ADMIN_PIN} ").name == "Sara"

    @pytest.mark.parametrize("pin", ["", "   ", None, "0000"])
    def test_rejected_pins(self, db_session, admin_user, pin):
        with pytest.raises(CredentialDenied):
            PinStaffVerifier(db_session).verify(pin)

    def test_inactive_staff_is_rejected(self, db_session, cashier_user):
        cashier_user.is_active = False
        db_session.commit()

        with pytest.raises(CredentialDenied):
            PinStaffVerifier(db_session).verify(CASHIER_PIN)
