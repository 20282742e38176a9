"""Staff credential check used to attribute ledger edits.

The ledger never authenticates anyone itself; routes receive a verified
``Identity`` from whichever ``StaffVerifier`` is wired into the app.
"""

import logging
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy.orm import Session

from laundry_ledger.core.errors import CredentialDenied
from laundry_ledger.core.security import verify_password
from laundry_ledger.models.user import User


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    user_id: int
    name: str
    role: str


class StaffVerifier(Protocol):
    def verify(self, pin: str) -> Identity:
        """Return the staff identity for ``pin`` or raise ``CredentialDenied``."""


class PinStaffVerifier:
    def __init__(self, db: Session):
        self.db = db

    def verify(self, pin: str) -> Identity:
        pin = (pin or "").strip()
        if not pin:
            raise CredentialDenied("Staff PIN is required")

        staff = (
            self.db.query(User)
            .filter(User.is_active == True, User.hashed_pin.isnot(None))
            .all()
        )

        for user in staff:
            if verify_password(pin, user.hashed_pin):
                return Identity(
                    user_id=user.id,
                    name=user.name or user.email,
                    role=(user.role.name if user.role else "").lower(),
                )

        logger.warning("Rejected staff PIN attempt")
        raise CredentialDenied("Invalid staff PIN")
