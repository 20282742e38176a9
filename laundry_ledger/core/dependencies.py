from typing import Generator

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy.orm import Session

from laundry_ledger.core.config import settings
from laundry_ledger.db.session import SessionLocal
from laundry_ledger.models.client import Client
from laundry_ledger.models.user import User
from laundry_ledger.services import ledger_store
from laundry_ledger.services.staff_verifier import PinStaffVerifier, StaffVerifier


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

STAFF = ["admin", "manager", "cashier"]
MANAGERS = ["admin", "manager"]


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _unauthorized(detail: str = "Invalid authentication") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    if not token:
        raise _unauthorized("Missing authentication token")

    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
        )
    except ExpiredSignatureError:
        raise _unauthorized("Token expired")
    except JWTError:
        raise _unauthorized("Invalid authentication token")

    email = payload.get("sub") or payload.get("email")
    if not isinstance(email, str) or not email.strip():
        raise _unauthorized("Invalid token payload")

    user = db.query(User).filter(User.email == email).first()
    if user is None or not user.is_active:
        raise _unauthorized("User not found")

    return user


def require_role(required_roles: list[str]):
    allowed_roles = {role.strip().upper() for role in required_roles if role and role.strip()}

    def role_checker(user: User = Depends(get_current_user)) -> User:
        user_role = (user.role.name if user.role else "").upper()

        if not user_role:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="User role not assigned",
            )

        if user_role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied",
            )

        return user

    return role_checker


def get_staff_verifier(db: Session = Depends(get_db)) -> StaffVerifier:
    return PinStaffVerifier(db)


def get_ledger_client(client_id: int, db: Session = Depends(get_db)) -> Client:
    return ledger_store.get_client_or_404(db, client_id)
