from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from sqlalchemy import func
from sqlalchemy.orm import Session

from laundry_ledger.core.dependencies import get_current_user, get_db
from laundry_ledger.core.security import create_access_token, hash_password, verify_password
from laundry_ledger.models.user import Role, User
from laundry_ledger.schemas.user import UserCreate, UserResponse
from laundry_ledger.services.audit_service import log_auth_event


router = APIRouter(prefix="/auth", tags=["Auth"])

STAFF_ROLES = {"admin", "manager", "cashier"}

optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def _registering_user(
    token: Optional[str] = Depends(optional_oauth2_scheme),
    db: Session = Depends(get_db),
) -> Optional[User]:
    # The very first account bootstraps the shop; after that only admins add staff
    if db.query(User).count() == 0:
        return None

    if not token:
        raise HTTPException(status_code=401, detail="Only admins can register staff")

    user = get_current_user(token=token, db=db)
    if not user.role or user.role.name.lower() != "admin":
        raise HTTPException(status_code=403, detail="Only admins can register staff")

    return user


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=UserResponse)
def register(
    user: UserCreate,
    db: Session = Depends(get_db),
    admin: Optional[User] = Depends(_registering_user),
):
    role_name = (user.role or "").strip().lower()
    if role_name not in STAFF_ROLES:
        raise HTTPException(status_code=400, detail="Invalid role")

    role = db.query(Role).filter(func.lower(Role.name) == role_name).first()
    if not role:
        role = Role(name=role_name)
        db.add(role)
        db.flush()

    email = (user.email or "").strip().lower()
    existing_user = db.query(User).filter(func.lower(User.email) == email).first()
    if existing_user:
        raise HTTPException(status_code=409, detail="Email already registered")

    new_user = User(
        name=(user.name or "").strip(),
        email=email,
        hashed_password=hash_password(user.password),
        hashed_pin=hash_password(user.pin) if user.pin else None,
        role_id=role.id,
    )

    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    log_auth_event(
        db=db,
        action="AUTH_REGISTER_SUCCESS",
        email=new_user.email,
        user_id=admin.id if admin else new_user.id,
        details=f"Role: {role.name}"
    )

    return new_user


@router.post("/login")
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    email = (form_data.username or "").strip().lower()
    db_user = db.query(User).filter(func.lower(User.email) == email).first()

    if (
        not db_user
        or not db_user.is_active
        or not verify_password(form_data.password, db_user.hashed_password)
    ):
        log_auth_event(
            db=db,
            action="AUTH_LOGIN_FAILED",
            email=email,
            details="Invalid credentials"
        )
        raise HTTPException(status_code=401, detail="Invalid credentials")

    if not db_user.role or not db_user.role.name:
        raise HTTPException(status_code=403, detail="User role not assigned")

    access_token = create_access_token(
        data={
            "sub": db_user.email,
            "role": db_user.role.name.lower(),
            "name": db_user.name or "",
        }
    )

    log_auth_event(
        db=db,
        action="AUTH_LOGIN_SUCCESS",
        email=db_user.email,
        user_id=db_user.id,
        details=f"Role: {db_user.role.name.lower()}"
    )

    return {
        "access_token": access_token,
        "token_type": "bearer",
    }
