import os

# Must be set before the app (and its engine) is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from laundry_ledger.core.dependencies import get_db
from laundry_ledger.core.security import create_access_token, hash_password
from laundry_ledger.db.base import Base
from laundry_ledger.main import app
from laundry_ledger.models.product import Product
from laundry_ledger.models.user import Role, User
from laundry_ledger.services import ledger_store


engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

ADMIN_PIN = "4321"
CASHIER_PIN = "1111"


# ===== DATABASE =====

@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ===== STAFF =====

def _make_user(db, name, email, role_name, pin=None):
    role = db.query(Role).filter(Role.name == role_name).first()
    if not role:
        role = Role(name=role_name)
        db.add(role)
        db.flush()

    user = User(
        name=name,
        email=email,
        hashed_password=hash_password("secret-password"),
        hashed_pin=hash_password(pin) if pin else None,
        is_active=True,
        role_id=role.id,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin_user(db_session):
    return _make_user(db_session, "Sara", "sara@laundry.ae", "admin", pin=ADMIN_PIN)


@pytest.fixture
def cashier_user(db_session):
    return _make_user(db_session, "Omar", "omar@laundry.ae", "cashier", pin=CASHIER_PIN)


def _headers(user):
    token = create_access_token({"sub": user.email, "role": user.role.name})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin_user):
    return _headers(admin_user)


@pytest.fixture
def cashier_headers(cashier_user):
    return _headers(cashier_user)


# ===== LEDGER DATA =====

@pytest.fixture
def make_client(db_session):
    counter = {"n": 0}

    def _make(name="Amina Khalid", phone=None):
        counter["n"] += 1
        return ledger_store.create_client(
            db_session,
            {"name": name, "phone": phone or f"050000{counter['n']:04d}"},
        )

    return _make


@pytest.fixture
def price_list(db_session):
    products = [
        Product(name="Shirt", price=10, dry_clean_price=15, is_active=True),
        Product(name="Trousers", price=12, dry_clean_price=18, is_active=True),
        Product(name="Suit", price=40, dry_clean_price=None, is_active=True),
    ]
    db_session.add_all(products)
    db_session.commit()
    return {product.name: product for product in products}
