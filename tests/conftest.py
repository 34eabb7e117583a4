"""Shared fixtures: in-memory database, API client, users and tokens."""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("INTERNAL_ADMIN_SECRET", "test-internal-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from salestrack.main import app
from salestrack.database import Base, get_db
from salestrack.core.hashing import hash_password
from salestrack.core.jwt import create_user_token
from salestrack.models.insurance_types import InsuranceType
from salestrack.models.sale_insurances import SaleInsurance
from salestrack.models.sales import Sale
from salestrack.models.users import User

PASSWORD = "Secret123!"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSession = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    session = TestingSession()
    yield session
    session.close()


@pytest.fixture
def client(engine):
    TestingSession = sessionmaker(bind=engine, autoflush=False, autocommit=False)

    def override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_user(db, username, role="employee", email=None, is_active=True):
    user = User(
        username=username,
        email=email,
        password_hash=hash_password(PASSWORD),
        role=role,
        is_active=is_active,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_sale(db, user, created_at, lines, amount="100.00", status="active", client_name="Jean Dupont"):
    """Insert a sale directly; ``lines`` is a list of InsuranceType rows."""
    sale = Sale(
        employee_id=user.id,
        employee_name=user.username,
        client_name=client_name,
        reservation_number=f"RES-{user.username}-{created_at:%Y%m%d%H%M%S}",
        amount=Decimal(amount),
        commission_amount=sum((t.commission_amount for t in lines), Decimal("0.00")),
        status=status,
        created_at=created_at,
    )
    sale.insurances = [
        SaleInsurance(
            insurance_type_id=t.id,
            insurance_name=t.name,
            commission_amount=t.commission_amount,
        )
        for t in lines
    ]
    db.add(sale)
    db.commit()
    db.refresh(sale)
    return sale


def auth_headers(user):
    return {"Authorization": f"Bearer {create_user_token(user)}"}


@pytest.fixture
def admin(db):
    return make_user(db, "admin", role="admin", email="admin@example.com")


@pytest.fixture
def julie(db):
    return make_user(db, "julie", email="julie@example.com")


@pytest.fixture
def sherman(db):
    return make_user(db, "sherman")


@pytest.fixture
def annulation(db):
    insurance_type = InsuranceType(name="Annulation", commission_amount=Decimal("10.00"), is_active=True)
    db.add(insurance_type)
    db.commit()
    db.refresh(insurance_type)
    return insurance_type


@pytest.fixture
def multirisque(db):
    insurance_type = InsuranceType(name="Multirisque", commission_amount=Decimal("5.00"), is_active=True)
    db.add(insurance_type)
    db.commit()
    db.refresh(insurance_type)
    return insurance_type


@pytest.fixture
def now():
    return datetime.now(timezone.utc)
