"""Pytest fixtures for testing"""

import pytest
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from majubersama_pos.api.main import create_app
from majubersama_pos.infrastructure.database.models import Base, Customer, Product, Supplier
from majubersama_pos.infrastructure.database.session import get_db
from majubersama_pos.services.ledger_account import LedgerAccount
from majubersama_pos.services.locks import EntityLocks


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def session_factory(db: Session) -> sessionmaker:
    """Extra sessions on the test database, one per simulated terminal"""
    return TestingSessionLocal


@pytest.fixture
def locks() -> EntityLocks:
    return EntityLocks()


@pytest.fixture
def ledger(db: Session, locks: EntityLocks) -> LedgerAccount:
    """Ledger with limit enforcement on, independent of environment settings"""
    return LedgerAccount(db, locks, enforce_debt_limit=True)


@pytest.fixture
def customer(db: Session) -> Customer:
    """Farmer with a 1,000,000 rupiah credit ceiling"""
    customer = Customer(name="Pak Budi", phone="08123456789", village="Sukamaju", debt_limit=1_000_000, current_debt=0)
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer


@pytest.fixture
def second_customer(db: Session) -> Customer:
    customer = Customer(name="Bu Sari", village="Sidorejo", debt_limit=0, current_debt=0)
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer


@pytest.fixture
def product(db: Session) -> Product:
    """Urea sold per kilogram, wholesale from 50 kg"""
    product = Product(
        barcode="8991234567890",
        name="Pupuk Urea",
        type="pupuk_anorganik",
        active_ingredient="Nitrogen 46%",
        target_pests=[],
        unit="Kilogram",
        stock=100.0,
        min_stock=10.0,
        cost_price=8_000,
        retail_price=10_000,
        wholesale_price=9_000,
        wholesale_min_qty=50.0,
    )
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


@pytest.fixture
def pesticide(db: Session) -> Product:
    product = Product(
        barcode="8990000000017",
        name="Decis 25 EC",
        type="insektisida",
        active_ingredient="Deltametrin",
        target_pests=["wereng", "ulat grayak"],
        unit="Botol",
        stock=5.0,
        min_stock=2.0,
        cost_price=45_000,
        retail_price=55_000,
        wholesale_price=52_000,
        wholesale_min_qty=12.0,
    )
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


@pytest.fixture
def supplier(db: Session) -> Supplier:
    supplier = Supplier(name="CV Tani Makmur", phone="0274123456", address="Jl. Raya 1", debt=0)
    db.add(supplier)
    db.commit()
    db.refresh(supplier)
    return supplier
