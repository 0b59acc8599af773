import os

# Point the application at an in-memory database before it is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from main import app
from models.category import Category
from models.product import Product
from models.supplier import Supplier
from services import users as user_service
from utils.tokenJWT import create_access_token

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session():
    """Fresh schema and session for every test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(db_session):
    """API client bound to the test database."""
    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_user(db_session):
    return user_service.create_user(db_session, "admin@example.com", "admin-pass", "Admin", "admin")


@pytest.fixture
def regular_user(db_session):
    return user_service.create_user(db_session, "clerk@example.com", "clerk-pass", "Clerk", "user")


def bearer(user):
    token = create_access_token(data={"sub": user.email, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin_user):
    return bearer(admin_user)


@pytest.fixture
def user_headers(regular_user):
    return bearer(regular_user)


def create_test_category(db_session, name="Electronics", description=None):
    category = Category(name=name, description=description)
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


def create_test_supplier(db_session, name="Northwind"):
    supplier = Supplier(name=name)
    db_session.add(supplier)
    db_session.commit()
    db_session.refresh(supplier)
    return supplier


def create_test_product(db_session, sku="SKU-001", name="Widget", current_stock=10, min_stock=5, **kwargs):
    product = Product(sku=sku, name=name, current_stock=current_stock, min_stock=min_stock, **kwargs)
    db_session.add(product)
    db_session.commit()
    db_session.refresh(product)
    return product


@pytest.fixture
def sample_product(db_session):
    return create_test_product(db_session)
