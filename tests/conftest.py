"""
Pytest fixtures for the production engine test suite.

Provides:
- an in-memory SQLite engine per test (StaticPool, savepoints enabled)
- a plain Session for service-level tests
- a FastAPI TestClient bound to the same engine
- small factories for orders, lines and sales orders
"""

import os

# before database.py builds its module-level engine
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, enable_sqlite_savepoints, get_db
import models  # noqa: F401  (registers all tables)
from models import SalesOrder, SalesOrderLine
from services import production_lines, production_orders


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(eng)
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    from main import app

    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def make_order(db):
    def _make(**fields):
        payload = {"code": "AUTO"}
        payload.update(fields)
        return production_orders.create_order(db, payload)

    return _make


@pytest.fixture
def make_line(db):
    def _make(order, **fields):
        payload = {"article_ref": "ART-1", "qty_ordered": 10}
        payload.update(fields)
        return production_lines.create_line(db, order.id, payload)

    return _make


@pytest.fixture
def make_sales_order(db):
    def _make(code, lines=()):
        so = SalesOrder(code=code, customer_name="ACME")
        db.add(so)
        db.flush()
        for article_ref, color, size, qty in lines:
            db.add(SalesOrderLine(
                sales_order_id=so.id,
                article_ref=article_ref,
                color=color,
                size=size,
                qty=qty,
            ))
        db.commit()
        return so

    return _make
