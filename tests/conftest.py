"""Shared fixtures: a fresh in-memory SQLite database per test."""

import os

# db.py refuses to import without a DATABASE_URL
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from actions import ActionContext
from cache import PageCache
from db import get_session, init_db
from models import Customer, Invoice

TODAY = date(2024, 6, 15)


@pytest.fixture
def engine():
  engine = create_engine(
    "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool,
  )
  init_db(engine)
  yield engine
  SQLModel.metadata.drop_all(engine)
  engine.dispose()


@pytest.fixture
def session(engine):
  with Session(engine) as session:
    yield session


@pytest.fixture
def cache():
  return PageCache()


@pytest.fixture
def ctx(session, cache):
  return ActionContext(session=session, cache=cache, today=lambda: TODAY)


@pytest.fixture
def add_customer(session):
  def _add(id: str, name: str = "Ada", email: str = "ada@acme.io") -> Customer:
    c = Customer(id=id, name=name, email=email)
    session.add(c)
    session.commit()
    return c
  return _add


@pytest.fixture
def add_invoice(session):
  def _add(id: str, customer_id: str, amount: int = 1000, status: str = "pending") -> Invoice:
    inv = Invoice(id=id, customer_id=customer_id, amount=amount, status=status, date="2024-01-02")
    session.add(inv)
    session.commit()
    return inv
  return _add


@pytest.fixture
def client(engine):
  """FastAPI test client with the session dependency overridden."""
  from main import app

  def override_get_session():
    with Session(engine) as session:
      yield session

  app.dependency_overrides[get_session] = override_get_session
  app.state.page_cache = PageCache()
  yield TestClient(app)
  app.dependency_overrides.clear()
