"""
Pytest fixtures for the PDV API.

Each test gets a fresh in-memory SQLite database with the schema applied.
The same engine backs the service-level ``db`` session and the HTTP
``client``; a test should use one or the other.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTO_CREATE_SCHEMA", "false")

from datetime import datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pdv_api.db.schema import init_schema
from pdv_api.db.session import enable_sqlite_foreign_keys, get_db
from pdv_api.main import app
from pdv_api.schemas.products import Product
from pdv_api.schemas.sales import PaymentMethod, Sale, SaleItem


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    init_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def catalog(db):
    """Insert a handful of products and return them keyed by id."""
    products = {
        "agua": Product(id="agua", nome="Agua", preco=Decimal("3.00")),
        "cafe": Product(id="cafe", nome="Cafe", preco=Decimal("5.50")),
        "cerveja": Product(id="cerveja", nome="Cerveja", preco=Decimal("10.00")),
        "cha": Product(id="cha", nome="Cha", preco=Decimal("4.25")),
        "refrigerante": Product(id="refrigerante", nome="Refrigerante", preco=Decimal("6.00")),
        "suco": Product(id="suco", nome="Suco", preco=Decimal("7.80")),
    }
    for product in products.values():
        db.execute(
            text("INSERT INTO produtos (id, nome, preco, imagem) VALUES (:id, :nome, :preco, NULL)"),
            {"id": product.id, "nome": product.nome, "preco": float(product.preco)},
        )
    db.commit()
    return products


def make_sale(
    sale_id: str,
    when: str,
    items: list[tuple[Product, int]],
    method: PaymentMethod = PaymentMethod.PIX,
    customer: str = "Ana",
    total: Decimal | None = None,
) -> Sale:
    """Build a sale the way the client does, totalling price times quantity."""
    if total is None:
        total = sum((product.preco * qty for product, qty in items), Decimal("0"))
    return Sale(
        id=sale_id,
        data=datetime.fromisoformat(when),
        cliente=customer,
        forma_pagamento=method,
        total=total,
        itens=[SaleItem(produto=product, quantidade=qty) for product, qty in items],
    )


def drop_tables(engine, *names: str) -> None:
    """Remove tables so reads against them fail at the store."""
    with engine.begin() as conn:
        for name in names:
            conn.execute(text(f"DROP TABLE {name}"))
