import os

# Tests run against an in-memory SQLite database
os.environ["DATABASE_URL"] = "sqlite://"

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

from app.models import (
    Product, SalesRecord, CompetitorPrice, PriceHistory, AbcCategory, get_db
)
from app.models.database import SessionLocal, create_tables, drop_tables


@pytest.fixture
def db():
    create_tables()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        drop_tables()


@pytest.fixture
def client(db):
    from app.main import app

    app.dependency_overrides[get_db] = lambda: db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_product(db):
    counter = {"n": 0}

    def _make(cost_price=10.0, current_price=15.0, abc=None, private_label=False,
              category="Dairy", status="active", sku=None):
        counter["n"] += 1
        product = Product(
            sku=sku or f"SKU{counter['n']:03d}",
            name=f"Product {counter['n']}",
            category=category,
            cost_price=cost_price,
            current_price=current_price,
            abc_category=AbcCategory(abc) if abc else None,
            is_private_label=private_label,
            status=status,
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def add_sales(db):
    def _add(product, daily_units, selling_price=None, purchase_price=None, start=None):
        """One record per day ending today (or starting at `start`)."""
        start = start or date.today() - timedelta(days=len(daily_units) - 1)
        for i, units in enumerate(daily_units):
            db.add(SalesRecord(
                product_id=product.id,
                date=start + timedelta(days=i),
                units_sold=units,
                selling_price=selling_price if selling_price is not None else product.current_price,
                purchase_price=purchase_price if purchase_price is not None else product.cost_price,
            ))
        db.commit()

    return _add


@pytest.fixture
def add_competitor_prices(db):
    def _add(product, prices, on=None, promo=None):
        """prices: {competitor_name: price}; promo: {competitor_name: promo_price}."""
        promo = promo or {}
        for name, price in prices.items():
            db.add(CompetitorPrice(
                product_id=product.id,
                competitor_name=name,
                price=price,
                promo_price=promo.get(name),
                is_on_promo=name in promo,
                date=on or date.today(),
            ))
        db.commit()

    return _add


@pytest.fixture
def add_price_history(db):
    def _add(product, entries):
        """entries: [(valid_from, regular_price)]"""
        for valid_from, price in entries:
            db.add(PriceHistory(product_id=product.id, valid_from=valid_from, regular_price=price))
        db.commit()

    return _add
