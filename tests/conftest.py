"""Shared fixtures: an in-memory database with the app schema and product factories."""

import pytest

from core.db import connect, ensure_schema
from core.services.catalog import create_product
from core.services.recipes import add_entry


@pytest.fixture
def conn():
    """Fresh in-memory SQLite connection per test."""
    c = connect(":memory:")
    ensure_schema(c)
    yield c
    c.close()


@pytest.fixture
def make_component(conn):
    counter = {"n": 0}

    def _make(name="Component", *, price=1.0, stock=0, category="Parts"):
        counter["n"] += 1
        return create_product(
            conn,
            name=name,
            sku=f"CMP-{counter['n']:03d}",
            price=price,
            stock=stock,
            category=category,
            product_type="component",
        )

    return _make


@pytest.fixture
def make_finished(conn):
    counter = {"n": 0}

    def _make(name="Finished", *, price=0.0, stock=0, category="Goods"):
        counter["n"] += 1
        return create_product(
            conn,
            name=name,
            sku=f"FIN-{counter['n']:03d}",
            price=price,
            stock=stock,
            category=category,
            product_type="finished",
        )

    return _make


@pytest.fixture
def stock_of(conn):
    def _stock(product_id):
        return int(conn.execute("SELECT stock FROM products WHERE id=?", (product_id,)).fetchone()["stock"])

    return _stock


@pytest.fixture
def price_of(conn):
    def _price(product_id):
        return float(conn.execute("SELECT price FROM products WHERE id=?", (product_id,)).fetchone()["price"])

    return _price


@pytest.fixture
def recipe_setup(conn, make_component, make_finished):
    """Component X (stock 10) and finished F needing 3 X per unit."""
    x_id = make_component("Widget X", price=2.0, stock=10)
    f_id = make_finished("Gadget F")
    add_entry(conn, finished_product_id=f_id, component_id=x_id, quantity_required=3)
    return {"x": x_id, "f": f_id}
