"""Tests for the conditional stock contract and the transaction helper."""

import sqlite3

import pytest

from core.db import conn_in_unit, run, transaction, x
from core.errors import InsufficientStockError, TransportError, ValidationError
from core.services.stock import credit_stock, debit_stock


class TestStockContract:
    def test_debit_never_goes_negative(self, conn, make_component, stock_of):
        c = make_component("Nut", stock=5)
        with transaction(conn):
            assert debit_stock(conn, product_id=c, quantity=3) == 2

        with pytest.raises(InsufficientStockError) as exc:
            with transaction(conn):
                debit_stock(conn, product_id=c, quantity=3)

        assert (exc.value.required, exc.value.available) == (3, 2)
        assert stock_of(c) == 2

    def test_credit(self, conn, make_component, stock_of):
        c = make_component(stock=1)
        with transaction(conn):
            credit_stock(conn, product_id=c, quantity=4)
        assert stock_of(c) == 5

    @pytest.mark.parametrize("fn", [debit_stock, credit_stock])
    def test_rejects_bad_quantity_and_unknown_product(self, conn, make_component, fn):
        c = make_component(stock=3)
        with pytest.raises(ValidationError):
            fn(conn, product_id=c, quantity=0)
        with pytest.raises(ValidationError):
            fn(conn, product_id=c, quantity=1.5)
        with pytest.raises(ValidationError):
            fn(conn, product_id=999, quantity=1)

    def test_schema_refuses_negative_stock(self, conn, make_component):
        c = make_component(stock=1)
        with pytest.raises(sqlite3.IntegrityError):
            conn.execute("UPDATE products SET stock = -1 WHERE id=?", (c,))
        conn.rollback()


class TestTransaction:
    def test_rollback_on_error(self, conn, make_component, stock_of):
        c = make_component(stock=10)
        with pytest.raises(RuntimeError):
            with transaction(conn):
                debit_stock(conn, product_id=c, quantity=4)
                raise RuntimeError("boom")
        assert stock_of(c) == 10
        assert not conn_in_unit(conn)

    def test_nested_units_join_outer(self, conn, make_component, stock_of):
        c = make_component(stock=10)
        with pytest.raises(InsufficientStockError):
            with transaction(conn):
                with transaction(conn):
                    debit_stock(conn, product_id=c, quantity=4)
                debit_stock(conn, product_id=c, quantity=100)
        assert stock_of(c) == 10

    def test_x_does_not_commit_inside_unit(self, conn, make_component):
        pid = make_component("Before")
        with pytest.raises(RuntimeError):
            with transaction(conn):
                x(conn, "UPDATE products SET name='changed' WHERE id=?", (pid,))
                raise RuntimeError("boom")
        names = [r["name"] for r in conn.execute("SELECT name FROM products")]
        assert names == ["Before"]

    def test_store_errors_become_transport_errors(self, conn):
        with pytest.raises(TransportError):
            with transaction(conn):
                run(conn, "INSERT INTO no_such_table VALUES (1)")
