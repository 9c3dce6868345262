"""Tests for dashboard and report read models."""

from datetime import datetime, timedelta, timezone

import pytest

from core.services.demo_data import load_demo_data, table_counts, wipe_all
from core.services.orders import checkout
from core.services.production import cancel_batch, list_batches, produce
from core.services.reports import inventory_metrics, production_summary, to_frame


class TestInventoryMetrics:
    def test_counts_and_value(self, conn, make_component, make_finished):
        make_component("Empty", price=5.0, stock=0)
        make_component("Low", price=2.0, stock=10)
        make_component("Fine", price=1.5, stock=11)
        make_finished("Goods", price=10.0, stock=3)

        m = inventory_metrics(conn, low_stock_threshold=10)

        assert m["total_products"] == 4
        assert m["low_stock_items"] == 2
        assert m["out_of_stock_items"] == 1
        assert m["total_value"] == pytest.approx(20.0 + 16.5 + 30.0)
        assert [a["name"] for a in m["stock_alerts"]] == ["Empty", "Goods", "Low"]

    def test_recent_orders_and_top_sellers(self, conn, make_finished):
        a = make_finished("Table", price=30.0, stock=10)
        b = make_finished("Chair", price=10.0, stock=10)
        checkout(conn, lines=[{"product_id": a, "quantity": 1}, {"product_id": b, "quantity": 4}], payment_method="cash")
        checkout(conn, lines=[{"product_id": a, "quantity": 2}], payment_method="card")

        m = inventory_metrics(conn)

        assert m["recent_orders"] == 2
        assert [(t["name"], t["quantity"], t["revenue"]) for t in m["top_selling_products"]] == [
            ("Chair", 4, 40.0),
            ("Table", 3, 90.0),
        ]

    def test_old_orders_fall_out_of_window(self, conn, make_finished):
        a = make_finished("Table", price=30.0, stock=10)
        checkout(conn, lines=[{"product_id": a, "quantity": 1}], payment_method="cash")

        later = datetime.now(timezone.utc) + timedelta(days=8)
        m = inventory_metrics(conn, now=later)

        assert m["recent_orders"] == 0
        assert m["top_selling_products"] == []


class TestProductionSummary:
    def test_cancelled_batches_do_not_count(self, conn, recipe_setup):
        produce(conn, finished_product_id=recipe_setup["f"], quantity=1)
        second = produce(conn, finished_product_id=recipe_setup["f"], quantity=2)
        cancel_batch(conn, second.id)

        today = datetime.now(timezone.utc).date()
        s = production_summary(list_batches(conn, start=today, end=today))

        assert s["total_produced"] == 1
        assert s["completed_batches"] == 1
        assert s["total_value"] == pytest.approx(7.8)


class TestDemoData:
    def test_load_is_consistent_and_repeatable(self, conn):
        load_demo_data(conn)
        load_demo_data(conn)

        products = to_frame(conn.execute("SELECT * FROM products").fetchall())
        assert len(products) == 8
        assert (products["stock"] >= 0).all()

        finished = products[products["product_type"] == "finished"]
        for _, row in finished.iterrows():
            cost = conn.execute(
                """
                SELECT SUM(pr.quantity_required * c.price) AS cost
                FROM product_recipes pr JOIN products c ON c.id = pr.component_id
                WHERE pr.finished_product_id=?
                """,
                (int(row["id"]),),
            ).fetchone()["cost"]
            assert row["price"] == pytest.approx(cost * 1.3, abs=0.005)

    def test_second_load_adds_no_movements(self, conn):
        load_demo_data(conn)
        tables = ("purchases", "production_batches", "orders")
        counts = {t: conn.execute(f"SELECT COUNT(1) AS n FROM {t}").fetchone()["n"] for t in tables}
        stock = {r["sku"]: r["stock"] for r in conn.execute("SELECT sku, stock FROM products")}

        load_demo_data(conn)

        assert counts == {t: conn.execute(f"SELECT COUNT(1) AS n FROM {t}").fetchone()["n"] for t in tables}
        assert counts["purchases"] == 5
        assert stock == {r["sku"]: r["stock"] for r in conn.execute("SELECT sku, stock FROM products")}

    def test_wipe(self, conn):
        load_demo_data(conn)
        wipe_all(conn)
        for table in ("products", "orders", "production_batches", "purchases"):
            assert conn.execute(f"SELECT COUNT(1) AS n FROM {table}").fetchone()["n"] == 0

    def test_table_counts_follow_demo_load(self, conn):
        assert all(c["rows"] == 0 for c in table_counts(conn))

        load_demo_data(conn)
        counts = {c["table"]: c["rows"] for c in table_counts(conn)}

        assert list(counts)[0] == "products"
        assert counts["products"] == 8
        assert counts["purchases"] == 5
        assert counts["production_batches"] == 3
        assert counts["orders"] == 2
