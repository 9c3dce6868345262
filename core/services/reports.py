from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

import pandas as pd

from core.db import q
from core.utils import money, safe_div


def to_frame(rows) -> pd.DataFrame:
    return pd.DataFrame([dict(r) for r in rows])


def inventory_metrics(conn, *, low_stock_threshold: int = 10, now: Optional[datetime] = None) -> dict:
    """
    Dashboard figures. Low stock is 0 < stock <= threshold; alerts include
    out-of-stock rows too. Sales figures cover the last 7 days.
    """
    threshold = int(low_stock_threshold)
    now = now or datetime.now(timezone.utc)
    since = (now - timedelta(days=7)).replace(microsecond=0).isoformat()

    totals = q(
        conn,
        """
        SELECT
          COUNT(1) AS total_products,
          COALESCE(SUM(CASE WHEN stock > 0 AND stock <= ? THEN 1 ELSE 0 END), 0) AS low_stock_items,
          COALESCE(SUM(CASE WHEN stock = 0 THEN 1 ELSE 0 END), 0) AS out_of_stock_items,
          COALESCE(SUM(price * stock), 0) AS total_value
        FROM products
        """,
        (threshold,),
    )[0]

    alerts = q(
        conn,
        """
        SELECT id, name, sku, stock
        FROM products
        WHERE stock <= ?
        ORDER BY stock ASC, name COLLATE NOCASE
        """,
        (threshold,),
    )

    recent_orders = q(conn, "SELECT COUNT(1) AS n FROM orders WHERE created_at >= ?", (since,))[0]

    top = q(
        conn,
        """
        SELECT oi.product_id,
               COALESCE(p.name, MAX(oi.product_name)) AS name,
               SUM(oi.quantity) AS quantity,
               ROUND(SUM(oi.price * oi.quantity), 2) AS revenue
        FROM order_items oi
        JOIN orders o ON o.id = oi.order_id
        LEFT JOIN products p ON p.id = oi.product_id
        WHERE o.created_at >= ?
        GROUP BY oi.product_id
        ORDER BY quantity DESC, revenue DESC
        LIMIT 5
        """,
        (since,),
    )

    return {
        "total_products": int(totals["total_products"]),
        "low_stock_items": int(totals["low_stock_items"]),
        "out_of_stock_items": int(totals["out_of_stock_items"]),
        "total_value": money(totals["total_value"]),
        "recent_orders": int(recent_orders["n"]),
        "stock_alerts": [
            {"id": int(r["id"]), "name": str(r["name"]), "sku": str(r["sku"]), "stock": int(r["stock"]), "threshold": threshold}
            for r in alerts
        ],
        "top_selling_products": [
            {
                "product_id": r["product_id"],
                "name": str(r["name"]),
                "quantity": int(r["quantity"]),
                "revenue": float(r["revenue"]),
            }
            for r in top
        ],
    }


def purchase_summary(rows) -> dict:
    total_units = sum(int(r["quantity"]) for r in rows)
    total_spent = money(sum(float(r["total_amount"]) for r in rows))
    return {
        "total_units": total_units,
        "total_spent": total_spent,
        "average_unit_price": money(safe_div(total_spent, total_units)),
    }


def production_summary(rows) -> dict:
    """Completed and in-flight batches count toward output; cancelled ones do not."""
    live = [r for r in rows if r["status"] != "cancelled"]
    return {
        "total_produced": sum(int(r["quantity_produced"]) for r in live),
        "completed_batches": sum(1 for r in rows if r["status"] == "completed"),
        "total_value": money(sum(int(r["quantity_produced"]) * float(r["price"]) for r in live)),
    }
