from __future__ import annotations

from core.db import q, run
from core.errors import InsufficientStockError, ValidationError
from core.utils import iso_now, positive_int


def _product_stock(conn, product_id: int) -> tuple[str, int]:
    rows = q(conn, "SELECT name, stock FROM products WHERE id=?", (int(product_id),))
    if not rows:
        raise ValidationError(f"Product {product_id} not found.")
    return str(rows[0]["name"]), int(rows[0]["stock"])


def debit_stock(conn, *, product_id: int, quantity: int) -> int:
    """
    Conditional decrement: succeeds only if stock >= quantity at write time.
    Does not commit; run it inside core.db.transaction().
    Returns the stock left.
    """
    qty = positive_int(quantity)
    cur = run(
        conn,
        "UPDATE products SET stock = stock - ?, updated_at = ? WHERE id = ? AND stock >= ?",
        (qty, iso_now(), int(product_id), qty),
    )
    if cur.rowcount == 0:
        name, available = _product_stock(conn, int(product_id))
        raise InsufficientStockError(name, qty, available)
    return _product_stock(conn, int(product_id))[1]


def credit_stock(conn, *, product_id: int, quantity: int) -> int:
    qty = positive_int(quantity)
    cur = run(
        conn,
        "UPDATE products SET stock = stock + ?, updated_at = ? WHERE id = ?",
        (qty, iso_now(), int(product_id)),
    )
    if cur.rowcount == 0:
        raise ValidationError(f"Product {product_id} not found.")
    return _product_stock(conn, int(product_id))[1]
