from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from core.db import q, run, transaction
from core.errors import ValidationError
from core.logging import get_logger
from core.services.catalog import require_product
from core.services.stock import credit_stock
from core.utils import iso_now, iso_today, money, positive_int

logger = get_logger(__name__)


@dataclass
class Purchase:
    id: int
    product_id: int
    quantity: int
    unit_price: float
    supplier: Optional[str]
    purchase_date: str
    total_amount: float
    notes: Optional[str]
    stock_after: int


def _normalize_date(d) -> str:
    if d is None or d == "":
        return iso_today()
    if isinstance(d, date):
        return d.isoformat()[:10]
    try:
        return date.fromisoformat(str(d)[:10]).isoformat()
    except ValueError:
        raise ValidationError("Purchase date must be an ISO date (YYYY-MM-DD).")


def record_purchase(
    conn,
    *,
    product_id: int,
    quantity: int,
    unit_price: float,
    supplier: Optional[str],
    purchase_date=None,
    notes: Optional[str] = None,
) -> Purchase:
    if product_id is None:
        raise ValidationError("Please select a product.")
    qty = positive_int(quantity)
    try:
        up = float(unit_price)
    except (TypeError, ValueError):
        raise ValidationError("Unit price must be a number.")
    if up < 0:
        raise ValidationError("Unit price must be >= 0.")

    require_product(conn, product_id)
    pdate = _normalize_date(purchase_date)
    supplier = (str(supplier).strip() or None) if supplier is not None else None
    notes = (str(notes).strip() or None) if notes is not None else None
    total = money(qty * up)

    with transaction(conn):
        cur = run(
            conn,
            """
            INSERT INTO purchases (product_id, quantity, unit_price, supplier, purchase_date, total_amount, notes, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (int(product_id), qty, money(up), supplier, pdate, total, notes, iso_now()),
        )
        purchase_id = int(cur.lastrowid)
        stock_after = credit_stock(conn, product_id=int(product_id), quantity=qty)

    logger.info(
        "Purchase recorded",
        purchase_id=purchase_id,
        product_id=int(product_id),
        quantity=qty,
        total_amount=total,
    )
    return Purchase(
        id=purchase_id,
        product_id=int(product_id),
        quantity=qty,
        unit_price=money(up),
        supplier=supplier,
        purchase_date=pdate,
        total_amount=total,
        notes=notes,
        stock_after=int(stock_after),
    )


def list_purchases(conn, *, start, end):
    return q(
        conn,
        """
        SELECT pu.id, pu.purchase_date, p.name AS product_name, p.sku,
               pu.quantity, pu.unit_price, pu.total_amount, pu.supplier, pu.notes,
               pu.product_id, pu.created_at
        FROM purchases pu
        JOIN products p ON p.id = pu.product_id
        WHERE pu.purchase_date >= ? AND pu.purchase_date <= ?
        ORDER BY pu.purchase_date DESC, pu.id DESC
        """,
        (_normalize_date(start), _normalize_date(end)),
    )
