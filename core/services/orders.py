from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from typing import Any, Optional

from core.db import q, run, transaction
from core.errors import InsufficientStockError, ValidationError
from core.logging import get_logger
from core.services.stock import debit_stock
from core.utils import iso_now, money, positive_int

logger = get_logger(__name__)

PAYMENT_METHODS = ("cash", "card")


@dataclass(frozen=True)
class CartLine:
    product_id: int
    name: str
    sku: str
    price: float
    stock: int
    quantity: int = 1

    @property
    def line_total(self) -> float:
        return money(self.price * self.quantity)


@dataclass
class OrderItem:
    product_id: int
    product_name: str
    sku: str
    quantity: int
    price: float


@dataclass
class Order:
    id: int
    order_number: str
    total_amount: float
    payment_method: str
    payment_status: str
    order_status: str
    created_at: str
    items: list[OrderItem] = field(default_factory=list)


# -------------------------
# Cart arithmetic (no store access)
# -------------------------

def cart_line_from_product(product, quantity: int = 1) -> CartLine:
    return CartLine(
        product_id=int(product["id"]),
        name=str(product["name"]),
        sku=str(product["sku"]),
        price=float(product["price"]),
        stock=int(product["stock"]),
        quantity=int(quantity),
    )


def add_to_cart(cart: list[CartLine], product) -> list[CartLine]:
    """Add one unit of `product`; stock is checked against the known snapshot."""
    line = cart_line_from_product(product)
    if line.stock <= 0:
        raise InsufficientStockError(line.name, 1, line.stock)

    out: list[CartLine] = []
    found = False
    for l in cart:
        if l.product_id == line.product_id:
            found = True
            if l.quantity >= line.stock:
                raise InsufficientStockError(line.name, l.quantity + 1, line.stock)
            l = replace(l, quantity=l.quantity + 1, stock=line.stock, price=line.price)
        out.append(l)
    if not found:
        out.append(line)
    return out


def change_quantity(cart: list[CartLine], product_id: int, delta: int) -> list[CartLine]:
    out: list[CartLine] = []
    for l in cart:
        if l.product_id == int(product_id):
            new_qty = l.quantity + int(delta)
            if new_qty > l.stock:
                raise InsufficientStockError(l.name, new_qty, l.stock)
            if new_qty <= 0:
                continue
            l = replace(l, quantity=new_qty)
        out.append(l)
    return out


def remove_from_cart(cart: list[CartLine], product_id: int) -> list[CartLine]:
    return [l for l in cart if l.product_id != int(product_id)]


def cart_total(cart: list[CartLine]) -> float:
    return money(sum(l.price * l.quantity for l in cart))


# -------------------------
# Checkout
# -------------------------

def _line_values(line: Any) -> tuple[int, int]:
    if isinstance(line, CartLine):
        return line.product_id, positive_int(line.quantity)
    return int(line["product_id"]), positive_int(line["quantity"])


def _next_order_number(conn) -> str:
    base = f"ORD-{int(time.time() * 1000)}"
    n = q(conn, "SELECT COUNT(1) AS n FROM orders WHERE order_number LIKE ?", (base + "%",))[0]["n"]
    return base if int(n) == 0 else f"{base}-{int(n) + 1}"


def checkout(conn, *, lines: list, payment_method: str) -> Order:
    """
    Create the order and its items and debit stock per line, as one unit.

    Stock is re-read from the store here; the cart snapshot is only a hint.
    Prices are the store's current prices.
    """
    if not lines:
        raise ValidationError("Cart is empty.")
    pm = str(payment_method or "").strip().lower()
    if pm not in PAYMENT_METHODS:
        raise ValidationError("Invalid payment method. Use 'cash' or 'card'.")

    # Same product twice in the payload collapses into one line.
    wanted: dict[int, int] = {}
    for line in lines:
        product_id, qty = _line_values(line)
        wanted[product_id] = wanted.get(product_id, 0) + qty

    with transaction(conn):
        items: list[OrderItem] = []
        for product_id, qty in wanted.items():
            rows = q(conn, "SELECT * FROM products WHERE id=?", (product_id,))
            if not rows:
                raise ValidationError(f"Product {product_id} not found.")
            p = rows[0]
            items.append(
                OrderItem(
                    product_id=product_id,
                    product_name=str(p["name"]),
                    sku=str(p["sku"]),
                    quantity=qty,
                    price=money(p["price"]),
                )
            )

        total = money(sum(i.price * i.quantity for i in items))
        order_number = _next_order_number(conn)
        created_at = iso_now()
        cur = run(
            conn,
            """
            INSERT INTO orders (order_number, total_amount, payment_method, payment_status, order_status, created_at)
            VALUES (?, ?, ?, 'completed', 'completed', ?)
            """,
            (order_number, total, pm, created_at),
        )
        order_id = int(cur.lastrowid)

        for i in items:
            run(
                conn,
                """
                INSERT INTO order_items (order_id, product_id, product_name, sku, quantity, price)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (order_id, i.product_id, i.product_name, i.sku, i.quantity, i.price),
            )
            debit_stock(conn, product_id=i.product_id, quantity=i.quantity)

    logger.info(
        "Order completed",
        order_id=order_id,
        order_number=order_number,
        total_amount=total,
        lines=len(items),
        payment_method=pm,
    )
    return Order(
        id=order_id,
        order_number=order_number,
        total_amount=total,
        payment_method=pm,
        payment_status="completed",
        order_status="completed",
        created_at=created_at,
        items=items,
    )


def get_order(conn, order_id: int) -> Optional[Order]:
    rows = q(conn, "SELECT * FROM orders WHERE id=?", (int(order_id),))
    if not rows:
        return None
    o = rows[0]
    items = [
        OrderItem(
            product_id=int(r["product_id"]) if r["product_id"] is not None else 0,
            product_name=str(r["product_name"]),
            sku=str(r["sku"]),
            quantity=int(r["quantity"]),
            price=float(r["price"]),
        )
        for r in q(conn, "SELECT * FROM order_items WHERE order_id=? ORDER BY id", (int(order_id),))
    ]
    return Order(
        id=int(o["id"]),
        order_number=str(o["order_number"]),
        total_amount=float(o["total_amount"]),
        payment_method=str(o["payment_method"]),
        payment_status=str(o["payment_status"]),
        order_status=str(o["order_status"]),
        created_at=str(o["created_at"]),
        items=items,
    )
