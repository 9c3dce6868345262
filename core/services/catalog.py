from __future__ import annotations

from typing import Optional

from core.db import q, x
from core.errors import ValidationError
from core.logging import get_logger
from core.utils import iso_now, money, whole_number

logger = get_logger(__name__)

PRODUCT_TYPES = ("component", "finished")


def _clean_text(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    s = str(v).strip()
    return s if s else None


def _normalize_product_type(product_type: str) -> str:
    pt = str(product_type or "").strip().lower()
    if pt not in PRODUCT_TYPES:
        raise ValidationError("Invalid product type. Use 'component' or 'finished'.")
    return pt


def _validate_price(price) -> float:
    try:
        p = float(price)
    except (TypeError, ValueError):
        raise ValidationError("Price must be a number.")
    if p < 0:
        raise ValidationError("Price must be >= 0.")
    return money(p)


def _sku_taken(conn, sku: str, *, exclude_id: Optional[int] = None) -> bool:
    rows = q(conn, "SELECT id FROM products WHERE sku=?", (sku,))
    return any(int(r["id"]) != exclude_id for r in rows)


def get_product(conn, product_id: int):
    rows = q(conn, "SELECT * FROM products WHERE id=?", (int(product_id),))
    return rows[0] if rows else None


def require_product(conn, product_id: int, *, product_type: Optional[str] = None):
    """Fetch a product or raise ValidationError; optionally check its type."""
    p = get_product(conn, product_id)
    if p is None:
        raise ValidationError(f"Product {product_id} not found.")
    if product_type is not None and p["product_type"] != product_type:
        raise ValidationError(f"{p['name']} is not a {product_type} product.")
    return p


def list_products(
    conn,
    *,
    product_type: Optional[str] = None,
    category: Optional[str] = None,
    search: Optional[str] = None,
):
    where = ["1=1"]
    params: list = []
    if product_type:
        where.append("product_type = ?")
        params.append(_normalize_product_type(product_type))
    if category and category != "all":
        where.append("category = ?")
        params.append(category)
    term = _clean_text(search)
    if term:
        where.append("(LOWER(name) LIKE ? OR LOWER(sku) LIKE ?)")
        like = f"%{term.lower()}%"
        params.extend([like, like])

    return q(
        conn,
        f"SELECT * FROM products WHERE {' AND '.join(where)} ORDER BY name COLLATE NOCASE, id",
        params,
    )


def list_categories(conn) -> list[str]:
    rows = q(
        conn,
        "SELECT DISTINCT category FROM products WHERE category IS NOT NULL AND category <> '' ORDER BY category",
    )
    return [str(r["category"]) for r in rows]


def create_product(
    conn,
    *,
    name: str,
    sku: str,
    price: float,
    product_type: str,
    stock: int = 0,
    category: Optional[str] = None,
    description: Optional[str] = None,
) -> int:
    name = _clean_text(name)
    sku = _clean_text(sku)
    if not name:
        raise ValidationError("Product name is required.")
    if not sku:
        raise ValidationError("SKU is required.")
    product_type = _normalize_product_type(product_type)
    price = _validate_price(price)
    stock = whole_number(stock, "Stock")
    if stock < 0:
        raise ValidationError("Stock must be >= 0.")
    if _sku_taken(conn, sku):
        raise ValidationError(f"SKU '{sku}' already exists.")

    now = iso_now()
    product_id = x(
        conn,
        """
        INSERT INTO products (name, sku, description, price, stock, category, product_type, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (name, sku, _clean_text(description), price, stock, _clean_text(category), product_type, now, now),
    )
    logger.info("Product created", product_id=product_id, sku=sku, product_type=product_type)
    return int(product_id)


def update_product(
    conn,
    product_id: int,
    *,
    name: str,
    sku: str,
    price: float,
    category: Optional[str] = None,
    description: Optional[str] = None,
) -> None:
    """
    Edit catalog fields. Stock is not editable here: it only moves through
    purchases, sales and production. A finished product's price is
    overwritten again the next time its recipe changes.
    """
    require_product(conn, product_id)
    name = _clean_text(name)
    sku = _clean_text(sku)
    if not name:
        raise ValidationError("Product name is required.")
    if not sku:
        raise ValidationError("SKU is required.")
    price = _validate_price(price)
    if _sku_taken(conn, sku, exclude_id=int(product_id)):
        raise ValidationError(f"SKU '{sku}' already exists.")

    x(
        conn,
        """
        UPDATE products
        SET name=?, sku=?, price=?, category=?, description=?, updated_at=?
        WHERE id=?
        """,
        (name, sku, price, _clean_text(category), _clean_text(description), iso_now(), int(product_id)),
    )
    logger.info("Product updated", product_id=int(product_id))


def delete_product(conn, product_id: int) -> None:
    p = require_product(conn, product_id)
    used = q(
        conn,
        "SELECT COUNT(1) AS n FROM product_recipes WHERE component_id=?",
        (int(product_id),),
    )[0]
    if int(used["n"]) > 0:
        raise ValidationError(f"{p['name']} is used in {used['n']} recipe(s). Remove it from those recipes first.")
    consumed = q(
        conn,
        "SELECT COUNT(1) AS n FROM production_batch_components WHERE component_id=?",
        (int(product_id),),
    )[0]
    if int(consumed["n"]) > 0:
        raise ValidationError(f"{p['name']} has production history and cannot be deleted.")
    purchased = q(
        conn,
        "SELECT COUNT(1) AS n FROM purchases WHERE product_id=?",
        (int(product_id),),
    )[0]
    if int(purchased["n"]) > 0:
        raise ValidationError(f"{p['name']} has {purchased['n']} purchase record(s) and cannot be deleted.")

    x(conn, "DELETE FROM products WHERE id=?", (int(product_id),))
    logger.info("Product deleted", product_id=int(product_id), sku=str(p["sku"]))
