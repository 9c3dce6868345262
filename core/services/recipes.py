from __future__ import annotations

from dataclasses import dataclass

from core.db import q, run, transaction
from core.errors import ValidationError
from core.logging import get_logger
from core.services import pricing
from core.services.catalog import require_product
from core.utils import money, positive_int

logger = get_logger(__name__)


@dataclass
class RecipeMutation:
    entry_id: int
    finished_product_id: int
    new_price: float


def get_recipe(conn, finished_product_id: int):
    """Recipe lines with the component's current name, sku, price and stock."""
    return q(
        conn,
        """
        SELECT pr.id, pr.finished_product_id, pr.component_id, pr.quantity_required,
               c.name AS component_name, c.sku AS component_sku,
               c.price AS component_price, c.stock AS component_stock
        FROM product_recipes pr
        JOIN products c ON c.id = pr.component_id
        WHERE pr.finished_product_id=?
        ORDER BY c.name COLLATE NOCASE, pr.id
        """,
        (int(finished_product_id),),
    )


def recipe_cost(conn, finished_product_id: int) -> dict:
    lines = []
    for r in get_recipe(conn, finished_product_id):
        line_cost = int(r["quantity_required"]) * float(r["component_price"])
        lines.append(
            {
                "entry_id": int(r["id"]),
                "component": str(r["component_name"]),
                "sku": str(r["component_sku"]),
                "quantity_required": int(r["quantity_required"]),
                "unit_price": money(r["component_price"]),
                "line_cost": money(line_cost),
            }
        )
    total_cost = money(sum(l["line_cost"] for l in lines))
    return {
        "lines": lines,
        "total_cost": total_cost,
        "price": money(total_cost * pricing.MARKUP),
    }


def add_entry(
    conn,
    *,
    finished_product_id: int,
    component_id: int,
    quantity_required: int,
) -> RecipeMutation:
    if finished_product_id is None or component_id is None:
        raise ValidationError("Select both a finished product and a component.")
    qty = positive_int(quantity_required, "Quantity required")
    if int(finished_product_id) == int(component_id):
        raise ValidationError("A product cannot be a component of itself.")

    finished = require_product(conn, finished_product_id, product_type="finished")
    component = require_product(conn, component_id, product_type="component")

    dup = q(
        conn,
        "SELECT id FROM product_recipes WHERE finished_product_id=? AND component_id=?",
        (int(finished_product_id), int(component_id)),
    )
    if dup:
        raise ValidationError(
            f"{component['name']} is already in the recipe for {finished['name']}. Remove it first to change the quantity."
        )

    with transaction(conn):
        cur = run(
            conn,
            """
            INSERT INTO product_recipes (finished_product_id, component_id, quantity_required)
            VALUES (?, ?, ?)
            """,
            (int(finished_product_id), int(component_id), qty),
        )
        entry_id = int(cur.lastrowid)
        new_price = pricing.recompute(conn, int(finished_product_id))

    logger.info(
        "Recipe entry added",
        entry_id=entry_id,
        finished_product_id=int(finished_product_id),
        component_id=int(component_id),
        quantity_required=qty,
        new_price=new_price,
    )
    return RecipeMutation(entry_id=entry_id, finished_product_id=int(finished_product_id), new_price=new_price)


def remove_entry(conn, entry_id: int) -> RecipeMutation:
    rows = q(conn, "SELECT * FROM product_recipes WHERE id=?", (int(entry_id),))
    if not rows:
        raise ValidationError(f"Recipe entry {entry_id} not found.")
    finished_product_id = int(rows[0]["finished_product_id"])

    with transaction(conn):
        run(conn, "DELETE FROM product_recipes WHERE id=?", (int(entry_id),))
        new_price = pricing.recompute(conn, finished_product_id)

    logger.info(
        "Recipe entry removed",
        entry_id=int(entry_id),
        finished_product_id=finished_product_id,
        new_price=new_price,
    )
    return RecipeMutation(entry_id=int(entry_id), finished_product_id=finished_product_id, new_price=new_price)
