from __future__ import annotations

from core.db import q, run, transaction
from core.logging import get_logger
from core.services.catalog import require_product
from core.utils import iso_now, money

logger = get_logger(__name__)

# Finished goods sell at recipe cost plus 30%.
MARKUP = 1.3


def recipe_total_cost(conn, finished_product_id: int) -> float:
    """Sum of quantity_required x current component price."""
    r = q(
        conn,
        """
        SELECT COALESCE(SUM(pr.quantity_required * c.price), 0) AS total_cost
        FROM product_recipes pr
        JOIN products c ON c.id = pr.component_id
        WHERE pr.finished_product_id=?
        """,
        (int(finished_product_id),),
    )[0]
    return float(r["total_cost"])


def compute_price(conn, finished_product_id: int) -> float:
    return money(recipe_total_cost(conn, finished_product_id) * MARKUP)


def recompute(conn, finished_product_id: int) -> float:
    """
    Write the recipe-derived price onto the finished product.

    Pure function of the current recipe and current component prices, so a
    manual price edit is replaced the next time this runs.
    """
    require_product(conn, finished_product_id, product_type="finished")
    with transaction(conn):
        price = compute_price(conn, finished_product_id)
        run(
            conn,
            "UPDATE products SET price=?, updated_at=? WHERE id=?",
            (price, iso_now(), int(finished_product_id)),
        )
    logger.info("Price recomputed", finished_product_id=int(finished_product_id), price=price)
    return price
