from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from core.db import q, run, transaction
from core.errors import InsufficientStockError, ValidationError
from core.logging import get_logger
from core.services.catalog import require_product
from core.services.recipes import get_recipe
from core.services.stock import credit_stock, debit_stock
from core.utils import day_bounds, iso_now, positive_int

logger = get_logger(__name__)

STATUS_IN_PROGRESS = "in_progress"
STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"


@dataclass
class ProductionBatch:
    id: int
    finished_product_id: int
    quantity_produced: int
    status: str
    notes: Optional[str]
    created_at: str
    updated_at: str

    @classmethod
    def from_row(cls, r) -> "ProductionBatch":
        return cls(
            id=int(r["id"]),
            finished_product_id=int(r["finished_product_id"]),
            quantity_produced=int(r["quantity_produced"]),
            status=str(r["status"]),
            notes=r["notes"],
            created_at=str(r["created_at"]),
            updated_at=str(r["updated_at"]),
        )


@dataclass
class ComponentRequirement:
    component_id: int
    component_name: str
    required: int
    available: int

    @property
    def sufficient(self) -> bool:
        return self.available >= self.required


def _validate_quantity(quantity) -> int:
    return positive_int(quantity, "Production quantity")


def check_availability(conn, *, finished_product_id: int, quantity: int) -> list[ComponentRequirement]:
    """Per recipe line: how much a batch of `quantity` needs vs. what is on hand."""
    qty = _validate_quantity(quantity)
    return [
        ComponentRequirement(
            component_id=int(r["component_id"]),
            component_name=str(r["component_name"]),
            required=int(r["quantity_required"]) * qty,
            available=int(r["component_stock"]),
        )
        for r in get_recipe(conn, finished_product_id)
    ]


def get_batch(conn, batch_id: int) -> Optional[ProductionBatch]:
    rows = q(conn, "SELECT * FROM production_batches WHERE id=?", (int(batch_id),))
    return ProductionBatch.from_row(rows[0]) if rows else None


def list_batch_components(conn, batch_id: int):
    return q(
        conn,
        """
        SELECT pbc.component_id, p.name AS component_name, p.sku, pbc.quantity_used
        FROM production_batch_components pbc
        JOIN products p ON p.id = pbc.component_id
        WHERE pbc.batch_id=?
        ORDER BY pbc.id
        """,
        (int(batch_id),),
    )


def list_batches(conn, *, start: date | str, end: date | str):
    lo, hi = day_bounds(start, end)
    return q(
        conn,
        """
        SELECT b.id, b.finished_product_id, b.quantity_produced, b.status, b.notes,
               b.created_at, b.updated_at,
               p.name AS product_name, p.sku, p.price
        FROM production_batches b
        JOIN products p ON p.id = b.finished_product_id
        WHERE b.created_at >= ? AND b.created_at <= ?
        ORDER BY b.created_at DESC, b.id DESC
        """,
        (lo, hi),
    )


def produce(
    conn,
    *,
    finished_product_id: int,
    quantity: int,
    notes: Optional[str] = None,
) -> ProductionBatch:
    """
    Turn component stock into finished stock for one batch.

    Everything below is one transaction: the batch row, every component
    debit and ledger row, the finished-product credit and the completion.
    If any line is short the whole batch is rolled back and nothing moves.
    """
    qty = _validate_quantity(quantity)
    finished = require_product(conn, finished_product_id, product_type="finished")
    notes = (str(notes).strip() or None) if notes is not None else None

    with transaction(conn):
        recipe = get_recipe(conn, int(finished_product_id))
        if not recipe:
            raise ValidationError(f"{finished['name']} has no recipe. Add components before producing it.")

        now = iso_now()
        cur = run(
            conn,
            """
            INSERT INTO production_batches (finished_product_id, quantity_produced, status, notes, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (int(finished_product_id), qty, STATUS_IN_PROGRESS, notes, now, now),
        )
        batch_id = int(cur.lastrowid)

        # Check every line before touching any stock.
        for r in recipe:
            required = int(r["quantity_required"]) * qty
            available = int(r["component_stock"])
            if required > available:
                logger.warning(
                    "Production rejected",
                    finished_product_id=int(finished_product_id),
                    component=str(r["component_name"]),
                    required=required,
                    available=available,
                )
                raise InsufficientStockError(str(r["component_name"]), required, available)

        for r in recipe:
            required = int(r["quantity_required"]) * qty
            # Conditional debit still guards against a concurrent writer.
            debit_stock(conn, product_id=int(r["component_id"]), quantity=required)
            run(
                conn,
                """
                INSERT INTO production_batch_components (batch_id, component_id, quantity_used)
                VALUES (?, ?, ?)
                """,
                (batch_id, int(r["component_id"]), required),
            )

        credit_stock(conn, product_id=int(finished_product_id), quantity=qty)

        run(
            conn,
            "UPDATE production_batches SET status=?, updated_at=? WHERE id=?",
            (STATUS_COMPLETED, iso_now(), batch_id),
        )
        batch = get_batch(conn, batch_id)

    logger.info(
        "Production batch completed",
        batch_id=batch_id,
        finished_product_id=int(finished_product_id),
        quantity=qty,
        components=len(recipe),
    )
    return batch


def cancel_batch(conn, batch_id: int) -> ProductionBatch:
    """
    Reverse a completed batch: components go back from the consumption
    ledger, the produced units come off finished stock. Fails if those units
    have already left stock. Ledger rows stay as history.
    """
    with transaction(conn):
        batch = get_batch(conn, batch_id)
        if batch is None:
            raise ValidationError(f"Production batch {batch_id} not found.")
        if batch.status != STATUS_COMPLETED:
            raise ValidationError(f"Only completed batches can be cancelled (batch is {batch.status}).")

        debit_stock(conn, product_id=batch.finished_product_id, quantity=batch.quantity_produced)
        for r in list_batch_components(conn, batch.id):
            credit_stock(conn, product_id=int(r["component_id"]), quantity=int(r["quantity_used"]))
        run(
            conn,
            "UPDATE production_batches SET status=?, updated_at=? WHERE id=? AND status=?",
            (STATUS_CANCELLED, iso_now(), batch.id, STATUS_COMPLETED),
        )
        cancelled = get_batch(conn, batch.id)

    logger.info("Production batch cancelled", batch_id=batch.id, quantity=batch.quantity_produced)
    return cancelled
