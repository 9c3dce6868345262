from __future__ import annotations

import random
from datetime import date, timedelta

from core.db import ensure_schema, q, run, transaction
from core.services.catalog import create_product
from core.services.orders import checkout
from core.services.production import produce
from core.services.purchases import record_purchase
from core.services.recipes import add_entry


# (name, sku, price, category)
DEMO_COMPONENTS = [
    ("Oak Plank", "CMP-OAK-01", 12.50, "Wood"),
    ("Steel Screw (box)", "CMP-SCR-01", 3.20, "Hardware"),
    ("Wood Glue", "CMP-GLU-01", 4.75, "Supplies"),
    ("Varnish (250ml)", "CMP-VAR-01", 6.40, "Supplies"),
    ("Brass Hinge", "CMP-HNG-01", 2.10, "Hardware"),
]

# (name, sku, category, [(component sku, qty required)])
DEMO_FINISHED = [
    ("Oak Side Table", "FIN-TBL-01", "Furniture", [("CMP-OAK-01", 4), ("CMP-SCR-01", 1), ("CMP-GLU-01", 1), ("CMP-VAR-01", 1)]),
    ("Oak Shelf", "FIN-SHF-01", "Furniture", [("CMP-OAK-01", 2), ("CMP-SCR-01", 1), ("CMP-VAR-01", 1)]),
    ("Keepsake Box", "FIN-BOX-01", "Gifts", [("CMP-OAK-01", 1), ("CMP-HNG-01", 2), ("CMP-GLU-01", 1)]),
]

TABLES_IN_DELETE_ORDER = [
    "order_items",
    "orders",
    "production_batch_components",
    "production_batches",
    "purchases",
    "product_recipes",
    "products",
]


def wipe_all(conn) -> None:
    # Keep schema, delete data (order matters for FKs).
    with transaction(conn):
        for t in TABLES_IN_DELETE_ORDER:
            run(conn, f"DELETE FROM {t};")


def load_demo_data(conn, *, seed: int = 7) -> None:
    random.seed(seed)
    ensure_schema(conn)

    existing = {str(r["sku"]) for r in q(conn, "SELECT sku FROM products")}
    sku_to_id: dict[str, int] = {str(r["sku"]): int(r["id"]) for r in q(conn, "SELECT id, sku FROM products")}

    new_components: list[str] = []
    for name, sku, price, category in DEMO_COMPONENTS:
        if sku in existing:
            continue
        sku_to_id[sku] = create_product(
            conn, name=name, sku=sku, price=price, category=category, product_type="component"
        )
        new_components.append(sku)

    new_finished: list[str] = []
    for name, sku, category, _ in DEMO_FINISHED:
        if sku in existing:
            continue
        sku_to_id[sku] = create_product(
            conn, name=name, sku=sku, price=0, category=category, product_type="finished"
        )
        new_finished.append(sku)

    for _, sku, _, lines in DEMO_FINISHED:
        if sku not in new_finished:
            continue
        for component_sku, qty in lines:
            add_entry(
                conn,
                finished_product_id=sku_to_id[sku],
                component_id=sku_to_id[component_sku],
                quantity_required=qty,
            )

    # Stock in over the last few days, once per demo component
    base_date = date.today() - timedelta(days=5)
    for i, (_, sku, price, _) in enumerate(DEMO_COMPONENTS):
        if sku not in new_components:
            continue
        record_purchase(
            conn,
            product_id=sku_to_id[sku],
            quantity=random.randint(40, 120),
            unit_price=price,
            supplier=random.choice(["Timber Co.", "Hardware Hub"]),
            purchase_date=(base_date + timedelta(days=i % 3)).isoformat(),
            notes="Demo purchase",
        )

    for sku in new_finished:
        produce(conn, finished_product_id=sku_to_id[sku], quantity=random.randint(2, 5), notes="Demo batch")

    for sku in new_finished[:2]:
        checkout(conn, lines=[{"product_id": sku_to_id[sku], "quantity": 1}], payment_method=random.choice(["cash", "card"]))


def table_counts(conn) -> list[dict]:
    """Row count per table, parents first."""
    return [
        {"table": t, "rows": int(q(conn, f"SELECT COUNT(1) AS n FROM {t}")[0]["n"])}
        for t in reversed(TABLES_IN_DELETE_ORDER)
    ]
