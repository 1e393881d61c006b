"""
Provision the storage grid and loading zone.

Creates missing tables, then one cell per (row, col) of GRID_ROWS x GRID_COLS
(labelled R{row}C{col}) and LOADING_SLOTS empty loading slots. Existing rows
are left untouched, so it is safe to re-run.

Run locally:
  PYTHONPATH=backend python backend/scripts/provision_layout.py [--demo]

--demo also creates a few products and binds them to the first cells.
"""

from __future__ import annotations

import argparse
import asyncio
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select

from core.config import settings
from db.database import async_session_maker, create_db_and_tables
from db.warehouse import Cell, CellStock, LoadingSlot, Product
from db.warehouse.loading_slot import SLOT_EMPTY


@dataclass(frozen=True)
class SeedProduct:
    name: str
    sku: Optional[str] = None
    rfid_uid: Optional[str] = None
    quantity: int = 10


DEMO_PRODUCTS: list[SeedProduct] = [
    SeedProduct(name="Water 1.5L", sku="WTR-150", rfid_uid="04A1B2C3", quantity=12),
    SeedProduct(name="Rice 5kg", sku="RCE-500", rfid_uid="04D4E5F6", quantity=6),
    SeedProduct(name="Olive Oil 1L", sku="OIL-100", quantity=10),
]


def cell_label(row: int, col: int) -> str:
    return f"R{row}C{col}"


async def provision(session_maker, rows: int, cols: int, slots: int, demo: bool = False) -> dict:
    created = {"cells": 0, "loading_slots": 0, "products": 0, "bindings": 0}

    async with session_maker() as db:
        res = await db.execute(select(Cell.row_num, Cell.col_num))
        existing_cells = {(r, c) for r, c in res.all()}
        for row in range(1, rows + 1):
            for col in range(1, cols + 1):
                if (row, col) in existing_cells:
                    continue
                db.add(Cell(row_num=row, col_num=col, label=cell_label(row, col)))
                created["cells"] += 1

        res = await db.execute(select(LoadingSlot.slot_num))
        existing_slots = set(res.scalars().all())
        for num in range(1, slots + 1):
            if num in existing_slots:
                continue
            db.add(LoadingSlot(slot_num=num, status=SLOT_EMPTY, product_id=None, quantity=0))
            created["loading_slots"] += 1

        await db.flush()

        if demo:
            res = await db.execute(select(Cell).order_by(Cell.row_num.asc(), Cell.col_num.asc()))
            cells = res.scalars().all()
            for seed, cell in zip(DEMO_PRODUCTS, cells):
                product = (
                    await db.execute(select(Product).where(Product.name == seed.name))
                ).scalar_one_or_none()
                if not product:
                    product = Product(name=seed.name, sku=seed.sku, rfid_uid=seed.rfid_uid)
                    db.add(product)
                    await db.flush()
                    created["products"] += 1
                if await db.get(CellStock, cell.id) is None:
                    db.add(CellStock(cell_id=cell.id, product_id=product.id, quantity=seed.quantity))
                    created["bindings"] += 1

        await db.commit()
    return created


async def main() -> None:
    parser = argparse.ArgumentParser(description="Provision warehouse cells and loading slots")
    parser.add_argument("--rows", type=int, default=settings.grid_rows)
    parser.add_argument("--cols", type=int, default=settings.grid_cols)
    parser.add_argument("--slots", type=int, default=settings.loading_slots)
    parser.add_argument("--demo", action="store_true", help="also seed demo products into the first cells")
    args = parser.parse_args()

    await create_db_and_tables()
    created = await provision(async_session_maker, args.rows, args.cols, args.slots, demo=args.demo)
    print(
        f"Created cells: {created['cells']}, loading slots: {created['loading_slots']}, "
        f"products: {created['products']}, cell bindings: {created['bindings']}"
    )


if __name__ == "__main__":
    asyncio.run(main())
