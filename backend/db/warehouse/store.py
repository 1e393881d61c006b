"""
Inventory store: cells, cell bindings, loading slots and the product catalog.

None of these helpers commit. The caller owns the unit of work so that a
cell debit, the matching slot credit and the ledger row land together.
"""

from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import EmptyCell, InsufficientQuantity, InvalidRequest, NotFound
from .cell import Cell, CellStock
from .loading_slot import SLOT_EMPTY, SLOT_READY, LoadingSlot
from .product import Product

# Passed as requested_qty to take everything bound to the cell.
ALL = None


@dataclass(frozen=True)
class TakenStock:
    product_id: int
    quantity: int
    cell_label: Optional[str]


def _require_positive(quantity) -> int:
    try:
        qty = int(quantity)
    except (TypeError, ValueError):
        raise InvalidRequest("quantity must be an integer")
    if qty <= 0:
        raise InvalidRequest("quantity must be > 0")
    return qty


async def get_cell(db: AsyncSession, cell_id: int) -> Cell:
    cell = await db.get(Cell, cell_id)
    if not cell:
        raise NotFound("Cell not found")
    return cell


async def get_product(db: AsyncSession, product_id: int) -> Product:
    product = await db.get(Product, product_id)
    if not product:
        raise NotFound("Product not found")
    return product


async def get_slot(db: AsyncSession, slot_id: int) -> LoadingSlot:
    slot = await db.get(LoadingSlot, slot_id)
    if not slot:
        raise NotFound("Loading slot not found")
    return slot


async def list_products(db: AsyncSession) -> List[Product]:
    res = await db.execute(select(Product).order_by(Product.id.desc()))
    return list(res.scalars().all())


async def create_product(
    db: AsyncSession,
    name: str,
    sku: Optional[str] = None,
    rfid_uid: Optional[str] = None,
) -> Product:
    name = (name or "").strip()
    if not name:
        raise InvalidRequest("name is required")
    product = Product(name=name, sku=sku or None, rfid_uid=rfid_uid or None)
    db.add(product)
    await db.flush()
    return product


async def list_cells(db: AsyncSession) -> List[dict]:
    stmt = (
        select(Cell, CellStock.quantity, Product)
        .outerjoin(CellStock, CellStock.cell_id == Cell.id)
        .outerjoin(Product, Product.id == CellStock.product_id)
        .order_by(Cell.row_num.asc(), Cell.col_num.asc())
    )
    res = await db.execute(stmt)
    out = []
    for cell, quantity, product in res.all():
        out.append(
            {
                "cell_id": cell.id,
                "row_num": cell.row_num,
                "col_num": cell.col_num,
                "label": cell.label,
                "quantity": int(quantity) if quantity is not None else None,
                "product_id": product.id if product else None,
                "product_name": product.name if product else None,
                "sku": product.sku if product else None,
                "rfid_uid": product.rfid_uid if product else None,
            }
        )
    return out


async def list_slots(db: AsyncSession) -> List[dict]:
    stmt = (
        select(LoadingSlot, Product)
        .outerjoin(Product, Product.id == LoadingSlot.product_id)
        .order_by(LoadingSlot.slot_num.asc())
    )
    res = await db.execute(stmt)
    return [
        {
            "id": slot.id,
            "slot_num": slot.slot_num,
            "status": slot.status,
            "quantity": int(slot.quantity or 0),
            "product_id": product.id if product else None,
            "product_name": product.name if product else None,
            "sku": product.sku if product else None,
            "rfid_uid": product.rfid_uid if product else None,
        }
        for slot, product in res.all()
    ]


async def assign_to_cell(db: AsyncSession, cell_id: int, product_id: int, quantity: int) -> CellStock:
    """Bind product/quantity to the cell, overwriting whatever was there."""
    qty = _require_positive(quantity)
    await get_cell(db, cell_id)
    await get_product(db, product_id)

    stock = await db.get(CellStock, cell_id)
    if stock:
        stock.product_id = product_id
        stock.quantity = qty
    else:
        stock = CellStock(cell_id=cell_id, product_id=product_id, quantity=qty)
        db.add(stock)
    await db.flush()
    return stock


async def clear_cell(db: AsyncSession, cell_id: int) -> bool:
    """Remove the binding. Returns False when the cell was already empty."""
    await get_cell(db, cell_id)
    stock = await db.get(CellStock, cell_id)
    if not stock:
        return False
    await db.delete(stock)
    await db.flush()
    return True


async def take_from_cell(db: AsyncSession, cell_id: int, requested_qty: Optional[int] = ALL) -> TakenStock:
    """
    Debit a cell binding and report what was taken.

    - requested_qty of ALL (or any value <= 0) takes the full bound quantity.
    - The binding row is locked for the rest of the transaction.
    - A binding reaching zero is deleted.
    """
    res = await db.execute(
        select(CellStock, Cell.label)
        .join(Cell, Cell.id == CellStock.cell_id)
        .where(CellStock.cell_id == cell_id)
        .with_for_update(of=CellStock)
    )
    row = res.first()
    if row is None:
        raise EmptyCell(cell_id)

    stock, label = row
    available = int(stock.quantity)
    take = int(requested_qty) if requested_qty and int(requested_qty) > 0 else available
    if take > available:
        raise InsufficientQuantity(cell_id, available=available, requested=take)

    product_id = stock.product_id
    if take == available:
        await db.delete(stock)
    else:
        stock.quantity = available - take
    await db.flush()
    return TakenStock(product_id=product_id, quantity=take, cell_label=label)


async def set_slot(db: AsyncSession, slot_id: int, product_id: int, quantity: int) -> LoadingSlot:
    qty = _require_positive(quantity)
    slot = await get_slot(db, slot_id)
    await get_product(db, product_id)

    slot.product_id = product_id
    slot.quantity = qty
    slot.status = SLOT_READY
    await db.flush()
    return slot


async def clear_slot(db: AsyncSession, slot_id: int) -> LoadingSlot:
    slot = await get_slot(db, slot_id)
    slot.product_id = None
    slot.quantity = 0
    slot.status = SLOT_EMPTY
    await db.flush()
    return slot
