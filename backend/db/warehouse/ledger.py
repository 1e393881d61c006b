"""
Operation ledger.

record() runs inside the caller's inventory transaction. mark_done() and
mark_error() run later, in their own unit of work, after the actuator call.
Terminal transitions only apply to rows that are still PENDING.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .cell import Cell
from .loading_slot import LoadingSlot
from .operation import OP_DONE, OP_ERROR, OP_PENDING, Operation, utcnow
from .product import Product

DEFAULT_LIST_LIMIT = 50
MAX_LIST_LIMIT = 500


async def record(
    db: AsyncSession,
    op_type: str,
    cmd: str,
    product_id: Optional[int] = None,
    cell_id: Optional[int] = None,
    slot_id: Optional[int] = None,
) -> int:
    op = Operation(
        op_type=op_type,
        product_id=product_id,
        cell_id=cell_id,
        loading_slot_id=slot_id,
        cmd=cmd,
        status=OP_PENDING,
    )
    db.add(op)
    await db.flush()
    return op.id


async def _finish(db: AsyncSession, operation_id: int, status: str, error_message: Optional[str]) -> bool:
    res = await db.execute(
        update(Operation)
        .where(Operation.id == operation_id, Operation.status == OP_PENDING)
        .values(status=status, error_message=error_message, completed_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    return bool(res.rowcount)


async def mark_done(db: AsyncSession, operation_id: int) -> bool:
    return await _finish(db, operation_id, OP_DONE, None)


async def mark_error(db: AsyncSession, operation_id: int, detail: str) -> bool:
    return await _finish(db, operation_id, OP_ERROR, detail)


async def get_operation(db: AsyncSession, operation_id: int) -> Optional[Operation]:
    return await db.get(Operation, operation_id)


async def list_operations(db: AsyncSession, limit: int = DEFAULT_LIST_LIMIT) -> List[dict]:
    limit = max(1, min(int(limit or DEFAULT_LIST_LIMIT), MAX_LIST_LIMIT))
    stmt = (
        select(
            Operation,
            Product.name.label("product_name"),
            Cell.label.label("cell_label"),
            LoadingSlot.slot_num.label("loading_slot_num"),
        )
        .outerjoin(Product, Product.id == Operation.product_id)
        .outerjoin(Cell, Cell.id == Operation.cell_id)
        .outerjoin(LoadingSlot, LoadingSlot.id == Operation.loading_slot_id)
        .order_by(Operation.id.desc())
        .limit(limit)
    )
    res = await db.execute(stmt)
    return [
        {
            "id": op.id,
            "op_type": op.op_type,
            "product_id": op.product_id,
            "cell_id": op.cell_id,
            "loading_slot_id": op.loading_slot_id,
            "cmd": op.cmd,
            "status": op.status,
            "error_message": op.error_message,
            "created_at": op.created_at,
            "completed_at": op.completed_at,
            "product_name": product_name,
            "cell_label": cell_label,
            "loading_slot_num": loading_slot_num,
        }
        for op, product_name, cell_label, loading_slot_num in res.all()
    ]


async def find_stale_pending(db: AsyncSession, cutoff: datetime) -> List[Operation]:
    res = await db.execute(
        select(Operation)
        .where(Operation.status == OP_PENDING, Operation.created_at <= cutoff)
        .order_by(Operation.id.asc())
    )
    return list(res.scalars().all())
