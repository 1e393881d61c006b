from typing import Dict, List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import StoreFailure, WarehouseError
from core.logging import get_logger
from db.database import get_async_session
from db.warehouse import store
from schemas.warehouse import CellRead, StockAssign

router = APIRouter()
logger = get_logger(__name__)


@router.get("", response_model=List[CellRead])
async def list_cells(db: AsyncSession = Depends(get_async_session)):
    """All cells ordered by row/column, with the bound product (if any)."""
    return await store.list_cells(db)


@router.post("/{cell_id}/assign", response_model=Dict)
async def assign_cell(
    cell_id: int,
    payload: StockAssign,
    db: AsyncSession = Depends(get_async_session),
):
    """
    Manual override: bind a product/quantity to the cell.

    Replaces whatever the cell held before, even a different product.
    """
    try:
        await store.assign_to_cell(db, cell_id, payload.product_id, payload.quantity)
        await db.commit()
    except WarehouseError:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.error("assign_cell_failed", cell_id=cell_id, error=repr(e), exc_info=True)
        raise StoreFailure(f"Failed to assign cell: {e}")
    return {"success": True}


@router.post("/{cell_id}/clear", response_model=Dict)
async def clear_cell(
    cell_id: int,
    db: AsyncSession = Depends(get_async_session),
):
    try:
        cleared = await store.clear_cell(db, cell_id)
        await db.commit()
    except WarehouseError:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.error("clear_cell_failed", cell_id=cell_id, error=repr(e), exc_info=True)
        raise StoreFailure(f"Failed to clear cell: {e}")
    return {"success": True, "cleared": cleared}
