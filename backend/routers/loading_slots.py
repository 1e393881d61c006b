from typing import Dict, List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.actuator import ActuatorGateway, get_gateway
from core.errors import StoreFailure, WarehouseError
from core.logging import get_logger
from core.relocation import fill_slot_from_cell
from db.database import get_async_session, get_session_maker
from db.warehouse import store
from schemas.operations import FillFromCellOut
from schemas.warehouse import FillFromCellRequest, LoadingSlotRead, StockAssign

router = APIRouter()
logger = get_logger(__name__)


@router.get("", response_model=List[LoadingSlotRead])
async def list_loading_slots(db: AsyncSession = Depends(get_async_session)):
    return await store.list_slots(db)


@router.post("/{slot_id}/assign", response_model=Dict)
async def assign_loading_slot(
    slot_id: int,
    payload: StockAssign,
    db: AsyncSession = Depends(get_async_session),
):
    try:
        await store.set_slot(db, slot_id, payload.product_id, payload.quantity)
        await db.commit()
    except WarehouseError:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.error("assign_loading_slot_failed", slot_id=slot_id, error=repr(e), exc_info=True)
        raise StoreFailure(f"Failed to assign loading slot: {e}")
    return {"success": True}


@router.post("/{slot_id}/clear", response_model=Dict)
async def clear_loading_slot(
    slot_id: int,
    db: AsyncSession = Depends(get_async_session),
):
    try:
        await store.clear_slot(db, slot_id)
        await db.commit()
    except WarehouseError:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.error("clear_loading_slot_failed", slot_id=slot_id, error=repr(e), exc_info=True)
        raise StoreFailure(f"Failed to clear loading slot: {e}")
    return {"success": True}


@router.post("/{slot_id}/fill-from-cell", response_model=FillFromCellOut)
async def fill_from_cell(
    slot_id: int,
    payload: FillFromCellRequest,
    session_maker: async_sessionmaker = Depends(get_session_maker),
    gateway: ActuatorGateway = Depends(get_gateway),
):
    """
    Move stock from a cell into this loading slot and send MOVE_TO_LOADING to the actuator.

    - 400 when cell_id is missing, the cell is empty, or quantity exceeds what it holds.
    - 200 otherwise, even if the actuator rejected or never received the command:
      check `accepted` / `response`, or the operation's status.
    """
    result = await fill_slot_from_cell(
        session_maker, gateway, slot_id=slot_id, cell_id=payload.cell_id, quantity=payload.quantity
    )
    return FillFromCellOut(
        success=True,
        operationId=result.operation_id,
        accepted=result.accepted,
        response=result.response,
        id=result.operation_id,
        ok=result.accepted,
    )
