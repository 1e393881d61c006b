"""
Relocation orchestration.

Every dispatch is a two-step saga:

1. commit durable intent: inventory mutation (if any) + PENDING ledger row,
   in one transaction;
2. best-effort actuator call outside any transaction, then the terminal
   ledger status in a separate unit of work.

The actuator outcome never rolls back step 1. An ERROR operation means
"inventory says moved, physical confirmation unknown".
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from core.actuator import ActuatorCommand, ActuatorGateway, AutoLoad, MoveToLoading, encode_command
from core.errors import InvalidRequest, ModeRejected, StoreFailure, WarehouseError
from core.logging import get_logger
from core.mode import MODE_AUTOMATIC
from db.warehouse import ledger, store
from db.warehouse.operation import OP_AUTO_LOADING, OP_MOVE_TO_LOADING_ZONE, utcnow

logger = get_logger(__name__)

EXPIRED_DETAIL = "Expired: no actuator outcome recorded"


@dataclass(frozen=True)
class RelocationResult:
    operation_id: int
    accepted: bool
    response: str


async def _dispatch_and_finalize(
    session_maker: async_sessionmaker,
    gateway: ActuatorGateway,
    operation_id: int,
    command: ActuatorCommand,
) -> RelocationResult:
    result = await gateway.send(command)

    try:
        async with session_maker() as db:
            if result.accepted:
                await ledger.mark_done(db, operation_id)
            else:
                await ledger.mark_error(db, operation_id, result.response)
            await db.commit()
    except SQLAlchemyError as e:
        # Inventory is already committed; the operation stays PENDING until swept.
        logger.error("operation_finalize_failed", operation_id=operation_id, error=repr(e), exc_info=True)
    else:
        logger.info("operation_finished", operation_id=operation_id, accepted=result.accepted)

    return RelocationResult(operation_id=operation_id, accepted=result.accepted, response=result.response)


async def fill_slot_from_cell(
    session_maker: async_sessionmaker,
    gateway: ActuatorGateway,
    slot_id: int,
    cell_id: Optional[int],
    quantity: Optional[int] = None,
) -> RelocationResult:
    """
    Move stock from a storage cell into a loading slot and tell the actuator.

    - quantity None/<= 0 moves everything in the cell.
    - EmptyCell / InsufficientQuantity / NotFound abort before anything is written.
    - Once committed, the call succeeds regardless of what the actuator says.
    """
    if cell_id is None:
        raise InvalidRequest("cell_id is required")

    command = MoveToLoading(cell_id=cell_id, slot_id=slot_id)

    async with session_maker() as db:
        try:
            taken = await store.take_from_cell(db, cell_id, quantity)
            await store.set_slot(db, slot_id, taken.product_id, taken.quantity)
            operation_id = await ledger.record(
                db,
                OP_MOVE_TO_LOADING_ZONE,
                encode_command(command),
                product_id=taken.product_id,
                cell_id=cell_id,
                slot_id=slot_id,
            )
            await db.commit()
        except WarehouseError:
            await db.rollback()
            raise
        except SQLAlchemyError as e:
            await db.rollback()
            raise StoreFailure(f"Failed to move stock: {e}") from e

    logger.info(
        "stock_moved_to_loading",
        operation_id=operation_id,
        cell_id=cell_id,
        cell_label=taken.cell_label,
        slot_id=slot_id,
        product_id=taken.product_id,
        quantity=taken.quantity,
    )
    return await _dispatch_and_finalize(session_maker, gateway, operation_id, command)


async def submit_operation(
    session_maker: async_sessionmaker,
    gateway: ActuatorGateway,
    op_type: str,
    command: ActuatorCommand,
    product_id: Optional[int] = None,
    cell_id: Optional[int] = None,
    slot_id: Optional[int] = None,
) -> RelocationResult:
    """Record and dispatch a command that carries no inventory mutation."""
    op_type = (op_type or "").strip()
    if not op_type:
        raise InvalidRequest("op_type is required")
    cmd = encode_command(command)
    if not cmd.strip():
        raise InvalidRequest("cmd is required")

    async with session_maker() as db:
        try:
            if product_id is not None:
                await store.get_product(db, product_id)
            if cell_id is not None:
                await store.get_cell(db, cell_id)
            if slot_id is not None:
                await store.get_slot(db, slot_id)
            operation_id = await ledger.record(
                db, op_type, cmd, product_id=product_id, cell_id=cell_id, slot_id=slot_id
            )
            await db.commit()
        except WarehouseError:
            await db.rollback()
            raise
        except SQLAlchemyError as e:
            await db.rollback()
            raise StoreFailure(f"Failed to record operation: {e}") from e

    return await _dispatch_and_finalize(session_maker, gateway, operation_id, command)


async def start_auto_loading(
    session_maker: async_sessionmaker,
    gateway: ActuatorGateway,
    mode: str,
) -> RelocationResult:
    if mode != MODE_AUTOMATIC:
        raise ModeRejected("Switch to automatic mode first")
    return await submit_operation(session_maker, gateway, OP_AUTO_LOADING, AutoLoad())


async def sweep_stale_operations(session_maker: async_sessionmaker, older_than_seconds: int) -> List[int]:
    """
    Expire PENDING operations older than the cutoff by marking them ERROR.

    Nothing is re-dispatched and inventory is untouched. Rows that were
    finalized concurrently are skipped, so running it twice is harmless.
    """
    if older_than_seconds < 0:
        raise InvalidRequest("older_than_seconds must be >= 0")
    cutoff = utcnow() - timedelta(seconds=older_than_seconds)

    expired: List[int] = []
    async with session_maker() as db:
        try:
            for op in await ledger.find_stale_pending(db, cutoff):
                if await ledger.mark_error(db, op.id, EXPIRED_DETAIL):
                    expired.append(op.id)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            raise StoreFailure(f"Failed to sweep operations: {e}") from e

    if expired:
        logger.warning("pending_operations_expired", operation_ids=expired, older_than_seconds=older_than_seconds)
    return expired
