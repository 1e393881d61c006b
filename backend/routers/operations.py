from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.actuator import ActuatorGateway, Raw, get_gateway
from core.config import settings
from core.errors import NotFound
from core.relocation import submit_operation, sweep_stale_operations
from db.database import get_async_session, get_session_maker
from db.warehouse import ledger
from schemas.operations import DispatchOut, OperationCreate, OperationRead, SweepOut, SweepRequest

router = APIRouter()


@router.get("", response_model=List[OperationRead])
async def list_operations(
    limit: int = Query(ledger.DEFAULT_LIST_LIMIT, ge=1, le=ledger.MAX_LIST_LIMIT),
    db: AsyncSession = Depends(get_async_session),
):
    """Most recent operations first, with product name / cell label / slot number."""
    return await ledger.list_operations(db, limit=limit)


@router.post("", response_model=DispatchOut)
async def create_operation(
    payload: OperationCreate,
    session_maker: async_sessionmaker = Depends(get_session_maker),
    gateway: ActuatorGateway = Depends(get_gateway),
):
    """Record an ad-hoc command and send it to the actuator verbatim."""
    result = await submit_operation(
        session_maker,
        gateway,
        payload.op_type,
        Raw(payload.cmd),
        product_id=payload.product_id,
        cell_id=payload.cell_id,
        slot_id=payload.loading_slot_id,
    )
    return DispatchOut(id=result.operation_id, ok=result.accepted, response=result.response)


@router.post("/sweep", response_model=SweepOut)
async def sweep_operations(
    payload: Optional[SweepRequest] = None,
    session_maker: async_sessionmaker = Depends(get_session_maker),
):
    """Expire operations stuck in PENDING (no actuator outcome was ever recorded)."""
    older_than = payload.older_than_seconds if payload else None
    if older_than is None:
        older_than = settings.pending_sweep_seconds
    expired = await sweep_stale_operations(session_maker, older_than)
    return SweepOut(expired=expired)


@router.get("/{operation_id}", response_model=OperationRead)
async def get_operation(
    operation_id: int,
    db: AsyncSession = Depends(get_async_session),
):
    op = await ledger.get_operation(db, operation_id)
    if not op:
        raise NotFound("Operation not found")
    return OperationRead(
        id=op.id,
        op_type=op.op_type,
        product_id=op.product_id,
        cell_id=op.cell_id,
        loading_slot_id=op.loading_slot_id,
        cmd=op.cmd,
        status=op.status,
        error_message=op.error_message,
        created_at=op.created_at,
        completed_at=op.completed_at,
    )
