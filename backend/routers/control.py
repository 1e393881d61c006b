from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import async_sessionmaker

from core.actuator import ActuatorGateway, get_gateway
from core.logging import get_logger
from core.mode import ModeGate, get_mode_gate
from core.relocation import start_auto_loading
from db.database import get_session_maker
from schemas.operations import DispatchOut, ModeRead, ModeUpdate

router = APIRouter()
logger = get_logger(__name__)


@router.get("/mode", response_model=ModeRead)
async def get_mode(gate: ModeGate = Depends(get_mode_gate)):
    return ModeRead(mode=gate.mode)


@router.put("/mode", response_model=ModeRead)
async def set_mode(payload: ModeUpdate, gate: ModeGate = Depends(get_mode_gate)):
    previous = gate.mode
    mode = gate.set(payload.mode)
    logger.info("mode_changed", previous=previous, mode=mode)
    return ModeRead(mode=mode)


@router.post("/auto/loading/start", response_model=DispatchOut)
async def start_auto_loading_route(
    gate: ModeGate = Depends(get_mode_gate),
    session_maker: async_sessionmaker = Depends(get_session_maker),
    gateway: ActuatorGateway = Depends(get_gateway),
):
    """Hand loading over to the actuator. Refused (403) unless the gate is in automatic mode."""
    result = await start_auto_loading(session_maker, gateway, gate.mode)
    return DispatchOut(id=result.operation_id, ok=result.accepted, response=result.response)
