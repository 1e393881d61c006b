from typing import Optional

from fastapi import APIRouter, Depends, Query

from core.actuator import ActuatorGateway, Raw, get_gateway
from core.errors import InvalidRequest
from schemas.operations import ActuatorRegistered, ActuatorStatus, RawCommandOut

router = APIRouter()


@router.get("/register", response_model=ActuatorRegistered)
async def register_actuator(
    address: Optional[str] = Query(None),
    ip: Optional[str] = Query(None),
    token: Optional[str] = Query(None),
    gateway: ActuatorGateway = Depends(get_gateway),
):
    """
    Handshake called by the controller once it is on the network.

    The controller passes its own address (`address`, or `ip` for older
    firmware). The latest successful registration wins.
    """
    addr = (address or ip or "").strip()
    if not addr:
        raise InvalidRequest("Missing 'address' query param")
    base_url = gateway.register(addr, token=token)
    return ActuatorRegistered(ok=True, base_url=base_url)


@router.get("/status", response_model=ActuatorStatus)
async def actuator_status(gateway: ActuatorGateway = Depends(get_gateway)):
    return ActuatorStatus(
        registered=gateway.base_url is not None,
        base_url=gateway.base_url,
        requires_token=gateway.requires_token,
    )


@router.get("/test-command", response_model=RawCommandOut)
async def test_command(
    c: Optional[str] = Query(None),
    gateway: ActuatorGateway = Depends(get_gateway),
):
    """Diagnostics: send a raw command straight to the actuator. Nothing is recorded."""
    if not c:
        raise InvalidRequest("Missing 'c' query param")
    result = await gateway.send(Raw(c))
    return RawCommandOut(ok=result.accepted, response=result.response)
