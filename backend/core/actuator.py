"""
Actuator gateway: the ESP32 controller that performs physical moves.

The controller announces its own address through the registration handshake;
the gateway keeps only the latest one (last writer wins). Dispatch is a single
best-effort GET to `{base}/cmd?c=<command>`; no retry, and `accepted` only
means a 2xx response came back.
"""

import hmac
from dataclasses import dataclass
from typing import Optional, Union
from urllib.parse import quote

import requests
from fastapi import Request
from fastapi.concurrency import run_in_threadpool

from core.errors import ActuatorUnreachable, InvalidRequest, RegistrationRejected
from core.logging import get_logger

logger = get_logger(__name__)

NOT_REGISTERED_RESPONSE = "Actuator not registered. Call /api/actuator/register first."


@dataclass(frozen=True)
class MoveToLoading:
    cell_id: int
    slot_id: int


@dataclass(frozen=True)
class AutoLoad:
    pass


@dataclass(frozen=True)
class Raw:
    text: str


ActuatorCommand = Union[MoveToLoading, AutoLoad, Raw]


def encode_command(command: ActuatorCommand) -> str:
    """Wire form of a command. This is also what the ledger stores in `cmd`."""
    if isinstance(command, MoveToLoading):
        return f"MOVE_TO_LOADING cell={command.cell_id} slot={command.slot_id}"
    if isinstance(command, AutoLoad):
        return "AUTO_LOADING"
    if isinstance(command, Raw):
        return command.text
    raise TypeError(f"Unsupported actuator command: {command!r}")


@dataclass(frozen=True)
class DispatchResult:
    accepted: bool
    response: str


def normalize_address(address: str) -> str:
    addr = (address or "").strip()
    if not addr:
        raise InvalidRequest("Missing actuator address")
    if not addr.lower().startswith(("http://", "https://")):
        addr = f"http://{addr}"
    return addr.rstrip("/")


class ActuatorGateway:
    def __init__(
        self,
        address: Optional[str] = None,
        register_token: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self._base_url: Optional[str] = normalize_address(address) if address else None
        self._register_token = register_token or None
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings) -> "ActuatorGateway":
        return cls(
            address=settings.actuator_address or None,
            register_token=settings.actuator_register_token or None,
            timeout=settings.actuator_timeout_seconds,
        )

    @property
    def base_url(self) -> Optional[str]:
        return self._base_url

    @property
    def requires_token(self) -> bool:
        return self._register_token is not None

    def register(self, address: str, token: Optional[str] = None) -> str:
        """Point all future dispatches at `address`. Any accepted caller overwrites the previous one."""
        if self._register_token is not None:
            if not token or not hmac.compare_digest(token.encode(), self._register_token.encode()):
                logger.warning("actuator_registration_rejected", address=address)
                raise RegistrationRejected("Invalid registration token")

        base_url = normalize_address(address)
        previous = self._base_url
        self._base_url = base_url
        logger.info("actuator_registered", base_url=base_url, previous=previous)
        return base_url

    async def send(self, command: ActuatorCommand) -> DispatchResult:
        wire = encode_command(command)
        base_url = self._base_url
        if not base_url:
            logger.error("actuator_not_registered", cmd=wire)
            return DispatchResult(accepted=False, response=NOT_REGISTERED_RESPONSE)

        try:
            return await run_in_threadpool(self._request, base_url, wire)
        except ActuatorUnreachable as e:
            return DispatchResult(accepted=False, response=e.detail)

    def _request(self, base_url: str, wire: str) -> DispatchResult:
        url = f"{base_url}/cmd?c={quote(wire, safe='')}"
        logger.info("actuator_dispatch", url=url)
        try:
            resp = requests.get(url, timeout=self._timeout)
        except requests.RequestException as e:
            logger.error("actuator_unreachable", url=url, error=repr(e))
            raise ActuatorUnreachable(str(e))

        accepted = 200 <= resp.status_code < 300
        logger.info("actuator_response", url=url, status_code=resp.status_code, accepted=accepted)
        return DispatchResult(accepted=accepted, response=resp.text)


def get_gateway(request: Request) -> ActuatorGateway:
    return request.app.state.actuator
