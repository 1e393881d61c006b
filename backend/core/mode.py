from typing import Literal

from fastapi import Request

from core.errors import InvalidRequest

MODE_MANUAL = "manual"
MODE_AUTOMATIC = "automatic"

Mode = Literal["manual", "automatic"]

_ALIASES = {
    "manual": MODE_MANUAL,
    "automatic": MODE_AUTOMATIC,
    "auto": MODE_AUTOMATIC,
}


def normalize_mode(value: str) -> str:
    mode = _ALIASES.get((value or "").strip().lower())
    if mode is None:
        raise InvalidRequest("mode must be 'manual' or 'automatic'")
    return mode


class ModeGate:
    """Process-wide manual/automatic toggle. Not persisted; resets on restart."""

    def __init__(self, mode: str = MODE_MANUAL):
        self._mode = normalize_mode(mode)

    @property
    def mode(self) -> str:
        return self._mode

    def set(self, mode: str) -> str:
        self._mode = normalize_mode(mode)
        return self._mode


def get_mode_gate(request: Request) -> ModeGate:
    return request.app.state.mode_gate
