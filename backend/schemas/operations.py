from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from core.errors import InvalidRequest
from core.mode import Mode, normalize_mode


class OperationRead(BaseModel):
    id: int
    op_type: str
    product_id: Optional[int] = None
    cell_id: Optional[int] = None
    loading_slot_id: Optional[int] = None
    cmd: str
    status: str
    error_message: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None
    product_name: Optional[str] = None
    cell_label: Optional[str] = None
    loading_slot_num: Optional[int] = None


class OperationCreate(BaseModel):
    op_type: str
    cmd: str
    product_id: Optional[int] = None
    cell_id: Optional[int] = None
    loading_slot_id: Optional[int] = None

    @field_validator("op_type", "cmd")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("field is required")
        return v


class DispatchOut(BaseModel):
    id: int
    ok: bool
    response: str


class FillFromCellOut(BaseModel):
    success: bool = True
    operationId: int
    accepted: bool
    response: str
    # Field names used by the original dashboard client.
    id: int
    ok: bool


class SweepRequest(BaseModel):
    older_than_seconds: Optional[int] = None


class SweepOut(BaseModel):
    expired: list[int]


class ModeRead(BaseModel):
    mode: Mode


class ModeUpdate(BaseModel):
    mode: str

    @field_validator("mode")
    @classmethod
    def _mode(cls, v: str) -> str:
        try:
            return normalize_mode(v)
        except InvalidRequest as e:
            raise ValueError(e.detail)


class ActuatorStatus(BaseModel):
    registered: bool
    base_url: Optional[str] = None
    requires_token: bool


class ActuatorRegistered(BaseModel):
    ok: bool = True
    base_url: str


class RawCommandOut(BaseModel):
    ok: bool
    response: str
