from typing import Literal, Optional

from pydantic import BaseModel, field_validator


LoadingSlotStatus = Literal["EMPTY", "READY", "RESERVED"]


class ProductCreate(BaseModel):
    name: str
    sku: Optional[str] = None
    rfid_uid: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("name is required")
        return v

    @field_validator("sku", "rfid_uid")
    @classmethod
    def _strip_nullable(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class ProductRead(BaseModel):
    id: int
    name: str
    sku: Optional[str] = None
    rfid_uid: Optional[str] = None


class StockAssign(BaseModel):
    """Manual binding of a product to a cell or loading slot."""
    product_id: int
    quantity: int = 1

    @field_validator("quantity")
    @classmethod
    def _quantity_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("quantity must be > 0")
        return v


class CellRead(BaseModel):
    cell_id: int
    row_num: int
    col_num: int
    label: Optional[str] = None
    quantity: Optional[int] = None
    product_id: Optional[int] = None
    product_name: Optional[str] = None
    sku: Optional[str] = None
    rfid_uid: Optional[str] = None


class LoadingSlotRead(BaseModel):
    id: int
    slot_num: int
    status: LoadingSlotStatus
    quantity: int
    product_id: Optional[int] = None
    product_name: Optional[str] = None
    sku: Optional[str] = None
    rfid_uid: Optional[str] = None


class FillFromCellRequest(BaseModel):
    # Optional so a missing cell_id is reported as a 400, not a schema error.
    cell_id: Optional[int] = None
    # None or <= 0 means "everything in the cell".
    quantity: Optional[int] = None
