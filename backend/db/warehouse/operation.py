from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from ..database import Base

OP_PENDING = "PENDING"
OP_DONE = "DONE"
OP_ERROR = "ERROR"

OP_MOVE_TO_LOADING_ZONE = "MOVE_TO_LOADING_ZONE"
OP_AUTO_LOADING = "AUTO_LOADING"


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Operation(Base):
    __tablename__ = "operations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    op_type = Column(Text, nullable=False, index=True)

    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    cell_id = Column(Integer, ForeignKey("cells.id", ondelete="SET NULL"), nullable=True, index=True)
    loading_slot_id = Column(Integer, ForeignKey("loading_slots.id", ondelete="SET NULL"), nullable=True, index=True)

    cmd = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default=OP_PENDING, index=True)  # PENDING | DONE | ERROR
    error_message = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    completed_at = Column(DateTime, nullable=True)

    product = relationship("Product")
    cell = relationship("Cell")
    loading_slot = relationship("LoadingSlot")
