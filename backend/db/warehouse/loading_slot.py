from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from ..database import Base

SLOT_EMPTY = "EMPTY"
SLOT_READY = "READY"
# Representable, not produced by any current operation.
SLOT_RESERVED = "RESERVED"

SLOT_STATUSES = (SLOT_EMPTY, SLOT_READY, SLOT_RESERVED)


class LoadingSlot(Base):
    __tablename__ = "loading_slots"
    __table_args__ = (
        CheckConstraint(
            "status IN (" + ", ".join(f"'{s}'" for s in SLOT_STATUSES) + ")",
            name="ck_loading_slots_status",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    slot_num = Column(Integer, nullable=False, unique=True)
    status = Column(Text, nullable=False, default=SLOT_EMPTY, index=True)  # EMPTY | READY | RESERVED
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    quantity = Column(Integer, nullable=False, default=0)

    product = relationship("Product")
