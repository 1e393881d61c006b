from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.sql import func

from ..database import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False, index=True)
    sku = Column(String, nullable=True, index=True)
    rfid_uid = Column(String, nullable=True, index=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "name": self.name,
            "sku": self.sku,
            "rfid_uid": self.rfid_uid,
        }
