from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from ..database import Base


class Cell(Base):
    __tablename__ = "cells"
    __table_args__ = (UniqueConstraint("row_num", "col_num", name="ux_cells_row_col"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    row_num = Column(Integer, nullable=False)
    col_num = Column(Integer, nullable=False)
    label = Column(String, nullable=True)

    stock = relationship("CellStock", back_populates="cell", uselist=False, cascade="all, delete-orphan")


class CellStock(Base):
    """At most one product per cell. A row never exists with quantity 0."""
    __tablename__ = "cell_products"
    __table_args__ = (CheckConstraint("quantity > 0", name="ck_cell_products_quantity_positive"),)

    cell_id = Column(Integer, ForeignKey("cells.id", ondelete="CASCADE"), primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)

    cell = relationship("Cell", back_populates="stock")
    product = relationship("Product")
