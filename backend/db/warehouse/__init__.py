"""
Warehouse inventory (storage grid + loading zone).

Models:
- Product (catalog entry, optionally tagged with an RFID uid)
- Cell / CellStock (grid location and the single product bound to it)
- LoadingSlot (outbound staging location: EMPTY | READY | RESERVED)
- Operation (ledger of relocation / actuator command attempts)
"""

from .product import Product
from .cell import Cell, CellStock
from .loading_slot import LoadingSlot
from .operation import Operation

__all__ = ["Product", "Cell", "CellStock", "LoadingSlot", "Operation"]
