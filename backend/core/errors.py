from fastapi import status


class WarehouseError(Exception):
    """Base error for warehouse operations. Carries the HTTP status it maps to."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class InvalidRequest(WarehouseError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(WarehouseError):
    status_code = status.HTTP_404_NOT_FOUND


class EmptyCell(WarehouseError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, cell_id: int):
        super().__init__("Cell is empty")
        self.cell_id = cell_id


class InsufficientQuantity(WarehouseError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, cell_id: int, available: int, requested: int):
        super().__init__(
            f"Not enough quantity in cell. Available={available} requested={requested}"
        )
        self.cell_id = cell_id
        self.available = available
        self.requested = requested


class ModeRejected(WarehouseError):
    status_code = status.HTTP_403_FORBIDDEN


class RegistrationRejected(WarehouseError):
    status_code = status.HTTP_403_FORBIDDEN


class ActuatorUnreachable(WarehouseError):
    # Never surfaced over HTTP: the gateway folds it into a failed DispatchResult.
    status_code = status.HTTP_502_BAD_GATEWAY


class StoreFailure(WarehouseError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
