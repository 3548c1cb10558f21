"""
Domain errors raised by the inventory services.

Each error carries the HTTP status the routers answer with; the message is
meant to be shown to the user as-is.
"""

from typing import Optional

from fastapi import status


class InventoryError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class KitNotFoundError(InventoryError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, kit_id: int):
        super().__init__("Kit not found")
        self.kit_id = kit_id


class StoreNotFoundError(InventoryError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, store_id: int):
        super().__init__("Store not found")
        self.store_id = store_id


class EmptyKitError(InventoryError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, kit_id: int):
        super().__init__("Kit has no components")
        self.kit_id = kit_id


class InsufficientStockError(InventoryError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(
        self,
        message: str,
        *,
        item_id: int,
        required: int,
        available: int,
        item_name: Optional[str] = None,
    ):
        super().__init__(message)
        self.item_id = item_id
        self.item_name = item_name
        self.required = required
        self.available = available


class MissingPlacementError(InventoryError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, store_id: int):
        super().__init__("No default rack/shelf found for the store")
        self.store_id = store_id


class KitExistsError(InventoryError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, name: str):
        super().__init__("Kit already exists")
        self.name = name


class KitInUseError(InventoryError):
    """Kit still has stock records or flow history and cannot be deleted."""
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, kit_id: int):
        super().__init__("Kit has inventory or flow history and cannot be deleted")
        self.kit_id = kit_id


class InvalidKitError(InventoryError):
    status_code = status.HTTP_400_BAD_REQUEST
