"""
Typed predicates for inventory record queries.

Query parameters are turned into a list of these at the HTTP boundary, so the
query layer only ever sees validated, known filters.
"""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter


ItemType = Literal["PART", "KIT"]


class ItemFilter(BaseModel):
    kind: Literal["item"] = "item"
    item_id: int


class StoreFilter(BaseModel):
    kind: Literal["store"] = "store"
    store_id: int


class RackFilter(BaseModel):
    kind: Literal["rack"] = "rack"
    rack_id: int


class ShelfFilter(BaseModel):
    kind: Literal["shelf"] = "shelf"
    shelf_id: int


class ItemTypeFilter(BaseModel):
    kind: Literal["item_type"] = "item_type"
    item_type: ItemType


InventoryFilter = Annotated[
    Union[ItemFilter, StoreFilter, RackFilter, ShelfFilter, ItemTypeFilter],
    Field(discriminator="kind"),
]

inventory_filters_adapter = TypeAdapter(List[InventoryFilter])


def inventory_filters_from_query(
    item_id: Optional[int] = None,
    store_id: Optional[int] = None,
    rack_id: Optional[int] = None,
    shelf_id: Optional[int] = None,
    item_type: Optional[str] = None,
) -> List[InventoryFilter]:
    raw = []
    if item_id is not None:
        raw.append({"kind": "item", "item_id": item_id})
    if store_id is not None:
        raw.append({"kind": "store", "store_id": store_id})
    if rack_id is not None:
        raw.append({"kind": "rack", "rack_id": rack_id})
    if shelf_id is not None:
        raw.append({"kind": "shelf", "shelf_id": shelf_id})
    if item_type:
        raw.append({"kind": "item_type", "item_type": item_type.strip().upper()})
    return inventory_filters_adapter.validate_python(raw)
