from typing import List, Optional, Sequence

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from db.inventory.flow import InventoryFlow
from db.inventory.record import InventoryRecord
from db.item import Item
from schemas.filters import (
    InventoryFilter,
    ItemFilter,
    ItemTypeFilter,
    RackFilter,
    ShelfFilter,
    StoreFilter,
)


def apply_inventory_filters(stmt: Select, filters: Sequence[InventoryFilter]) -> Select:
    joined_item = False
    for f in filters:
        if isinstance(f, ItemFilter):
            stmt = stmt.where(InventoryRecord.item_id == f.item_id)
        elif isinstance(f, StoreFilter):
            stmt = stmt.where(InventoryRecord.store_id == f.store_id)
        elif isinstance(f, RackFilter):
            stmt = stmt.where(InventoryRecord.rack_id == f.rack_id)
        elif isinstance(f, ShelfFilter):
            stmt = stmt.where(InventoryRecord.shelf_id == f.shelf_id)
        elif isinstance(f, ItemTypeFilter):
            if not joined_item:
                stmt = stmt.join(Item, InventoryRecord.item_id == Item.id)
                joined_item = True
            stmt = stmt.where(Item.item_type == f.item_type)
        else:
            raise TypeError(f"unsupported inventory filter: {f!r}")
    return stmt


async def list_inventory_records(db: AsyncSession, filters: Sequence[InventoryFilter]) -> List[dict]:
    stmt = select(InventoryRecord).options(
        selectinload(InventoryRecord.item),
        selectinload(InventoryRecord.rack),
        selectinload(InventoryRecord.shelf),
    )
    stmt = apply_inventory_filters(stmt, filters).order_by(InventoryRecord.id.asc())
    res = await db.execute(stmt)

    out = []
    for rec in res.scalars().all():
        out.append(
            {
                "id": rec.id,
                "quantity": int(rec.quantity or 0),
                "item": {
                    "id": rec.item_id,
                    "name": rec.item.name if rec.item else None,
                    "part_number": rec.item.part_number if rec.item else None,
                    "item_type": rec.item.item_type if rec.item else None,
                },
                "store_id": rec.store_id,
                "rack": {"id": rec.rack_id, "rack_number": rec.rack.rack_number if rec.rack else None},
                "shelf": {"id": rec.shelf_id, "shelf_number": rec.shelf.shelf_number if rec.shelf else None},
            }
        )
    return out


async def list_inventory_flows(
    db: AsyncSession,
    item_id: Optional[int] = None,
    store_id: Optional[int] = None,
    reason: Optional[str] = None,
) -> List[dict]:
    stmt = select(InventoryFlow)
    if item_id is not None:
        stmt = stmt.where(InventoryFlow.item_id == item_id)
    if store_id is not None:
        stmt = stmt.where(InventoryFlow.store_id == store_id)
    if reason:
        stmt = stmt.where(InventoryFlow.reason == reason)
    res = await db.execute(stmt.order_by(InventoryFlow.id.desc()))
    return [f.to_schema for f in res.scalars().all()]
