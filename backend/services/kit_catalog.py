"""Kit recipe definitions (which parts, how many of each)."""

import logging
from typing import List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.errors import InvalidKitError, KitExistsError, KitInUseError, KitNotFoundError
from db.inventory.flow import InventoryFlow
from db.inventory.record import InventoryRecord
from db.item import Item, KitComponent
from schemas.kits import KitCreate

logger = logging.getLogger(__name__)


def kit_to_schema(kit: Item) -> dict:
    return {
        **kit.to_schema,
        "components": [c.to_schema for c in kit.components],
    }


def _kits_query():
    return (
        select(Item)
        .options(selectinload(Item.components).selectinload(KitComponent.child_item))
        .where(Item.item_type == "KIT")
    )


async def list_kits(db: AsyncSession) -> List[dict]:
    res = await db.execute(_kits_query().order_by(func.lower(Item.name).asc(), Item.id.asc()))
    return [kit_to_schema(k) for k in res.scalars().all()]


async def get_kit(db: AsyncSession, kit_id: int) -> dict:
    res = await db.execute(
        _kits_query().where(Item.id == kit_id).execution_options(populate_existing=True)
    )
    kit = res.scalar_one_or_none()
    if not kit:
        raise KitNotFoundError(kit_id)
    return kit_to_schema(kit)


async def create_kit(db: AsyncSession, payload: KitCreate) -> dict:
    """Create a kit item with its recipe. Does not commit."""
    existing = await db.execute(
        select(Item).where(Item.item_type == "KIT", func.lower(Item.name) == payload.name.lower())
    )
    if existing.scalar_one_or_none():
        raise KitExistsError(payload.name)

    item_ids = [c.item_id for c in payload.components]
    res = await db.execute(select(Item).where(Item.id.in_(item_ids)))
    by_id = {it.id: it for it in res.scalars().all()}

    missing = [i for i in item_ids if i not in by_id]
    if missing:
        raise InvalidKitError(f"Items not found: {', '.join(str(i) for i in missing)}")
    for it in by_id.values():
        if it.item_type != "PART":
            raise InvalidKitError(f"Kit components must be parts ({it.name} is a {it.item_type.lower()})")
        if not it.is_active:
            raise InvalidKitError(f"{it.name} is inactive")

    kit = Item(
        name=payload.name,
        part_number=payload.part_number,
        description=payload.description,
        item_type="KIT",
        is_active=True,
    )
    db.add(kit)
    await db.flush()  # Flush to get the ID

    for c in payload.components:
        db.add(KitComponent(kit_id=kit.id, child_item_id=c.item_id, quantity=c.quantity))
    await db.flush()

    logger.info("created kit %s (%s) with %d components", kit.id, kit.name, len(payload.components))
    return await get_kit(db, kit.id)


async def delete_kit(db: AsyncSession, kit_id: int) -> None:
    """
    Delete a kit and its recipe. Does not commit.

    Refused while any stock record or flow entry references the kit.
    """
    res = await db.execute(
        select(Item)
        .options(selectinload(Item.components), selectinload(Item.inventories))
        .where(Item.id == kit_id, Item.item_type == "KIT")
    )
    kit = res.scalar_one_or_none()
    if not kit:
        raise KitNotFoundError(kit_id)

    records = await db.execute(select(InventoryRecord.id).where(InventoryRecord.item_id == kit_id).limit(1))
    flows = await db.execute(select(InventoryFlow.id).where(InventoryFlow.item_id == kit_id).limit(1))
    if records.first() is not None or flows.first() is not None:
        raise KitInUseError(kit_id)

    await db.delete(kit)
    await db.flush()
    logger.info("deleted kit %s (%s)", kit_id, kit.name)
