"""
Seed a small demo warehouse: one store with racks/shelves, a few parts, one
kit recipe and some starting stock (parts split over two shelves so
break-kit redistribution is visible).

Run locally:
  python backend/scripts/seed_demo_data.py

Uses DATABASE_URL like the backend. Safe to re-run: existing rows are kept.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.log_config import setup_logging
from db.database import build_engine, build_session_maker, create_db_and_tables
from db.inventory.record import InventoryRecord
from db.item import Item, KitComponent
from db.store import Rack, Shelf, Store

logger = logging.getLogger("seed_demo_data")


@dataclass(frozen=True)
class SeedPart:
    name: str
    part_number: str
    # (rack_number, shelf_number, quantity)
    stock: tuple = ()


STORE_NAME = "Main Store"
RACKS = {"R1": ["S1", "S2"], "R2": ["S1"]}

SEED_PARTS: list[SeedPart] = [
    SeedPart(name="Oil Filter", part_number="OF-100", stock=(("R1", "S1", 12), ("R2", "S1", 8))),
    SeedPart(name="Gasket", part_number="GK-220", stock=(("R1", "S2", 30),)),
    SeedPart(name="Drain Plug", part_number="DP-015", stock=(("R1", "S1", 5),)),
]

KIT_NAME = "Service Kit A"
KIT_RECIPE = {"OF-100": 1, "GK-220": 2, "DP-015": 1}


async def _get_or_create_store(db: AsyncSession) -> Store:
    res = await db.execute(select(Store).where(func.lower(Store.name) == STORE_NAME.lower()))
    store = res.scalar_one_or_none()
    if store:
        return store
    store = Store(name=STORE_NAME, is_active=True)
    db.add(store)
    await db.flush()
    return store


async def _placements(db: AsyncSession, store: Store) -> dict[tuple[str, str], tuple[int, int]]:
    out: dict[tuple[str, str], tuple[int, int]] = {}
    for rack_number, shelf_numbers in RACKS.items():
        res = await db.execute(select(Rack).where(Rack.store_id == store.id, Rack.rack_number == rack_number))
        rack = res.scalar_one_or_none()
        if not rack:
            rack = Rack(store_id=store.id, rack_number=rack_number, is_active=True)
            db.add(rack)
            await db.flush()
        for shelf_number in shelf_numbers:
            sres = await db.execute(select(Shelf).where(Shelf.rack_id == rack.id, Shelf.shelf_number == shelf_number))
            shelf = sres.scalar_one_or_none()
            if not shelf:
                shelf = Shelf(rack_id=rack.id, shelf_number=shelf_number, is_active=True)
                db.add(shelf)
                await db.flush()
            out[(rack_number, shelf_number)] = (rack.id, shelf.id)
    return out


async def _get_item(db: AsyncSession, part_number: str) -> Optional[Item]:
    res = await db.execute(select(Item).where(Item.part_number == part_number))
    return res.scalar_one_or_none()


async def main() -> None:
    setup_logging(settings.log_level)
    engine = build_engine(settings.database_url, echo=settings.database_echo)
    await create_db_and_tables(engine)
    session_maker = build_session_maker(engine)

    created_parts = 0
    created_stock = 0
    try:
        async with session_maker() as db:
            store = await _get_or_create_store(db)
            placements = await _placements(db, store)

            parts_by_number: dict[str, Item] = {}
            for p in SEED_PARTS:
                item = await _get_item(db, p.part_number)
                if not item:
                    item = Item(name=p.name, part_number=p.part_number, item_type="PART", is_active=True)
                    db.add(item)
                    await db.flush()
                    created_parts += 1

                    for rack_number, shelf_number, qty in p.stock:
                        rack_id, shelf_id = placements[(rack_number, shelf_number)]
                        db.add(
                            InventoryRecord(
                                item_id=item.id,
                                store_id=store.id,
                                rack_id=rack_id,
                                shelf_id=shelf_id,
                                quantity=qty,
                            )
                        )
                        created_stock += 1
                parts_by_number[p.part_number] = item

            res = await db.execute(select(Item).where(Item.item_type == "KIT", Item.name == KIT_NAME))
            if not res.scalar_one_or_none():
                kit = Item(name=KIT_NAME, part_number="KIT-A", item_type="KIT", is_active=True)
                db.add(kit)
                await db.flush()
                for part_number, qty in KIT_RECIPE.items():
                    db.add(KitComponent(kit_id=kit.id, child_item_id=parts_by_number[part_number].id, quantity=qty))

            await db.commit()
    finally:
        await engine.dispose()

    logger.info("done. parts created: %d, stock rows created: %d", created_parts, created_stock)


if __name__ == "__main__":
    asyncio.run(main())
