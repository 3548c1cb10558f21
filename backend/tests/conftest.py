"""
Pytest fixtures: a throwaway SQLite database per test, an ASGI client bound to
it, and a small helper for building stores, parts, kits and stock.
"""
from typing import List, Optional, Sequence, Tuple

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select

from db.database import build_engine, build_session_maker, create_db_and_tables
from db.inventory.flow import InventoryFlow
from db.inventory.record import InventoryRecord
from db.item import Item, KitComponent
from db.store import Rack, Shelf, Store
from main import create_app


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await create_db_and_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return build_session_maker(engine)


@pytest_asyncio.fixture
async def client(session_maker):
    app = create_app()
    # ASGITransport does not run the lifespan, wire the test database directly
    app.state.session_maker = session_maker
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


class Warehouse:
    """Builds fixture data; every call commits in its own session."""

    def __init__(self, session_maker):
        self.session_maker = session_maker

    async def store(self, name: str = "Main", shelves: Sequence[int] = (1,)) -> Tuple[int, List[Tuple[int, int]]]:
        """Create a store with one rack per entry of `shelves` (entry = shelf count)."""
        async with self.session_maker() as db:
            store = Store(name=name, is_active=True)
            db.add(store)
            await db.flush()
            placements = []
            for i, n_shelves in enumerate(shelves, start=1):
                rack = Rack(store_id=store.id, rack_number=f"R{i}", is_active=True)
                db.add(rack)
                await db.flush()
                for j in range(1, n_shelves + 1):
                    shelf = Shelf(rack_id=rack.id, shelf_number=f"S{j}", is_active=True)
                    db.add(shelf)
                    await db.flush()
                    placements.append((rack.id, shelf.id))
            await db.commit()
            return store.id, placements

    async def part(self, name: str, is_active: bool = True) -> int:
        async with self.session_maker() as db:
            item = Item(name=name, part_number=name.upper(), item_type="PART", is_active=is_active)
            db.add(item)
            await db.commit()
            return item.id

    async def kit(self, name: str, recipe: Sequence[Tuple[int, int]]) -> int:
        async with self.session_maker() as db:
            kit = Item(name=name, item_type="KIT", is_active=True)
            db.add(kit)
            await db.flush()
            for child_id, qty in recipe:
                db.add(KitComponent(kit_id=kit.id, child_item_id=child_id, quantity=qty))
            await db.commit()
            return kit.id

    async def stock(self, item_id: int, store_id: int, placement: Tuple[int, int], quantity: int) -> int:
        rack_id, shelf_id = placement
        async with self.session_maker() as db:
            rec = InventoryRecord(
                item_id=item_id,
                store_id=store_id,
                rack_id=rack_id,
                shelf_id=shelf_id,
                quantity=quantity,
            )
            db.add(rec)
            await db.commit()
            return rec.id

    async def quantities(self, item_id: int, store_id: int) -> List[int]:
        async with self.session_maker() as db:
            res = await db.execute(
                select(InventoryRecord.quantity)
                .where(InventoryRecord.item_id == item_id, InventoryRecord.store_id == store_id)
                .order_by(InventoryRecord.id.asc())
            )
            return [int(q) for q in res.scalars().all()]

    async def records(self, item_id: int, store_id: int) -> List[InventoryRecord]:
        async with self.session_maker() as db:
            res = await db.execute(
                select(InventoryRecord)
                .where(InventoryRecord.item_id == item_id, InventoryRecord.store_id == store_id)
                .order_by(InventoryRecord.id.asc())
            )
            return list(res.scalars().all())

    async def flows(self, item_id: Optional[int] = None) -> List[InventoryFlow]:
        async with self.session_maker() as db:
            stmt = select(InventoryFlow).order_by(InventoryFlow.id.asc())
            if item_id is not None:
                stmt = stmt.where(InventoryFlow.item_id == item_id)
            res = await db.execute(stmt)
            return list(res.scalars().all())


@pytest.fixture
def warehouse(session_maker):
    return Warehouse(session_maker)


@pytest_asyncio.fixture
async def service_kit(warehouse):
    """
    Kit K = 2 x PartA + 1 x PartB at store S, PartA 10 and PartB 3 on hand,
    one rack with one shelf.
    """
    store_id, placements = await warehouse.store("S")
    part_a = await warehouse.part("PartA")
    part_b = await warehouse.part("PartB")
    kit_id = await warehouse.kit("K", [(part_a, 2), (part_b, 1)])
    await warehouse.stock(part_a, store_id, placements[0], 10)
    await warehouse.stock(part_b, store_id, placements[0], 3)
    return {
        "store_id": store_id,
        "placements": placements,
        "part_a": part_a,
        "part_b": part_b,
        "kit_id": kit_id,
    }
