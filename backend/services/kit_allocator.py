"""
Kit assembly / disassembly against multi-location stock.

make_kit consumes component stock at one store and credits the kit item;
break_kit does the reverse, spreading returned component units over the
component's existing shelf records in proportion to what each already holds.

Both operations only read and write through the session they are given. The
caller owns the transaction: commit on success, roll back on any exception.
Records are always processed in ascending id order (insertion order).
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.errors import (
    EmptyKitError,
    InsufficientStockError,
    KitNotFoundError,
    MissingPlacementError,
    StoreNotFoundError,
)
from db.inventory.flow import InventoryFlow
from db.inventory.record import InventoryRecord
from db.item import Item, KitComponent
from db.store import Rack, Shelf, Store

logger = logging.getLogger(__name__)

MAKE_KIT_REASON = "make_kit"
BREAK_KIT_REASON = "break_kit"


@dataclass
class ComponentMovement:
    item_id: int
    name: str
    change: int
    # (record id, delta) per touched record
    records: List[Tuple[int, int]] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "item_id": self.item_id,
            "name": self.name,
            "change": self.change,
            "records": [{"id": rid, "change": delta} for rid, delta in self.records],
        }


@dataclass
class KitStockResult:
    kit_id: int
    store_id: int
    quantity: int
    change: int
    components: List[ComponentMovement] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "kit_id": self.kit_id,
            "store_id": self.store_id,
            "quantity": self.quantity,
            "change": self.change,
            "components": [c.to_dict() for c in self.components],
        }


def plan_consumption(records: Sequence, amount: int) -> List[Tuple[object, int]]:
    """Greedy take from records in the order given until `amount` is covered."""
    if amount < 0:
        raise ValueError("amount must be >= 0")
    available = sum(int(r.quantity or 0) for r in records)
    if available < amount:
        raise ValueError(f"cannot take {amount} from records holding {available}")

    plan = []
    remaining = amount
    for r in records:
        if remaining <= 0:
            break
        take = min(int(r.quantity or 0), remaining)
        if take <= 0:
            continue
        plan.append((r, take))
        remaining -= take
    return plan


def plan_redistribution(records: Sequence, amount: int) -> List[Tuple[object, int]]:
    """
    Split `amount` over records by their current share of the total.

    Every record but the last gets floor(amount * share); the last one takes
    whatever is left so the plan always sums to `amount`. With an all-zero
    total the split is even. No records gives an empty plan.
    """
    if amount < 0:
        raise ValueError("amount must be >= 0")
    if not records:
        return []
    if len(records) == 1:
        return [(records[0], amount)]

    total = sum(int(r.quantity or 0) for r in records)
    n = len(records)
    plan = []
    allocated = 0
    for r in records[:-1]:
        if total > 0:
            share = amount * int(r.quantity or 0) // total
        else:
            share = amount // n
        plan.append((r, share))
        allocated += share
    plan.append((records[-1], amount - allocated))
    return plan


async def find_default_placement(db: AsyncSession, store_id: int) -> Tuple[Rack, Shelf]:
    """Lowest-id active rack of the store that has an active shelf, and its first shelf."""
    res = await db.execute(
        select(Rack, Shelf)
        .join(Shelf, Shelf.rack_id == Rack.id)
        .where(
            Rack.store_id == store_id,
            Rack.is_active == True,  # noqa: E712
            Shelf.is_active == True,  # noqa: E712
        )
        .order_by(Rack.id.asc(), Shelf.id.asc())
        .limit(1)
    )
    row = res.first()
    if not row:
        raise MissingPlacementError(store_id)
    return row[0], row[1]


class _Placement:
    """Resolves the store's default rack/shelf at most once per operation."""

    def __init__(self, db: AsyncSession, store_id: int):
        self.db = db
        self.store_id = store_id
        self._value: Optional[Tuple[Rack, Shelf]] = None

    async def get(self) -> Tuple[Rack, Shelf]:
        if self._value is None:
            self._value = await find_default_placement(self.db, self.store_id)
        return self._value

    async def new_record(self, item_id: int, quantity: int) -> InventoryRecord:
        rack, shelf = await self.get()
        rec = InventoryRecord(
            item_id=item_id,
            store_id=self.store_id,
            rack_id=rack.id,
            shelf_id=shelf.id,
            quantity=quantity,
        )
        self.db.add(rec)
        await self.db.flush()
        logger.debug(
            "created inventory record %s item=%s store=%s rack=%s shelf=%s qty=%s",
            rec.id, item_id, self.store_id, rack.id, shelf.id, quantity,
        )
        return rec


async def _load_kit(db: AsyncSession, kit_id: int) -> Item:
    res = await db.execute(
        select(Item)
        .options(selectinload(Item.components).selectinload(KitComponent.child_item))
        .where(Item.id == kit_id)
    )
    kit = res.scalar_one_or_none()
    if not kit or not kit.is_kit:
        raise KitNotFoundError(kit_id)
    return kit


async def _ensure_store(db: AsyncSession, store_id: int) -> Store:
    res = await db.execute(select(Store).where(Store.id == store_id))
    store = res.scalar_one_or_none()
    if not store:
        raise StoreNotFoundError(store_id)
    return store


async def _records_by_item(
    db: AsyncSession, item_ids: List[int], store_id: int
) -> Dict[int, List[InventoryRecord]]:
    out: Dict[int, List[InventoryRecord]] = {item_id: [] for item_id in item_ids}
    if not item_ids:
        return out
    res = await db.execute(
        select(InventoryRecord)
        .where(InventoryRecord.item_id.in_(item_ids), InventoryRecord.store_id == store_id)
        .order_by(InventoryRecord.id.asc())
    )
    for rec in res.scalars().all():
        out[rec.item_id].append(rec)
    return out


def _on_hand(records: Sequence[InventoryRecord]) -> int:
    return sum(int(r.quantity or 0) for r in records)


def _check_quantity(quantity: int) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValueError("quantity must be a positive integer")
    return quantity


async def make_kit(db: AsyncSession, kit_id: int, store_id: int, quantity: int) -> KitStockResult:
    """Assemble `quantity` kits at a store from its component stock."""
    _check_quantity(quantity)
    kit = await _load_kit(db, kit_id)
    if not kit.components:
        raise EmptyKitError(kit_id)
    await _ensure_store(db, store_id)

    components = list(kit.components)
    records = await _records_by_item(db, [c.child_item_id for c in components], store_id)

    # Validate everything before the first write
    for comp in components:
        required = int(comp.quantity) * quantity
        available = _on_hand(records[comp.child_item_id])
        if available < required:
            name = comp.child_item.name if comp.child_item else str(comp.child_item_id)
            raise InsufficientStockError(
                f"Insufficient quantity for {name}",
                item_id=comp.child_item_id,
                item_name=name,
                required=required,
                available=available,
            )

    movements: List[ComponentMovement] = []
    for comp in components:
        required = int(comp.quantity) * quantity
        movement = ComponentMovement(
            item_id=comp.child_item_id,
            name=comp.child_item.name if comp.child_item else str(comp.child_item_id),
            change=-required,
        )
        for rec, take in plan_consumption(records[comp.child_item_id], required):
            rec.quantity = int(rec.quantity) - take
            movement.records.append((rec.id, -take))
            logger.debug("make_kit: record %s item=%s -%s", rec.id, rec.item_id, take)
        movements.append(movement)

    placement = _Placement(db, store_id)
    kit_records = (await _records_by_item(db, [kit_id], store_id))[kit_id]
    if kit_records:
        target = kit_records[0]
        target.quantity = int(target.quantity) + quantity
    else:
        kit_records = [await placement.new_record(kit_id, quantity)]

    db.add(
        InventoryFlow(
            item_id=kit_id,
            store_id=store_id,
            in_flow=quantity,
            out_flow=0,
            reason=MAKE_KIT_REASON,
        )
    )
    await db.flush()

    on_hand = _on_hand(kit_records)
    logger.info("make_kit kit=%s store=%s quantity=%s kit_on_hand=%s", kit_id, store_id, quantity, on_hand)
    return KitStockResult(
        kit_id=kit_id,
        store_id=store_id,
        quantity=on_hand,
        change=quantity,
        components=movements,
    )


async def break_kit(db: AsyncSession, kit_id: int, store_id: int, quantity: int) -> KitStockResult:
    """Disassemble `quantity` kits at a store back into component stock."""
    _check_quantity(quantity)
    kit = await _load_kit(db, kit_id)
    if not kit.components:
        raise EmptyKitError(kit_id)
    await _ensure_store(db, store_id)

    kit_records = (await _records_by_item(db, [kit_id], store_id))[kit_id]
    available = _on_hand(kit_records)
    if available < quantity:
        raise InsufficientStockError(
            "Insufficient kit quantity available",
            item_id=kit_id,
            item_name=kit.name,
            required=quantity,
            available=available,
        )

    for rec, take in plan_consumption(kit_records, quantity):
        rec.quantity = int(rec.quantity) - take
        logger.debug("break_kit: kit record %s -%s", rec.id, take)

    components = list(kit.components)
    records = await _records_by_item(db, [c.child_item_id for c in components], store_id)
    placement = _Placement(db, store_id)

    movements: List[ComponentMovement] = []
    for comp in components:
        return_quantity = int(comp.quantity) * quantity
        movement = ComponentMovement(
            item_id=comp.child_item_id,
            name=comp.child_item.name if comp.child_item else str(comp.child_item_id),
            change=return_quantity,
        )
        existing = records[comp.child_item_id]
        if existing:
            # shares are computed from quantities before any credit is applied
            for rec, add in plan_redistribution(existing, return_quantity):
                if add <= 0:
                    continue
                rec.quantity = int(rec.quantity) + add
                movement.records.append((rec.id, add))
                logger.debug("break_kit: record %s item=%s +%s", rec.id, rec.item_id, add)
        else:
            rec = await placement.new_record(comp.child_item_id, return_quantity)
            movement.records.append((rec.id, return_quantity))
        movements.append(movement)

    db.add(
        InventoryFlow(
            item_id=kit_id,
            store_id=store_id,
            in_flow=0,
            out_flow=quantity,
            reason=BREAK_KIT_REASON,
        )
    )
    await db.flush()

    on_hand = _on_hand(kit_records)
    logger.info("break_kit kit=%s store=%s quantity=%s kit_on_hand=%s", kit_id, store_id, quantity, on_hand)
    return KitStockResult(
        kit_id=kit_id,
        store_id=store_id,
        quantity=on_hand,
        change=-quantity,
        components=movements,
    )


async def view_kit(db: AsyncSession, kit_id: int, store_id: int) -> dict:
    """Kit recipe with on-hand quantities at a store, for display before make/break."""
    kit = await _load_kit(db, kit_id)
    await _ensure_store(db, store_id)

    components = list(kit.components)
    item_ids = [c.child_item_id for c in components] + [kit_id]
    records = await _records_by_item(db, item_ids, store_id)

    lines = []
    for comp in components:
        existing = _on_hand(records[comp.child_item_id])
        per_kit = int(comp.quantity)
        lines.append(
            {
                **comp.to_schema,
                "existing_quantity": existing,
                "buildable": existing // per_kit if per_kit > 0 else 0,
            }
        )

    return {
        **kit.to_schema,
        "store_id": store_id,
        "components": lines,
        "existing_kit_quantity": _on_hand(records[kit_id]),
        "max_buildable": min((line["buildable"] for line in lines), default=0),
    }
