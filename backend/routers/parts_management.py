import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import InventoryError
from db.database import get_async_session
from schemas.common import MAX_ID
from schemas.filters import inventory_filters_from_query
from schemas.kits import BreakKitRequest, MakeKitRequest
from services.inventory_query import list_inventory_flows, list_inventory_records
from services.kit_allocator import BREAK_KIT_REASON, MAKE_KIT_REASON, break_kit, make_kit, view_kit

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/viewKits", response_model=Dict)
async def view_kits(
    id: int = Query(..., gt=0, le=MAX_ID),
    store_id: int = Query(..., gt=0, le=MAX_ID),
    db: AsyncSession = Depends(get_async_session),
):
    """Kit recipe annotated with on-hand quantities at the store."""
    try:
        kit_recipe = await view_kit(db, id, store_id)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return {"kitRecipe": kit_recipe}


@router.post("/makeKit", response_model=Dict)
async def make_kit_route(
    payload: MakeKitRequest,
    db: AsyncSession = Depends(get_async_session),
):
    """
    Build `in_flow` kits at a store from its component stock.

    All deductions, the kit credit and the flow log entry commit together or
    not at all.
    """
    try:
        result = await make_kit(db, payload.kit_id, payload.store_id, payload.in_flow)
        await db.commit()
    except InventoryError as e:
        await db.rollback()
        logger.warning("make_kit rejected kit=%s store=%s: %s", payload.kit_id, payload.store_id, e.message)
        raise HTTPException(status_code=e.status_code, detail=f"Failed to create kit: {e.message}")
    except Exception:
        await db.rollback()
        logger.exception("make_kit failed kit=%s store=%s", payload.kit_id, payload.store_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create kit")

    return {
        "status": "ok",
        "message": "Kit created successfully",
        "kit_stock": result.to_dict(),
    }


@router.post("/breakKit", response_model=Dict)
async def break_kit_route(
    payload: BreakKitRequest,
    db: AsyncSession = Depends(get_async_session),
):
    """Break `out_flow` kits at a store back into their components."""
    try:
        result = await break_kit(db, payload.kit_id, payload.store_id, payload.out_flow)
        await db.commit()
    except InventoryError as e:
        await db.rollback()
        logger.warning("break_kit rejected kit=%s store=%s: %s", payload.kit_id, payload.store_id, e.message)
        raise HTTPException(status_code=e.status_code, detail=f"Failed to break kit: {e.message}")
    except Exception:
        await db.rollback()
        logger.exception("break_kit failed kit=%s store=%s", payload.kit_id, payload.store_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to break kit")

    return {
        "status": "ok",
        "message": "Kit broken successfully",
        "kit_stock": result.to_dict(),
    }


@router.get("/getItemsInventory", response_model=List[Dict])
async def get_items_inventory(
    item_id: Optional[int] = Query(None, gt=0, le=MAX_ID),
    store_id: Optional[int] = Query(None, gt=0, le=MAX_ID),
    rack_id: Optional[int] = Query(None, gt=0, le=MAX_ID),
    shelf_id: Optional[int] = Query(None, gt=0, le=MAX_ID),
    item_type: Optional[str] = None,
    db: AsyncSession = Depends(get_async_session),
):
    try:
        filters = inventory_filters_from_query(
            item_id=item_id,
            store_id=store_id,
            rack_id=rack_id,
            shelf_id=shelf_id,
            item_type=item_type,
        )
    except ValidationError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="item_type must be PART or KIT")
    return await list_inventory_records(db, filters)


@router.get("/inventoryFlows", response_model=List[Dict])
async def get_inventory_flows(
    item_id: Optional[int] = Query(None, gt=0, le=MAX_ID),
    store_id: Optional[int] = Query(None, gt=0, le=MAX_ID),
    reason: Optional[str] = None,
    db: AsyncSession = Depends(get_async_session),
):
    if reason and reason not in (MAKE_KIT_REASON, BREAK_KIT_REASON):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"reason must be {MAKE_KIT_REASON} or {BREAK_KIT_REASON}",
        )
    return await list_inventory_flows(db, item_id=item_id, store_id=store_id, reason=reason)
