import logging
from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException, Path, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import InventoryError
from db.database import get_async_session
from schemas.common import MAX_ID
from schemas.kits import KitCreate
from services.kit_catalog import create_kit, delete_kit, get_kit, list_kits

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=List[Dict])
async def get_kits(db: AsyncSession = Depends(get_async_session)):
    """Get all kits with their recipes"""
    return await list_kits(db)


@router.get("/{kit_id}", response_model=Dict)
async def get_kit_by_id(
    kit_id: int = Path(..., gt=0, le=MAX_ID),
    db: AsyncSession = Depends(get_async_session),
):
    try:
        return await get_kit(db, kit_id)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/", response_model=Dict, status_code=status.HTTP_201_CREATED)
async def create_kit_route(payload: KitCreate, db: AsyncSession = Depends(get_async_session)):
    """Define a new kit and its recipe"""
    try:
        kit = await create_kit(db, payload)
        await db.commit()
        return kit
    except InventoryError as e:
        await db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        await db.rollback()
        logger.exception("create_kit failed name=%s", payload.name)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create kit")


@router.delete("/{kit_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_kit_route(
    kit_id: int = Path(..., gt=0, le=MAX_ID),
    db: AsyncSession = Depends(get_async_session),
):
    """Delete a kit that has never been stocked"""
    try:
        await delete_kit(db, kit_id)
        await db.commit()
    except InventoryError as e:
        await db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        await db.rollback()
        logger.exception("delete_kit failed kit=%s", kit_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete kit")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
