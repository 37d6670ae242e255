"""
Router FastAPI per l'entità ProductUnit
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from crono_rentals.core.config import settings
from crono_rentals.core.database import get_db
from crono_rentals.core.deps import get_current_user
from crono_rentals.models.product import ProductType
from crono_rentals.models.product_unit import ProductUnitStatus
from crono_rentals.schemas.common import ActiveFilter, PaginationMeta
from crono_rentals.schemas.product_unit import (
    ProductUnitCreate,
    ProductUnitList,
    ProductUnitRead,
    ProductUnitStatusUpdate,
    ProductUnitUpdate,
)
from crono_rentals.services.product_unit_service import product_unit_service

router = APIRouter(
    prefix="/product-units",
    tags=["Unità prodotto"],
    dependencies=[Depends(get_current_user)],
)


@router.get("/", response_model=ProductUnitList)
async def get_product_units(
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    type: Optional[ProductType] = Query(None),
    status_filter: Optional[ProductUnitStatus] = Query(None, alias="status"),
    active: ActiveFilter = Query(ActiveFilter.TRUE),
    db: AsyncSession = Depends(get_db),
) -> ProductUnitList:
    units, total = await product_unit_service.get_all(
        db,
        page=page,
        page_size=page_size,
        type=type,
        status=status_filter,
        active=active,
    )
    return ProductUnitList(
        data=[ProductUnitRead.model_validate(u) for u in units],
        meta=PaginationMeta.build(total=total, page=page, page_size=page_size),
    )


@router.get("/serial/{serial_number}", response_model=ProductUnitRead)
async def get_product_unit_by_serial(serial_number: str, db: AsyncSession = Depends(get_db)):
    return await product_unit_service.get_by_serial(db, serial_number)


@router.get("/{unit_id}", response_model=ProductUnitRead)
async def get_product_unit(unit_id: int, db: AsyncSession = Depends(get_db)):
    return await product_unit_service.get_by_id(db, unit_id)


@router.post("/", response_model=ProductUnitRead, status_code=status.HTTP_201_CREATED)
async def create_product_unit(data: ProductUnitCreate, db: AsyncSession = Depends(get_db)):
    unit = await product_unit_service.create(db, data)
    await db.commit()
    return unit


@router.patch("/{unit_id}", response_model=ProductUnitRead)
async def update_product_unit(
    unit_id: int,
    data: ProductUnitUpdate,
    db: AsyncSession = Depends(get_db),
):
    unit = await product_unit_service.update(db, unit_id, data)
    await db.commit()
    return unit


@router.patch("/{unit_id}/status", response_model=ProductUnitRead)
async def update_product_unit_status(
    unit_id: int,
    data: ProductUnitStatusUpdate,
    db: AsyncSession = Depends(get_db),
):
    unit = await product_unit_service.update_status(db, unit_id, data.status)
    await db.commit()
    return unit


@router.delete("/{unit_id}", response_model=ProductUnitRead)
async def delete_product_unit(unit_id: int, db: AsyncSession = Depends(get_db)):
    """Soft delete."""
    unit = await product_unit_service.delete(db, unit_id)
    await db.commit()
    return unit


@router.patch("/{unit_id}/reactivate", response_model=ProductUnitRead)
async def reactivate_product_unit(unit_id: int, db: AsyncSession = Depends(get_db)):
    unit = await product_unit_service.reactivate(db, unit_id)
    await db.commit()
    return unit
