"""
Router FastAPI per l'entità Product
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)

CRUD dei prodotti a quantità e movimenti di magazzino
(carico, dismissione, riparazione).
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from crono_rentals.core.config import settings
from crono_rentals.core.database import get_db
from crono_rentals.core.deps import get_current_user
from crono_rentals.models.product import ProductType
from crono_rentals.schemas.common import ActiveFilter, PaginationMeta, QuantityRequest
from crono_rentals.schemas.product import ProductCreate, ProductList, ProductRead, ProductUpdate
from crono_rentals.services.product_service import product_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/products",
    tags=["Prodotti"],
    dependencies=[Depends(get_current_user)],
)


@router.get("/", response_model=ProductList)
async def get_products(
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    type: Optional[ProductType] = Query(None),
    active: ActiveFilter = Query(ActiveFilter.TRUE),
    db: AsyncSession = Depends(get_db),
) -> ProductList:
    """Lista paginata dei prodotti."""
    products, total = await product_service.get_all(
        db, page=page, page_size=page_size, type=type, active=active
    )
    return ProductList(
        data=[ProductRead.model_validate(p) for p in products],
        meta=PaginationMeta.build(total=total, page=page, page_size=page_size),
    )


@router.get("/{product_id}", response_model=ProductRead)
async def get_product(product_id: int, db: AsyncSession = Depends(get_db)):
    return await product_service.get_by_id(db, product_id)


@router.post("/", response_model=ProductRead, status_code=status.HTTP_201_CREATED)
async def create_product(data: ProductCreate, db: AsyncSession = Depends(get_db)):
    """Crea un prodotto; la quantità iniziale è tutta disponibile."""
    product = await product_service.create(db, data)
    await db.commit()
    return product


@router.patch("/{product_id}", response_model=ProductRead)
async def update_product(product_id: int, data: ProductUpdate, db: AsyncSession = Depends(get_db)):
    product = await product_service.update(db, product_id, data)
    await db.commit()
    return product


@router.delete("/{product_id}", response_model=ProductRead)
async def delete_product(product_id: int, db: AsyncSession = Depends(get_db)):
    """Soft delete."""
    product = await product_service.delete(db, product_id)
    await db.commit()
    return product


@router.patch("/{product_id}/reactivate", response_model=ProductRead)
async def reactivate_product(product_id: int, db: AsyncSession = Depends(get_db)):
    product = await product_service.reactivate(db, product_id)
    await db.commit()
    return product


# -------------------------------------------------------------------
# Movimenti di magazzino
# -------------------------------------------------------------------

@router.post("/{product_id}/add-stock", response_model=ProductRead)
async def add_stock(product_id: int, data: QuantityRequest, db: AsyncSession = Depends(get_db)):
    """Carico: aumenta totale e disponibile."""
    product = await product_service.add_stock(db, product_id, data.quantity)
    await db.commit()
    return product


@router.post("/{product_id}/retire", response_model=ProductRead)
async def retire_stock(product_id: int, data: QuantityRequest, db: AsyncSession = Depends(get_db)):
    """Dismissione: riduce totale e disponibile."""
    product = await product_service.retire(db, product_id, data.quantity)
    await db.commit()
    return product


@router.post("/{product_id}/send-to-repair", response_model=ProductRead)
async def send_to_repair(product_id: int, data: QuantityRequest, db: AsyncSession = Depends(get_db)):
    product = await product_service.send_to_repair(db, product_id, data.quantity)
    await db.commit()
    return product


@router.post("/{product_id}/mark-repaired", response_model=ProductRead)
async def mark_repaired(product_id: int, data: QuantityRequest, db: AsyncSession = Depends(get_db)):
    product = await product_service.mark_repaired(db, product_id, data.quantity)
    await db.commit()
    return product
