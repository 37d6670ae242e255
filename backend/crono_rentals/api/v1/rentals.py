"""
Router FastAPI per l'entità Rental
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)

Creazione, rientro e annullamento dei noleggi sono transazioni
complete gestite dal service: gli endpoint relativi non eseguono commit.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from crono_rentals.core.config import settings
from crono_rentals.core.database import get_db
from crono_rentals.core.deps import get_current_user
from crono_rentals.models.rental import RentalStatus
from crono_rentals.schemas.common import PaginationMeta
from crono_rentals.schemas.rental import (
    ChipSequenceRange,
    RentalCreate,
    RentalList,
    RentalRead,
    RentalUpdate,
)
from crono_rentals.services.rental_service import rental_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/rentals",
    tags=["Noleggi"],
    dependencies=[Depends(get_current_user)],
)


@router.post(
    "/",
    response_model=RentalRead,
    status_code=status.HTTP_201_CREATED,
    summary="Crea noleggio",
)
async def create_rental(data: RentalCreate, db: AsyncSession = Depends(get_db)):
    """
    Crea un noleggio prenotando dispositivi, quantità di prodotto,
    unità e range di chip in un'unica transazione.

    Raises:
        NotFoundError: CLIENT_NOT_FOUND, DEVICE_NOT_FOUND, PRODUCT_NOT_FOUND,
            PRODUCT_UNIT_NOT_FOUND, CHIP_TYPE_NOT_FOUND
        BusinessValidationError: DEVICE_NOT_AVAILABLE_FOR_RENTAL,
            DEVICE_NOT_AVAILABLE, NOT_ENOUGH_PRODUCT_QUANTITY,
            PRODUCT_UNIT_NOT_AVAILABLE, INVALID_CHIP_RANGE
    """
    return await rental_service.create(db, data)


@router.get("/", response_model=RentalList, summary="Lista noleggi")
async def get_rentals(
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    status_filter: Optional[RentalStatus] = Query(None, alias="status"),
    client_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
) -> RentalList:
    """Lista paginata, dal noleggio più recente."""
    rentals, total = await rental_service.get_all(
        db,
        page=page,
        page_size=page_size,
        status=status_filter,
        client_id=client_id,
    )
    return RentalList(
        data=[RentalRead.model_validate(r) for r in rentals],
        meta=PaginationMeta.build(total=total, page=page, page_size=page_size),
    )


@router.get("/{rental_id}", response_model=RentalRead)
async def get_rental(rental_id: int, db: AsyncSession = Depends(get_db)):
    return await rental_service.get_by_id(db, rental_id)


@router.patch("/{rental_id}", response_model=RentalRead)
async def update_rental(rental_id: int, data: RentalUpdate, db: AsyncSession = Depends(get_db)):
    """Modifica date e note di un noleggio attivo."""
    await rental_service.update(db, rental_id, data)
    await db.commit()
    return await rental_service.get_by_id(db, rental_id)


@router.post("/{rental_id}/return", response_model=RentalRead)
async def return_rental(rental_id: int, db: AsyncSession = Depends(get_db)):
    """Rientro del materiale: stato RETURNED."""
    return await rental_service.return_rental(db, rental_id)


@router.post("/{rental_id}/cancel", response_model=RentalRead)
async def cancel_rental(rental_id: int, db: AsyncSession = Depends(get_db)):
    """Annullamento: stato CANCELLED."""
    return await rental_service.cancel_rental(db, rental_id)


@router.get("/{rental_id}/chip-sequence", response_model=list[ChipSequenceRange])
async def get_chip_sequence(rental_id: int, db: AsyncSession = Depends(get_db)):
    """Sequenze di chip del noleggio, una per range."""
    return await rental_service.get_chip_sequence_for_rental(db, rental_id)


@router.get("/{rental_id}/chip-file/{chip_type_id}")
async def download_chip_file(
    rental_id: int,
    chip_type_id: int,
    db: AsyncSession = Depends(get_db),
) -> Response:
    """
    Scarica il CSV Chip,Code per un tipo di chip del noleggio.

    Raises:
        NotFoundError: RENTAL_NOT_FOUND, CHIP_TYPE_NOT_IN_RENTAL
    """
    filename, content = await rental_service.get_chip_file_for_rental(db, rental_id, chip_type_id)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
