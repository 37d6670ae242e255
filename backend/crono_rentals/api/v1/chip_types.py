"""
Router FastAPI per l'entità ChipType
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)

Tipi di chip e caricamento della tabella di sequenza da file CSV.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from crono_rentals.core.database import get_db
from crono_rentals.core.deps import get_current_user
from crono_rentals.core.exceptions import BusinessValidationError
from crono_rentals.schemas.chip_type import (
    ChipSequenceEntry,
    ChipTypeCreate,
    ChipTypeDetail,
    ChipTypeRead,
    ChipTypeUpdate,
)
from crono_rentals.services.chip_type_service import chip_type_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/chip-types",
    tags=["Tipi di chip"],
    dependencies=[Depends(get_current_user)],
)


@router.get("/", response_model=list[ChipTypeRead])
async def get_chip_types(db: AsyncSession = Depends(get_db)):
    """Lista dei tipi di chip, senza tabelle di sequenza."""
    return await chip_type_service.get_all(db)


@router.get("/{chip_type_id}", response_model=ChipTypeDetail)
async def get_chip_type(chip_type_id: int, db: AsyncSession = Depends(get_db)):
    return await chip_type_service.get_by_id(db, chip_type_id)


@router.post("/", response_model=ChipTypeRead, status_code=status.HTTP_201_CREATED)
async def create_chip_type(data: ChipTypeCreate, db: AsyncSession = Depends(get_db)):
    chip_type = await chip_type_service.create(db, data)
    await db.commit()
    return chip_type


@router.patch("/{chip_type_id}", response_model=ChipTypeRead)
async def update_chip_type(
    chip_type_id: int,
    data: ChipTypeUpdate,
    db: AsyncSession = Depends(get_db),
):
    chip_type = await chip_type_service.update(db, chip_type_id, data)
    await db.commit()
    return chip_type


@router.delete("/{chip_type_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_chip_type(chip_type_id: int, db: AsyncSession = Depends(get_db)):
    """Eliminazione fisica, rifiutata se il tipo è usato da un noleggio."""
    await chip_type_service.delete(db, chip_type_id)
    await db.commit()


@router.put("/{chip_type_id}/sequence", response_model=ChipTypeRead)
async def upload_sequence(
    chip_type_id: int,
    file: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
):
    """
    Carica la tabella di sequenza da un file CSV (campo multipart "file").

    La tabella precedente viene sostituita per intero.

    Raises:
        BusinessValidationError: FILE_REQUIRED o errori di parsing CSV_*
    """
    if file is None:
        raise BusinessValidationError("Nessun file caricato", error_code="FILE_REQUIRED")
    content = await file.read()

    chip_type = await chip_type_service.upload_sequence(db, chip_type_id, content)
    await db.commit()
    return chip_type


@router.get("/{chip_type_id}/sequence", response_model=list[ChipSequenceEntry])
async def get_sequence(
    chip_type_id: int,
    start: Optional[int] = Query(None, description="Primo chip incluso"),
    end: Optional[int] = Query(None, description="Ultimo chip incluso"),
    db: AsyncSession = Depends(get_db),
):
    """Sequenza del tipo di chip; filtrata se sono indicati start ed end."""
    return await chip_type_service.get_sequence(db, chip_type_id, start=start, end=end)
