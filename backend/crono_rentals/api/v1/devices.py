"""
Router FastAPI per l'entità Device
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from crono_rentals.core.config import settings
from crono_rentals.core.database import get_db
from crono_rentals.core.deps import get_current_user
from crono_rentals.models.device import DeviceModel, ManufactoringStatus, OperationalStatus
from crono_rentals.schemas.common import PaginationMeta
from crono_rentals.schemas.device import (
    DeviceCreate,
    DeviceList,
    DeviceRead,
    DeviceUpdate,
    ManufactoringStatusUpdate,
    OperationalStatusUpdate,
    OwnerAssign,
)
from crono_rentals.services.device_service import device_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/devices",
    tags=["Dispositivi"],
    dependencies=[Depends(get_current_user)],
)


@router.get("/", response_model=DeviceList)
async def get_devices(
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    model: Optional[DeviceModel] = Query(None),
    manufactoring_status: Optional[ManufactoringStatus] = Query(None),
    operational_status: Optional[OperationalStatus] = Query(None),
    available_for_rental: Optional[bool] = Query(None),
    owner_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
) -> DeviceList:
    """Lista paginata dei dispositivi con filtri."""
    devices, total = await device_service.get_all(
        db,
        page=page,
        page_size=page_size,
        model=model,
        manufactoring_status=manufactoring_status,
        operational_status=operational_status,
        available_for_rental=available_for_rental,
        owner_id=owner_id,
    )
    return DeviceList(
        data=[DeviceRead.model_validate(d) for d in devices],
        meta=PaginationMeta.build(total=total, page=page, page_size=page_size),
    )


@router.get("/reader/{serial}", response_model=DeviceRead)
async def get_device_by_reader_serial(serial: str, db: AsyncSession = Depends(get_db)):
    """Cerca un dispositivo per seriale di uno dei due lettori."""
    return await device_service.get_by_reader_serial(db, serial)


@router.get("/cpu/{serial}", response_model=DeviceRead)
async def get_device_by_cpu_serial(serial: str, db: AsyncSession = Depends(get_db)):
    return await device_service.get_by_cpu_serial(db, serial)


@router.get("/battery/{serial}", response_model=DeviceRead)
async def get_device_by_battery_serial(serial: str, db: AsyncSession = Depends(get_db)):
    return await device_service.get_by_battery_serial(db, serial)


@router.get("/{device_id}", response_model=DeviceRead)
async def get_device(device_id: int, db: AsyncSession = Depends(get_db)):
    """Dettaglio dispositivo."""
    return await device_service.get_by_id(db, device_id)


@router.post("/", response_model=DeviceRead, status_code=status.HTTP_201_CREATED)
async def create_device(data: DeviceCreate, db: AsyncSession = Depends(get_db)):
    """Crea un dispositivo."""
    device = await device_service.create(db, data)
    await db.commit()
    return device


@router.patch("/{device_id}", response_model=DeviceRead)
async def update_device(device_id: int, data: DeviceUpdate, db: AsyncSession = Depends(get_db)):
    """Aggiorna un dispositivo."""
    device = await device_service.update(db, device_id, data)
    await db.commit()
    return device


@router.delete("/{device_id}", response_model=DeviceRead)
async def retire_device(device_id: int, db: AsyncSession = Depends(get_db)):
    """Ritira il dispositivo (operational_status=RETIRED)."""
    device = await device_service.retire(db, device_id)
    await db.commit()
    return device


@router.patch("/{device_id}/manufactoring-status", response_model=DeviceRead)
async def update_manufactoring_status(
    device_id: int,
    data: ManufactoringStatusUpdate,
    db: AsyncSession = Depends(get_db),
):
    device = await device_service.update_manufactoring_status(db, device_id, data.manufactoring_status)
    await db.commit()
    return device


@router.patch("/{device_id}/operational-status", response_model=DeviceRead)
async def update_operational_status(
    device_id: int,
    data: OperationalStatusUpdate,
    db: AsyncSession = Depends(get_db),
):
    device = await device_service.update_operational_status(db, device_id, data.operational_status)
    await db.commit()
    return device


@router.patch("/{device_id}/owner", response_model=DeviceRead)
async def assign_owner(device_id: int, data: OwnerAssign, db: AsyncSession = Depends(get_db)):
    """Assegna o rimuove (owner_id null) il proprietario."""
    device = await device_service.assign_owner(db, device_id, data.owner_id)
    await db.commit()
    return device
