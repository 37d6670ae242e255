"""
Service Layer per l'entità Device
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)

Definisce la logica di business per il ciclo di vita dei dispositivi:
anagrafica, stati di produzione e operativi, proprietario.
"""

import logging
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from crono_rentals.core.exceptions import DuplicateError, NotFoundError
from crono_rentals.models.device import (
    Device,
    DeviceModel,
    ManufactoringStatus,
    OperationalStatus,
)
from crono_rentals.schemas.device import DeviceCreate, DeviceUpdate
from crono_rentals.services.client_service import client_service

# Logger per questo modulo
logger = logging.getLogger(__name__)

# Campi enum salvati come stringa
_ENUM_FIELDS = ("model", "manufactoring_status", "operational_status", "frequency_region")

# Colonne NOT NULL: un null esplicito nel PATCH viene ignorato
_REQUIRED_FIELDS = frozenset(
    {"model", "manufactoring_code", "manufactoring_status", "operational_status", "available_for_rental"}
)


def _enum_values(data: dict) -> dict:
    for field in _ENUM_FIELDS:
        value = data.get(field)
        if value is not None and hasattr(value, "value"):
            data[field] = value.value
    return data


class DeviceService:
    """
    Service per la gestione dei dispositivi.

    La cancellazione non elimina il record: ritira il dispositivo
    (operational_status=RETIRED).
    """

    async def get_all(
        self,
        db: AsyncSession,
        page: int = 1,
        page_size: int = 10,
        model: Optional[DeviceModel] = None,
        manufactoring_status: Optional[ManufactoringStatus] = None,
        operational_status: Optional[OperationalStatus] = None,
        available_for_rental: Optional[bool] = None,
        owner_id: Optional[int] = None,
    ) -> tuple[list[Device], int]:
        """
        Recupera la lista paginata dei dispositivi con filtri opzionali.

        Returns:
            Tuple di (lista dispositivi, totale count)
        """
        conditions = []
        if model is not None:
            conditions.append(Device.model == model.value)
        if manufactoring_status is not None:
            conditions.append(Device.manufactoring_status == manufactoring_status.value)
        if operational_status is not None:
            conditions.append(Device.operational_status == operational_status.value)
        if available_for_rental is not None:
            conditions.append(Device.available_for_rental == available_for_rental)
        if owner_id is not None:
            conditions.append(Device.owner_id == owner_id)

        query = (
            select(Device)
            .where(*conditions)
            .order_by(Device.id.asc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        result = await db.execute(query)
        devices = list(result.scalars().all())

        count_result = await db.execute(
            select(func.count()).select_from(Device).where(*conditions)
        )
        total = count_result.scalar() or 0

        logger.debug("Recuperati %s dispositivi su %s totali (pagina %s)", len(devices), total, page)
        return devices, total

    async def get_by_id(self, db: AsyncSession, device_id: int) -> Device:
        """
        Raises:
            NotFoundError: DEVICE_NOT_FOUND
        """
        result = await db.execute(select(Device).where(Device.id == device_id))
        device = result.scalar_one_or_none()
        if device is None:
            logger.warning("Dispositivo non trovato: %s", device_id)
            raise NotFoundError(f"Dispositivo {device_id} non trovato", error_code="DEVICE_NOT_FOUND")
        return device

    async def _get_one(self, db: AsyncSession, condition, serial: str) -> Device:
        result = await db.execute(select(Device).where(condition).order_by(Device.id).limit(1))
        device = result.scalar_one_or_none()
        if device is None:
            logger.warning("Nessun dispositivo con seriale %s", serial)
            raise NotFoundError(
                f"Nessun dispositivo con seriale {serial}",
                error_code="DEVICE_NOT_FOUND",
            )
        return device

    async def get_by_reader_serial(self, db: AsyncSession, serial: str) -> Device:
        """Cerca su entrambi i seriali lettore."""
        return await self._get_one(
            db,
            or_(Device.reader1_serial_number == serial, Device.reader2_serial_number == serial),
            serial,
        )

    async def get_by_cpu_serial(self, db: AsyncSession, serial: str) -> Device:
        return await self._get_one(db, Device.cpu_serial_number == serial, serial)

    async def get_by_battery_serial(self, db: AsyncSession, serial: str) -> Device:
        return await self._get_one(db, Device.battery_serial_number == serial, serial)

    async def _check_code_available(
        self,
        db: AsyncSession,
        code: str,
        exclude_id: Optional[int] = None,
    ) -> None:
        query = select(Device.id).where(Device.manufactoring_code == code)
        if exclude_id is not None:
            query = query.where(Device.id != exclude_id)
        result = await db.execute(query)
        if result.scalar_one_or_none() is not None:
            logger.warning("Codice di produzione già esistente: %s", code)
            raise DuplicateError(
                f"Codice di produzione '{code}' già registrato",
                error_code="MANUFACTORING_CODE_ALREADY_EXISTS",
            )

    async def _flush_unique(self, db: AsyncSession, device: Device) -> Device:
        try:
            await db.flush()
        except IntegrityError as e:
            logger.error("Errore IntegrityError dispositivo: %s", e.orig)
            await db.rollback()
            raise DuplicateError(
                "Codice di produzione già registrato",
                error_code="MANUFACTORING_CODE_ALREADY_EXISTS",
            ) from e
        await db.refresh(device)
        return device

    async def create(self, db: AsyncSession, data: DeviceCreate) -> Device:
        """
        Crea un dispositivo.

        Raises:
            DuplicateError: MANUFACTORING_CODE_ALREADY_EXISTS
            NotFoundError: CLIENT_NOT_FOUND se owner_id non esiste
        """
        await self._check_code_available(db, data.manufactoring_code)
        if data.owner_id is not None:
            await client_service.get_by_id(db, data.owner_id)

        # I campi non inviati prendono i default della colonna
        device_data = _enum_values(data.model_dump(exclude_none=True))
        device = Device(**device_data)
        db.add(device)
        device = await self._flush_unique(db, device)

        logger.info("Creato dispositivo %s (%s, %s)", device.id, device.model, device.manufactoring_code)
        return device

    async def update(self, db: AsyncSession, device_id: int, data: DeviceUpdate) -> Device:
        """
        Aggiorna un dispositivo (solo i campi inviati).

        Raises:
            NotFoundError: DEVICE_NOT_FOUND, CLIENT_NOT_FOUND
            DuplicateError: MANUFACTORING_CODE_ALREADY_EXISTS
        """
        device = await self.get_by_id(db, device_id)
        update_data = _enum_values(data.model_dump(exclude_unset=True))

        new_code = update_data.get("manufactoring_code")
        if new_code is not None and new_code != device.manufactoring_code:
            await self._check_code_available(db, new_code, exclude_id=device_id)
        if update_data.get("owner_id") is not None:
            await client_service.get_by_id(db, update_data["owner_id"])

        for field, value in update_data.items():
            if value is None and field in _REQUIRED_FIELDS:
                continue
            setattr(device, field, value)

        device = await self._flush_unique(db, device)
        logger.info("Aggiornato dispositivo %s", device.id)
        return device

    async def retire(self, db: AsyncSession, device_id: int) -> Device:
        """Cancellazione: il dispositivo passa a RETIRED."""
        device = await self.get_by_id(db, device_id)
        device.operational_status = OperationalStatus.RETIRED.value
        await db.flush()
        logger.info("Dispositivo %s ritirato", device.id)
        return device

    async def update_manufactoring_status(
        self,
        db: AsyncSession,
        device_id: int,
        status: ManufactoringStatus,
    ) -> Device:
        device = await self.get_by_id(db, device_id)
        device.manufactoring_status = status.value
        await db.flush()
        logger.info("Dispositivo %s: stato produzione %s", device.id, status.value)
        return device

    async def update_operational_status(
        self,
        db: AsyncSession,
        device_id: int,
        status: OperationalStatus,
    ) -> Device:
        device = await self.get_by_id(db, device_id)
        device.operational_status = status.value
        await db.flush()
        logger.info("Dispositivo %s: stato operativo %s", device.id, status.value)
        return device

    async def assign_owner(
        self,
        db: AsyncSession,
        device_id: int,
        owner_id: Optional[int],
    ) -> Device:
        """
        Assegna il proprietario; owner_id None lo rimuove.

        Raises:
            NotFoundError: DEVICE_NOT_FOUND, CLIENT_NOT_FOUND
        """
        device = await self.get_by_id(db, device_id)
        if owner_id is not None:
            await client_service.get_by_id(db, owner_id)

        device.owner_id = owner_id
        await db.flush()
        logger.info("Dispositivo %s: proprietario %s", device.id, owner_id)
        return device


device_service = DeviceService()
