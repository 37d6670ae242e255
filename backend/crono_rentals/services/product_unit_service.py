"""
Service Layer per l'entità ProductUnit
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)
"""

import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from crono_rentals.core.exceptions import DuplicateError, NotFoundError
from crono_rentals.models.product import ProductType
from crono_rentals.models.product_unit import ProductUnit, ProductUnitStatus
from crono_rentals.schemas.common import ActiveFilter
from crono_rentals.schemas.product_unit import ProductUnitCreate, ProductUnitUpdate

logger = logging.getLogger(__name__)


class ProductUnitService:
    """Service per le unità serializzate."""

    async def get_all(
        self,
        db: AsyncSession,
        page: int = 1,
        page_size: int = 10,
        type: Optional[ProductType] = None,
        status: Optional[ProductUnitStatus] = None,
        active: ActiveFilter = ActiveFilter.TRUE,
    ) -> tuple[list[ProductUnit], int]:
        conditions = []
        if type is not None:
            conditions.append(ProductUnit.type == type.value)
        if status is not None:
            conditions.append(ProductUnit.status == status.value)
        if active != ActiveFilter.ALL:
            conditions.append(ProductUnit.is_active == (active == ActiveFilter.TRUE))

        query = (
            select(ProductUnit)
            .where(*conditions)
            .order_by(ProductUnit.serial_number.asc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        result = await db.execute(query)
        units = list(result.scalars().all())

        count_result = await db.execute(
            select(func.count()).select_from(ProductUnit).where(*conditions)
        )
        total = count_result.scalar() or 0

        logger.debug("Recuperate %s unità su %s totali (pagina %s)", len(units), total, page)
        return units, total

    async def get_by_id(self, db: AsyncSession, unit_id: int) -> ProductUnit:
        """
        Raises:
            NotFoundError: PRODUCT_UNIT_NOT_FOUND
        """
        result = await db.execute(select(ProductUnit).where(ProductUnit.id == unit_id))
        unit = result.scalar_one_or_none()
        if unit is None:
            logger.warning("Unità non trovata: %s", unit_id)
            raise NotFoundError(f"Unità {unit_id} non trovata", error_code="PRODUCT_UNIT_NOT_FOUND")
        return unit

    async def get_by_serial(self, db: AsyncSession, serial_number: str) -> ProductUnit:
        result = await db.execute(
            select(ProductUnit).where(ProductUnit.serial_number == serial_number)
        )
        unit = result.scalar_one_or_none()
        if unit is None:
            logger.warning("Unità con seriale %s non trovata", serial_number)
            raise NotFoundError(
                f"Unità con seriale {serial_number} non trovata",
                error_code="PRODUCT_UNIT_NOT_FOUND",
            )
        return unit

    async def _check_serial_available(
        self,
        db: AsyncSession,
        serial_number: str,
        exclude_id: Optional[int] = None,
    ) -> None:
        query = select(ProductUnit.id).where(ProductUnit.serial_number == serial_number)
        if exclude_id is not None:
            query = query.where(ProductUnit.id != exclude_id)
        result = await db.execute(query)
        if result.scalar_one_or_none() is not None:
            logger.warning("Numero di serie già esistente: %s", serial_number)
            raise DuplicateError(
                f"Numero di serie '{serial_number}' già registrato",
                error_code="SERIAL_NUMBER_ALREADY_EXISTS",
            )

    async def _flush_unique(self, db: AsyncSession, unit: ProductUnit) -> ProductUnit:
        try:
            await db.flush()
        except IntegrityError as e:
            logger.error("Errore IntegrityError unità: %s", e.orig)
            await db.rollback()
            raise DuplicateError(
                "Numero di serie già registrato",
                error_code="SERIAL_NUMBER_ALREADY_EXISTS",
            ) from e
        await db.refresh(unit)
        return unit

    async def create(self, db: AsyncSession, data: ProductUnitCreate) -> ProductUnit:
        """Crea una unità AVAILABLE."""
        await self._check_serial_available(db, data.serial_number)

        unit = ProductUnit(
            type=data.type.value,
            serial_number=data.serial_number,
            notes=data.notes,
            status=ProductUnitStatus.AVAILABLE.value,
            is_active=True,
        )
        db.add(unit)
        unit = await self._flush_unique(db, unit)

        logger.info("Creata unità %s (seriale %s)", unit.id, unit.serial_number)
        return unit

    async def update(self, db: AsyncSession, unit_id: int, data: ProductUnitUpdate) -> ProductUnit:
        unit = await self.get_by_id(db, unit_id)
        update_data = data.model_dump(exclude_unset=True)

        new_serial = update_data.get("serial_number")
        if new_serial is not None and new_serial != unit.serial_number:
            await self._check_serial_available(db, new_serial, exclude_id=unit_id)
        if update_data.get("type") is not None:
            update_data["type"] = update_data["type"].value

        for field, value in update_data.items():
            if value is not None or field == "notes":
                setattr(unit, field, value)

        unit = await self._flush_unique(db, unit)
        logger.info("Aggiornata unità %s", unit.id)
        return unit

    async def update_status(
        self,
        db: AsyncSession,
        unit_id: int,
        status: ProductUnitStatus,
    ) -> ProductUnit:
        unit = await self.get_by_id(db, unit_id)
        unit.status = status.value
        await db.flush()
        logger.info("Unità %s: stato %s", unit.id, status.value)
        return unit

    async def delete(self, db: AsyncSession, unit_id: int) -> ProductUnit:
        unit = await self.get_by_id(db, unit_id)
        unit.is_active = False
        await db.flush()
        logger.info("Soft delete unità %s", unit.id)
        return unit

    async def reactivate(self, db: AsyncSession, unit_id: int) -> ProductUnit:
        unit = await self.get_by_id(db, unit_id)
        unit.is_active = True
        await db.flush()
        logger.info("Riattivata unità %s", unit.id)
        return unit


product_unit_service = ProductUnitService()
