"""
Service Layer per il Noleggio
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)

Motore transazionale dei noleggi: prenota in un'unica transazione
risorse eterogenee (dispositivi, quantità di prodotto, unità serializzate,
range di chip) e le rilascia alla chiusura (rientro o annullamento).

Concorrenza:
- create, return_rental e cancel_rental girano dentro core.database.atomic:
  o tutte le modifiche vengono confermate o nessuna.
- Le righe di cui si verifica la disponibilità sono lette con
  SELECT ... FOR UPDATE, in ordine di id, così due noleggi concorrenti
  sugli stessi dispositivi/prodotti/unità si serializzano.
- Le quantità di prodotto si muovono con gli UPDATE condizionali
  del ProductService.
"""

import csv
import io
import logging
import re
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from crono_rentals.core.database import atomic
from crono_rentals.core.exceptions import BusinessValidationError, NotFoundError
from crono_rentals.models.chip_type import ChipType
from crono_rentals.models.client import Client
from crono_rentals.models.device import Device, OperationalStatus
from crono_rentals.models.mixins import utcnow
from crono_rentals.models.product import Product
from crono_rentals.models.product_unit import ProductUnit, ProductUnitStatus
from crono_rentals.models.rental import (
    Rental,
    RentalChipRange,
    RentalDevice,
    RentalProduct,
    RentalProductUnit,
    RentalStatus,
)
from crono_rentals.schemas.rental import RentalCreate, RentalUpdate
from crono_rentals.services.chip_type_service import filter_sequence
from crono_rentals.services.product_service import product_service

# Logger per questo modulo
logger = logging.getLogger(__name__)


def sanitize_filename(name: str) -> str:
    """
    Normalizza un nome per l'uso in un nome file.

    Minuscolo, spazi -> "-", rimossi i caratteri fuori da [a-z0-9-],
    trattini ripetuti compressi, nessun trattino in testa o in coda.
    """
    value = name.lower()
    value = re.sub(r"\s+", "-", value)
    value = re.sub(r"[^a-z0-9-]", "", value)
    value = re.sub(r"-+", "-", value)
    return value.strip("-")


def chip_file_name(client_name: str, start_date: datetime, chip_type_name: str) -> str:
    """Formato: cliente-aaaammgg-tipochip-rent.csv"""
    return (
        f"{sanitize_filename(client_name)}-{start_date.strftime('%Y%m%d')}-"
        f"{chip_type_name.lower()}-rent.csv"
    )


def build_chip_csv(sequence: list[dict]) -> str:
    """CSV a due colonne (Chip,Code), righe nell'ordine della sequenza."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(["Chip", "Code"])
    for item in sequence:
        writer.writerow([item["chip"], item["code"]])
    return buffer.getvalue()


class RentalService:
    """
    Service per il ciclo di vita dei noleggi.

    Stati: ACTIVE -> RETURNED | CANCELLED (terminali, una sola volta).
    """

    # ------------------------------------------------------------
    # Letture
    # ------------------------------------------------------------
    async def get_all(
        self,
        db: AsyncSession,
        page: int = 1,
        page_size: int = 10,
        status: Optional[RentalStatus] = None,
        client_id: Optional[int] = None,
    ) -> tuple[list[Rental], int]:
        """
        Recupera la lista paginata dei noleggi, i più recenti prima.

        Returns:
            Tuple di (lista noleggi, totale count)
        """
        conditions = []
        if status is not None:
            conditions.append(Rental.status == status.value)
        if client_id is not None:
            conditions.append(Rental.client_id == client_id)

        query = (
            select(Rental)
            .where(*conditions)
            .order_by(Rental.created_at.desc(), Rental.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        result = await db.execute(query)
        rentals = list(result.scalars().all())

        count_result = await db.execute(
            select(func.count()).select_from(Rental).where(*conditions)
        )
        total = count_result.scalar() or 0

        logger.debug("Recuperati %s noleggi su %s totali (pagina %s)", len(rentals), total, page)
        return rentals, total

    async def get_by_id(
        self,
        db: AsyncSession,
        rental_id: int,
        for_update: bool = False,
    ) -> Rental:
        """
        Recupera il noleggio con cliente e collezioni figlie.

        Args:
            for_update: Blocca la riga del noleggio (solo dentro una transazione)

        Raises:
            NotFoundError: RENTAL_NOT_FOUND
        """
        query = (
            select(Rental)
            .where(Rental.id == rental_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            query = query.with_for_update(of=Rental)

        result = await db.execute(query)
        rental = result.scalar_one_or_none()

        if rental is None:
            logger.warning("Noleggio non trovato: %s", rental_id)
            raise NotFoundError(f"Noleggio {rental_id} non trovato", error_code="RENTAL_NOT_FOUND")
        return rental

    # ------------------------------------------------------------
    # Lock delle risorse
    # ------------------------------------------------------------
    async def _lock_devices(self, db: AsyncSession, device_ids: list[int]) -> list[Device]:
        result = await db.execute(
            select(Device)
            .where(Device.id.in_(device_ids))
            .order_by(Device.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def _lock_products(self, db: AsyncSession, product_ids: list[int]) -> list[Product]:
        result = await db.execute(
            select(Product)
            .where(Product.id.in_(product_ids))
            .order_by(Product.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def _lock_units(self, db: AsyncSession, unit_ids: list[int]) -> list[ProductUnit]:
        result = await db.execute(
            select(ProductUnit)
            .where(ProductUnit.id.in_(unit_ids))
            .order_by(ProductUnit.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    # ------------------------------------------------------------
    # Prenotazione
    # ------------------------------------------------------------
    async def _reserve_devices(self, db: AsyncSession, device_ids: list[int]) -> list[Device]:
        devices = await self._lock_devices(db, device_ids)

        if len(devices) != len(device_ids):
            missing = sorted(set(device_ids) - {d.id for d in devices})
            logger.warning("Dispositivi non trovati: %s", missing)
            raise NotFoundError(
                f"Dispositivi non trovati: {missing}",
                error_code="DEVICE_NOT_FOUND",
                extra={"device_ids": missing},
            )

        not_rentable = [d.id for d in devices if not d.available_for_rental]
        if not_rentable:
            logger.warning("Dispositivi non noleggiabili: %s", not_rentable)
            raise BusinessValidationError(
                "Uno o più dispositivi non sono noleggiabili",
                error_code="DEVICE_NOT_AVAILABLE_FOR_RENTAL",
                extra={"device_ids": not_rentable},
            )

        busy = [d.id for d in devices if d.operational_status != OperationalStatus.AVAILABLE.value]
        if busy:
            logger.warning("Dispositivi non disponibili: %s", busy)
            raise BusinessValidationError(
                "Uno o più dispositivi non sono disponibili",
                error_code="DEVICE_NOT_AVAILABLE",
                extra={"device_ids": busy},
            )

        for device in devices:
            device.operational_status = OperationalStatus.RENTED.value
        return devices

    async def _reserve_products(
        self,
        db: AsyncSession,
        lines: list[tuple[int, int]],
    ) -> dict[int, Product]:
        """
        Verifica tutte le righe prima di muovere le quantità.

        Righe ripetute sullo stesso prodotto sono verificate sulla
        quantità totale richiesta.
        """
        requested: dict[int, int] = {}
        for product_id, quantity in lines:
            requested[product_id] = requested.get(product_id, 0) + quantity

        products = {p.id: p for p in await self._lock_products(db, list(requested))}

        for product_id, quantity in requested.items():
            product = products.get(product_id)
            if product is None:
                logger.warning("Prodotto non trovato: %s", product_id)
                raise NotFoundError(
                    f"Prodotto {product_id} non trovato",
                    error_code="PRODUCT_NOT_FOUND",
                    extra={"product_id": product_id},
                )
            if product.available_quantity < quantity:
                logger.warning(
                    "Quantità insufficiente per il prodotto %s: richiesti %s, disponibili %s",
                    product_id, quantity, product.available_quantity,
                )
                raise BusinessValidationError(
                    f"Quantità insufficiente per il prodotto {product.name}",
                    error_code="NOT_ENOUGH_PRODUCT_QUANTITY",
                    extra={
                        "product_id": product_id,
                        "requested": quantity,
                        "available": product.available_quantity,
                    },
                )

        for product_id, quantity in lines:
            await product_service.rent_quantity(db, product_id, quantity)
        return products

    async def _reserve_units(self, db: AsyncSession, unit_ids: list[int]) -> list[ProductUnit]:
        units = await self._lock_units(db, unit_ids)

        if len(units) != len(unit_ids):
            missing = sorted(set(unit_ids) - {u.id for u in units})
            logger.warning("Unità non trovate: %s", missing)
            raise NotFoundError(
                f"Unità non trovate: {missing}",
                error_code="PRODUCT_UNIT_NOT_FOUND",
                extra={"product_unit_ids": missing},
            )

        busy = [u.id for u in units if u.status != ProductUnitStatus.AVAILABLE.value]
        if busy:
            logger.warning("Unità non disponibili: %s", busy)
            raise BusinessValidationError(
                "Una o più unità non sono disponibili",
                error_code="PRODUCT_UNIT_NOT_AVAILABLE",
                extra={"product_unit_ids": busy},
            )

        for unit in units:
            unit.status = ProductUnitStatus.RENTED.value
        return units

    async def _resolve_chip_types(self, db: AsyncSession, data: RentalCreate) -> dict[int, ChipType]:
        chip_type_ids = list(dict.fromkeys(r.chip_type_id for r in data.chip_ranges))
        result = await db.execute(select(ChipType).where(ChipType.id.in_(chip_type_ids)))
        chip_types = {ct.id: ct for ct in result.scalars().all()}

        missing = [cid for cid in chip_type_ids if cid not in chip_types]
        if missing:
            logger.warning("Tipi di chip non trovati: %s", missing)
            raise NotFoundError(
                f"Tipi di chip non trovati: {missing}",
                error_code="CHIP_TYPE_NOT_FOUND",
                extra={"chip_type_ids": missing},
            )

        for chip_range in data.chip_ranges:
            if chip_range.range_start > chip_range.range_end:
                logger.warning(
                    "Range di chip non valido: %s-%s",
                    chip_range.range_start, chip_range.range_end,
                )
                raise BusinessValidationError(
                    "L'inizio del range non può superare la fine",
                    error_code="INVALID_CHIP_RANGE",
                    extra={
                        "chip_type_id": chip_range.chip_type_id,
                        "range_start": chip_range.range_start,
                        "range_end": chip_range.range_end,
                    },
                )
        return chip_types

    # ------------------------------------------------------------
    # Operazioni
    # ------------------------------------------------------------
    async def create(self, db: AsyncSession, data: RentalCreate) -> Rental:
        """
        Crea un noleggio ACTIVE prenotando tutte le risorse richieste.

        Ordine dei controlli: cliente, dispositivi, prodotti, unità,
        range di chip. Il primo errore annulla l'intera transazione.

        Raises:
            NotFoundError: CLIENT_NOT_FOUND, DEVICE_NOT_FOUND, PRODUCT_NOT_FOUND,
                PRODUCT_UNIT_NOT_FOUND, CHIP_TYPE_NOT_FOUND
            BusinessValidationError: DEVICE_NOT_AVAILABLE_FOR_RENTAL,
                DEVICE_NOT_AVAILABLE, NOT_ENOUGH_PRODUCT_QUANTITY,
                PRODUCT_UNIT_NOT_AVAILABLE, INVALID_CHIP_RANGE
            TransactionConflictError: conflitto di serializzazione
        """
        device_ids = list(dict.fromkeys(data.device_ids))
        unit_ids = list(dict.fromkeys(data.product_unit_ids))
        lines = [(line.product_id, line.quantity) for line in data.products]

        async with atomic(db):
            client = await db.get(Client, data.client_id)
            if client is None:
                logger.warning("Cliente non trovato: %s", data.client_id)
                raise NotFoundError(
                    f"Cliente {data.client_id} non trovato",
                    error_code="CLIENT_NOT_FOUND",
                )

            devices = await self._reserve_devices(db, device_ids) if device_ids else []
            products = await self._reserve_products(db, lines) if lines else {}
            units = await self._reserve_units(db, unit_ids) if unit_ids else []
            chip_types = await self._resolve_chip_types(db, data) if data.chip_ranges else {}

            rental = Rental(
                client=client,
                start_date=data.start_date,
                expected_end_date=data.expected_end_date,
                actual_end_date=None,
                status=RentalStatus.ACTIVE.value,
                notes=data.notes,
                devices=[RentalDevice(device=device) for device in devices],
                products=[
                    RentalProduct(product=products[product_id], quantity=quantity)
                    for product_id, quantity in lines
                ],
                product_units=[RentalProductUnit(product_unit=unit) for unit in units],
                chip_ranges=[
                    RentalChipRange(
                        chip_type=chip_types[r.chip_type_id],
                        range_start=r.range_start,
                        range_end=r.range_end,
                    )
                    for r in data.chip_ranges
                ],
            )
            db.add(rental)
            await db.flush()
            rental_id = rental.id

        logger.info(
            "Creato noleggio %s per il cliente %s: %s dispositivi, %s righe prodotto, "
            "%s unità, %s range di chip",
            rental_id, data.client_id, len(devices), len(lines), len(units), len(data.chip_ranges),
        )
        return await self.get_by_id(db, rental_id)

    async def update(self, db: AsyncSession, rental_id: int, data: RentalUpdate) -> Rental:
        """
        Aggiorna date e note di un noleggio ACTIVE.

        Raises:
            NotFoundError: RENTAL_NOT_FOUND
            BusinessValidationError: RENTAL_NOT_ACTIVE, INVALID_RENTAL_DATES
        """
        rental = await self.get_by_id(db, rental_id)
        self._ensure_active(rental)

        update_data = data.model_dump(exclude_unset=True)
        start_date = update_data.get("start_date") or rental.start_date
        expected_end_date = update_data.get("expected_end_date") or rental.expected_end_date
        if _naive(expected_end_date) < _naive(start_date):
            logger.warning("Date non coerenti per il noleggio %s", rental_id)
            raise BusinessValidationError(
                "La data di fine prevista non può precedere la data di inizio",
                error_code="INVALID_RENTAL_DATES",
            )

        for field, value in update_data.items():
            if value is not None or field == "notes":
                setattr(rental, field, value)

        await db.flush()
        logger.info("Aggiornato noleggio %s", rental_id)
        return rental

    def _ensure_active(self, rental: Rental) -> None:
        if not rental.is_active:
            logger.warning("Noleggio %s non attivo (stato %s)", rental.id, rental.status)
            raise BusinessValidationError(
                f"Il noleggio {rental.id} non è attivo",
                error_code="RENTAL_NOT_ACTIVE",
                extra={"status": rental.status},
            )

    async def _close(self, db: AsyncSession, rental_id: int, final_status: RentalStatus) -> Rental:
        """
        Rilascia le risorse e porta il noleggio nello stato finale.

        I range di chip non vengono toccati.
        """
        async with atomic(db):
            rental = await self.get_by_id(db, rental_id, for_update=True)
            self._ensure_active(rental)

            device_ids = [rd.device_id for rd in rental.devices]
            if device_ids:
                for device in await self._lock_devices(db, device_ids):
                    device.operational_status = OperationalStatus.AVAILABLE.value

            for line in rental.products:
                await product_service.return_quantity(db, line.product_id, line.quantity)

            unit_ids = [ru.product_unit_id for ru in rental.product_units]
            if unit_ids:
                for unit in await self._lock_units(db, unit_ids):
                    unit.status = ProductUnitStatus.AVAILABLE.value

            rental.status = final_status.value
            if final_status == RentalStatus.RETURNED:
                rental.actual_end_date = utcnow()
            await db.flush()

        logger.info("Noleggio %s chiuso con stato %s", rental_id, final_status.value)
        return await self.get_by_id(db, rental_id)

    async def return_rental(self, db: AsyncSession, rental_id: int) -> Rental:
        """
        Rientro: risorse rilasciate, stato RETURNED, actual_end_date = ora.

        Raises:
            NotFoundError: RENTAL_NOT_FOUND
            BusinessValidationError: RENTAL_NOT_ACTIVE
        """
        return await self._close(db, rental_id, RentalStatus.RETURNED)

    async def cancel_rental(self, db: AsyncSession, rental_id: int) -> Rental:
        """
        Annullamento: risorse rilasciate, stato CANCELLED, nessuna data di rientro.

        Raises:
            NotFoundError: RENTAL_NOT_FOUND
            BusinessValidationError: RENTAL_NOT_ACTIVE
        """
        return await self._close(db, rental_id, RentalStatus.CANCELLED)

    # ------------------------------------------------------------
    # Sequenze di chip
    # ------------------------------------------------------------
    async def get_chip_sequence_for_rental(self, db: AsyncSession, rental_id: int) -> list[dict]:
        """
        Un record per ogni range di chip del noleggio, con la sequenza
        del tipo di chip filtrata al range (estremi inclusi).
        """
        rental = await self.get_by_id(db, rental_id)
        return [
            {
                "chip_type": chip_range.chip_type.name,
                "chip_type_display_name": chip_range.chip_type.display_name,
                "range_start": chip_range.range_start,
                "range_end": chip_range.range_end,
                "sequence": filter_sequence(
                    chip_range.chip_type.sequence_data,
                    chip_range.range_start,
                    chip_range.range_end,
                ),
            }
            for chip_range in rental.chip_ranges
        ]

    async def get_chip_file_for_rental(
        self,
        db: AsyncSession,
        rental_id: int,
        chip_type_id: int,
    ) -> tuple[str, str]:
        """
        File CSV dei codici per un tipo di chip del noleggio.

        Se il noleggio ha più range sullo stesso tipo viene usato il primo.

        Returns:
            Tuple di (nome file, contenuto CSV)

        Raises:
            NotFoundError: RENTAL_NOT_FOUND, CHIP_TYPE_NOT_IN_RENTAL
        """
        rental = await self.get_by_id(db, rental_id)

        chip_range = next(
            (r for r in rental.chip_ranges if r.chip_type_id == chip_type_id),
            None,
        )
        if chip_range is None:
            logger.warning("Tipo di chip %s non presente nel noleggio %s", chip_type_id, rental_id)
            raise NotFoundError(
                f"Il tipo di chip {chip_type_id} non è presente nel noleggio {rental_id}",
                error_code="CHIP_TYPE_NOT_IN_RENTAL",
            )

        sequence = filter_sequence(
            chip_range.chip_type.sequence_data,
            chip_range.range_start,
            chip_range.range_end,
        )
        filename = chip_file_name(rental.client.name, rental.start_date, chip_range.chip_type.name)
        return filename, build_chip_csv(sequence)


def _naive(value: datetime) -> datetime:
    """Datetime in UTC senza tzinfo (SQLite restituisce date senza fuso)."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.replace(tzinfo=None)


rental_service = RentalService()
