"""
Schemas Pydantic per il Noleggio
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)

Comprende richiesta di creazione con le quattro collezioni di risorse
(dispositivi, righe prodotto, unità, range di chip), aggiornamento
anagrafico e risposta con l'aggregato completo.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from crono_rentals.models.rental import RentalStatus
from crono_rentals.schemas.chip_type import ChipSequenceEntry, ChipTypeRead
from crono_rentals.schemas.client import ClientRead
from crono_rentals.schemas.common import PaginationMeta
from crono_rentals.schemas.device import DeviceRead
from crono_rentals.schemas.product import ProductRead
from crono_rentals.schemas.product_unit import ProductUnitRead


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Le date senza fuso orario sono interpretate come UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ------------------------------------------------------------
# Richieste
# ------------------------------------------------------------
class RentalProductLine(BaseModel):
    """Riga prodotto richiesta: quantità da prelevare dal magazzino."""

    product_id: int
    quantity: int = Field(..., ge=1)


class ChipRangeCreate(BaseModel):
    """
    Range di chip richiesto.

    L'ordine range_start <= range_end è verificato dal servizio
    (INVALID_CHIP_RANGE), non qui.
    """

    chip_type_id: int
    range_start: int = Field(..., ge=1)
    range_end: int = Field(..., ge=1)


class RentalCreate(BaseModel):
    """Schema per la creazione di un noleggio."""

    client_id: int
    start_date: datetime
    expected_end_date: datetime
    notes: Optional[str] = None
    device_ids: list[int] = Field(default_factory=list)
    products: list[RentalProductLine] = Field(default_factory=list)
    product_unit_ids: list[int] = Field(default_factory=list)
    chip_ranges: list[ChipRangeCreate] = Field(default_factory=list)

    @field_validator("start_date", "expected_end_date")
    @classmethod
    def normalize_tz(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @model_validator(mode="after")
    def check_dates(self) -> "RentalCreate":
        if self.expected_end_date < self.start_date:
            raise ValueError("La data di fine prevista non può precedere la data di inizio")
        return self


class RentalUpdate(BaseModel):
    """
    Aggiornamento anagrafico del noleggio (solo se ACTIVE).

    Le risorse impegnate non si modificano: per cambiarle si annulla
    il noleggio e se ne crea uno nuovo.
    """

    start_date: Optional[datetime] = None
    expected_end_date: Optional[datetime] = None
    notes: Optional[str] = None

    @field_validator("start_date", "expected_end_date")
    @classmethod
    def normalize_tz(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)

    @model_validator(mode="after")
    def check_dates(self) -> "RentalUpdate":
        if (
            self.start_date is not None
            and self.expected_end_date is not None
            and self.expected_end_date < self.start_date
        ):
            raise ValueError("La data di fine prevista non può precedere la data di inizio")
        return self


# ------------------------------------------------------------
# Risposte
# ------------------------------------------------------------
class RentalDeviceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    device_id: int
    device: DeviceRead


class RentalProductRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    quantity: int
    product: ProductRead


class RentalProductUnitRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_unit_id: int
    product_unit: ProductUnitRead


class RentalChipRangeRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    chip_type_id: int
    range_start: int
    range_end: int
    chip_type: ChipTypeRead


class RentalRead(BaseModel):
    """Noleggio con cliente e collezioni figlie espanse."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    client_id: int
    client: ClientRead
    start_date: datetime
    expected_end_date: datetime
    actual_end_date: Optional[datetime] = None
    status: RentalStatus
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    devices: list[RentalDeviceRead] = Field(default_factory=list)
    products: list[RentalProductRead] = Field(default_factory=list)
    product_units: list[RentalProductUnitRead] = Field(default_factory=list)
    chip_ranges: list[RentalChipRangeRead] = Field(default_factory=list)


class RentalList(BaseModel):
    """Lista paginata di noleggi (più recenti prima)."""

    data: list[RentalRead] = Field(default_factory=list)
    meta: PaginationMeta


class ChipSequenceRange(BaseModel):
    """Sequenza di codici di un range di chip prenotato sul noleggio."""

    chip_type: str = Field(..., description="Nome del tipo di chip")
    chip_type_display_name: str
    range_start: int
    range_end: int
    sequence: list[ChipSequenceEntry] = Field(default_factory=list)
