"""
Schemas Pydantic per l'entità Device
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from crono_rentals.models.device import (
    DeviceModel,
    FrequencyRegion,
    ManufactoringStatus,
    OperationalStatus,
)
from crono_rentals.schemas.common import PaginationMeta


class DeviceDetails(BaseModel):
    """Campi descrittivi opzionali (identificazione, TSONE/TS2, CLB)."""

    serial_number: Optional[str] = Field(None, max_length=100)
    port_count: Optional[int] = Field(None, ge=0)
    frequency_region: Optional[FrequencyRegion] = None
    manufacturing_date: Optional[date] = None
    notes: Optional[str] = None

    # TSONE / TS2 / TS2+
    reader1_serial_number: Optional[str] = Field(None, max_length=100)
    reader2_serial_number: Optional[str] = Field(None, max_length=100)
    cpu_serial_number: Optional[str] = Field(None, max_length=100)
    battery_serial_number: Optional[str] = Field(None, max_length=100)
    ts_power_model: Optional[str] = Field(None, max_length=100)
    cpu_firmware: Optional[str] = Field(None, max_length=100)
    gx1_readers_region: Optional[str] = Field(None, max_length=50)
    has_gsm: Optional[bool] = None
    has_gun: Optional[bool] = None

    # CLB
    bluetooth_adapter: Optional[str] = Field(None, max_length=100)
    core_version: Optional[str] = Field(None, max_length=50)
    heatsinks: Optional[str] = Field(None, max_length=50)
    pic_version: Optional[str] = Field(None, max_length=50)


class DeviceCreate(DeviceDetails):
    """
    Schema per la creazione di un dispositivo.

    Gli stati hanno default lato database: PENDING / IN_MANUFACTURING,
    non disponibile al noleggio.
    """

    model: DeviceModel
    manufactoring_code: str = Field(..., min_length=1, max_length=100)
    manufactoring_status: Optional[ManufactoringStatus] = None
    operational_status: Optional[OperationalStatus] = None
    available_for_rental: Optional[bool] = None
    owner_id: Optional[int] = None

    @field_validator("manufactoring_code")
    @classmethod
    def strip_code(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Il codice di produzione non può essere vuoto")
        return v


class DeviceUpdate(DeviceDetails):
    """Aggiornamento parziale: tutti i campi opzionali."""

    model: Optional[DeviceModel] = None
    manufactoring_code: Optional[str] = Field(None, min_length=1, max_length=100)
    manufactoring_status: Optional[ManufactoringStatus] = None
    operational_status: Optional[OperationalStatus] = None
    available_for_rental: Optional[bool] = None
    owner_id: Optional[int] = None


class ManufactoringStatusUpdate(BaseModel):
    manufactoring_status: ManufactoringStatus


class OperationalStatusUpdate(BaseModel):
    operational_status: OperationalStatus


class OwnerAssign(BaseModel):
    """owner_id null rimuove il proprietario."""

    owner_id: Optional[int] = None


class DeviceRead(DeviceDetails):
    """Schema di risposta per il dispositivo."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    model: DeviceModel
    manufactoring_code: str
    manufactoring_status: ManufactoringStatus
    operational_status: OperationalStatus
    available_for_rental: bool
    owner_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class DeviceList(BaseModel):
    """Lista paginata di dispositivi."""

    data: list[DeviceRead] = Field(default_factory=list)
    meta: PaginationMeta
