"""
Modello SQLAlchemy per l'entità Device
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)

Dispositivi di cronometraggio: lettori TSONE/TS2/TS2+ e box CLB.
"""

from __future__ import annotations
from datetime import date
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, Date, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from crono_rentals.models import Base
from crono_rentals.models.mixins import IntegerIDMixin, TimestampMixin


class DeviceModel(str, Enum):
    """Modelli di dispositivo."""
    TSONE = "TSONE"
    TS2 = "TS2"
    TS2_PLUS = "TS2_PLUS"
    CLB = "CLB"


class ManufactoringStatus(str, Enum):
    """Stato di produzione del dispositivo."""
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class OperationalStatus(str, Enum):
    """Stato operativo: solo AVAILABLE può entrare in un noleggio."""
    IN_MANUFACTURING = "IN_MANUFACTURING"
    AVAILABLE = "AVAILABLE"
    RENTED = "RENTED"
    IN_REPAIR = "IN_REPAIR"
    RETIRED = "RETIRED"


class FrequencyRegion(str, Enum):
    """Regione di frequenza UHF."""
    EU = "EU"
    US = "US"


class Device(Base, IntegerIDMixin, TimestampMixin):
    """
    Modello per i dispositivi di cronometraggio.

    Il dispositivo non viene mai eliminato: la cancellazione lo ritira
    (operational_status=RETIRED).

    Attributes:
        model: Modello del dispositivo
        manufactoring_code: Codice di produzione (univoco)
        manufactoring_status: Stato di produzione
        operational_status: Stato operativo
        available_for_rental: Se False il dispositivo non può essere noleggiato
        owner_id: FK opzionale al cliente proprietario
    """

    __tablename__ = "devices"

    model: Mapped[str] = mapped_column(String(20), nullable=False)

    manufactoring_code: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        nullable=False,
        doc="Codice di produzione univoco",
    )

    manufactoring_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ManufactoringStatus.PENDING.value,
    )

    operational_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=OperationalStatus.IN_MANUFACTURING.value,
    )

    available_for_rental: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    owner_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("clients.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )

    # Identificazione
    serial_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    port_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    frequency_region: Mapped[Optional[str]] = mapped_column(String(5), nullable=True)
    manufacturing_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # TSONE / TS2 / TS2+
    reader1_serial_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    reader2_serial_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    cpu_serial_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    battery_serial_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    ts_power_model: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    cpu_firmware: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    gx1_readers_region: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    has_gsm: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    has_gun: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)

    # CLB
    bluetooth_adapter: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    core_version: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    heatsinks: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    pic_version: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    __table_args__ = (
        Index("ix_devices_operational_status", "operational_status"),
        Index("ix_devices_reader1_serial", "reader1_serial_number"),
        Index("ix_devices_reader2_serial", "reader2_serial_number"),
    )

    def __repr__(self) -> str:
        return (
            f"<Device(id={self.id}, code={self.manufactoring_code}, "
            f"status={self.operational_status})>"
        )
