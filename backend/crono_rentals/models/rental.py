"""
Modelli SQLAlchemy per il noleggio
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)

Contiene:
- Rental: testata del noleggio (aggregate root)
- RentalDevice: dispositivi impegnati
- RentalProduct: righe prodotto con la quantità prelevata
- RentalProductUnit: unità serializzate impegnate
- RentalChipRange: range di chip prenotati per tipo
"""

from __future__ import annotations
from datetime import datetime
from enum import Enum
from typing import List, Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from crono_rentals.models import Base
from crono_rentals.models.chip_type import ChipType
from crono_rentals.models.client import Client
from crono_rentals.models.device import Device
from crono_rentals.models.mixins import IntegerIDMixin, TimestampMixin
from crono_rentals.models.product import Product
from crono_rentals.models.product_unit import ProductUnit


class RentalStatus(str, Enum):
    """Stati del noleggio. RETURNED e CANCELLED sono terminali."""
    ACTIVE = "ACTIVE"
    RETURNED = "RETURNED"
    CANCELLED = "CANCELLED"


class Rental(Base, IntegerIDMixin, TimestampMixin):
    """
    Noleggio di attrezzatura a un cliente.

    Le collezioni figlie e il cliente sono caricati in modo eager
    (selectin/joined): ogni SELECT sul noleggio restituisce l'aggregato
    completo, senza lazy load implicito sotto AsyncSession.

    Attributes:
        client_id: FK al cliente
        start_date: Data/ora inizio
        expected_end_date: Data/ora fine prevista
        actual_end_date: Data/ora di rientro (solo RETURNED)
        status: Stato del noleggio
        notes: Note libere
    """

    __tablename__ = "rentals"

    client_id: Mapped[int] = mapped_column(
        ForeignKey("clients.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    expected_end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    actual_end_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=RentalStatus.ACTIVE.value,
    )

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relazioni
    client: Mapped[Client] = relationship(Client, lazy="joined")

    devices: Mapped[List["RentalDevice"]] = relationship(
        back_populates="rental",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="RentalDevice.id",
    )

    products: Mapped[List["RentalProduct"]] = relationship(
        back_populates="rental",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="RentalProduct.id",
    )

    product_units: Mapped[List["RentalProductUnit"]] = relationship(
        back_populates="rental",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="RentalProductUnit.id",
    )

    chip_ranges: Mapped[List["RentalChipRange"]] = relationship(
        back_populates="rental",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="RentalChipRange.id",
    )

    __table_args__ = (
        Index("ix_rentals_status", "status"),
        Index("ix_rentals_created_at", "created_at"),
    )

    @property
    def is_active(self) -> bool:
        """True finché il noleggio non è stato restituito o annullato."""
        return self.status == RentalStatus.ACTIVE.value

    def __repr__(self) -> str:
        return f"<Rental(id={self.id}, client_id={self.client_id}, status={self.status})>"


class RentalDevice(Base, IntegerIDMixin):
    """Dispositivo impegnato in un noleggio."""

    __tablename__ = "rental_devices"

    rental_id: Mapped[int] = mapped_column(
        ForeignKey("rentals.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    device_id: Mapped[int] = mapped_column(
        ForeignKey("devices.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    rental: Mapped[Rental] = relationship(back_populates="devices")
    device: Mapped[Device] = relationship(Device, lazy="joined")

    __table_args__ = (
        UniqueConstraint("rental_id", "device_id", name="uq_rental_devices_rental_device"),
    )


class RentalProduct(Base, IntegerIDMixin):
    """
    Riga prodotto del noleggio.

    quantity è la fotografia della quantità prelevata alla creazione:
    alla chiusura viene restituita esattamente questa quantità.
    """

    __tablename__ = "rental_products"

    rental_id: Mapped[int] = mapped_column(
        ForeignKey("rentals.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    rental: Mapped[Rental] = relationship(back_populates="products")
    product: Mapped[Product] = relationship(Product, lazy="joined")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_rental_products_quantity_positive"),
    )


class RentalProductUnit(Base, IntegerIDMixin):
    """Unità serializzata impegnata in un noleggio."""

    __tablename__ = "rental_product_units"

    rental_id: Mapped[int] = mapped_column(
        ForeignKey("rentals.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_unit_id: Mapped[int] = mapped_column(
        ForeignKey("product_units.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    rental: Mapped[Rental] = relationship(back_populates="product_units")
    product_unit: Mapped[ProductUnit] = relationship(ProductUnit, lazy="joined")

    __table_args__ = (
        UniqueConstraint(
            "rental_id", "product_unit_id", name="uq_rental_product_units_rental_unit"
        ),
    )


class RentalChipRange(Base, IntegerIDMixin):
    """
    Range di chip [range_start, range_end] (estremi inclusi) prenotato
    su un tipo di chip. Non viene mai "rilasciato" e non è verificato
    contro le sovrapposizioni con altri noleggi.
    """

    __tablename__ = "rental_chip_ranges"

    rental_id: Mapped[int] = mapped_column(
        ForeignKey("rentals.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    chip_type_id: Mapped[int] = mapped_column(
        ForeignKey("chip_types.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    range_start: Mapped[int] = mapped_column(Integer, nullable=False)
    range_end: Mapped[int] = mapped_column(Integer, nullable=False)

    rental: Mapped[Rental] = relationship(back_populates="chip_ranges")
    chip_type: Mapped[ChipType] = relationship(ChipType, lazy="joined")

    __table_args__ = (
        CheckConstraint("range_start <= range_end", name="ck_rental_chip_ranges_order"),
    )
