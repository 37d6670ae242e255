"""
Modello SQLAlchemy per l'entità Product
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)

Prodotti gestiti a quantità (antenne, cavi, ...) con i quattro contatori
del magazzino.
"""

from __future__ import annotations
from enum import Enum
from typing import Optional

from sqlalchemy import CheckConstraint, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from crono_rentals.models import Base
from crono_rentals.models.mixins import IntegerIDMixin, SoftDeleteMixin, TimestampMixin


class ProductType(str, Enum):
    """Tipologie di prodotto (condivise con le unità serializzate)."""
    ANTENNA = "ANTENNA"
    CABLE = "CABLE"
    PHONE = "PHONE"
    STOPWATCH = "STOPWATCH"
    OTHER = "OTHER"


class Product(Base, IntegerIDMixin, TimestampMixin, SoftDeleteMixin):
    """
    Modello per i prodotti a quantità.

    Invariante: available_quantity + rented_quantity + in_repair_quantity
    == total_quantity, tutti i contatori >= 0.

    I contatori si modificano solo tramite gli UPDATE condizionali del
    servizio prodotti (vedi ProductService), mai assegnando i campi
    dall'ORM.

    Attributes:
        name: Nome del prodotto
        type: Tipologia
        total_quantity: Quantità totale posseduta
        available_quantity: Quantità disponibile a magazzino
        rented_quantity: Quantità fuori a noleggio
        in_repair_quantity: Quantità in riparazione
    """

    __tablename__ = "products"

    name: Mapped[str] = mapped_column(String(150), nullable=False, index=True)

    type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    total_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    available_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    rented_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    in_repair_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("total_quantity >= 0", name="ck_products_total_non_negative"),
        CheckConstraint("available_quantity >= 0", name="ck_products_available_non_negative"),
        CheckConstraint("rented_quantity >= 0", name="ck_products_rented_non_negative"),
        CheckConstraint("in_repair_quantity >= 0", name="ck_products_in_repair_non_negative"),
        CheckConstraint(
            "available_quantity + rented_quantity + in_repair_quantity = total_quantity",
            name="ck_products_buckets_sum",
        ),
    )

    @property
    def used_quantity(self) -> int:
        """Somma dei tre bucket (deve coincidere con total_quantity)."""
        return self.available_quantity + self.rented_quantity + self.in_repair_quantity

    def __repr__(self) -> str:
        return (
            f"<Product(id={self.id}, name={self.name!r}, total={self.total_quantity}, "
            f"available={self.available_quantity}, rented={self.rented_quantity}, "
            f"in_repair={self.in_repair_quantity})>"
        )
