"""
Modello SQLAlchemy per l'entità ProductUnit
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)
"""

from __future__ import annotations
from enum import Enum
from typing import Optional

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from crono_rentals.models import Base
from crono_rentals.models.mixins import IntegerIDMixin, SoftDeleteMixin, TimestampMixin


class ProductUnitStatus(str, Enum):
    """Stato di una unità serializzata."""
    AVAILABLE = "AVAILABLE"
    RENTED = "RENTED"
    IN_REPAIR = "IN_REPAIR"
    RETIRED = "RETIRED"


class ProductUnit(Base, IntegerIDMixin, TimestampMixin, SoftDeleteMixin):
    """
    Singola unità serializzata (es. un cronometro o un telefono specifico).

    Attributes:
        type: Tipologia (ProductType)
        serial_number: Numero di serie univoco
        status: Stato corrente, solo AVAILABLE può essere noleggiata
        notes: Note libere
    """

    __tablename__ = "product_units"

    type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)

    serial_number: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        nullable=False,
        doc="Numero di serie univoco",
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ProductUnitStatus.AVAILABLE.value,
        index=True,
    )

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<ProductUnit(id={self.id}, serial={self.serial_number}, status={self.status})>"
