"""
Modello SQLAlchemy per l'entità ChipType
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)

Tipi di chip con la relativa tabella di sequenza (numero chip -> codice).
"""

from __future__ import annotations
from typing import Any, Optional

from sqlalchemy import Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from crono_rentals.models import Base
from crono_rentals.models.mixins import IntegerIDMixin, TimestampMixin


class ChipType(Base, IntegerIDMixin, TimestampMixin):
    """
    Tipo di chip.

    sequence_data è una lista ordinata di record {"chip": int, "code": str},
    caricata da CSV. Non è garantito che i numeri siano contigui o ordinati:
    il filtro per range è una scansione lineare.

    Attributes:
        name: Nome tecnico univoco (es. TRITON)
        display_name: Nome visualizzato
        total_stock: Numero di chip posseduti
        sequence_data: Tabella di sequenza, None se mai caricata
    """

    __tablename__ = "chip_types"

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)

    display_name: Mapped[str] = mapped_column(String(150), nullable=False)

    total_stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    sequence_data: Mapped[Optional[list[dict[str, Any]]]] = mapped_column(
        JSON,
        nullable=True,
        doc="Lista di {chip, code}",
    )

    def __repr__(self) -> str:
        return f"<ChipType(id={self.id}, name={self.name})>"
