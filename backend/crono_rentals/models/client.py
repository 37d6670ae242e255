"""
Modello SQLAlchemy per l'entità Client
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)

Rappresenta l'anagrafica dei clienti (organizzatori di eventi sportivi).
"""


from __future__ import annotations
from typing import Optional

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from crono_rentals.models import Base
from crono_rentals.models.mixins import IntegerIDMixin, SoftDeleteMixin, TimestampMixin


class Client(Base, IntegerIDMixin, TimestampMixin, SoftDeleteMixin):
    """
    Modello per l'anagrafica clienti.

    Un cliente può essere proprietario di dispositivi e avere più noleggi.
    Non viene mai eliminato fisicamente: la cancellazione imposta
    is_active=False ed è reversibile.

    Attributes:
        id: Primary key intera
        name: Nome o ragione sociale
        code_sportmaniacs: Codice cliente sulla piattaforma Sportmaniacs (univoco)
        email: Indirizzo email
        is_active: False se il cliente è stato eliminato
    """

    __tablename__ = "clients"

    name: Mapped[str] = mapped_column(
        String(150),
        nullable=False,
        index=True,
        doc="Nome o ragione sociale",
    )

    code_sportmaniacs: Mapped[Optional[int]] = mapped_column(
        Integer,
        unique=True,
        nullable=True,
        doc="Codice cliente Sportmaniacs (univoco)",
    )

    email: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        doc="Indirizzo email",
    )

    def __repr__(self) -> str:
        return f"<Client(id={self.id}, name={self.name!r})>"
