"""
Modello SQLAlchemy per l'entità User
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)

Modello per l'autenticazione e gestione utenti del sistema.
"""

from __future__ import annotations
from enum import Enum

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from crono_rentals.models import Base
from crono_rentals.models.mixins import IntegerIDMixin, SoftDeleteMixin, TimestampMixin


class UserRole(str, Enum):
    """Ruoli utente nel sistema."""
    ADMIN = "ADMIN"
    USER = "USER"


class User(Base, IntegerIDMixin, TimestampMixin, SoftDeleteMixin):
    """
    Modello per gli utenti del sistema.

    Attributes:
        id: Primary key intera
        email: Email univoca dell'utente
        hashed_password: Password hashata (bcrypt)
        name: Nome completo dell'utente
        role: Ruolo dell'utente (ADMIN, USER)
        is_active: False se l'utente è stato disattivato
        created_at: Data/ora creazione record
        updated_at: Data/ora ultimo aggiornamento
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        doc="Email univoca dell'utente",
    )

    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Password hashata",
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        doc="Nome completo dell'utente",
    )

    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=UserRole.USER.value,
        doc="Ruolo dell'utente",
    )

    __table_args__ = (
        Index("ix_users_role", "role"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
