"""
Schemas Pydantic per l'entità Client
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)
"""
# Definisce gli schemi di validazione e serializzazione per l'API.

import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from crono_rentals.schemas.common import PaginationMeta


class ClientBase(BaseModel):
    """Campi comuni del cliente."""

    name: str = Field(..., min_length=1, max_length=150, description="Nome o ragione sociale")
    code_sportmaniacs: Optional[int] = Field(
        None,
        description="Codice cliente Sportmaniacs (univoco)",
    )
    email: Optional[EmailStr] = Field(None, description="Indirizzo email")

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Il nome non può essere vuoto")
        return v


class ClientCreate(ClientBase):
    """Schema per la creazione di un cliente."""
    pass


class ClientUpdate(BaseModel):
    """
    Schema per l'aggiornamento parziale di un cliente.

    Solo i campi esplicitamente inviati vengono modificati
    (model_dump(exclude_unset=True) nel servizio).
    """

    name: Optional[str] = Field(None, min_length=1, max_length=150)
    code_sportmaniacs: Optional[int] = None
    email: Optional[EmailStr] = None


class ClientRead(BaseModel):
    """Schema di risposta per il cliente."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    code_sportmaniacs: Optional[int] = None
    email: Optional[str] = None
    is_active: bool
    created_at: datetime.datetime
    updated_at: datetime.datetime


# -------------------------------------------------------------------
# Schemas per Lista Paginata
# -------------------------------------------------------------------
class ClientList(BaseModel):
    """Lista paginata di clienti."""

    data: list[ClientRead] = Field(default_factory=list)
    meta: PaginationMeta
