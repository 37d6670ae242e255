"""
Schemas Pydantic per l'entità User
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)

Schemas per validazione e serializzazione dati utente.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from crono_rentals.models.user import UserRole


class UserCreate(BaseModel):
    """
    Schema per la creazione di un nuovo utente.

    Attributes:
        email: Email dell'utente (deve essere univoca)
        password: Password in chiaro (min 6 caratteri)
        name: Nome completo dell'utente
        role: Ruolo dell'utente (default: USER)
    """

    email: EmailStr = Field(..., description="Email univoca dell'utente")
    password: str = Field(
        min_length=6,
        max_length=100,
        description="Password in chiaro (min 6 caratteri)",
    )
    name: str = Field(
        min_length=1,
        max_length=100,
        description="Nome completo dell'utente",
    )
    role: UserRole = Field(
        default=UserRole.USER,
        description="Ruolo dell'utente",
    )

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Il nome non può essere vuoto")
        return v


class UserLogin(BaseModel):
    """
    Schema per il login utente.

    Attributes:
        email: Email dell'utente
        password: Password in chiaro
    """

    email: EmailStr = Field(..., description="Email dell'utente")
    password: str = Field(..., min_length=1, description="Password in chiaro")


class UserUpdate(BaseModel):
    """
    Schema per l'aggiornamento di un utente.

    Tutti i campi sono opzionali per permettere aggiornamenti parziali.
    """

    email: Optional[EmailStr] = Field(None, description="Email dell'utente")
    name: Optional[str] = Field(
        None,
        min_length=1,
        max_length=100,
        description="Nome completo dell'utente",
    )
    role: Optional[UserRole] = Field(None, description="Ruolo dell'utente")
    is_active: Optional[bool] = Field(None, description="Indica se l'utente è attivo")


class PasswordChange(BaseModel):
    """Cambio della propria password (richiede quella attuale)."""

    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=100)


class PasswordReset(BaseModel):
    """Reset della password di un altro utente da parte di un ADMIN."""

    new_password: str = Field(..., min_length=6, max_length=100)


class UserResponse(BaseModel):
    """
    Schema per la risposta contenente dati utente.

    Non espone mai la password hashata.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="ID dell'utente")
    email: str = Field(..., description="Email dell'utente")
    name: str = Field(..., description="Nome completo dell'utente")
    role: UserRole = Field(..., description="Ruolo dell'utente")
    is_active: bool = Field(..., description="Indica se l'utente è attivo")
    created_at: datetime = Field(..., description="Data/ora di creazione")


# Export degli schemas
__all__ = [
    "UserCreate",
    "UserLogin",
    "UserUpdate",
    "PasswordChange",
    "PasswordReset",
    "UserResponse",
]
