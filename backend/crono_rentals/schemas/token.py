"""
Schemas Pydantic per l'autenticazione JWT
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)

Schemas per il login e il payload dei token JWT.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from crono_rentals.schemas.user import UserResponse


class LoginResponse(BaseModel):
    """
    Schema per la risposta al login.

    Attributes:
        user: Dati dell'utente autenticato
        token: Token di accesso JWT
        token_type: Tipo di token (default: bearer)
    """

    user: UserResponse
    token: str = Field(..., description="Token di accesso JWT")
    token_type: str = Field(default="bearer", description="Tipo di token")


class TokenPayload(BaseModel):
    """
    Schema per il payload contenuto nei token JWT.

    Attributes:
        sub: Subject - ID dell'utente come stringa
        role: Ruolo dell'utente
        exp: Expiration - Data/ora di scadenza
        type: Tipo di token (sempre "access")
    """

    sub: str = Field(..., description="ID utente")
    role: str = Field(..., description="Ruolo dell'utente")
    exp: datetime = Field(..., description="Data/ora di scadenza")
    type: str = Field(..., description="Tipo di token")


# Export degli schemas
__all__ = [
    "LoginResponse",
    "TokenPayload",
]
