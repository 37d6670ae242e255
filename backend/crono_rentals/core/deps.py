"""
Dependency Injection per autenticazione
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)

Funzioni di dependency injection per autenticazione e autorizzazione.
"""

from typing import Annotated, Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from crono_rentals.core.database import get_db
from crono_rentals.core.exceptions import AuthenticationError, AuthorizationError
from crono_rentals.core.security import decode_token
from crono_rentals.models.user import User, UserRole

# OAuth2 scheme - estrae il token dall'header Authorization
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl="/api/v1/auth/login",
    auto_error=False,
)


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Dependency per ottenere l'utente corrente dal token JWT.

    Args:
        token: Token JWT estratto dall'header Authorization
        db: Sessione database

    Returns:
        L'utente corrente

    Raises:
        AuthenticationError: Se il token è invalido, scaduto o l'utente non è attivo
    """
    if not token:
        raise AuthenticationError(
            "Token di autenticazione non fornito",
            error_code="MISSING_TOKEN",
        )

    token_data = decode_token(token)

    if token_data.type != "access":
        raise AuthenticationError(
            "Token non valido per questa operazione",
            error_code="INVALID_TOKEN",
        )

    try:
        user_id = int(token_data.sub)
    except ValueError:
        raise AuthenticationError("ID utente invalido nel token", error_code="INVALID_TOKEN")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    # Utente inesistente o disattivato: stesso codice per non rivelare quale
    if user is None or not user.is_active:
        raise AuthenticationError(
            "Utente non autorizzato",
            error_code="USER_UNAUTHORIZED",
        )

    return user


def require_role(*allowed_roles: UserRole):
    """
    Factory function per creare una dependency che verifica il ruolo.

    Args:
        allowed_roles: Ruoli permessi per l'endpoint

    Returns:
        Dependency che verifica il ruolo dell'utente

    Example:
        @router.post("/admin-only")
        async def admin_endpoint(admin: User = Depends(require_role(UserRole.ADMIN))):
            ...
    """
    async def role_checker(
        current_user: Annotated[User, Depends(get_current_user)]
    ) -> User:
        if current_user.role not in allowed_roles:
            raise AuthorizationError(
                f"Accesso negato. Ruolo richiesto: {', '.join(r.value for r in allowed_roles)}",
            )
        return current_user

    return role_checker


# Type aliases per uso comune
CurrentUser = Annotated[User, Depends(get_current_user)]
AdminUser = Annotated[User, Depends(require_role(UserRole.ADMIN))]


# Export
__all__ = [
    "get_current_user",
    "require_role",
    "oauth2_scheme",
    "CurrentUser",
    "AdminUser",
]
