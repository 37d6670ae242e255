"""
Servizio per l'autenticazione
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)

Business logic per login e cambio password.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from crono_rentals.core.exceptions import AuthenticationError
from crono_rentals.core.security import create_access_token, hash_password, verify_password
from crono_rentals.models.user import User
from crono_rentals.schemas.token import LoginResponse
from crono_rentals.schemas.user import UserLogin, UserResponse

logger = logging.getLogger(__name__)


class AuthService:
    """Servizio per la gestione dell'autenticazione."""

    async def login(self, db: AsyncSession, data: UserLogin) -> LoginResponse:
        """
        Autentica un utente e restituisce il token JWT.

        Args:
            db: Sessione database
            data: Credenziali dell'utente

        Returns:
            LoginResponse con utente e access token

        Raises:
            AuthenticationError: INVALID_CREDENTIALS se email o password
                non corrispondono, USER_INACTIVE se l'utente è disattivato
        """
        result = await db.execute(
            select(User).where(User.email == data.email.lower())
        )
        user = result.scalar_one_or_none()

        # Stesso errore per email inesistente e password errata
        if user is None or not verify_password(data.password, user.hashed_password):
            logger.warning("Login fallito per %s", data.email)
            raise AuthenticationError(
                "Email o password non corretti",
                error_code="INVALID_CREDENTIALS",
            )

        if not user.is_active:
            logger.warning("Login di utente disattivato: %s", user.id)
            raise AuthenticationError("Utente disattivato", error_code="USER_INACTIVE")

        token = create_access_token(user.id, user.role)
        logger.info("Login effettuato: utente %s", user.id)

        return LoginResponse(
            user=UserResponse.model_validate(user),
            token=token,
            token_type="bearer",
        )

    async def change_password(
        self,
        db: AsyncSession,
        user: User,
        current_password: str,
        new_password: str,
    ) -> None:
        """
        Cambia la password dell'utente autenticato.

        Raises:
            AuthenticationError: INVALID_CURRENT_PASSWORD
        """
        if not verify_password(current_password, user.hashed_password):
            logger.warning("Password attuale errata per l'utente %s", user.id)
            raise AuthenticationError(
                "Password attuale non corretta",
                error_code="INVALID_CURRENT_PASSWORD",
            )

        user.hashed_password = hash_password(new_password)
        await db.flush()
        logger.info("Password cambiata per l'utente %s", user.id)


auth_service = AuthService()
