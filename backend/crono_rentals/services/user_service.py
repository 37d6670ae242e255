"""
Service Layer per l'entità User
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)

Gestione utenti riservata agli amministratori.
"""

import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from crono_rentals.core.exceptions import DuplicateError, NotFoundError
from crono_rentals.core.security import hash_password
from crono_rentals.models.user import User
from crono_rentals.schemas.user import UserCreate, UserUpdate

logger = logging.getLogger(__name__)


class UserService:
    """Service per la gestione degli utenti."""

    async def get_all(
        self,
        db: AsyncSession,
        page: int = 1,
        page_size: int = 10,
    ) -> tuple[list[User], int]:
        """Lista paginata di tutti gli utenti, attivi e non."""
        query = (
            select(User)
            .order_by(User.name.asc(), User.id.asc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        result = await db.execute(query)
        users = list(result.scalars().all())

        count_result = await db.execute(select(func.count(User.id)))
        return users, count_result.scalar() or 0

    async def get_by_id(self, db: AsyncSession, user_id: int) -> User:
        """
        Raises:
            NotFoundError: USER_NOT_FOUND
        """
        user = await db.get(User, user_id)
        if user is None:
            logger.warning("Utente non trovato: %s", user_id)
            raise NotFoundError(f"Utente {user_id} non trovato", error_code="USER_NOT_FOUND")
        return user

    async def get_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def _flush_unique(self, db: AsyncSession, user: User) -> User:
        try:
            await db.flush()
        except IntegrityError as e:
            logger.error("Errore IntegrityError utente: %s", e.orig)
            await db.rollback()
            raise DuplicateError("Email già registrata", error_code="EMAIL_ALREADY_EXISTS") from e
        await db.refresh(user)
        return user

    async def create(self, db: AsyncSession, data: UserCreate) -> User:
        """
        Crea un utente con password hashata.

        Raises:
            DuplicateError: EMAIL_ALREADY_EXISTS
        """
        email = data.email.lower()
        if await self.get_by_email(db, email) is not None:
            logger.warning("Email già registrata: %s", email)
            raise DuplicateError(f"L'email {email} è già registrata", error_code="EMAIL_ALREADY_EXISTS")

        user = User(
            email=email,
            hashed_password=hash_password(data.password),
            name=data.name,
            role=data.role.value,
            is_active=True,
        )
        db.add(user)
        user = await self._flush_unique(db, user)

        logger.info("Creato utente %s (%s, %s)", user.id, user.email, user.role)
        return user

    async def update(self, db: AsyncSession, user_id: int, data: UserUpdate) -> User:
        """
        Aggiorna un utente (solo i campi inviati).

        Raises:
            NotFoundError: USER_NOT_FOUND
            DuplicateError: EMAIL_ALREADY_EXISTS
        """
        user = await self.get_by_id(db, user_id)
        update_data = data.model_dump(exclude_unset=True)

        if update_data.get("email") is not None:
            update_data["email"] = update_data["email"].lower()
            if update_data["email"] != user.email:
                existing = await self.get_by_email(db, update_data["email"])
                if existing is not None:
                    logger.warning("Email già registrata: %s", update_data["email"])
                    raise DuplicateError(
                        f"L'email {update_data['email']} è già registrata",
                        error_code="EMAIL_ALREADY_EXISTS",
                    )
        if update_data.get("role") is not None:
            update_data["role"] = update_data["role"].value

        # Tutti i campi dell'utente sono NOT NULL
        for field, value in update_data.items():
            if value is not None:
                setattr(user, field, value)

        user = await self._flush_unique(db, user)
        logger.info("Aggiornato utente %s", user.id)
        return user

    async def delete(self, db: AsyncSession, user_id: int) -> User:
        """Soft delete: l'utente non può più autenticarsi."""
        user = await self.get_by_id(db, user_id)
        user.is_active = False
        await db.flush()
        logger.info("Disattivato utente %s", user.id)
        return user

    async def reset_password(self, db: AsyncSession, user_id: int, new_password: str) -> None:
        """Reset della password da parte di un amministratore."""
        user = await self.get_by_id(db, user_id)
        user.hashed_password = hash_password(new_password)
        await db.flush()
        logger.info("Password reimpostata per l'utente %s", user.id)


user_service = UserService()
