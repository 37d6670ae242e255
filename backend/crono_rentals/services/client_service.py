"""
Service Layer per l'entità Client
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)

Definisce la logica di business per la gestione dei clienti:
- Soft delete (cancellazione logica) e riattivazione
- Validazione proattiva del codice Sportmaniacs
- Vincolo unique come garanzia finale contro le richieste concorrenti
"""

import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from crono_rentals.core.exceptions import DuplicateError, NotFoundError
from crono_rentals.models import Client
from crono_rentals.schemas.client import ClientCreate, ClientUpdate
from crono_rentals.schemas.common import ActiveFilter

# Logger per questo modulo
logger = logging.getLogger(__name__)


class ClientService:
    """
    Service per la gestione delle operazioni CRUD sui clienti.

    Fornisce metodi asincroni per interagire con il database
    in modo centralizzato, senza dipendenze da FastAPI.
    """

    async def get_all(
        self,
        db: AsyncSession,
        page: int = 1,
        limit: int = 10,
        active: ActiveFilter = ActiveFilter.TRUE,
    ) -> tuple[list[Client], int]:
        """
        Recupera la lista paginata dei clienti.

        Di default restituisce solo i clienti attivi; active="all"
        include anche quelli eliminati.

        Args:
            db: Sessione database
            page: Numero pagina (default 1)
            limit: Elementi per pagina (default 10)
            active: Filtro sul flag is_active

        Returns:
            Tuple di (lista clienti, totale count)
        """
        conditions = []
        if active != ActiveFilter.ALL:
            conditions.append(Client.is_active == (active == ActiveFilter.TRUE))

        query = (
            select(Client)
            .where(*conditions)
            .order_by(Client.name.asc(), Client.id.asc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await db.execute(query)
        clients = list(result.scalars().all())

        count_result = await db.execute(
            select(func.count()).select_from(Client).where(*conditions)
        )
        total = count_result.scalar() or 0

        logger.debug(
            "Recuperati %s clienti su %s totali (pagina %s, active=%s)",
            len(clients), total, page, active.value,
        )
        return clients, total

    async def get_by_id(self, db: AsyncSession, client_id: int) -> Client:
        """
        Recupera un cliente tramite ID, anche se eliminato.

        Raises:
            NotFoundError: CLIENT_NOT_FOUND
        """
        result = await db.execute(select(Client).where(Client.id == client_id))
        client = result.scalar_one_or_none()

        if client is None:
            logger.warning("Cliente non trovato: %s", client_id)
            raise NotFoundError(f"Cliente con ID {client_id} non trovato", error_code="CLIENT_NOT_FOUND")

        return client

    async def get_by_sportmaniacs_code(self, db: AsyncSession, code: int) -> Client:
        """
        Recupera un cliente tramite codice Sportmaniacs.

        Raises:
            NotFoundError: CLIENT_NOT_FOUND
        """
        result = await db.execute(select(Client).where(Client.code_sportmaniacs == code))
        client = result.scalar_one_or_none()

        if client is None:
            logger.warning("Cliente con codice Sportmaniacs %s non trovato", code)
            raise NotFoundError(
                f"Cliente con codice Sportmaniacs {code} non trovato",
                error_code="CLIENT_NOT_FOUND",
            )
        return client

    async def _check_code_available(
        self,
        db: AsyncSession,
        code: int,
        exclude_id: Optional[int] = None,
    ) -> None:
        query = select(Client.id).where(Client.code_sportmaniacs == code)
        if exclude_id is not None:
            query = query.where(Client.id != exclude_id)
        result = await db.execute(query)
        existing = result.scalar_one_or_none()
        if existing is not None:
            logger.warning("Codice Sportmaniacs %s già usato dal cliente %s", code, existing)
            raise DuplicateError(
                f"Codice Sportmaniacs {code} già registrato",
                error_code="CODE_SPORTMANIACS_ALREADY_EXISTS",
            )

    async def _flush_unique(self, db: AsyncSession, client: Client) -> Client:
        """Flush traducendo la violazione del vincolo unique in DuplicateError."""
        try:
            await db.flush()
        except IntegrityError as e:
            logger.error("Errore IntegrityError cliente: %s", e.orig)
            await db.rollback()
            raise DuplicateError(
                "Codice Sportmaniacs già registrato",
                error_code="CODE_SPORTMANIACS_ALREADY_EXISTS",
            ) from e
        await db.refresh(client)
        return client

    async def create(self, db: AsyncSession, data: ClientCreate) -> Client:
        """
        Crea un nuovo cliente.

        Raises:
            DuplicateError: CODE_SPORTMANIACS_ALREADY_EXISTS
        """
        if data.code_sportmaniacs is not None:
            await self._check_code_available(db, data.code_sportmaniacs)

        client = Client(**data.model_dump(), is_active=True)
        db.add(client)
        client = await self._flush_unique(db, client)

        logger.info("Creato nuovo cliente: %s - %s", client.id, client.name)
        return client

    async def update(self, db: AsyncSession, client_id: int, data: ClientUpdate) -> Client:
        """
        Aggiorna un cliente esistente (solo i campi inviati).

        Raises:
            NotFoundError: CLIENT_NOT_FOUND
            DuplicateError: CODE_SPORTMANIACS_ALREADY_EXISTS
        """
        client = await self.get_by_id(db, client_id)
        update_data = data.model_dump(exclude_unset=True)

        new_code = update_data.get("code_sportmaniacs")
        if new_code is not None and new_code != client.code_sportmaniacs:
            await self._check_code_available(db, new_code, exclude_id=client_id)

        for field, value in update_data.items():
            setattr(client, field, value)

        client = await self._flush_unique(db, client)
        logger.info("Aggiornato cliente: %s - %s", client.id, client.name)
        return client

    async def delete(self, db: AsyncSession, client_id: int) -> Client:
        """Soft delete: imposta is_active=False."""
        client = await self.get_by_id(db, client_id)
        client.is_active = False
        await db.flush()
        logger.info("Soft delete cliente: %s - %s", client.id, client.name)
        return client

    async def reactivate(self, db: AsyncSession, client_id: int) -> Client:
        """Riattiva un cliente eliminato."""
        client = await self.get_by_id(db, client_id)
        client.is_active = True
        await db.flush()
        logger.info("Riattivato cliente: %s - %s", client.id, client.name)
        return client


client_service = ClientService()
