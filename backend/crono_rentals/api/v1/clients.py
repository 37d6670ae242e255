"""
Router FastAPI per l'entità Client
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)

Definisce gli endpoint API per la gestione dei clienti.
"""

import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from crono_rentals.core.config import settings
from crono_rentals.core.database import get_db
from crono_rentals.core.deps import get_current_user
from crono_rentals.schemas.client import (
    ClientCreate,
    ClientList,
    ClientRead,
    ClientUpdate,
)
from crono_rentals.schemas.common import ActiveFilter, PaginationMeta
from crono_rentals.services.client_service import client_service

# Logger per questo modulo
logger = logging.getLogger(__name__)

# Router con prefix e tag
router = APIRouter(
    prefix="/clients",
    tags=["Clienti"],
    dependencies=[Depends(get_current_user)],
)


# -------------------------------------------------------------------
# Endpoints
# -------------------------------------------------------------------

@router.get(
    "/",
    name="clienti_lista",
    summary="Lista clienti",
    description="Recupera la lista paginata dei clienti con filtro sullo stato attivo.",
    response_model=ClientList,
    status_code=status.HTTP_200_OK,
)
async def get_clients(
    page: int = Query(1, ge=1, description="Numero pagina"),
    limit: int = Query(
        settings.default_page_size,
        ge=1,
        le=settings.max_page_size,
        description="Elementi per pagina",
    ),
    active: ActiveFilter = Query(ActiveFilter.TRUE, description="true, false o all"),
    db: AsyncSession = Depends(get_db),
) -> ClientList:
    """
    Recupera la lista paginata dei clienti.

    Di default restituisce solo i clienti attivi; active=all include
    anche quelli eliminati.

    Args:
        page: Numero pagina (default 1)
        limit: Elementi per pagina
        active: Filtro sul flag is_active
        db: Sessione database

    Returns:
        ClientList: Lista paginata con metadati
    """
    clients, total = await client_service.get_all(db=db, page=page, limit=limit, active=active)

    return ClientList(
        data=[ClientRead.model_validate(c) for c in clients],
        meta=PaginationMeta.build(total=total, page=page, page_size=limit),
    )


@router.get(
    "/sportmaniacs/{code}",
    name="cliente_per_codice_sportmaniacs",
    summary="Cliente per codice Sportmaniacs",
    response_model=ClientRead,
)
async def get_client_by_sportmaniacs_code(
    code: int,
    db: AsyncSession = Depends(get_db),
) -> ClientRead:
    """Recupera un cliente tramite il codice Sportmaniacs."""
    client = await client_service.get_by_sportmaniacs_code(db, code)
    return ClientRead.model_validate(client)


@router.get(
    "/{client_id}",
    name="cliente_dettaglio",
    summary="Dettaglio cliente",
    response_model=ClientRead,
)
async def get_client(
    client_id: int,
    db: AsyncSession = Depends(get_db),
) -> ClientRead:
    """
    Recupera i dettagli di un cliente, anche se eliminato.

    Raises:
        NotFoundError: CLIENT_NOT_FOUND
    """
    client = await client_service.get_by_id(db, client_id)
    return ClientRead.model_validate(client)


@router.post(
    "/",
    name="cliente_crea",
    summary="Crea cliente",
    response_model=ClientRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_client(
    client_data: ClientCreate,
    db: AsyncSession = Depends(get_db),
) -> ClientRead:
    """
    Crea un nuovo cliente.

    Raises:
        DuplicateError: CODE_SPORTMANIACS_ALREADY_EXISTS
    """
    client = await client_service.create(db, client_data)
    await db.commit()
    return ClientRead.model_validate(client)


@router.patch(
    "/{client_id}",
    name="cliente_aggiorna",
    summary="Aggiorna cliente",
    response_model=ClientRead,
)
async def update_client(
    client_id: int,
    client_data: ClientUpdate,
    db: AsyncSession = Depends(get_db),
) -> ClientRead:
    """Aggiorna parzialmente un cliente esistente."""
    client = await client_service.update(db, client_id, client_data)
    await db.commit()
    return ClientRead.model_validate(client)


@router.delete(
    "/{client_id}",
    name="cliente_elimina",
    summary="Elimina cliente",
    response_model=ClientRead,
)
async def delete_client(
    client_id: int,
    db: AsyncSession = Depends(get_db),
) -> ClientRead:
    """Soft delete: il cliente resta referenziato da dispositivi e noleggi."""
    client = await client_service.delete(db, client_id)
    await db.commit()
    return ClientRead.model_validate(client)


@router.patch(
    "/{client_id}/reactivate",
    name="cliente_riattiva",
    summary="Riattiva cliente",
    response_model=ClientRead,
)
async def reactivate_client(
    client_id: int,
    db: AsyncSession = Depends(get_db),
) -> ClientRead:
    """Riattiva un cliente eliminato."""
    client = await client_service.reactivate(db, client_id)
    await db.commit()
    return ClientRead.model_validate(client)
