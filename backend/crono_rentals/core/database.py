"""
Configurazione Database - SQLAlchemy 2.0 Async
Progetto: Crono Rentals (Gestione Noleggi Cronometraggio)

Definisce engine, session factory, unità di lavoro transazionale
e dependency injection per FastAPI.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from crono_rentals.core.config import settings
from crono_rentals.core.exceptions import TransactionConflictError

# Logger per questo modulo
logger = logging.getLogger(__name__)

# SQLSTATE di PostgreSQL: serialization_failure, deadlock_detected
RETRYABLE_SQLSTATES = frozenset({"40001", "40P01"})


# ------------------------------------------------------------
# Engine Async SQLAlchemy 2.0
# ------------------------------------------------------------
def _engine_options(database_url: str) -> dict:
    """Opzioni del pool; SQLite non supporta pool_size/max_overflow."""
    if database_url.startswith("sqlite"):
        return {"echo": settings.debug}
    return {
        "echo": settings.debug,  # Log query in modalità debug
        "pool_pre_ping": True,   # Verifica connessione prima di usarla
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
    }


engine: AsyncEngine = create_async_engine(
    settings.database_url,
    **_engine_options(settings.database_url),
)


# ------------------------------------------------------------
# Session Factory
# ------------------------------------------------------------
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency injection per FastAPI.

    Crea una sessione database per ogni richiesta e la chiude
    automaticamente al termine.

    Yields:
        AsyncSession: Sessione database async

    Example:
        @router.get("/clients")
        async def get_clients(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def is_retryable_error(exc: DBAPIError) -> bool:
    """True se l'errore del driver è un conflitto di serializzazione o un deadlock."""
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return sqlstate in RETRYABLE_SQLSTATES


@asynccontextmanager
async def atomic(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Unità di lavoro transazionale.

    Tutte le letture e scritture eseguite sulla sessione dentro il blocco
    vengono confermate insieme all'uscita, oppure annullate tutte se viene
    sollevata un'eccezione.

    La transazione implicita eventualmente aperta dalle letture precedenti
    della richiesta (es. caricamento dell'utente autenticato) viene chiusa
    prima di iniziare, così il blocco parte da una transazione nuova.

    Raises:
        TransactionConflictError: Se il database annulla la transazione per
            conflitto di serializzazione o deadlock (da ripetere lato client)

    Example:
        async with atomic(db):
            await rental_service.create(db, data)
    """
    if db.in_transaction():
        await db.commit()

    try:
        async with db.begin():
            yield db
    except DBAPIError as exc:
        if is_retryable_error(exc):
            logger.warning("Transazione annullata per conflitto concorrente: %s", exc.orig)
            raise TransactionConflictError() from exc
        raise


async def init_db() -> None:
    """
    Inizializza la connessione al database.

    Esegue un test di connessione per verificare
    che il database sia raggiungibile.
    """
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Connessione al database stabilita con successo")
    except Exception as e:
        logger.error("Errore connessione database: %s", e)
        raise


async def close_db() -> None:
    """
    Chiude le connessioni al database.

    Da chiamare durante lo shutdown dell'applicazione.
    """
    await engine.dispose()
    logger.info("Connessioni database chiuse")
