"""
Reset del database: elimina e ricrea tutte le tabelle, poi inserisce
l'amministratore e il cliente interno configurati nei settings.

Uso: python reset_db.py (dopo pip install -e .)
"""

import asyncio
import logging

from crono_rentals.core.config import settings
from crono_rentals.core.database import AsyncSessionLocal, engine
from crono_rentals.core.security import hash_password
from crono_rentals.models import Base, Client, User, UserRole

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("reset_db")


async def reset():
    logger.info("Connessione al database, eliminazione tabelle...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        logger.info("Tabelle eliminate. Creazione nuove tabelle...")
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        db.add(
            User(
                email=settings.seed_admin_email.lower(),
                hashed_password=hash_password(settings.seed_admin_password),
                name=settings.seed_admin_name,
                role=UserRole.ADMIN.value,
            )
        )
        db.add(
            Client(
                name=settings.seed_internal_client_name,
                code_sportmaniacs=settings.seed_internal_client_code,
            )
        )
        await db.commit()

    logger.info("Creati amministratore %s e cliente %s", settings.seed_admin_email, settings.seed_internal_client_name)
    await engine.dispose()
    logger.info("Database resettato con successo!")


if __name__ == "__main__":
    asyncio.run(reset())
