"""
Pytest configuration and fixtures.

I test girano su un database SQLite (aiosqlite) creato in una directory
temporanea per ogni test: stessi modelli e servizi della produzione,
senza PostgreSQL. SQLite ignora FOR UPDATE ma rispetta transazioni,
CHECK constraint e (con il PRAGMA) le foreign key.
"""

import os

# Le impostazioni vengono lette all'import di crono_rentals
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-pytest-only")

from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from crono_rentals.core.database import get_db
from crono_rentals.core.security import create_access_token, hash_password
from crono_rentals.main import app
from crono_rentals.models import (
    Base,
    ChipType,
    Client,
    Device,
    DeviceModel,
    ManufactoringStatus,
    OperationalStatus,
    Product,
    ProductType,
    ProductUnit,
    ProductUnitStatus,
    User,
    UserRole,
)


# ============================================================
# Database
# ============================================================


@pytest.fixture
async def engine(tmp_path):
    """Engine SQLite su file temporaneo con le tabelle create."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")

    @event.listens_for(engine.sync_engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    """Session factory con la stessa configurazione dell'applicazione."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db(session_factory):
    """Sessione per i test dei servizi."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    """Client HTTP sull'app FastAPI, con get_db puntato al database di test."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()


# ============================================================
# Utenti e token
# ============================================================


async def _create_user(session_factory, email: str, role: UserRole, password: str = "secret123"):
    async with session_factory() as session:
        user = User(
            email=email,
            hashed_password=hash_password(password),
            name=email.split("@")[0],
            role=role.value,
            is_active=True,
        )
        session.add(user)
        await session.commit()
        return user


@pytest.fixture
async def admin_user(session_factory):
    return await _create_user(session_factory, "admin@crono.com", UserRole.ADMIN)


@pytest.fixture
async def plain_user(session_factory):
    return await _create_user(session_factory, "user@crono.com", UserRole.USER)


@pytest.fixture
def admin_headers(admin_user):
    token = create_access_token(admin_user.id, admin_user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers(plain_user):
    token = create_access_token(plain_user.id, plain_user.role)
    return {"Authorization": f"Bearer {token}"}


# ============================================================
# Factory per le anagrafiche
# ============================================================


@pytest.fixture
def make_client(db):
    """Crea e conferma un cliente."""

    async def factory(name: str = "Cronochip", code_sportmaniacs=None, **kwargs) -> Client:
        client = Client(name=name, code_sportmaniacs=code_sportmaniacs, **kwargs)
        db.add(client)
        await db.commit()
        return client

    return factory


@pytest.fixture
def make_device(db):
    """Crea un dispositivo; di default pronto per il noleggio."""
    counter = {"n": 0}

    async def factory(
        available_for_rental: bool = True,
        operational_status: OperationalStatus = OperationalStatus.AVAILABLE,
        model: DeviceModel = DeviceModel.TS2,
        **kwargs,
    ) -> Device:
        counter["n"] += 1
        device = Device(
            model=model.value,
            manufactoring_code=kwargs.pop("manufactoring_code", f"MC-{counter['n']:04d}"),
            manufactoring_status=ManufactoringStatus.COMPLETED.value,
            operational_status=operational_status.value,
            available_for_rental=available_for_rental,
            **kwargs,
        )
        db.add(device)
        await db.commit()
        return device

    return factory


@pytest.fixture
def make_product(db):
    """Crea un prodotto con tutta la quantità disponibile."""

    async def factory(
        name: str = "Antenna",
        total: int = 10,
        type: ProductType = ProductType.ANTENNA,
    ) -> Product:
        product = Product(
            name=name,
            type=type.value,
            total_quantity=total,
            available_quantity=total,
            rented_quantity=0,
            in_repair_quantity=0,
        )
        db.add(product)
        await db.commit()
        return product

    return factory


@pytest.fixture
def make_unit(db):
    """Crea un'unità serializzata."""
    counter = {"n": 0}

    async def factory(
        status: ProductUnitStatus = ProductUnitStatus.AVAILABLE,
        type: ProductType = ProductType.STOPWATCH,
        serial_number=None,
    ) -> ProductUnit:
        counter["n"] += 1
        unit = ProductUnit(
            type=type.value,
            serial_number=serial_number or f"SN-{counter['n']:04d}",
            status=status.value,
        )
        db.add(unit)
        await db.commit()
        return unit

    return factory


@pytest.fixture
def make_chip_type(db):
    """Crea un tipo di chip con una sequenza opzionale."""

    async def factory(name: str = "TRITON", sequence=None, total_stock: int = 1000) -> ChipType:
        chip_type = ChipType(
            name=name,
            display_name=name.title(),
            total_stock=total_stock,
            sequence_data=sequence,
        )
        db.add(chip_type)
        await db.commit()
        return chip_type

    return factory


# ============================================================
# Date
# ============================================================


@pytest.fixture
def rental_dates():
    """(inizio, fine prevista) di un noleggio di tre giorni."""
    start = datetime(2024, 6, 1, 8, 0, tzinfo=timezone.utc)
    return start, start + timedelta(days=3)
