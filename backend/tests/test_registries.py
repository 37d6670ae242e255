"""
Tests for the registry services: clienti, dispositivi, unità, utenti.
"""

import pytest

from crono_rentals.core.exceptions import DuplicateError, NotFoundError
from crono_rentals.core.security import verify_password
from crono_rentals.models import (
    DeviceModel,
    ManufactoringStatus,
    OperationalStatus,
    ProductType,
    ProductUnitStatus,
    UserRole,
)
from crono_rentals.schemas.client import ClientCreate, ClientUpdate
from crono_rentals.schemas.common import ActiveFilter
from crono_rentals.schemas.device import DeviceCreate, DeviceUpdate
from crono_rentals.schemas.product_unit import ProductUnitCreate, ProductUnitUpdate
from crono_rentals.schemas.user import UserCreate, UserUpdate
from crono_rentals.services.client_service import client_service
from crono_rentals.services.device_service import device_service
from crono_rentals.services.product_unit_service import product_unit_service
from crono_rentals.services.user_service import user_service


# ============================================================
# Clienti
# ============================================================


class TestClientService:
    """Tests for ClientService."""

    async def test_create_and_lookup_by_code(self, db):
        client = await client_service.create(
            db, ClientCreate(name="Cronochip", code_sportmaniacs=1, email="info@crono.com")
        )
        await db.commit()

        found = await client_service.get_by_sportmaniacs_code(db, 1)

        assert found.id == client.id
        assert found.is_active is True

    async def test_duplicate_code(self, db, make_client):
        await make_client(name="Primo", code_sportmaniacs=7)

        with pytest.raises(DuplicateError) as exc:
            await client_service.create(db, ClientCreate(name="Secondo", code_sportmaniacs=7))

        assert exc.value.error_code == "CODE_SPORTMANIACS_ALREADY_EXISTS"

    async def test_clients_without_code_do_not_collide(self, db):
        await client_service.create(db, ClientCreate(name="Senza codice A"))
        await client_service.create(db, ClientCreate(name="Senza codice B"))
        await db.commit()

        clients, total = await client_service.get_all(db)
        assert total == 2

    async def test_update_to_taken_code(self, db, make_client):
        await make_client(name="Primo", code_sportmaniacs=1)
        other = await make_client(name="Secondo", code_sportmaniacs=2)

        with pytest.raises(DuplicateError):
            await client_service.update(db, other.id, ClientUpdate(code_sportmaniacs=1))

    async def test_soft_delete_and_active_filter(self, db, make_client):
        """Test il cliente eliminato resta leggibile ma esce dalla lista di default."""
        kept = await make_client(name="Attivo")
        removed = await make_client(name="Eliminato")

        await client_service.delete(db, removed.id)
        await db.commit()

        active, total = await client_service.get_all(db)
        assert [c.id for c in active] == [kept.id]
        assert total == 1

        inactive, _ = await client_service.get_all(db, active=ActiveFilter.FALSE)
        assert [c.id for c in inactive] == [removed.id]

        _, total_all = await client_service.get_all(db, active=ActiveFilter.ALL)
        assert total_all == 2

        assert (await client_service.get_by_id(db, removed.id)).is_active is False
        reactivated = await client_service.reactivate(db, removed.id)
        assert reactivated.is_active is True

    async def test_unknown_client(self, db):
        with pytest.raises(NotFoundError) as exc:
            await client_service.get_by_id(db, 123)
        assert exc.value.error_code == "CLIENT_NOT_FOUND"


# ============================================================
# Dispositivi
# ============================================================


class TestDeviceService:
    """Tests for DeviceService."""

    async def test_create_uses_column_defaults(self, db):
        device = await device_service.create(
            db, DeviceCreate(model=DeviceModel.TSONE, manufactoring_code="TS1-0001")
        )

        assert device.manufactoring_status == ManufactoringStatus.PENDING.value
        assert device.operational_status == OperationalStatus.IN_MANUFACTURING.value
        assert device.available_for_rental is False
        assert device.owner_id is None

    async def test_duplicate_manufactoring_code(self, db, make_device):
        await make_device(manufactoring_code="TS2-0001")

        with pytest.raises(DuplicateError) as exc:
            await device_service.create(
                db, DeviceCreate(model=DeviceModel.TS2, manufactoring_code="TS2-0001")
            )

        assert exc.value.error_code == "MANUFACTORING_CODE_ALREADY_EXISTS"

    async def test_create_with_unknown_owner(self, db):
        with pytest.raises(NotFoundError) as exc:
            await device_service.create(
                db,
                DeviceCreate(model=DeviceModel.CLB, manufactoring_code="CLB-1", owner_id=999),
            )
        assert exc.value.error_code == "CLIENT_NOT_FOUND"

    async def test_lookup_by_reader_serial(self, db, make_device):
        device = await make_device(reader1_serial_number="R-100", reader2_serial_number="R-200")

        assert (await device_service.get_by_reader_serial(db, "R-100")).id == device.id
        assert (await device_service.get_by_reader_serial(db, "R-200")).id == device.id
        with pytest.raises(NotFoundError):
            await device_service.get_by_reader_serial(db, "R-300")

    async def test_lookup_by_cpu_and_battery_serial(self, db, make_device):
        device = await make_device(cpu_serial_number="CPU-1", battery_serial_number="BAT-1")

        assert (await device_service.get_by_cpu_serial(db, "CPU-1")).id == device.id
        assert (await device_service.get_by_battery_serial(db, "BAT-1")).id == device.id

    async def test_update_ignores_null_required_fields(self, db, make_device):
        device = await make_device()

        updated = await device_service.update(
            db, device.id, DeviceUpdate(model=None, notes="Revisionato")
        )

        assert updated.model == DeviceModel.TS2.value
        assert updated.notes == "Revisionato"

    async def test_status_changes_and_retire(self, db, make_device):
        device = await make_device(available_for_rental=False)

        device = await device_service.update_manufactoring_status(
            db, device.id, ManufactoringStatus.COMPLETED
        )
        device = await device_service.update_operational_status(
            db, device.id, OperationalStatus.IN_REPAIR
        )
        assert device.manufactoring_status == ManufactoringStatus.COMPLETED.value
        assert device.operational_status == OperationalStatus.IN_REPAIR.value

        device = await device_service.retire(db, device.id)
        assert device.operational_status == OperationalStatus.RETIRED.value

    async def test_assign_and_clear_owner(self, db, make_device, make_client):
        device = await make_device()
        owner = await make_client()

        device = await device_service.assign_owner(db, device.id, owner.id)
        assert device.owner_id == owner.id

        device = await device_service.assign_owner(db, device.id, None)
        assert device.owner_id is None

    async def test_list_filters(self, db, make_device):
        await make_device(model=DeviceModel.TS2)
        await make_device(model=DeviceModel.CLB, available_for_rental=False)

        devices, total = await device_service.get_all(db, model=DeviceModel.CLB)
        assert total == 1
        assert devices[0].model == DeviceModel.CLB.value

        _, total = await device_service.get_all(db, available_for_rental=True)
        assert total == 1


# ============================================================
# Unità serializzate
# ============================================================


class TestProductUnitService:
    """Tests for ProductUnitService."""

    async def test_create_is_available(self, db):
        unit = await product_unit_service.create(
            db, ProductUnitCreate(type=ProductType.PHONE, serial_number="PH-1")
        )
        assert unit.status == ProductUnitStatus.AVAILABLE.value

    async def test_duplicate_serial(self, db, make_unit):
        await make_unit(serial_number="SW-1")

        with pytest.raises(DuplicateError) as exc:
            await product_unit_service.create(
                db, ProductUnitCreate(type=ProductType.STOPWATCH, serial_number="SW-1")
            )
        assert exc.value.error_code == "SERIAL_NUMBER_ALREADY_EXISTS"

    async def test_lookup_update_and_status(self, db, make_unit):
        unit = await make_unit(serial_number="SW-2")

        assert (await product_unit_service.get_by_serial(db, "SW-2")).id == unit.id

        unit = await product_unit_service.update(db, unit.id, ProductUnitUpdate(notes="Vetro rigato"))
        assert unit.notes == "Vetro rigato"

        unit = await product_unit_service.update_status(db, unit.id, ProductUnitStatus.IN_REPAIR)
        assert unit.status == ProductUnitStatus.IN_REPAIR.value

    async def test_soft_delete(self, db, make_unit):
        unit = await make_unit()

        await product_unit_service.delete(db, unit.id)
        await db.commit()

        units, total = await product_unit_service.get_all(db)
        assert total == 0
        assert units == []


# ============================================================
# Utenti
# ============================================================


class TestUserService:
    """Tests for UserService."""

    async def test_create_lowercases_email_and_hashes_password(self, db):
        user = await user_service.create(
            db, UserCreate(email="Mario@Crono.com", password="secret123", name="Mario")
        )

        assert user.email == "mario@crono.com"
        assert user.role == UserRole.USER.value
        assert user.hashed_password != "secret123"
        assert verify_password("secret123", user.hashed_password)

    async def test_duplicate_email(self, db, admin_user):
        with pytest.raises(DuplicateError) as exc:
            await user_service.create(
                db, UserCreate(email="ADMIN@crono.com", password="secret123", name="Altro")
            )
        assert exc.value.error_code == "EMAIL_ALREADY_EXISTS"

    async def test_update_role_and_reset_password(self, db, plain_user):
        user = await user_service.update(db, plain_user.id, UserUpdate(role=UserRole.ADMIN))
        assert user.role == UserRole.ADMIN.value

        await user_service.reset_password(db, plain_user.id, "nuova-password")
        user = await user_service.get_by_id(db, plain_user.id)
        assert verify_password("nuova-password", user.hashed_password)

    async def test_unknown_user(self, db):
        with pytest.raises(NotFoundError) as exc:
            await user_service.get_by_id(db, 404)
        assert exc.value.error_code == "USER_NOT_FOUND"
