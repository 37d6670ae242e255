"""
Tests for RentalService.

Creazione, rientro e annullamento sono transazioni tutto-o-niente:
dopo un errore nessuna risorsa deve risultare modificata.
"""

from datetime import timedelta

import pytest

from crono_rentals.core.exceptions import BusinessValidationError, NotFoundError
from crono_rentals.models import OperationalStatus, ProductUnitStatus, RentalStatus
from crono_rentals.schemas.rental import (
    ChipRangeCreate,
    RentalCreate,
    RentalProductLine,
    RentalRead,
    RentalUpdate,
)
from crono_rentals.services.rental_service import (
    build_chip_csv,
    chip_file_name,
    rental_service,
    sanitize_filename,
)


TRITON_SEQUENCE = [
    {"chip": 1, "code": "A1"},
    {"chip": 2, "code": "A2"},
    {"chip": 3, "code": "A3"},
]


@pytest.fixture
def new_rental(rental_dates):
    """Costruisce il payload di creazione con le date di default."""
    start, end = rental_dates

    def build(client_id: int, **kwargs) -> RentalCreate:
        return RentalCreate(client_id=client_id, start_date=start, expected_end_date=end, **kwargs)

    return build


# ============================================================
# Creazione
# ============================================================


class TestCreateRental:
    """Tests for rental creation."""

    async def test_create_rents_product_quantity(self, db, make_client, make_product, new_rental):
        """Test prelievo di 4 pezzi da un prodotto con 50 disponibili."""
        customer = await make_client()
        product = await make_product(total=50)

        rental = await rental_service.create(
            db,
            new_rental(customer.id, products=[RentalProductLine(product_id=product.id, quantity=4)]),
        )

        assert rental.status == RentalStatus.ACTIVE.value
        assert rental.actual_end_date is None
        assert rental.client.id == customer.id
        assert len(rental.products) == 1
        assert rental.products[0].quantity == 4

        await db.refresh(product)
        assert product.available_quantity == 46
        assert product.rented_quantity == 4
        assert product.total_quantity == 50

    async def test_create_reserves_every_resource(
        self, db, make_client, make_device, make_product, make_unit, make_chip_type, new_rental
    ):
        customer = await make_client()
        device = await make_device()
        product = await make_product(total=5)
        unit = await make_unit()
        chip_type = await make_chip_type(sequence=TRITON_SEQUENCE)

        rental = await rental_service.create(
            db,
            new_rental(
                customer.id,
                notes="Maratona",
                device_ids=[device.id],
                products=[RentalProductLine(product_id=product.id, quantity=2)],
                product_unit_ids=[unit.id],
                chip_ranges=[ChipRangeCreate(chip_type_id=chip_type.id, range_start=1, range_end=2)],
            ),
        )

        assert [rd.device_id for rd in rental.devices] == [device.id]
        assert [ru.product_unit_id for ru in rental.product_units] == [unit.id]
        assert rental.chip_ranges[0].range_start == 1
        assert rental.chip_ranges[0].range_end == 2

        await db.refresh(device)
        await db.refresh(unit)
        assert device.operational_status == OperationalStatus.RENTED.value
        assert unit.status == ProductUnitStatus.RENTED.value

        # L'aggregato è serializzabile senza lazy load
        body = RentalRead.model_validate(rental)
        assert body.client.name == customer.name
        assert body.devices[0].device.manufactoring_code == device.manufactoring_code

    async def test_not_enough_product_quantity(self, db, make_client, make_product, new_rental):
        customer = await make_client()
        product = await make_product(total=50)

        with pytest.raises(BusinessValidationError) as exc:
            await rental_service.create(
                db,
                new_rental(
                    customer.id, products=[RentalProductLine(product_id=product.id, quantity=999)]
                ),
            )

        assert exc.value.error_code == "NOT_ENOUGH_PRODUCT_QUANTITY"
        await db.refresh(product)
        assert product.available_quantity == 50
        assert product.rented_quantity == 0

    async def test_device_already_rented(self, db, make_client, make_device, new_rental):
        customer = await make_client()
        device = await make_device(operational_status=OperationalStatus.RENTED)

        with pytest.raises(BusinessValidationError) as exc:
            await rental_service.create(db, new_rental(customer.id, device_ids=[device.id]))

        assert exc.value.error_code == "DEVICE_NOT_AVAILABLE"
        await db.refresh(device)
        assert device.operational_status == OperationalStatus.RENTED.value

    async def test_device_not_rentable(self, db, make_client, make_device, new_rental):
        """Test il flag available_for_rental è verificato prima dello stato."""
        customer = await make_client()
        device = await make_device(
            available_for_rental=False,
            operational_status=OperationalStatus.RENTED,
        )

        with pytest.raises(BusinessValidationError) as exc:
            await rental_service.create(db, new_rental(customer.id, device_ids=[device.id]))

        assert exc.value.error_code == "DEVICE_NOT_AVAILABLE_FOR_RENTAL"

    async def test_invalid_chip_range(self, db, make_client, make_chip_type, new_rental):
        customer = await make_client()
        chip_type = await make_chip_type()

        with pytest.raises(BusinessValidationError) as exc:
            await rental_service.create(
                db,
                new_rental(
                    customer.id,
                    chip_ranges=[
                        ChipRangeCreate(chip_type_id=chip_type.id, range_start=500, range_end=10)
                    ],
                ),
            )

        assert exc.value.error_code == "INVALID_CHIP_RANGE"

    async def test_unknown_references(self, db, make_client, new_rental):
        customer = await make_client()

        cases = [
            (new_rental(999), "CLIENT_NOT_FOUND"),
            (new_rental(customer.id, device_ids=[999]), "DEVICE_NOT_FOUND"),
            (
                new_rental(customer.id, products=[RentalProductLine(product_id=999, quantity=1)]),
                "PRODUCT_NOT_FOUND",
            ),
            (new_rental(customer.id, product_unit_ids=[999]), "PRODUCT_UNIT_NOT_FOUND"),
            (
                new_rental(
                    customer.id,
                    chip_ranges=[ChipRangeCreate(chip_type_id=999, range_start=1, range_end=2)],
                ),
                "CHIP_TYPE_NOT_FOUND",
            ),
        ]
        for payload, error_code in cases:
            with pytest.raises(NotFoundError) as exc:
                await rental_service.create(db, payload)
            assert exc.value.error_code == error_code

    async def test_unit_not_available(self, db, make_client, make_unit, new_rental):
        customer = await make_client()
        unit = await make_unit(status=ProductUnitStatus.IN_REPAIR)

        with pytest.raises(BusinessValidationError) as exc:
            await rental_service.create(db, new_rental(customer.id, product_unit_ids=[unit.id]))

        assert exc.value.error_code == "PRODUCT_UNIT_NOT_AVAILABLE"

    async def test_failure_rolls_back_earlier_reservations(
        self, db, make_client, make_device, make_product, make_unit, new_rental
    ):
        """Test un errore sulle unità annulla dispositivi e quantità già prenotati."""
        customer = await make_client()
        device = await make_device()
        product = await make_product(total=10)
        unit = await make_unit(status=ProductUnitStatus.RENTED)

        with pytest.raises(BusinessValidationError) as exc:
            await rental_service.create(
                db,
                new_rental(
                    customer.id,
                    device_ids=[device.id],
                    products=[RentalProductLine(product_id=product.id, quantity=3)],
                    product_unit_ids=[unit.id],
                ),
            )

        assert exc.value.error_code == "PRODUCT_UNIT_NOT_AVAILABLE"
        await db.refresh(device)
        await db.refresh(product)
        assert device.operational_status == OperationalStatus.AVAILABLE.value
        assert product.available_quantity == 10
        assert product.rented_quantity == 0

        rentals, total = await rental_service.get_all(db)
        assert rentals == []
        assert total == 0

    async def test_duplicate_device_ids_are_collapsed(
        self, db, make_client, make_device, new_rental
    ):
        customer = await make_client()
        device = await make_device()

        rental = await rental_service.create(
            db, new_rental(customer.id, device_ids=[device.id, device.id])
        )

        assert len(rental.devices) == 1

    async def test_repeated_product_lines_are_checked_on_the_sum(
        self, db, make_client, make_product, new_rental
    ):
        customer = await make_client()
        product = await make_product(total=5)
        customer_id, product_id = customer.id, product.id
        line = RentalProductLine(product_id=product_id, quantity=3)

        with pytest.raises(BusinessValidationError) as exc:
            await rental_service.create(db, new_rental(customer_id, products=[line, line]))
        assert exc.value.error_code == "NOT_ENOUGH_PRODUCT_QUANTITY"

        line = RentalProductLine(product_id=product_id, quantity=2)
        rental = await rental_service.create(db, new_rental(customer_id, products=[line, line]))

        assert [p.quantity for p in rental.products] == [2, 2]
        await db.refresh(product)
        assert product.available_quantity == 1
        assert product.rented_quantity == 4

    def test_end_before_start_rejected_by_schema(self, rental_dates):
        start, end = rental_dates
        with pytest.raises(ValueError):
            RentalCreate(client_id=1, start_date=end, expected_end_date=start)


# ============================================================
# Chiusura
# ============================================================


class TestCloseRental:
    """Tests for return and cancel."""

    async def _rent(self, db, make_client, make_device, make_product, make_unit, new_rental):
        customer = await make_client()
        device = await make_device()
        product = await make_product(total=50)
        unit = await make_unit()
        rental = await rental_service.create(
            db,
            new_rental(
                customer.id,
                device_ids=[device.id],
                products=[RentalProductLine(product_id=product.id, quantity=4)],
                product_unit_ids=[unit.id],
            ),
        )
        return rental, device, product, unit

    async def test_return_releases_resources(
        self, db, make_client, make_device, make_product, make_unit, new_rental
    ):
        rental, device, product, unit = await self._rent(
            db, make_client, make_device, make_product, make_unit, new_rental
        )
        assert rental.is_active is True

        returned = await rental_service.return_rental(db, rental.id)

        assert returned.status == RentalStatus.RETURNED.value
        assert returned.is_active is False
        assert returned.actual_end_date is not None
        await db.refresh(device)
        await db.refresh(product)
        await db.refresh(unit)
        assert device.operational_status == OperationalStatus.AVAILABLE.value
        assert product.available_quantity == 50
        assert product.rented_quantity == 0
        assert unit.status == ProductUnitStatus.AVAILABLE.value

    async def test_cancel_releases_resources_without_end_date(
        self, db, make_client, make_device, make_product, make_unit, new_rental
    ):
        rental, device, product, unit = await self._rent(
            db, make_client, make_device, make_product, make_unit, new_rental
        )

        cancelled = await rental_service.cancel_rental(db, rental.id)

        assert cancelled.status == RentalStatus.CANCELLED.value
        assert cancelled.actual_end_date is None
        await db.refresh(product)
        assert product.available_quantity == 50

    async def test_close_twice_is_rejected(
        self, db, make_client, make_device, make_product, make_unit, new_rental
    ):
        """Test un noleggio chiuso non rilascia le risorse una seconda volta."""
        rental, _, product, _ = await self._rent(
            db, make_client, make_device, make_product, make_unit, new_rental
        )
        rental_id = rental.id
        await rental_service.return_rental(db, rental_id)

        for close in (rental_service.return_rental, rental_service.cancel_rental):
            with pytest.raises(BusinessValidationError) as exc:
                await close(db, rental_id)
            assert exc.value.error_code == "RENTAL_NOT_ACTIVE"

        await db.refresh(product)
        assert product.available_quantity == 50
        assert product.rented_quantity == 0

    async def test_round_trip_allows_renting_again(
        self, db, make_client, make_device, make_product, make_unit, new_rental
    ):
        rental, device, product, unit = await self._rent(
            db, make_client, make_device, make_product, make_unit, new_rental
        )
        await rental_service.return_rental(db, rental.id)

        again = await rental_service.create(
            db,
            new_rental(
                rental.client_id,
                device_ids=[device.id],
                products=[RentalProductLine(product_id=product.id, quantity=50)],
                product_unit_ids=[unit.id],
            ),
        )

        assert again.status == RentalStatus.ACTIVE.value
        await db.refresh(product)
        assert product.available_quantity == 0
        assert product.rented_quantity == 50

    async def test_unknown_rental(self, db):
        with pytest.raises(NotFoundError) as exc:
            await rental_service.return_rental(db, 999)

        assert exc.value.error_code == "RENTAL_NOT_FOUND"


# ============================================================
# Aggiornamento e letture
# ============================================================


class TestUpdateAndList:
    """Tests for rental update and listing."""

    async def test_update_dates_and_notes(self, db, make_client, new_rental, rental_dates):
        customer = await make_client()
        rental = await rental_service.create(db, new_rental(customer.id))
        start, end = rental_dates

        updated = await rental_service.update(
            db,
            rental.id,
            RentalUpdate(expected_end_date=end + timedelta(days=1), notes="Prorogato"),
        )
        await db.commit()

        assert updated.notes == "Prorogato"

    async def test_update_end_before_stored_start(self, db, make_client, new_rental, rental_dates):
        customer = await make_client()
        rental = await rental_service.create(db, new_rental(customer.id))
        start, _ = rental_dates

        with pytest.raises(BusinessValidationError) as exc:
            await rental_service.update(
                db, rental.id, RentalUpdate(expected_end_date=start - timedelta(days=1))
            )

        assert exc.value.error_code == "INVALID_RENTAL_DATES"

    async def test_update_closed_rental(self, db, make_client, new_rental):
        customer = await make_client()
        rental = await rental_service.create(db, new_rental(customer.id))
        await rental_service.cancel_rental(db, rental.id)

        with pytest.raises(BusinessValidationError) as exc:
            await rental_service.update(db, rental.id, RentalUpdate(notes="x"))

        assert exc.value.error_code == "RENTAL_NOT_ACTIVE"

    async def test_list_filters(self, db, make_client, new_rental):
        first = await make_client(name="Primo")
        second = await make_client(name="Secondo")
        r1 = await rental_service.create(db, new_rental(first.id))
        r2 = await rental_service.create(db, new_rental(second.id))
        await rental_service.cancel_rental(db, r1.id)

        rentals, total = await rental_service.get_all(db)
        assert total == 2
        assert [r.id for r in rentals] == [r2.id, r1.id]

        active, total = await rental_service.get_all(db, status=RentalStatus.ACTIVE)
        assert total == 1
        assert active[0].id == r2.id

        by_client, total = await rental_service.get_all(db, client_id=first.id)
        assert total == 1
        assert by_client[0].id == r1.id

        page, total = await rental_service.get_all(db, page=2, page_size=1)
        assert total == 2
        assert [r.id for r in page] == [r1.id]


# ============================================================
# Sequenze e file dei chip
# ============================================================


class TestChipSequence:
    """Tests for chip sequence slicing and the CSV download."""

    async def test_sequence_is_sliced_to_the_range(
        self, db, make_client, make_chip_type, new_rental
    ):
        customer = await make_client()
        chip_type = await make_chip_type(name="TRITON", sequence=TRITON_SEQUENCE)
        rental = await rental_service.create(
            db,
            new_rental(
                customer.id,
                chip_ranges=[ChipRangeCreate(chip_type_id=chip_type.id, range_start=1, range_end=2)],
            ),
        )

        ranges = await rental_service.get_chip_sequence_for_rental(db, rental.id)

        assert len(ranges) == 1
        assert ranges[0]["chip_type"] == "TRITON"
        assert ranges[0]["sequence"] == [{"chip": 1, "code": "A1"}, {"chip": 2, "code": "A2"}]

    async def test_chip_type_without_sequence(self, db, make_client, make_chip_type, new_rental):
        customer = await make_client()
        chip_type = await make_chip_type(sequence=None)
        rental = await rental_service.create(
            db,
            new_rental(
                customer.id,
                chip_ranges=[ChipRangeCreate(chip_type_id=chip_type.id, range_start=1, range_end=9)],
            ),
        )

        ranges = await rental_service.get_chip_sequence_for_rental(db, rental.id)

        assert ranges[0]["sequence"] == []

    async def test_chip_file(self, db, make_client, make_chip_type, new_rental):
        customer = await make_client(name="Cronochip Team")
        chip_type = await make_chip_type(name="TRITON", sequence=TRITON_SEQUENCE)
        rental = await rental_service.create(
            db,
            new_rental(
                customer.id,
                chip_ranges=[ChipRangeCreate(chip_type_id=chip_type.id, range_start=2, range_end=3)],
            ),
        )

        filename, content = await rental_service.get_chip_file_for_rental(
            db, rental.id, chip_type.id
        )

        assert filename == "cronochip-team-20240601-triton-rent.csv"
        assert content == "Chip,Code\n2,A2\n3,A3\n"

    async def test_chip_file_for_type_not_in_rental(
        self, db, make_client, make_chip_type, new_rental
    ):
        customer = await make_client()
        chip_type = await make_chip_type()
        rental = await rental_service.create(db, new_rental(customer.id))

        with pytest.raises(NotFoundError) as exc:
            await rental_service.get_chip_file_for_rental(db, rental.id, chip_type.id)

        assert exc.value.error_code == "CHIP_TYPE_NOT_IN_RENTAL"


class TestFileHelpers:
    """Tests for file name and CSV helpers."""

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("Cronochip", "cronochip"),
            ("  Maratona   di Roma ", "maratona-di-roma"),
            ("Club Atletico #1 (ASD)", "club-atletico-1-asd"),
            ("a -- b", "a-b"),
        ],
    )
    def test_sanitize_filename(self, name, expected):
        assert sanitize_filename(name) == expected

    def test_chip_file_name_lowercases_chip_type(self, rental_dates):
        start, _ = rental_dates
        assert chip_file_name("Run Club", start, "HuTag") == "run-club-20240601-hutag-rent.csv"

    def test_build_chip_csv_empty_sequence(self):
        assert build_chip_csv([]) == "Chip,Code\n"
