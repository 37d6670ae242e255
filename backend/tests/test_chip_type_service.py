"""
Tests for ChipTypeService and CSV sequence parsing.
"""

import pytest

from crono_rentals.core.exceptions import (
    BusinessValidationError,
    ConflictError,
    DuplicateError,
    NotFoundError,
)
from crono_rentals.schemas.chip_type import ChipTypeCreate, ChipTypeUpdate
from crono_rentals.schemas.rental import ChipRangeCreate, RentalCreate
from crono_rentals.services.chip_type_service import (
    chip_type_service,
    filter_sequence,
    parse_sequence_csv,
)
from crono_rentals.services.rental_service import rental_service


# ============================================================
# Parsing CSV
# ============================================================


class TestParseSequenceCsv:
    """Tests for the Chip,Code CSV parser."""

    def test_comma_separated(self):
        content = b"Chip,Code\n1,A1\n2,A2\n"
        assert parse_sequence_csv(content) == [
            {"chip": 1, "code": "A1"},
            {"chip": 2, "code": "A2"},
        ]

    def test_semicolon_bom_and_blank_lines(self):
        """Test separatore ';', BOM iniziale e righe vuote."""
        content = "\ufeffchip;code\r\n 10 ; X10 \r\n\r\n11;X11\r\n".encode("utf-8")
        assert parse_sequence_csv(content) == [
            {"chip": 10, "code": "X10"},
            {"chip": 11, "code": "X11"},
        ]

    def test_column_order_and_extra_columns(self):
        content = b"Code,Note,Chip\nB7,primo,7\n"
        assert parse_sequence_csv(content) == [{"chip": 7, "code": "B7"}]

    def test_order_is_preserved(self):
        content = b"Chip,Code\n3,C\n1,A\n2,B\n"
        assert [item["chip"] for item in parse_sequence_csv(content)] == [3, 1, 2]

    @pytest.mark.parametrize("content", [b"", b"\n\n", b"Chip,Code\n"])
    def test_empty(self, content):
        with pytest.raises(BusinessValidationError) as exc:
            parse_sequence_csv(content)
        assert exc.value.error_code == "CSV_EMPTY"

    def test_missing_columns(self):
        with pytest.raises(BusinessValidationError) as exc:
            parse_sequence_csv(b"Numero,Codice\n1,A1\n")
        assert exc.value.error_code == "CSV_INVALID_COLUMNS"

    def test_invalid_chip_value_reports_row(self):
        """Test la riga segnalata conta l'intestazione come riga 1."""
        with pytest.raises(BusinessValidationError) as exc:
            parse_sequence_csv(b"Chip,Code\n1,A1\nabc,A2\n")
        assert exc.value.error_code == "CSV_INVALID_CHIP_VALUE_AT_ROW_3"

    def test_wrong_column_count(self):
        with pytest.raises(BusinessValidationError) as exc:
            parse_sequence_csv(b"Chip,Code\n1,A1,extra\n")
        assert exc.value.error_code == "CSV_PARSE_ERROR"

    def test_not_utf8(self):
        with pytest.raises(BusinessValidationError) as exc:
            parse_sequence_csv(b"Chip,Code\n1,\xff\xfe\n")
        assert exc.value.error_code == "CSV_PARSE_ERROR"


class TestFilterSequence:
    """Tests for inclusive range slicing."""

    SEQUENCE = [
        {"chip": 5, "code": "E"},
        {"chip": 1, "code": "A"},
        {"chip": 3, "code": "C"},
        {"chip": 9, "code": "I"},
    ]

    def test_bounds_are_inclusive_and_order_kept(self):
        assert filter_sequence(self.SEQUENCE, 1, 5) == [
            {"chip": 5, "code": "E"},
            {"chip": 1, "code": "A"},
            {"chip": 3, "code": "C"},
        ]

    def test_gaps_yield_only_present_chips(self):
        assert filter_sequence(self.SEQUENCE, 6, 8) == []

    def test_missing_sequence(self):
        assert filter_sequence(None, 1, 100) == []


# ============================================================
# Service
# ============================================================


class TestChipTypeService:
    """Tests for chip type CRUD and sequence upload."""

    async def test_create_and_duplicate_name(self, db):
        chip_type = await chip_type_service.create(
            db, ChipTypeCreate(name="TRITON", display_name="Triton", total_stock=500)
        )
        await db.commit()
        assert chip_type.sequence_data is None

        with pytest.raises(DuplicateError) as exc:
            await chip_type_service.create(
                db, ChipTypeCreate(name="TRITON", display_name="Altro", total_stock=1)
            )
        assert exc.value.error_code == "CHIP_TYPE_NAME_ALREADY_EXISTS"

    async def test_update(self, db, make_chip_type):
        chip_type = await make_chip_type(name="HUTAG")

        updated = await chip_type_service.update(
            db, chip_type.id, ChipTypeUpdate(display_name="HuTag UHF", total_stock=20)
        )

        assert updated.name == "HUTAG"
        assert updated.display_name == "HuTag UHF"
        assert updated.total_stock == 20

    async def test_upload_replaces_sequence(self, db, make_chip_type):
        chip_type = await make_chip_type(sequence=[{"chip": 99, "code": "OLD"}])

        updated = await chip_type_service.upload_sequence(db, chip_type.id, b"Chip,Code\n1,A1\n2,A2\n")
        await db.commit()

        assert updated.sequence_data == [{"chip": 1, "code": "A1"}, {"chip": 2, "code": "A2"}]

    async def test_failed_upload_keeps_previous_sequence(self, db, make_chip_type):
        chip_type = await make_chip_type(sequence=[{"chip": 1, "code": "A1"}])

        with pytest.raises(BusinessValidationError):
            await chip_type_service.upload_sequence(db, chip_type.id, b"Chip,Code\nx,A1\n")

        await db.refresh(chip_type)
        assert chip_type.sequence_data == [{"chip": 1, "code": "A1"}]

    async def test_get_sequence_with_and_without_range(self, db, make_chip_type):
        sequence = [{"chip": n, "code": f"C{n}"} for n in range(1, 6)]
        chip_type = await make_chip_type(sequence=sequence)

        assert await chip_type_service.get_sequence(db, chip_type.id) == sequence
        assert await chip_type_service.get_sequence(db, chip_type.id, start=2, end=3) == [
            {"chip": 2, "code": "C2"},
            {"chip": 3, "code": "C3"},
        ]

    async def test_unknown_chip_type(self, db):
        with pytest.raises(NotFoundError) as exc:
            await chip_type_service.get_by_id(db, 42)
        assert exc.value.error_code == "CHIP_TYPE_NOT_FOUND"

    async def test_delete(self, db, make_chip_type):
        chip_type = await make_chip_type()

        await chip_type_service.delete(db, chip_type.id)
        await db.commit()

        with pytest.raises(NotFoundError):
            await chip_type_service.get_by_id(db, chip_type.id)

    async def test_delete_in_use(self, db, make_chip_type, make_client, rental_dates):
        chip_type = await make_chip_type()
        customer = await make_client()
        start, end = rental_dates
        await rental_service.create(
            db,
            RentalCreate(
                client_id=customer.id,
                start_date=start,
                expected_end_date=end,
                chip_ranges=[ChipRangeCreate(chip_type_id=chip_type.id, range_start=1, range_end=10)],
            ),
        )

        with pytest.raises(ConflictError) as exc:
            await chip_type_service.delete(db, chip_type.id)
        assert exc.value.error_code == "CHIP_TYPE_IN_USE"
