"""
Tests for the atomic() unit of work.
"""

import pytest
from sqlalchemy.exc import DBAPIError

from crono_rentals.core.database import atomic
from crono_rentals.core.exceptions import TransactionConflictError
from crono_rentals.models import Client
from crono_rentals.services.client_service import client_service


class _DriverError(Exception):
    """Errore del driver con il solo SQLSTATE."""

    def __init__(self, sqlstate):
        super().__init__(f"sqlstate {sqlstate}")
        self.sqlstate = sqlstate


def _dbapi_error(sqlstate):
    return DBAPIError("UPDATE products", {}, _DriverError(sqlstate))


class TestAtomic:
    """Tests for commit, rollback and conflict mapping."""

    async def test_commits_on_success(self, db):
        async with atomic(db):
            db.add(Client(name="Confermato"))

        _, total = await client_service.get_all(db)
        assert total == 1

    async def test_rolls_back_on_error(self, db):
        with pytest.raises(RuntimeError):
            async with atomic(db):
                db.add(Client(name="Annullato"))
                await db.flush()
                raise RuntimeError("errore")

        _, total = await client_service.get_all(db)
        assert total == 0

    @pytest.mark.parametrize("sqlstate", ["40001", "40P01"])
    async def test_serialization_failure_is_retryable_conflict(self, db, sqlstate):
        """Test conflitto di serializzazione e deadlock diventano un 409 da ripetere."""
        with pytest.raises(TransactionConflictError) as exc:
            async with atomic(db):
                db.add(Client(name="In conflitto"))
                await db.flush()
                raise _dbapi_error(sqlstate)

        assert exc.value.status_code == 409
        assert exc.value.error_code == "TRANSACTION_CONFLICT"
        assert exc.value.extra == {"retryable": True}
        assert isinstance(exc.value.__cause__, DBAPIError)

        _, total = await client_service.get_all(db)
        assert total == 0

    async def test_other_driver_errors_propagate_unchanged(self, db):
        error = _dbapi_error("23505")

        with pytest.raises(DBAPIError) as exc:
            async with atomic(db):
                raise error

        assert exc.value is error
