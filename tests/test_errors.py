"""
Store error mapping.

Driver errors are translated into ledger errors (and from there into HTTP
status codes): broken references are 404, other constraint failures are 400,
an unreachable or locked database is 503.
"""

from decimal import Decimal

import pytest
from sqlalchemy.exc import DataError, IntegrityError, OperationalError

from app.core.errors import (
    ConstraintViolationError,
    InvalidInputError,
    StoreUnavailableError,
    classify_integrity_error,
)
from app.models.distributions import Distribution
from app.models.stock_receipts import StockReceipt
from app.services import ledger, reporting


class _PgError(Exception):
    """Stands in for a psycopg2 error, which carries the SQLSTATE as pgcode."""

    def __init__(self, message, pgcode):
        super().__init__(message)
        self.pgcode = pgcode


def _integrity_error(orig):
    return IntegrityError("INSERT INTO distributions ...", {}, orig)


class TestClassifyIntegrityError:

    @pytest.mark.parametrize(
        "message, status, foreign_key",
        [
            ("FOREIGN KEY constraint failed", 404, True),
            ("UNIQUE constraint failed: messes.name", 400, False),
            ("CHECK constraint failed: ck_distribution_quantity_positive", 400, False),
            ("NOT NULL constraint failed: distributions.mess_id", 400, False),
        ],
    )
    def test_sqlite_messages(self, message, status, foreign_key):
        error = classify_integrity_error(_integrity_error(Exception(message)))

        assert isinstance(error, ConstraintViolationError)
        assert error.status_code == status
        assert error.foreign_key is foreign_key

    @pytest.mark.parametrize(
        "pgcode, status, message",
        [
            ("23503", 404, "Referenced record not found"),
            ("23505", 400, "Duplicate entry. This record already exists"),
            ("23514", 400, "Check constraint violation"),
            ("23502", 400, "Required field is missing"),
        ],
    )
    def test_postgres_codes(self, pgcode, status, message):
        error = classify_integrity_error(_integrity_error(_PgError("violation", pgcode)))

        assert error.status_code == status
        assert error.message == message

    def test_unknown_error_is_invalid_input(self):
        error = classify_integrity_error(_integrity_error(Exception("something else")))

        assert error.status_code == 400
        assert error.message == "Invalid input"

    def test_real_foreign_key_violation(self, db_session, make_product):
        product = make_product()
        db_session.add(
            Distribution(
                product_id=product.id,
                mess_id=999,
                quantity=1,
                price_per_unit=Decimal("1.00"),
                unit_type="crate",
                total_value=Decimal("1.00"),
            )
        )

        with pytest.raises(IntegrityError) as exc_info:
            db_session.commit()
        db_session.rollback()

        error = classify_integrity_error(exc_info.value)
        assert error.foreign_key is True
        assert error.status_code == 404


class TestLedgerStoreFailures:

    def test_lost_connection_is_store_unavailable(self, db_session, make_product, make_mess, monkeypatch):
        product = make_product()
        mess = make_mess()
        ledger.receive_stock(db_session, product.id, 5)

        def locked(db, product_id):
            raise OperationalError("SELECT ...", {}, Exception("database is locked"))

        monkeypatch.setattr(ledger, "available_stock", locked)

        with pytest.raises(StoreUnavailableError):
            ledger.record_distribution(db_session, product.id, mess.id, 1, Decimal("1.00"))

        monkeypatch.undo()
        assert db_session.query(Distribution).count() == 0
        assert ledger.available_stock(db_session, product.id) == 5

    def test_out_of_range_value_is_invalid_input(self, db_session, make_product, monkeypatch):
        product = make_product()
        receipt = ledger.receive_stock(db_session, product.id, 5)

        def overflow(db, product_id):
            raise DataError("SELECT ...", {}, Exception("integer out of range"))

        monkeypatch.setattr(ledger, "available_stock", overflow)

        with pytest.raises(InvalidInputError, match="Value out of range"):
            ledger.update_receipt(db_session, receipt.id, {"quantity": 1})

        db_session.expire_all()
        assert db_session.get(StockReceipt, receipt.id).quantity == 5

    def test_integrity_error_is_constraint_violation(self, db_session, make_product, monkeypatch):
        product = make_product()
        receipt = ledger.receive_stock(db_session, product.id, 2)

        def broken(db, product_id):
            raise _integrity_error(Exception("FOREIGN KEY constraint failed"))

        monkeypatch.setattr(ledger, "available_stock", broken)

        with pytest.raises(ConstraintViolationError) as exc_info:
            ledger.delete_receipt(db_session, receipt.id)

        assert exc_info.value.status_code == 404
        assert db_session.get(StockReceipt, receipt.id) is not None


class TestHttpMapping:

    def test_operational_error_is_503(self, client, user_headers, monkeypatch):
        def unavailable(db):
            raise OperationalError("SELECT ...", {}, Exception("could not connect to server"))

        monkeypatch.setattr(reporting, "current_stock", unavailable)

        response = client.get("/dashboard/stock", headers=user_headers)

        assert response.status_code == 503
        assert response.json()["detail"] == "Database unavailable. Please try again"

    def test_integrity_error_is_mapped(self, client, user_headers, monkeypatch):
        def duplicate(db):
            raise _integrity_error(Exception("UNIQUE constraint failed: products.name"))

        monkeypatch.setattr(reporting, "current_stock", duplicate)

        response = client.get("/dashboard/stock", headers=user_headers)

        assert response.status_code == 400
        assert response.json()["detail"] == "Duplicate entry. This record already exists"

    def test_ledger_unavailable_is_503(self, client, admin_headers, user_headers, monkeypatch):
        product = client.post(
            "/products", json={"name": "Eggs", "unit_type": "crate"}, headers=admin_headers
        ).json()

        def locked(db, product_id):
            raise OperationalError("SELECT ...", {}, Exception("database is locked"))

        monkeypatch.setattr(ledger, "get_stock_level", locked)

        response = client.get(f"/products/{product['id']}/stock", headers=user_headers)

        assert response.status_code == 503

    def test_data_error_is_400(self, client, user_headers, monkeypatch):
        def overflow(db):
            raise DataError("SELECT ...", {}, Exception("numeric field overflow"))

        monkeypatch.setattr(reporting, "current_stock", overflow)

        response = client.get("/dashboard/stock", headers=user_headers)

        assert response.status_code == 400
        assert response.json()["detail"] == "Value out of range"
