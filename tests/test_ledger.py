"""
Stock ledger tests.

Available stock is always received minus distributed and never negative;
a rejected distribution leaves the ledger exactly as it was.
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from app.core.errors import InsufficientStockError, InvalidInputError, NotFoundError
from app.models.attendants import Attendant
from app.models.distributions import Distribution
from app.models.stock_receipts import StockReceipt
from app.services import ledger, reporting


class TestAvailableStock:

    def test_new_product_has_no_stock(self, db_session, make_product):
        product = make_product()

        assert ledger.available_stock(db_session, product.id) == 0
        assert ledger.get_stock_level(db_session, product.id) == {
            "total_received": 0,
            "total_distributed": 0,
            "current_stock": 0,
        }

    def test_received_minus_distributed(self, db_session, make_product, make_mess):
        product = make_product()
        mess = make_mess()

        ledger.receive_stock(db_session, product.id, 12)
        ledger.receive_stock(db_session, product.id, 8)
        ledger.record_distribution(db_session, product.id, mess.id, 5, Decimal("10.00"))
        ledger.record_distribution(db_session, product.id, mess.id, 3, Decimal("10.00"))

        assert ledger.get_stock_level(db_session, product.id) == {
            "total_received": 20,
            "total_distributed": 8,
            "current_stock": 12,
        }

    def test_receive_then_distribute_everything_leaves_zero(self, db_session, make_product, make_mess):
        product = make_product()
        mess = make_mess()

        ledger.receive_stock(db_session, product.id, 7)
        ledger.record_distribution(db_session, product.id, mess.id, 7, Decimal("4.50"))

        assert ledger.available_stock(db_session, product.id) == 0

    def test_stock_is_per_product(self, db_session, make_product, make_mess):
        eggs = make_product("Eggs")
        milk = make_product("Milk", unit_type="piece", units_per_package=1)
        mess = make_mess()

        ledger.receive_stock(db_session, eggs.id, 10)
        ledger.receive_stock(db_session, milk.id, 4)
        ledger.record_distribution(db_session, eggs.id, mess.id, 6, Decimal("5.00"))

        assert ledger.available_stock(db_session, eggs.id) == 4
        assert ledger.available_stock(db_session, milk.id) == 4


class TestDistribution:

    def test_worked_example(self, db_session, make_product, make_mess):
        """24 received, 10 sent, a further 20 is refused and nothing changes."""
        product = make_product()
        mess = make_mess()

        ledger.receive_stock(db_session, product.id, 24)
        ledger.record_distribution(db_session, product.id, mess.id, 10, Decimal("6.00"))
        assert ledger.available_stock(db_session, product.id) == 14

        with pytest.raises(InsufficientStockError) as exc_info:
            ledger.record_distribution(db_session, product.id, mess.id, 20, Decimal("6.00"))

        assert exc_info.value.available == 14
        assert exc_info.value.requested == 20
        assert exc_info.value.message == "Insufficient stock. Available: 14 crates, Requested: 20 crates"

        assert ledger.available_stock(db_session, product.id) == 14
        assert db_session.query(Distribution).count() == 1

    def test_rejection_message_uses_piece_unit(self, db_session, make_product, make_mess):
        product = make_product("Bread", unit_type="piece", units_per_package=1)
        mess = make_mess()
        ledger.receive_stock(db_session, product.id, 2)

        with pytest.raises(InsufficientStockError) as exc_info:
            ledger.record_distribution(db_session, product.id, mess.id, 3, Decimal("1.00"))

        assert exc_info.value.message == "Insufficient stock. Available: 2 pieces, Requested: 3 pieces"

    def test_distribution_from_empty_stock_is_rejected(self, db_session, make_product, make_mess):
        product = make_product()
        mess = make_mess()

        with pytest.raises(InsufficientStockError):
            ledger.record_distribution(db_session, product.id, mess.id, 1, Decimal("1.00"))

        assert db_session.query(Distribution).count() == 0

    def test_total_value_is_exact(self, db_session, make_product, make_mess):
        product = make_product()
        mess = make_mess()
        ledger.receive_stock(db_session, product.id, 10)

        distribution = ledger.record_distribution(db_session, product.id, mess.id, 3, "12.35")

        assert distribution.total_value == Decimal("37.05")
        assert distribution.price_per_unit == Decimal("12.35")

    def test_recorded_fields_round_trip(self, db_session, make_product, make_mess):
        product = make_product()
        mess = make_mess()
        attendant = Attendant(mess_id=mess.id, name="Suresh")
        db_session.add(attendant)
        db_session.commit()

        ledger.receive_stock(db_session, product.id, 10)
        created = ledger.record_distribution(
            db_session,
            product.id,
            mess.id,
            4,
            Decimal("9.99"),
            attendant_id=attendant.id,
            distribution_date=date(2026, 3, 14),
            notes="Breakfast",
        )

        db_session.expire_all()
        stored = db_session.query(Distribution).filter(Distribution.id == created.id).one()

        assert stored.product_id == product.id
        assert stored.mess_id == mess.id
        assert stored.attendant_id == attendant.id
        assert stored.quantity == 4
        assert stored.unit_type == "crate"
        assert stored.distribution_date == date(2026, 3, 14)
        assert stored.notes == "Breakfast"
        assert stored.total_value == Decimal("39.96")

    def test_dates_default_to_utc_today(self, db_session, make_product, make_mess):
        product = make_product()
        mess = make_mess()

        receipt = ledger.receive_stock(db_session, product.id, 5)
        distribution = ledger.record_distribution(db_session, product.id, mess.id, 1, "2.00")

        today = datetime.now(timezone.utc).date()
        assert receipt.date_added == today
        assert distribution.distribution_date == today
        assert reporting._today() == today

    def test_unknown_mess_is_not_found(self, db_session, make_product):
        product = make_product()
        ledger.receive_stock(db_session, product.id, 5)

        with pytest.raises(NotFoundError):
            ledger.record_distribution(db_session, product.id, 999, 1, Decimal("1.00"))

        assert ledger.available_stock(db_session, product.id) == 5

    def test_attendant_must_belong_to_mess(self, db_session, make_product, make_mess):
        product = make_product()
        north = make_mess("North Mess")
        south = make_mess("South Mess")
        attendant = Attendant(mess_id=south.id, name="Anil")
        db_session.add(attendant)
        db_session.commit()
        ledger.receive_stock(db_session, product.id, 5)

        with pytest.raises(NotFoundError):
            ledger.record_distribution(
                db_session, product.id, north.id, 1, Decimal("1.00"), attendant_id=attendant.id
            )


class TestInvalidInput:

    @pytest.mark.parametrize("quantity", [0, -3, 1.5, True, None])
    def test_bad_receive_quantity(self, db_session, make_product, quantity):
        product = make_product()

        with pytest.raises(InvalidInputError):
            ledger.receive_stock(db_session, product.id, quantity)

        assert db_session.query(StockReceipt).count() == 0

    @pytest.mark.parametrize("price", [0, "-1.00", "abc", None])
    def test_bad_distribution_price(self, db_session, make_product, make_mess, price):
        product = make_product()
        mess = make_mess()
        ledger.receive_stock(db_session, product.id, 5)

        with pytest.raises(InvalidInputError):
            ledger.record_distribution(db_session, product.id, mess.id, 1, price)

    def test_negative_purchase_price(self, db_session, make_product):
        product = make_product()

        with pytest.raises(InvalidInputError):
            ledger.receive_stock(db_session, product.id, 5, purchase_price_per_unit="-0.01")

    def test_unknown_unit_type(self, db_session, make_product):
        product = make_product()

        with pytest.raises(InvalidInputError):
            ledger.receive_stock(db_session, product.id, 5, unit_type="barrel")

    def test_quantity_above_column_range(self, db_session, make_product):
        product = make_product()

        with pytest.raises(InvalidInputError, match="cannot exceed"):
            ledger.receive_stock(db_session, product.id, ledger.MAX_QUANTITY + 1)

        assert db_session.query(StockReceipt).count() == 0

    @pytest.mark.parametrize("price", ["0.335", Decimal("12.345"), 0.1 + 0.2])
    def test_price_finer_than_cents_rejected(self, db_session, make_product, make_mess, price):
        product = make_product()
        mess = make_mess()
        ledger.receive_stock(db_session, product.id, 5)

        with pytest.raises(InvalidInputError, match="2 decimal places"):
            ledger.record_distribution(db_session, product.id, mess.id, 3, price)

        assert db_session.query(Distribution).count() == 0

    def test_purchase_price_finer_than_cents_rejected(self, db_session, make_product):
        product = make_product()

        with pytest.raises(InvalidInputError):
            ledger.receive_stock(db_session, product.id, 5, purchase_price_per_unit="1.005")

    def test_total_value_above_column_range(self, db_session, make_product, make_mess):
        product = make_product()
        mess = make_mess()
        ledger.receive_stock(db_session, product.id, 1000)

        with pytest.raises(InvalidInputError, match="Total value"):
            ledger.record_distribution(db_session, product.id, mess.id, 1000, "99999999.99")

        assert db_session.query(Distribution).count() == 0
        assert ledger.available_stock(db_session, product.id) == 1000

    def test_stored_total_matches_price_times_quantity(self, db_session, make_product, make_mess):
        product = make_product()
        mess = make_mess()
        ledger.receive_stock(db_session, product.id, 5)

        distribution = ledger.record_distribution(db_session, product.id, mess.id, 3, "0.34")

        db_session.expire_all()
        stored = db_session.get(Distribution, distribution.id)
        assert stored.price_per_unit == Decimal("0.34")
        assert stored.total_value == stored.price_per_unit * stored.quantity


class TestDeactivatedProduct:

    def test_movements_rejected_history_kept(self, db_session, make_product, make_mess):
        product = make_product()
        mess = make_mess()
        ledger.receive_stock(db_session, product.id, 10)
        ledger.record_distribution(db_session, product.id, mess.id, 4, Decimal("2.00"))

        product.is_active = False
        db_session.commit()

        with pytest.raises(NotFoundError):
            ledger.receive_stock(db_session, product.id, 1)

        with pytest.raises(NotFoundError):
            ledger.record_distribution(db_session, product.id, mess.id, 1, Decimal("2.00"))

        assert db_session.query(StockReceipt).filter(StockReceipt.product_id == product.id).count() == 1
        assert db_session.query(Distribution).filter(Distribution.product_id == product.id).count() == 1
        assert ledger.available_stock(db_session, product.id) == 6

    def test_unknown_product(self, db_session):
        with pytest.raises(NotFoundError):
            ledger.receive_stock(db_session, 12345, 1)


class TestCorrections:

    @pytest.fixture
    def stocked(self, db_session, make_product, make_mess):
        """10 received, 8 distributed: 2 available."""
        product = make_product()
        mess = make_mess()
        receipt = ledger.receive_stock(db_session, product.id, 10, purchase_price_per_unit="3.00")
        distribution = ledger.record_distribution(db_session, product.id, mess.id, 8, Decimal("5.00"))
        return product, mess, receipt, distribution

    def test_receipt_reduction_cannot_overdraw(self, db_session, stocked):
        product, _, receipt, _ = stocked

        with pytest.raises(InsufficientStockError):
            ledger.update_receipt(db_session, receipt.id, {"quantity": 5})

        assert ledger.available_stock(db_session, product.id) == 2

    def test_receipt_reduction_within_available(self, db_session, stocked):
        product, _, receipt, _ = stocked

        updated = ledger.update_receipt(db_session, receipt.id, {"quantity": 9, "supplier_name": "Farm Co"})

        assert updated.quantity == 9
        assert updated.supplier_name == "Farm Co"
        assert ledger.available_stock(db_session, product.id) == 1

    def test_receipt_delete_cannot_overdraw(self, db_session, stocked):
        product, _, receipt, _ = stocked

        with pytest.raises(InsufficientStockError):
            ledger.delete_receipt(db_session, receipt.id)

        assert db_session.query(StockReceipt).count() == 1
        assert ledger.available_stock(db_session, product.id) == 2

    def test_unknown_receipt_field_rejected(self, db_session, stocked):
        _, _, receipt, _ = stocked

        with pytest.raises(InvalidInputError):
            ledger.update_receipt(db_session, receipt.id, {"product_id": 2})

    def test_distribution_increase_uses_own_quantity(self, db_session, stocked):
        product, _, _, distribution = stocked

        updated = ledger.update_distribution(db_session, distribution.id, {"quantity": 10})

        assert updated.quantity == 10
        assert updated.total_value == Decimal("50.00")
        assert ledger.available_stock(db_session, product.id) == 0

    def test_distribution_increase_cannot_overdraw(self, db_session, stocked):
        product, _, _, distribution = stocked

        with pytest.raises(InsufficientStockError):
            ledger.update_distribution(db_session, distribution.id, {"quantity": 11})

        assert ledger.available_stock(db_session, product.id) == 2

    def test_distribution_price_change_recomputes_total(self, db_session, stocked):
        _, _, _, distribution = stocked

        updated = ledger.update_distribution(db_session, distribution.id, {"price_per_unit": "6.25"})

        assert updated.total_value == Decimal("50.00")

    def test_distribution_delete_returns_stock(self, db_session, stocked):
        product, _, _, distribution = stocked

        ledger.delete_distribution(db_session, distribution.id)

        assert ledger.available_stock(db_session, product.id) == 10

    def test_missing_records(self, db_session):
        with pytest.raises(NotFoundError):
            ledger.update_receipt(db_session, 404, {"quantity": 1})
        with pytest.raises(NotFoundError):
            ledger.delete_receipt(db_session, 404)
        with pytest.raises(NotFoundError):
            ledger.update_distribution(db_session, 404, {"quantity": 1})
        with pytest.raises(NotFoundError):
            ledger.delete_distribution(db_session, 404)
