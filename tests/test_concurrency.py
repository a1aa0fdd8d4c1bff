"""
Concurrent distribution and correction tests.

Each worker uses its own session and connection. A barrier releases them at
the same moment so the stock check and insert genuinely race.
"""

from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from threading import Barrier

import pytest

from app.core.errors import InsufficientStockError
from app.database import SessionLocal
from app.models.distributions import Distribution
from app.models.stock_receipts import StockReceipt
from app.services import ledger


def _race(product_id: int, mess_id: int, quantities: list[int]) -> list[str]:
    barrier = Barrier(len(quantities))

    def distribute(quantity: int) -> str:
        with SessionLocal() as db:
            barrier.wait()
            try:
                ledger.record_distribution(db, product_id, mess_id, quantity, Decimal("5.00"))
            except InsufficientStockError:
                return "rejected"
            return "ok"

    with ThreadPoolExecutor(max_workers=len(quantities)) as pool:
        return list(pool.map(distribute, quantities))


def _setup(db_session, make_product, make_mess, stock: int) -> tuple[int, int]:
    product = make_product()
    mess = make_mess()
    ledger.receive_stock(db_session, product.id, stock)

    ids = (product.id, mess.id)
    # Release the SQLite write lock before the workers start
    db_session.close()
    return ids


class TestConcurrentDistribution:

    def test_two_overdrawing_distributions_exactly_one_wins(self, db_session, make_product, make_mess):
        product_id, mess_id = _setup(db_session, make_product, make_mess, stock=10)

        results = _race(product_id, mess_id, [6, 6])

        assert sorted(results) == ["ok", "rejected"]

        with SessionLocal() as db:
            assert ledger.available_stock(db, product_id) == 4
            assert db.query(Distribution).count() == 1

    def test_many_workers_never_go_negative(self, db_session, make_product, make_mess):
        product_id, mess_id = _setup(db_session, make_product, make_mess, stock=10)

        results = _race(product_id, mess_id, [3] * 6)

        assert results.count("ok") == 3
        assert results.count("rejected") == 3

        with SessionLocal() as db:
            assert ledger.available_stock(db, product_id) == 1


class TestConcurrentCorrections:
    """Corrections must decide on the committed record, not a copy loaded earlier."""

    def test_receipt_correction_sees_committed_quantity(self, db_session, make_product, make_mess):
        product = make_product()
        mess = make_mess()
        receipt = ledger.receive_stock(db_session, product.id, 10)
        ledger.record_distribution(db_session, product.id, mess.id, 8, Decimal("5.00"))
        product_id, receipt_id = product.id, receipt.id
        db_session.close()

        stale = SessionLocal(expire_on_commit=False)
        try:
            assert stale.get(StockReceipt, receipt_id).quantity == 10
            stale.commit()

            with SessionLocal() as other:
                ledger.update_receipt(other, receipt_id, {"quantity": 20})

            # Lowering 20 -> 5 removes 15 of the 12 available
            with pytest.raises(InsufficientStockError):
                ledger.update_receipt(stale, receipt_id, {"quantity": 5})
        finally:
            stale.close()

        with SessionLocal() as db:
            assert db.get(StockReceipt, receipt_id).quantity == 20
            assert ledger.available_stock(db, product_id) == 12

    def test_distribution_correction_sees_committed_quantity(self, db_session, make_product, make_mess):
        product = make_product()
        mess = make_mess()
        ledger.receive_stock(db_session, product.id, 10)
        distribution = ledger.record_distribution(db_session, product.id, mess.id, 4, Decimal("5.00"))
        product_id, distribution_id = product.id, distribution.id
        db_session.close()

        stale = SessionLocal(expire_on_commit=False)
        try:
            assert stale.get(Distribution, distribution_id).quantity == 4
            stale.commit()

            with SessionLocal() as other:
                ledger.update_distribution(other, distribution_id, {"quantity": 1})

            # 9 available plus the 1 already held is short of 12
            with pytest.raises(InsufficientStockError):
                ledger.update_distribution(stale, distribution_id, {"quantity": 12})
        finally:
            stale.close()

        with SessionLocal() as db:
            assert db.get(Distribution, distribution_id).quantity == 1
            assert ledger.available_stock(db, product_id) == 9

    def test_two_receipt_reductions_exactly_one_wins(self, db_session, make_product, make_mess):
        product = make_product()
        mess = make_mess()
        first = ledger.receive_stock(db_session, product.id, 10)
        second = ledger.receive_stock(db_session, product.id, 10)
        ledger.record_distribution(db_session, product.id, mess.id, 15, Decimal("5.00"))
        product_id, receipt_ids = product.id, [first.id, second.id]
        db_session.close()

        barrier = Barrier(len(receipt_ids))

        def reduce(receipt_id: int) -> str:
            with SessionLocal() as db:
                barrier.wait()
                try:
                    ledger.update_receipt(db, receipt_id, {"quantity": 5})
                except InsufficientStockError:
                    return "rejected"
                return "ok"

        with ThreadPoolExecutor(max_workers=len(receipt_ids)) as pool:
            results = list(pool.map(reduce, receipt_ids))

        assert sorted(results) == ["ok", "rejected"]

        with SessionLocal() as db:
            assert ledger.available_stock(db, product_id) == 0
            assert sorted(r.quantity for r in db.query(StockReceipt).all()) == [5, 10]
