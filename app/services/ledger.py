# app/services/ledger.py
"""
Stock ledger service.

All stock movements go through this module. Available stock for a product is
always derived (receipts minus distributions, see ``v_current_stock``) and is
never allowed to go negative:

- ``receive_stock`` only adds stock, so it needs no check.
- ``record_distribution`` locks the product row, re-reads the available
  stock and inserts in the same transaction. Two concurrent distributions
  for one product are serialised on that lock, so they cannot both pass the
  check against a stale figure.
- Corrections (update/delete of receipts and distributions) lock and reload
  the record itself, then take the same product lock, and are rejected when
  they would leave the product overdrawn.

Errors are raised as ``app.core.errors.LedgerError`` subclasses. Any failure
rolls the transaction back; nothing is retried here.
"""

import logging
from contextlib import contextmanager
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation

from sqlalchemy import select
from sqlalchemy.exc import DataError, IntegrityError, OperationalError
from sqlalchemy.orm import Session

from app.core.errors import (
    InsufficientStockError,
    InvalidInputError,
    LedgerError,
    NotFoundError,
    StoreUnavailableError,
    classify_integrity_error,
)
from app.models.attendants import Attendant
from app.models.distributions import Distribution
from app.models.messes import Mess
from app.models.products import Product, UNIT_TYPES
from app.models.stock_receipts import StockReceipt
from app.models.stock_view import current_stock_view

logger = logging.getLogger("app")

TWO_PLACES = Decimal("0.01")

# Column limits: INTEGER quantities, Numeric(10, 2) prices, Numeric(12, 2) totals
MAX_QUANTITY = 2_147_483_647
MAX_PRICE = Decimal("99999999.99")
MAX_TOTAL_VALUE = Decimal("9999999999.99")


# =========================================================
# HELPERS
# =========================================================
@contextmanager
def _ledger_transaction(db: Session, action: str):
    """Commit on success, roll back and translate store errors on failure."""
    try:
        yield
        db.commit()

    except LedgerError:
        db.rollback()
        raise

    except IntegrityError as exc:
        db.rollback()
        logger.error(f"{action} rejected by database: {exc.orig}")
        raise classify_integrity_error(exc) from exc

    except OperationalError as exc:
        db.rollback()
        logger.error(f"{action} failed, database unavailable: {exc.orig}")
        raise StoreUnavailableError("Database unavailable. Please try again") from exc

    except DataError as exc:
        db.rollback()
        logger.error(f"{action} rejected by database: {exc.orig}")
        raise InvalidInputError("Value out of range") from exc


def _today() -> date:
    return datetime.now(timezone.utc).date()


def _unit_label(unit_type: str) -> str:
    return "pieces" if unit_type == "piece" else "crates"


def _require_quantity(quantity) -> int:
    if quantity is None or isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidInputError("Quantity must be a whole number")
    if quantity <= 0:
        raise InvalidInputError("Quantity must be greater than 0")
    if quantity > MAX_QUANTITY:
        raise InvalidInputError(f"Quantity cannot exceed {MAX_QUANTITY}")
    return quantity


def _to_money(value, field: str) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise InvalidInputError(f"{field} must be a number") from exc

    if not amount.is_finite():
        raise InvalidInputError(f"{field} must be a number")

    if abs(amount) > MAX_PRICE:
        raise InvalidInputError(f"{field} cannot exceed {MAX_PRICE}")

    # Stored as Numeric(10, 2); anything finer would be rounded by the column
    if amount != amount.quantize(TWO_PLACES):
        raise InvalidInputError(f"{field} cannot have more than 2 decimal places")

    return amount.quantize(TWO_PLACES)


def _require_price(price_per_unit) -> Decimal:
    if price_per_unit is None:
        raise InvalidInputError("price_per_unit is required")

    price = _to_money(price_per_unit, "Price")
    if price <= 0:
        raise InvalidInputError("Price must be greater than 0")
    return price


def _optional_purchase_price(value) -> Decimal | None:
    if value is None:
        return None

    price = _to_money(value, "Purchase price")
    if price < 0:
        raise InvalidInputError("Purchase price cannot be negative")
    return price


def _total_value(price: Decimal, quantity: int) -> Decimal:
    total = (price * quantity).quantize(TWO_PLACES)
    if total > MAX_TOTAL_VALUE:
        raise InvalidInputError(f"Total value cannot exceed {MAX_TOTAL_VALUE}")
    return total


def _require_unit_type(unit_type: str) -> str:
    if unit_type not in UNIT_TYPES:
        raise InvalidInputError("Valid unit_type is required (crate or piece)")
    return unit_type


def _lock_product(db: Session, product_id: int) -> Product | None:
    return (
        db.query(Product)
        .filter(Product.id == product_id)
        .with_for_update()
        .first()
    )


def _lock_record(db: Session, model, record_id: int):
    # populate_existing: a copy already in the session may predate a
    # correction another transaction committed while we waited for the lock
    return (
        db.query(model)
        .filter(model.id == record_id)
        .with_for_update()
        .populate_existing()
        .first()
    )


def _active_mess(db: Session, mess_id: int) -> Mess:
    mess = (
        db.query(Mess)
        .filter(Mess.id == mess_id, Mess.is_active.is_(True))
        .first()
    )
    if not mess:
        raise NotFoundError("Mess not found")
    return mess


def _active_attendant(db: Session, attendant_id: int, mess_id: int) -> Attendant:
    attendant = (
        db.query(Attendant)
        .filter(
            Attendant.id == attendant_id,
            Attendant.mess_id == mess_id,
            Attendant.is_active.is_(True),
        )
        .first()
    )
    if not attendant:
        raise NotFoundError("Attendant not found for this mess")
    return attendant


# =========================================================
# STOCK LEVELS
# =========================================================
def get_stock_level(db: Session, product_id: int) -> dict:
    """Totals for one product: received, distributed and current stock."""
    row = db.execute(
        select(
            current_stock_view.c.total_received,
            current_stock_view.c.total_distributed,
            current_stock_view.c.current_stock,
        ).where(current_stock_view.c.product_id == product_id)
    ).first()

    if row is None:
        return {"total_received": 0, "total_distributed": 0, "current_stock": 0}

    return {
        "total_received": int(row.total_received or 0),
        "total_distributed": int(row.total_distributed or 0),
        "current_stock": int(row.current_stock or 0),
    }


def available_stock(db: Session, product_id: int) -> int:
    return get_stock_level(db, product_id)["current_stock"]


# =========================================================
# RECEIVE STOCK
# =========================================================
def receive_stock(
    db: Session,
    product_id: int,
    quantity: int,
    purchase_price_per_unit=None,
    unit_type: str | None = None,
    supplier_name: str | None = None,
    supplier_contact: str | None = None,
    date_added: date | None = None,
    notes: str | None = None,
) -> StockReceipt:
    quantity = _require_quantity(quantity)
    purchase_price = _optional_purchase_price(purchase_price_per_unit)

    with _ledger_transaction(db, "receive_stock"):
        product = (
            db.query(Product)
            .filter(Product.id == product_id, Product.is_active.is_(True))
            .first()
        )
        if not product:
            raise NotFoundError("Product not found")

        receipt = StockReceipt(
            product_id=product.id,
            quantity=quantity,
            purchase_price_per_unit=purchase_price,
            unit_type=_require_unit_type(unit_type or product.unit_type),
            supplier_name=supplier_name,
            supplier_contact=supplier_contact,
            date_added=date_added or _today(),
            notes=notes,
        )
        db.add(receipt)
        db.flush()

        product_name = product.name
        label = product.unit_label

    db.refresh(receipt)

    logger.info(f"Received {quantity} {label} of {product_name} (receipt #{receipt.id})")

    return receipt


# =========================================================
# RECORD DISTRIBUTION
# =========================================================
def record_distribution(
    db: Session,
    product_id: int,
    mess_id: int,
    quantity: int,
    price_per_unit,
    unit_type: str | None = None,
    attendant_id: int | None = None,
    distribution_date: date | None = None,
    notes: str | None = None,
) -> Distribution:
    quantity = _require_quantity(quantity)
    price = _require_price(price_per_unit)

    with _ledger_transaction(db, "record_distribution"):
        # Row lock first: everything below reads a stock figure no other
        # distribution for this product can change until we commit.
        product = _lock_product(db, product_id)
        if product is None or not product.is_active:
            raise NotFoundError("Product not found")

        mess = _active_mess(db, mess_id)

        if attendant_id is not None:
            _active_attendant(db, attendant_id, mess.id)

        unit_type = _require_unit_type(unit_type or product.unit_type)

        available = available_stock(db, product.id)
        if available < quantity:
            logger.warning(
                f"Distribution rejected for {product.name} -> {mess.name}: "
                f"available {available}, requested {quantity}"
            )
            raise InsufficientStockError(available, quantity, _unit_label(unit_type))

        distribution = Distribution(
            product_id=product.id,
            mess_id=mess.id,
            attendant_id=attendant_id,
            quantity=quantity,
            price_per_unit=price,
            unit_type=unit_type,
            total_value=_total_value(price, quantity),
            distribution_date=distribution_date or _today(),
            notes=notes,
        )
        db.add(distribution)
        db.flush()

        summary = (
            f"Distributed {quantity} {_unit_label(unit_type)} of {product.name} "
            f"to {mess.name} (distribution #{distribution.id})"
        )

    db.refresh(distribution)

    logger.info(summary)

    return distribution


# =========================================================
# CORRECTIONS
# =========================================================
RECEIPT_FIELDS = {
    "quantity",
    "purchase_price_per_unit",
    "supplier_name",
    "supplier_contact",
    "date_added",
    "notes",
}

DISTRIBUTION_FIELDS = {
    "product_id",
    "mess_id",
    "attendant_id",
    "quantity",
    "price_per_unit",
    "unit_type",
    "distribution_date",
    "notes",
}


def update_receipt(db: Session, receipt_id: int, changes: dict) -> StockReceipt:
    """
    Correct a stock receipt.

    Lowering the quantity removes stock that may already have been
    distributed, so the reduction must fit in the product's current
    available stock.
    """
    unknown = set(changes) - RECEIPT_FIELDS
    if unknown:
        raise InvalidInputError(f"Cannot update fields: {', '.join(sorted(unknown))}")

    with _ledger_transaction(db, "update_receipt"):
        receipt = _lock_record(db, StockReceipt, receipt_id)
        if not receipt:
            raise NotFoundError("Inventory record not found")

        product = _lock_product(db, receipt.product_id)

        if "quantity" in changes:
            new_quantity = _require_quantity(changes["quantity"])
            reduction = receipt.quantity - new_quantity

            if reduction > 0:
                available = available_stock(db, product.id)
                if available < reduction:
                    logger.warning(
                        f"Receipt #{receipt.id} correction rejected: would remove "
                        f"{reduction} from {available} available"
                    )
                    raise InsufficientStockError(available, reduction, product.unit_label)

            receipt.quantity = new_quantity

        if "purchase_price_per_unit" in changes:
            receipt.purchase_price_per_unit = _optional_purchase_price(changes["purchase_price_per_unit"])

        for field in ("supplier_name", "supplier_contact", "notes"):
            if field in changes:
                setattr(receipt, field, changes[field])

        if changes.get("date_added") is not None:
            receipt.date_added = changes["date_added"]

    db.refresh(receipt)

    logger.info(f"Receipt #{receipt.id} corrected: {sorted(changes)}")

    return receipt


def delete_receipt(db: Session, receipt_id: int) -> None:
    with _ledger_transaction(db, "delete_receipt"):
        receipt = _lock_record(db, StockReceipt, receipt_id)
        if not receipt:
            raise NotFoundError("Inventory record not found")

        product = _lock_product(db, receipt.product_id)

        available = available_stock(db, product.id)
        if available < receipt.quantity:
            logger.warning(
                f"Receipt #{receipt.id} delete rejected: {receipt.quantity} "
                f"received, only {available} still available"
            )
            raise InsufficientStockError(available, receipt.quantity, product.unit_label)

        db.delete(receipt)

    logger.info(f"Receipt #{receipt_id} deleted")


def update_distribution(db: Session, distribution_id: int, changes: dict) -> Distribution:
    """
    Correct a distribution.

    The new quantity is checked against the target product's stock with this
    distribution's current quantity given back first. Moving a distribution to
    another product frees stock on the old one, which never needs a check.
    """
    unknown = set(changes) - DISTRIBUTION_FIELDS
    if unknown:
        raise InvalidInputError(f"Cannot update fields: {', '.join(sorted(unknown))}")

    with _ledger_transaction(db, "update_distribution"):
        distribution = _lock_record(db, Distribution, distribution_id)
        if not distribution:
            raise NotFoundError("Distribution not found")

        old_product_id = distribution.product_id
        new_product_id = changes.get("product_id") or old_product_id

        # Always the record first, then products in id order
        locked = {pid: _lock_product(db, pid) for pid in sorted({old_product_id, new_product_id})}

        product = locked[new_product_id]
        if product is None:
            raise NotFoundError("Product not found")
        if new_product_id != old_product_id and not product.is_active:
            raise NotFoundError("Product not found")

        new_mess_id = changes.get("mess_id") or distribution.mess_id
        if new_mess_id != distribution.mess_id:
            _active_mess(db, new_mess_id)

        if "attendant_id" in changes:
            if changes["attendant_id"] is not None:
                _active_attendant(db, changes["attendant_id"], new_mess_id)
            distribution.attendant_id = changes["attendant_id"]

        quantity = distribution.quantity
        if "quantity" in changes:
            quantity = _require_quantity(changes["quantity"])

        price = Decimal(distribution.price_per_unit)
        if "price_per_unit" in changes:
            price = _require_price(changes["price_per_unit"])

        unit_type = distribution.unit_type
        if changes.get("unit_type") is not None:
            unit_type = _require_unit_type(changes["unit_type"])

        available = available_stock(db, new_product_id)
        if new_product_id == old_product_id:
            available += distribution.quantity

        if available < quantity:
            logger.warning(
                f"Distribution #{distribution.id} correction rejected: "
                f"available {available}, requested {quantity}"
            )
            raise InsufficientStockError(available, quantity, _unit_label(unit_type))

        distribution.product_id = new_product_id
        distribution.mess_id = new_mess_id
        distribution.quantity = quantity
        distribution.price_per_unit = price
        distribution.unit_type = unit_type
        distribution.total_value = _total_value(price, quantity)

        if changes.get("distribution_date") is not None:
            distribution.distribution_date = changes["distribution_date"]
        if "notes" in changes:
            distribution.notes = changes["notes"]

    db.refresh(distribution)

    logger.info(f"Distribution #{distribution.id} corrected: {sorted(changes)}")

    return distribution


def delete_distribution(db: Session, distribution_id: int) -> None:
    # Removing a distribution only returns stock, so there is nothing to check
    with _ledger_transaction(db, "delete_distribution"):
        distribution = _lock_record(db, Distribution, distribution_id)
        if not distribution:
            raise NotFoundError("Distribution not found")

        db.delete(distribution)

    logger.info(f"Distribution #{distribution_id} deleted")
