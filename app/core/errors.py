# app/core/errors.py
#
# Errors raised by the stock ledger. Routers never catch these themselves;
# app.main maps them to HTTP responses.

from sqlalchemy.exc import IntegrityError


class LedgerError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(LedgerError):
    status_code = 404


class InvalidInputError(LedgerError):
    status_code = 400


class InsufficientStockError(LedgerError):
    status_code = 400

    def __init__(self, available: int, requested: int, unit: str = "crates"):
        super().__init__(
            f"Insufficient stock. Available: {available} {unit}, "
            f"Requested: {requested} {unit}"
        )
        self.available = available
        self.requested = requested
        self.unit = unit


class ConstraintViolationError(LedgerError):
    def __init__(self, message: str, foreign_key: bool = False):
        super().__init__(message)
        self.foreign_key = foreign_key
        # A broken reference means the caller pointed at a missing record
        self.status_code = 404 if foreign_key else 400


class StoreUnavailableError(LedgerError):
    status_code = 503


# PostgreSQL SQLSTATE codes
FOREIGN_KEY_VIOLATION = "23503"
UNIQUE_VIOLATION = "23505"
CHECK_VIOLATION = "23514"
NOT_NULL_VIOLATION = "23502"

_CONSTRAINT_MESSAGES = {
    FOREIGN_KEY_VIOLATION: "Referenced record not found",
    UNIQUE_VIOLATION: "Duplicate entry. This record already exists",
    CHECK_VIOLATION: "Check constraint violation",
    NOT_NULL_VIOLATION: "Required field is missing",
}


def classify_integrity_error(exc: IntegrityError) -> ConstraintViolationError:
    """Turn a driver IntegrityError into a ConstraintViolationError.

    psycopg2 exposes the SQLSTATE as ``pgcode``; sqlite only gives us the
    message text, so fall back to matching on it.
    """
    code = getattr(exc.orig, "pgcode", None)
    text = str(exc.orig).upper()

    if code is None:
        if "FOREIGN KEY" in text:
            code = FOREIGN_KEY_VIOLATION
        elif "UNIQUE" in text:
            code = UNIQUE_VIOLATION
        elif "CHECK" in text:
            code = CHECK_VIOLATION
        elif "NOT NULL" in text:
            code = NOT_NULL_VIOLATION

    message = _CONSTRAINT_MESSAGES.get(code, "Invalid input")

    return ConstraintViolationError(
        message,
        foreign_key=code == FOREIGN_KEY_VIOLATION,
    )
