# =========================================================
# PAYMENTS ROUTER
# - Money received from messes against distributed goods
# - Outstanding balance = distributed value - payments
# - Corrections are admin-only
# =========================================================

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.core.auth import get_current_user, get_admin_user
from app.models.messes import Mess
from app.models.payments import Payment
from app.services import reporting
from app.schemas.payment import (
    PaymentCreate,
    PaymentUpdate,
    PaymentResponse,
    MessFinancialSummary,
)

router = APIRouter(prefix="/payments", tags=["Payments"])

logger = logging.getLogger("app")


def _get_payment(db: Session, payment_id: int) -> Payment:
    payment = db.query(Payment).filter(Payment.id == payment_id).first()

    if not payment:
        raise HTTPException(status_code=404, detail="Payment not found")

    return payment


# =========================================================
# READ
# =========================================================
@router.get("", response_model=list[PaymentResponse])
def list_payments(
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return (
        db.query(Payment)
        .order_by(Payment.payment_date.desc(), Payment.id.desc())
        .all()
    )


@router.get("/summaries/all", response_model=list[MessFinancialSummary])
def all_mess_summaries(
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return reporting.all_mess_financial_summaries(db)


@router.get("/mess/{mess_id}", response_model=list[PaymentResponse])
def payments_for_mess(
    mess_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return (
        db.query(Payment)
        .filter(Payment.mess_id == mess_id)
        .order_by(Payment.payment_date.desc(), Payment.id.desc())
        .all()
    )


@router.get("/mess/{mess_id}/summary", response_model=MessFinancialSummary)
def mess_summary(
    mess_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    summary = reporting.mess_financial_summary(db, mess_id)

    if summary is None:
        raise HTTPException(status_code=404, detail="Mess not found")

    return summary


@router.get("/{payment_id}", response_model=PaymentResponse)
def get_payment(
    payment_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return _get_payment(db, payment_id)


# =========================================================
# WRITE
# =========================================================
@router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
def record_payment(
    payment_data: PaymentCreate,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    mess = (
        db.query(Mess)
        .filter(Mess.id == payment_data.mess_id, Mess.is_active.is_(True))
        .first()
    )

    if not mess:
        raise HTTPException(status_code=404, detail="Mess not found")

    payment = Payment(
        mess_id=mess.id,
        amount_paid=payment_data.amount_paid,
        payment_date=payment_data.payment_date or datetime.now(timezone.utc).date(),
        payment_method=payment_data.payment_method,
        reference_number=payment_data.reference_number,
        notes=payment_data.notes,
    )

    db.add(payment)
    db.commit()
    db.refresh(payment)

    logger.info(f"Payment #{payment.id} recorded: {payment.amount_paid} from {mess.name}")

    return payment


@router.put("/{payment_id}", response_model=PaymentResponse)
def update_payment(
    payment_id: int,
    payment_data: PaymentUpdate,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    payment = _get_payment(db, payment_id)

    for field, value in payment_data.model_dump(exclude_none=True).items():
        setattr(payment, field, value)

    db.commit()
    db.refresh(payment)

    return payment


@router.delete("/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_payment(
    payment_id: int,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    payment = _get_payment(db, payment_id)

    db.delete(payment)
    db.commit()

    logger.info(f"Payment #{payment_id} deleted")

    return None
