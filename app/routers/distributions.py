# app/routers/distributions.py

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.core.auth import get_current_user, get_admin_user
from app.core.rate_limiter import limiter
from app.models.distributions import Distribution
from app.services import ledger, reporting
from app.schemas.distribution import (
    DistributionCreate,
    DistributionUpdate,
    DistributionResponse,
    DistributionSummaryResponse,
    MessDistributionDetail,
)

router = APIRouter(
    prefix="/distributions",
    tags=["Distributions"],
)


@router.get("", response_model=list[DistributionResponse])
def list_distributions(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return (
        db.query(Distribution)
        .order_by(Distribution.distribution_date.desc(), Distribution.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


@router.get("/recent", response_model=list[DistributionResponse])
def recent_distributions(
    days: int = Query(30, ge=1, le=365),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return reporting.recent_distributions(db, days=days, limit=limit)


@router.get("/summary", response_model=DistributionSummaryResponse)
def distribution_summary(
    start_date: date,
    end_date: date,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    if start_date > end_date:
        raise HTTPException(status_code=400, detail="start_date must be on or before end_date")

    return reporting.distribution_summary(db, start_date, end_date)


@router.get("/by-mess-detailed", response_model=list[MessDistributionDetail])
def distributions_by_mess_detailed(
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return reporting.distributions_by_mess_detailed(db)


@router.get("/mess/{mess_id}", response_model=list[DistributionResponse])
def distributions_for_mess(
    mess_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return (
        db.query(Distribution)
        .filter(Distribution.mess_id == mess_id)
        .order_by(Distribution.distribution_date.desc(), Distribution.id.desc())
        .all()
    )


@router.get("/product/{product_id}", response_model=list[DistributionResponse])
def distributions_for_product(
    product_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return (
        db.query(Distribution)
        .filter(Distribution.product_id == product_id)
        .order_by(Distribution.distribution_date.desc(), Distribution.id.desc())
        .all()
    )


@router.get("/{distribution_id}", response_model=DistributionResponse)
def get_distribution(
    distribution_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    distribution = (
        db.query(Distribution)
        .filter(Distribution.id == distribution_id)
        .first()
    )

    if not distribution:
        raise HTTPException(status_code=404, detail="Distribution not found")

    return distribution


@router.post("", response_model=DistributionResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("60/minute")
def record_distribution(
    request: Request,
    distribution_data: DistributionCreate,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return ledger.record_distribution(db, **distribution_data.model_dump())


@router.put("/{distribution_id}", response_model=DistributionResponse)
def update_distribution(
    distribution_id: int,
    distribution_data: DistributionUpdate,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    return ledger.update_distribution(
        db,
        distribution_id,
        distribution_data.model_dump(exclude_unset=True),
    )


@router.delete("/{distribution_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_distribution(
    distribution_id: int,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    ledger.delete_distribution(db, distribution_id)

    return None
