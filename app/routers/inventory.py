# app/routers/inventory.py

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.core.auth import get_current_user, get_admin_user
from app.models.stock_receipts import StockReceipt
from app.services import ledger, reporting
from app.schemas.inventory import (
    StockReceiptCreate,
    StockReceiptUpdate,
    StockReceiptResponse,
    InventorySummaryResponse,
)

router = APIRouter(
    prefix="/inventory",
    tags=["Inventory"],
)


@router.get("", response_model=list[StockReceiptResponse])
def list_receipts(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return (
        db.query(StockReceipt)
        .order_by(StockReceipt.date_added.desc(), StockReceipt.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


@router.get("/summary", response_model=list[InventorySummaryResponse])
def inventory_summary(
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return reporting.inventory_summary(db)


@router.get("/recent", response_model=list[StockReceiptResponse])
def recent_receipts(
    days: int = Query(30, ge=1, le=365),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return reporting.recent_receipts(db, days=days, limit=limit)


@router.get("/product/{product_id}", response_model=list[StockReceiptResponse])
def receipts_for_product(
    product_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return (
        db.query(StockReceipt)
        .filter(StockReceipt.product_id == product_id)
        .order_by(StockReceipt.date_added.desc(), StockReceipt.id.desc())
        .all()
    )


@router.get("/{receipt_id}", response_model=StockReceiptResponse)
def get_receipt(
    receipt_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    receipt = db.query(StockReceipt).filter(StockReceipt.id == receipt_id).first()

    if not receipt:
        raise HTTPException(status_code=404, detail="Inventory record not found")

    return receipt


@router.post("", response_model=StockReceiptResponse, status_code=status.HTTP_201_CREATED)
def receive_stock(
    receipt_data: StockReceiptCreate,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return ledger.receive_stock(db, **receipt_data.model_dump())


@router.put("/{receipt_id}", response_model=StockReceiptResponse)
def update_receipt(
    receipt_id: int,
    receipt_data: StockReceiptUpdate,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    return ledger.update_receipt(
        db,
        receipt_id,
        receipt_data.model_dump(exclude_unset=True),
    )


@router.delete("/{receipt_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_receipt(
    receipt_id: int,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    ledger.delete_receipt(db, receipt_id)

    return None
