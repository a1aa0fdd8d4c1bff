# app/routers/messes.py

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.database import get_db
from app.core.auth import get_current_user, get_admin_user
from app.models.messes import Mess
from app.services import reporting
from app.schemas.mess import (
    MessCreate,
    MessUpdate,
    MessResponse,
    MessWithSummaryResponse,
)

router = APIRouter(
    prefix="/messes",
    tags=["Messes"],
)

logger = logging.getLogger("app")


def _find_by_name(db: Session, name: str):
    return (
        db.query(Mess)
        .filter(func.lower(Mess.name) == name.strip().lower())
        .first()
    )


def _get_mess(db: Session, mess_id: int) -> Mess:
    mess = db.query(Mess).filter(Mess.id == mess_id).first()

    if not mess:
        raise HTTPException(status_code=404, detail="Mess not found")

    return mess


@router.get("", response_model=list[MessWithSummaryResponse])
def list_messes(
    with_summary: bool = False,
    include_inactive: bool = False,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    query = db.query(Mess)

    if not include_inactive:
        query = query.filter(Mess.is_active.is_(True))

    messes = query.order_by(Mess.name).all()

    if not with_summary:
        return messes

    # Summaries only cover active messes
    summaries = {row["mess_id"]: row for row in reporting.mess_summaries(db)}

    results = []
    for mess in messes:
        data = MessWithSummaryResponse.model_validate(mess).model_dump()
        summary = summaries.get(mess.id)
        if summary:
            data.update(
                distribution_count=summary["distribution_count"],
                total_units_received=summary["total_units_received"],
                total_value=summary["total_value"],
                last_distribution_date=summary["last_distribution_date"],
            )
        results.append(data)

    return results


@router.get("/{mess_id}", response_model=MessResponse)
def get_mess(
    mess_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return _get_mess(db, mess_id)


@router.post("", response_model=MessResponse, status_code=status.HTTP_201_CREATED)
def create_mess(
    mess_data: MessCreate,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    if _find_by_name(db, mess_data.name):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Mess with this name already exists",
        )

    mess = Mess(
        name=mess_data.name.strip(),
        location=mess_data.location,
        contact_person=mess_data.contact_person,
        phone=mess_data.phone,
    )

    db.add(mess)
    db.commit()
    db.refresh(mess)

    logger.info(f"Mess created: {mess.name}")

    return mess


@router.put("/{mess_id}", response_model=MessResponse)
def update_mess(
    mess_id: int,
    mess_data: MessUpdate,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    mess = _get_mess(db, mess_id)

    if mess_data.name is not None and mess_data.name.strip().lower() != mess.name.lower():
        if _find_by_name(db, mess_data.name):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Mess with this name already exists",
            )
        mess.name = mess_data.name.strip()

    for field in ("location", "contact_person", "phone", "is_active"):
        value = getattr(mess_data, field)
        if value is not None:
            setattr(mess, field, value)

    db.commit()
    db.refresh(mess)

    return mess


@router.delete("/{mess_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_mess(
    mess_id: int,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    mess = _get_mess(db, mess_id)

    mess.is_active = False
    db.commit()

    logger.info(f"Mess deactivated: {mess.name}")

    return None
