# app/routers/attendants.py

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.core.auth import get_current_user, get_admin_user
from app.models.attendants import Attendant
from app.models.messes import Mess
from app.schemas.attendant import AttendantCreate, AttendantUpdate, AttendantResponse

router = APIRouter(
    prefix="/attendants",
    tags=["Attendants"],
)


def _get_attendant(db: Session, attendant_id: int) -> Attendant:
    attendant = db.query(Attendant).filter(Attendant.id == attendant_id).first()

    if not attendant:
        raise HTTPException(status_code=404, detail="Attendant not found")

    return attendant


@router.get("", response_model=list[AttendantResponse])
def list_attendants(
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return (
        db.query(Attendant)
        .join(Mess, Mess.id == Attendant.mess_id)
        .filter(Attendant.is_active.is_(True))
        .order_by(Mess.name, Attendant.name)
        .all()
    )


@router.get("/mess/{mess_id}", response_model=list[AttendantResponse])
def list_attendants_by_mess(
    mess_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return (
        db.query(Attendant)
        .filter(
            Attendant.mess_id == mess_id,
            Attendant.is_active.is_(True),
        )
        .order_by(Attendant.role, Attendant.name)
        .all()
    )


@router.get("/{attendant_id}", response_model=AttendantResponse)
def get_attendant(
    attendant_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return _get_attendant(db, attendant_id)


@router.post("", response_model=AttendantResponse, status_code=status.HTTP_201_CREATED)
def create_attendant(
    attendant_data: AttendantCreate,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    mess = (
        db.query(Mess)
        .filter(Mess.id == attendant_data.mess_id, Mess.is_active.is_(True))
        .first()
    )

    if not mess:
        raise HTTPException(status_code=404, detail="Mess not found")

    attendant = Attendant(
        mess_id=mess.id,
        name=attendant_data.name,
        phone=attendant_data.phone,
        role=attendant_data.role,
    )

    db.add(attendant)
    db.commit()
    db.refresh(attendant)

    return attendant


@router.put("/{attendant_id}", response_model=AttendantResponse)
def update_attendant(
    attendant_id: int,
    attendant_data: AttendantUpdate,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    attendant = _get_attendant(db, attendant_id)

    for field, value in attendant_data.model_dump(exclude_none=True).items():
        setattr(attendant, field, value)

    db.commit()
    db.refresh(attendant)

    return attendant


@router.delete("/{attendant_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_attendant(
    attendant_id: int,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    attendant = _get_attendant(db, attendant_id)

    attendant.is_active = False
    db.commit()

    return None
