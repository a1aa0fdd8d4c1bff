# app/routers/admin.py

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.core.auth import get_admin_user
from app.models.users import User
from app.schemas.user import UserResponse


router = APIRouter(prefix="/admin", tags=["Admin"])

logger = logging.getLogger("app")


# =========================================================
# USER MANAGEMENT
# =========================================================

@router.get("/users", response_model=list[UserResponse])
def list_users(
    search: str | None = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    query = db.query(User)

    if search:
        query = query.filter(User.username.ilike(f"%{search}%"))

    return (
        query
        .order_by(User.created_at.desc(), User.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def _get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()

    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    return user


@router.post("/users/{user_id}/deactivate", response_model=UserResponse)
def deactivate_user(
    user_id: int,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    user = _get_user(db, user_id)

    if user.id == admin.id:
        raise HTTPException(status_code=400, detail="You cannot deactivate your own account")

    user.is_active = False
    db.commit()
    db.refresh(user)

    logger.info(f"User {user.username} deactivated by {admin.username}")

    return user


@router.post("/users/{user_id}/activate", response_model=UserResponse)
def activate_user(
    user_id: int,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    user = _get_user(db, user_id)

    user.is_active = True
    db.commit()
    db.refresh(user)

    logger.info(f"User {user.username} reactivated by {admin.username}")

    return user
