import logging
import secrets

from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.users import User
from app.core.config import settings

router = APIRouter(prefix="/internal", tags=["Internal"])

logger = logging.getLogger("app")


class PromoteAdminRequest(BaseModel):
    username: str
    secret: str


@router.post("/promote-admin")
def promote_admin(
    data: PromoteAdminRequest,
    db: Session = Depends(get_db),
):
    # Bootstrap path for the first administrator, guarded by a shared secret
    if not settings.INTERNAL_ADMIN_SECRET or not secrets.compare_digest(
        data.secret, settings.INTERNAL_ADMIN_SECRET
    ):
        raise HTTPException(status_code=403, detail="Unauthorized")

    user = db.query(User).filter(User.username == data.username).first()

    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    user.role = "admin"
    db.commit()

    logger.info(f"{data.username} promoted to admin")

    return {"message": f"{data.username} promoted to admin"}
