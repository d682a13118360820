from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

import models_sqlalchemy as models
from database import get_db


def _bearer_token(authorization: Optional[str]):
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_optional_user(authorization: Optional[str] = Header(None), db: Session = Depends(get_db)):
    token = _bearer_token(authorization)
    if not token:
        return None
    return db.query(models.Profile).filter(models.Profile.access_token == token).first()


def get_current_user(user: Optional[models.Profile] = Depends(get_optional_user)):
    if not user:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user


def require_admin(user: models.Profile = Depends(get_current_user)):
    if user.user_role != models.UserRole.admin:
        raise HTTPException(status_code=403, detail="Forbidden: Admin access required")
    return user


def require_owner(user: models.Profile = Depends(get_current_user)):
    if user.user_role not in (models.UserRole.owner, models.UserRole.admin):
        raise HTTPException(status_code=403, detail="Forbidden: Owner access required")
    return user


def can_manage(user, campsite):
    return user.user_role == models.UserRole.admin or campsite.owner_id == user.id
