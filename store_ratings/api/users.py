"""Routes for the signed-in user's own profile."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import crud, queries, schemas
from ..auth import AuthService, Claims
from ..db import get_db
from ..deps import any_role, get_auth_service

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/me", response_model=schemas.CurrentUserResponse)
def get_me(claims: Claims = Depends(any_role), db: Session = Depends(get_db)):
    user = crud.require_user(db, claims.user_id)
    profile = schemas.UserRead.model_validate(user).model_dump()
    profile["ratings"] = queries.user_ratings(db, user.id)
    return {"user": profile}


@router.put("/me", response_model=schemas.UserEnvelope)
def update_me(
    changes: schemas.ProfileUpdate,
    claims: Claims = Depends(any_role),
    db: Session = Depends(get_db),
):
    user = crud.require_user(db, claims.user_id)
    updated = crud.update_profile(db, user, changes)
    return {"message": "User profile updated successfully", "user": updated}


@router.put("/me/password", response_model=schemas.MessageResponse)
def update_password(
    payload: schemas.PasswordUpdate,
    claims: Claims = Depends(any_role),
    db: Session = Depends(get_db),
    auth: AuthService = Depends(get_auth_service),
):
    user = crud.require_user(db, claims.user_id)
    auth.change_password(db, user, payload.current_password, payload.new_password)
    return {"message": "Password updated successfully"}
