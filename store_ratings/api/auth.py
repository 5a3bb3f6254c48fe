"""Auth routes: signup, login, logout."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import schemas
from ..auth import AuthService
from ..db import get_db
from ..deps import get_auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=schemas.AuthResponse, status_code=201)
def signup(
    payload: schemas.SignupRequest,
    db: Session = Depends(get_db),
    auth: AuthService = Depends(get_auth_service),
):
    user, token = auth.signup(db, payload)
    return {"message": "User registered successfully", "token": token, "user": user}


@router.post("/login", response_model=schemas.AuthResponse)
def login(
    payload: schemas.LoginRequest,
    db: Session = Depends(get_db),
    auth: AuthService = Depends(get_auth_service),
):
    user, token = auth.authenticate(db, payload.email, payload.password)
    return {"message": "Login successful", "token": token, "user": user}


@router.post("/logout", response_model=schemas.MessageResponse)
async def logout():
    # Tokens are not tracked server-side; the client discards its copy.
    return {"message": "Logout successful"}
