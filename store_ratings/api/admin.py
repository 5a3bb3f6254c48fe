"""Administrator routes: user and store management, global dashboard."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .. import crud, queries, schemas
from ..auth import AuthService, Claims
from ..db import get_db
from ..deps import admin_only, get_auth_service
from ..models import Role

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.post("/users", response_model=schemas.UserEnvelope, status_code=201)
def create_user(
    payload: schemas.AdminUserCreate,
    claims: Claims = Depends(admin_only),
    db: Session = Depends(get_db),
    auth: AuthService = Depends(get_auth_service),
):
    user = auth.add_account(db, payload, role=payload.role)
    return {"message": "User created successfully", "user": user}


@router.get("/users", response_model=schemas.UserListResponse)
def list_users(
    name: Optional[str] = Query(None, max_length=200),
    email: Optional[str] = Query(None, max_length=200),
    address: Optional[str] = Query(None, max_length=400),
    role: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    claims: Claims = Depends(admin_only),
    db: Session = Depends(get_db),
):
    filters = queries.ListFilters(
        name=name, email=email, address=address, role=role, sort_by=sort_by, sort_order=sort_order
    )
    users = queries.list_users(db, filters)
    return {"count": len(users), "users": users}


@router.get("/users/{user_id}", response_model=schemas.AdminUserDetailResponse)
def get_user(user_id: int, claims: Claims = Depends(admin_only), db: Session = Depends(get_db)):
    user = crud.require_user(db, user_id)
    detail = schemas.UserRead.model_validate(user).model_dump()
    if user.role == Role.STORE_OWNER:
        detail["stores"] = queries.owner_stores_with_aggregates(db, user.id)
    return {"user": detail}


@router.post("/stores", response_model=schemas.StoreEnvelope, status_code=201)
def create_store(
    payload: schemas.AdminStoreCreate,
    claims: Claims = Depends(admin_only),
    db: Session = Depends(get_db),
):
    store = crud.create_store(db, payload, owner_id=payload.owner_id)
    return {"message": "Store created successfully", "store": store}


@router.get("/stores", response_model=schemas.AdminStoreListResponse)
def list_stores(
    name: Optional[str] = Query(None, max_length=200),
    email: Optional[str] = Query(None, max_length=200),
    address: Optional[str] = Query(None, max_length=400),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    claims: Claims = Depends(admin_only),
    db: Session = Depends(get_db),
):
    filters = queries.ListFilters(name=name, email=email, address=address, sort_by=sort_by, sort_order=sort_order)
    stores = queries.list_stores_for_admin(db, filters)
    return {"count": len(stores), "stores": stores}


@router.get("/dashboard", response_model=schemas.AdminDashboard)
def dashboard(claims: Claims = Depends(admin_only), db: Session = Depends(get_db)):
    return queries.admin_dashboard(db)
