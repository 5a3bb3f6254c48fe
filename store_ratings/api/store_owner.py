"""Store-owner routes: own dashboard, own stores."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import crud, queries, schemas
from ..auth import Claims
from ..db import get_db
from ..deps import store_owner_only
from ..errors import StoreNotFound
from ..policy import authorize_owner

router = APIRouter(prefix="/api/store-owner", tags=["store-owner"])


@router.get("/dashboard", response_model=schemas.OwnerDashboard)
def dashboard(claims: Claims = Depends(store_owner_only), db: Session = Depends(get_db)):
    owner = crud.require_user(db, claims.user_id)
    return queries.owner_dashboard(db, owner)


@router.post("/stores", response_model=schemas.StoreEnvelope, status_code=201)
def create_store(
    payload: schemas.StoreCreate,
    claims: Claims = Depends(store_owner_only),
    db: Session = Depends(get_db),
):
    store = crud.create_store(db, payload, owner_id=claims.user_id)
    return {"message": "Store created successfully", "store": store}


@router.get("/stores/{store_id}", response_model=schemas.OwnerStoreResponse)
def get_store(store_id: int, claims: Claims = Depends(store_owner_only), db: Session = Depends(get_db)):
    store = crud.get_store(db, store_id)
    if store is None:
        raise StoreNotFound()
    authorize_owner(claims, store)
    return {"store": queries.store_details(db, [store])[0]}
