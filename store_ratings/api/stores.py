"""Store browsing and rating for any signed-in user."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .. import queries, schemas
from ..auth import Claims
from ..db import get_db
from ..deps import any_role

router = APIRouter(prefix="/api/stores", tags=["stores"])


@router.get("", response_model=schemas.StoreListResponse)
def list_stores(
    name: Optional[str] = Query(None, max_length=200),
    email: Optional[str] = Query(None, max_length=200),
    address: Optional[str] = Query(None, max_length=400),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    claims: Claims = Depends(any_role),
    db: Session = Depends(get_db),
):
    filters = queries.ListFilters(name=name, email=email, address=address, sort_by=sort_by, sort_order=sort_order)
    stores = queries.list_stores_for_user(db, claims.user_id, filters)
    return {"count": len(stores), "stores": stores}


@router.post("/{store_id}/ratings", response_model=schemas.RatingSubmitResponse, status_code=201)
def submit_rating(
    store_id: int,
    payload: schemas.RatingSubmit,
    claims: Claims = Depends(any_role),
    db: Session = Depends(get_db),
):
    rating, aggregate = queries.submit_rating(db, store_id, claims.user_id, payload.rating_value)
    return {"message": "Rating submitted successfully", "rating": rating, "store": aggregate}
