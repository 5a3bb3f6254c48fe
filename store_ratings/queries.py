"""Filtered, sorted and aggregated reads over users, stores and ratings.

Every list endpoint goes through here. Filter values only ever reach the
database as bound parameters, and ``sort_by`` is looked up in a per-endpoint
allow-list; anything unknown silently falls back to that endpoint's default
order. Aggregates come back as plain ``float``/``int`` whatever the driver
returns (PostgreSQL hands ``AVG`` back as ``Decimal``).
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy import and_, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, aliased

from .errors import StoreNotFound, ValidationFailed
from .models import Rating, Role, Store, User, utcnow
from .utils import sanitize_input

logger = logging.getLogger(__name__)

ASC = "asc"
DESC = "desc"

USER_DEFAULT_SORT = ("created_at", DESC)
STORE_DEFAULT_SORT = ("name", ASC)

_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


@dataclass(frozen=True)
class ListFilters:
    name: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    role: Optional[str] = None
    sort_by: Optional[str] = None
    sort_order: Optional[str] = None


# -------------------- building blocks --------------------

def _contains(column, value: Optional[str]):
    value = sanitize_input(value)
    if not value:
        return None
    # autoescape makes % and _ in user input match literally
    return column.icontains(value, autoescape=True)


def _conditions(*clauses) -> list:
    return [c for c in clauses if c is not None]


def _role_filter(value: Optional[str]):
    if not value:
        return None
    try:
        return User.role == Role(value)
    except ValueError:
        logger.debug("Ignoring unknown role filter %r", value)
        return None


def _order_by(filters: ListFilters, columns: Mapping[str, object], default: Tuple[str, str], tiebreak) -> list:
    if filters.sort_by in columns:
        column = columns[filters.sort_by]
        direction = (filters.sort_order or "").lower()
        if direction not in (ASC, DESC):
            direction = ASC
    else:
        name, direction = default
        column = columns[name]
    if direction == DESC:
        return [column.desc(), tiebreak.desc()]
    return [column.asc(), tiebreak.asc()]


def _rating_stats():
    """Per-store average and count, to be LEFT JOINed onto stores."""
    return (
        select(
            Rating.store_id.label("store_id"),
            func.avg(Rating.rating_value).label("average_rating"),
            func.count(Rating.id).label("rating_count"),
        )
        .group_by(Rating.store_id)
        .subquery("rating_stats")
    )


def _aggregate_columns(stats):
    average = func.coalesce(stats.c.average_rating, 0)
    count = func.coalesce(stats.c.rating_count, 0)
    return average, count


def _normalize(row: Mapping) -> dict:
    out = dict(row)
    out["average_rating"] = float(out.get("average_rating") or 0)
    out["rating_count"] = int(out.get("rating_count") or 0)
    if "user_rating" in out:
        out["user_rating"] = int(out["user_rating"]) if out["user_rating"] is not None else None
    return out


# -------------------- list endpoints --------------------

def list_users(db: Session, filters: ListFilters) -> List[dict]:
    columns = {
        "name": User.name,
        "email": User.email,
        "address": User.address,
        "role": User.role,
        "created_at": User.created_at,
    }
    stmt = (
        select(User.id, User.name, User.email, User.address, User.role, User.created_at)
        .where(
            *_conditions(
                _contains(User.name, filters.name),
                _contains(User.email, filters.email),
                _contains(User.address, filters.address),
                _role_filter(filters.role),
            )
        )
        .order_by(*_order_by(filters, columns, USER_DEFAULT_SORT, User.id))
    )
    return [dict(row) for row in db.execute(stmt).mappings().all()]


def list_stores_for_admin(db: Session, filters: ListFilters) -> List[dict]:
    stats = _rating_stats()
    average, count = _aggregate_columns(stats)
    owner = aliased(User, name="owner")
    columns = {
        "name": Store.name,
        "email": Store.email,
        "address": Store.address,
        "created_at": Store.created_at,
        "average_rating": average,
        "rating_count": count,
    }
    stmt = (
        select(
            Store.id,
            Store.name,
            Store.email,
            Store.address,
            Store.owner_id,
            Store.created_at,
            owner.name.label("owner_name"),
            owner.email.label("owner_email"),
            average.label("average_rating"),
            count.label("rating_count"),
        )
        .outerjoin(owner, owner.id == Store.owner_id)
        .outerjoin(stats, stats.c.store_id == Store.id)
        .where(
            *_conditions(
                _contains(Store.name, filters.name),
                _contains(Store.email, filters.email),
                _contains(Store.address, filters.address),
            )
        )
        .order_by(*_order_by(filters, columns, STORE_DEFAULT_SORT, Store.id))
    )
    return [_normalize(row) for row in db.execute(stmt).mappings().all()]


def list_stores_for_user(db: Session, user_id: int, filters: ListFilters) -> List[dict]:
    """Store listing with the caller's own rating attached as ``user_rating``."""
    stats = _rating_stats()
    average, count = _aggregate_columns(stats)
    own = aliased(Rating, name="own_rating")
    columns = {
        "name": Store.name,
        "email": Store.email,
        "address": Store.address,
        "created_at": Store.created_at,
        "average_rating": average,
        "rating_count": count,
    }
    stmt = (
        select(
            Store.id,
            Store.name,
            Store.email,
            Store.address,
            Store.created_at,
            average.label("average_rating"),
            count.label("rating_count"),
            own.rating_value.label("user_rating"),
        )
        .outerjoin(stats, stats.c.store_id == Store.id)
        # unique (user_id, store_id) keeps this at zero or one row per store
        .outerjoin(own, and_(own.store_id == Store.id, own.user_id == user_id))
        .where(
            *_conditions(
                _contains(Store.name, filters.name),
                _contains(Store.email, filters.email),
                _contains(Store.address, filters.address),
            )
        )
        .order_by(*_order_by(filters, columns, STORE_DEFAULT_SORT, Store.id))
    )
    return [_normalize(row) for row in db.execute(stmt).mappings().all()]


def owner_stores_with_aggregates(db: Session, owner_id: int) -> List[dict]:
    stats = _rating_stats()
    average, count = _aggregate_columns(stats)
    stmt = (
        select(
            Store.id,
            Store.name,
            Store.email,
            Store.address,
            Store.created_at,
            average.label("average_rating"),
            count.label("rating_count"),
        )
        .outerjoin(stats, stats.c.store_id == Store.id)
        .where(Store.owner_id == owner_id)
        .order_by(Store.name.asc(), Store.id.asc())
    )
    return [_normalize(row) for row in db.execute(stmt).mappings().all()]


def user_ratings(db: Session, user_id: int) -> List[dict]:
    stmt = (
        select(
            Rating.id,
            Rating.store_id,
            Store.name.label("store_name"),
            Rating.rating_value,
            Rating.created_at,
            Rating.updated_at,
        )
        .join(Store, Store.id == Rating.store_id)
        .where(Rating.user_id == user_id)
        .order_by(Rating.updated_at.desc(), Rating.id.desc())
    )
    return [dict(row) for row in db.execute(stmt).mappings().all()]


# -------------------- ratings --------------------

def store_aggregate(db: Session, store_id: int) -> dict:
    average, count = db.execute(
        select(func.coalesce(func.avg(Rating.rating_value), 0), func.count(Rating.id)).where(
            Rating.store_id == store_id
        )
    ).one()
    return {"id": store_id, "average_rating": float(average), "rating_count": int(count)}


def _upsert_insert(db: Session):
    dialect = db.get_bind().dialect.name
    try:
        return _UPSERT_INSERTS[dialect]
    except KeyError:
        raise NotImplementedError(f"rating upsert is not supported on {dialect}") from None


def submit_rating(db: Session, store_id: int, user_id: int, value: int) -> Tuple[Rating, dict]:
    """Insert or overwrite the caller's rating for a store in one statement.

    Returns the stored row and the store aggregate read in the same
    transaction, so the aggregate always includes this write.
    """
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 5:
        raise ValidationFailed.for_field("rating_value", "Rating must be between 1 and 5")
    if db.get(Store, store_id) is None:
        raise StoreNotFound()

    now = utcnow()
    stmt = _upsert_insert(db)(Rating).values(
        user_id=user_id, store_id=store_id, rating_value=value, created_at=now, updated_at=now
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id", "store_id"],
        set_={"rating_value": stmt.excluded.rating_value, "updated_at": stmt.excluded.updated_at},
    )
    try:
        db.execute(stmt)
        rating = db.execute(
            select(Rating)
            .where(Rating.user_id == user_id, Rating.store_id == store_id)
            .execution_options(populate_existing=True)
        ).scalar_one()
        aggregate = store_aggregate(db, store_id)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise
    db.refresh(rating)
    logger.info("User %s rated store %s with %s", user_id, store_id, value)
    return rating, aggregate


# -------------------- dashboards --------------------

def admin_dashboard(db: Session) -> dict:
    by_role: Dict[str, int] = {role.value: 0 for role in Role}
    for role, count in db.execute(select(User.role, func.count(User.id)).group_by(User.role)):
        by_role[Role(role).value] = int(count)

    total_stores = db.execute(select(func.count(Store.id))).scalar_one()
    total_ratings, average = db.execute(
        select(func.count(Rating.id), func.coalesce(func.avg(Rating.rating_value), 0))
    ).one()
    return {
        "users": {"total": sum(by_role.values()), "by_role": by_role},
        "stores": {"total": int(total_stores)},
        "ratings": {"total": int(total_ratings), "average": float(average)},
    }


def _aggregates_by_store(db: Session, store_ids: Sequence[int]) -> Dict[int, dict]:
    rows = db.execute(
        select(Rating.store_id, func.avg(Rating.rating_value), func.count(Rating.id))
        .where(Rating.store_id.in_(store_ids))
        .group_by(Rating.store_id)
    ).all()
    summaries = {store_id: {"average_rating": 0.0, "rating_count": 0} for store_id in store_ids}
    for store_id, average, count in rows:
        summaries[store_id] = {"average_rating": float(average or 0), "rating_count": int(count)}
    return summaries


def _ratings_by_store(db: Session, store_ids: Sequence[int]) -> Dict[int, List[dict]]:
    rows = db.execute(
        select(
            Rating.id,
            Rating.store_id,
            Rating.rating_value,
            Rating.created_at,
            Rating.updated_at,
            User.id.label("user_id"),
            User.name.label("user_name"),
            User.email.label("user_email"),
        )
        .join(User, User.id == Rating.user_id)
        .where(Rating.store_id.in_(store_ids))
        .order_by(Rating.updated_at.desc(), Rating.id.desc())
    ).mappings().all()
    grouped: Dict[int, List[dict]] = {store_id: [] for store_id in store_ids}
    for row in rows:
        grouped[row["store_id"]].append(
            {
                "id": row["id"],
                "rating_value": row["rating_value"],
                "created_at": row["created_at"],
                "updated_at": row["updated_at"],
                "user": {"id": row["user_id"], "name": row["user_name"], "email": row["user_email"]},
            }
        )
    return grouped


def store_details(db: Session, stores: Sequence[Store]) -> List[dict]:
    """Stores with their rating summary and individual ratings (rater included)."""
    store_ids = [store.id for store in stores]
    if not store_ids:
        return []
    summaries = _aggregates_by_store(db, store_ids)
    ratings = _ratings_by_store(db, store_ids)
    return [
        {
            "id": store.id,
            "name": store.name,
            "email": store.email,
            "address": store.address,
            "created_at": store.created_at,
            "ratings_summary": summaries[store.id],
            "ratings": ratings[store.id],
        }
        for store in stores
    ]


def owner_dashboard(db: Session, owner: User) -> dict:
    stores = db.execute(
        select(Store).where(Store.owner_id == owner.id).order_by(Store.name.asc(), Store.id.asc())
    ).scalars().all()
    total_ratings, average = db.execute(
        select(func.count(Rating.id), func.coalesce(func.avg(Rating.rating_value), 0))
        .join(Store, Store.id == Rating.store_id)
        .where(Store.owner_id == owner.id)
    ).one()
    return {
        "owner": {"id": owner.id, "name": owner.name, "email": owner.email},
        "stores_count": len(stores),
        "summary": {"total_ratings": int(total_ratings), "average_rating": float(average)},
        "stores": store_details(db, stores),
    }
