import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import models, schemas
from .errors import Conflict, DuplicateEmail, NotFound, UserNotFound, ValidationFailed

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: int) -> Optional[models.User]:
    return db.get(models.User, user_id)


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    return db.execute(select(models.User).where(models.User.email == email)).scalar_one_or_none()


def create_user(
    db: Session,
    name: str,
    email: str,
    password_hash: str,
    role: models.Role,
    address: Optional[str] = None,
) -> models.User:
    # Friendly check first; the unique index still settles concurrent signups.
    if get_user_by_email(db, email) is not None:
        raise DuplicateEmail()

    db_user = models.User(name=name, email=email, password_hash=password_hash, address=address, role=role)
    db.add(db_user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateEmail() from e
    db.refresh(db_user)
    logger.info("Created user %s with role %s", db_user.id, db_user.role.value)
    return db_user


def update_profile(db: Session, user: models.User, changes: schemas.ProfileUpdate) -> models.User:
    provided = changes.model_fields_set
    if "name" not in provided and "address" not in provided:
        raise ValidationFailed("No valid fields to update")

    if "name" in provided:
        user.name = changes.name
    if "address" in provided:
        user.address = changes.address
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def set_password_hash(db: Session, user: models.User, password_hash: str) -> None:
    user.password_hash = password_hash
    db.add(user)
    db.commit()


def get_store(db: Session, store_id: int) -> Optional[models.Store]:
    return db.get(models.Store, store_id)


def create_store(db: Session, store: schemas.StoreCreate, owner_id: Optional[int] = None) -> models.Store:
    if owner_id is not None:
        owner = get_user(db, owner_id)
        if owner is None:
            raise NotFound("Owner not found")
        if owner.role != models.Role.STORE_OWNER:
            raise ValidationFailed.for_field("owner_id", "Assigned user must have store_owner role")

    db_store = models.Store(name=store.name, email=store.email, address=store.address, owner_id=owner_id)
    db.add(db_store)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        # only stores.email is unique besides the primary key
        raise Conflict("Store email already in use") from e
    db.refresh(db_store)
    logger.info("Created store %s (owner=%s)", db_store.id, owner_id)
    return db_store


def require_user(db: Session, user_id: int) -> models.User:
    user = get_user(db, user_id)
    if user is None:
        raise UserNotFound()
    return user
