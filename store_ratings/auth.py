import logging
import time
from dataclasses import dataclass
from typing import Optional, Tuple

import jwt
from passlib.context import CryptContext
from pydantic import ValidationError
from sqlalchemy.orm import Session

from . import crud, models, schemas
from .config import Settings
from .errors import InvalidCredentials, InvalidToken, Unauthenticated, ValidationFailed, field_errors

logger = logging.getLogger(__name__)

# Use pbkdf2_sha256 as default to avoid bcrypt 72-byte limitation in some envs;
# bcrypt stays verifiable for accounts seeded by older tooling.
pwd_context = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


@dataclass(frozen=True)
class Claims:
    """Identity carried by a session token."""

    user_id: int
    role: models.Role
    name: str
    email: str


def _validated(model_cls, **fields):
    try:
        return model_cls(**fields)
    except ValidationError as e:
        raise ValidationFailed(errors=field_errors(e.errors())) from None


class AuthService:
    """Credential checks and token handling, bound to one ``Settings``."""

    def __init__(self, settings: Settings):
        self._secret = settings.jwt_secret
        self._algorithm = settings.jwt_algorithm
        self._ttl = settings.token_ttl_seconds

    # -------------------- tokens --------------------

    def issue_token(
        self,
        user_id: int,
        role: models.Role,
        name: str,
        email: str,
        expires_delta: Optional[int] = None,
    ) -> str:
        now = int(time.time())
        exp = now + (self._ttl if expires_delta is None else expires_delta)
        payload = {
            "sub": str(user_id),
            "role": models.Role(role).value,
            "name": name,
            "email": email,
            "iat": now,
            "exp": exp,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def token_for(self, user: models.User) -> str:
        return self.issue_token(user.id, user.role, user.name, user.email)

    def verify_token(self, token: Optional[str]) -> Claims:
        if not token:
            raise Unauthenticated()
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except jwt.ExpiredSignatureError:
            logger.info("Rejected expired token")
            raise InvalidToken() from None
        except jwt.PyJWTError as e:
            logger.warning("Rejected invalid token: %s", e)
            raise InvalidToken() from None
        try:
            return Claims(
                user_id=int(payload["sub"]),
                role=models.Role(payload["role"]),
                name=payload.get("name", ""),
                email=payload.get("email", ""),
            )
        except (KeyError, TypeError, ValueError):
            logger.warning("Rejected token with malformed claims")
            raise InvalidToken() from None

    # -------------------- accounts --------------------

    def create_account(
        self,
        db: Session,
        name: str,
        email: str,
        password: str,
        address: Optional[str] = None,
        role: models.Role = models.Role.NORMAL_USER,
    ) -> models.User:
        data = _validated(schemas.SignupRequest, name=name, email=email, password=password, address=address)
        return self.add_account(db, data, role=role)

    def add_account(
        self, db: Session, data: schemas.SignupRequest, role: models.Role = models.Role.NORMAL_USER
    ) -> models.User:
        """Persist an account from a request model that has already been validated."""
        return crud.create_user(
            db,
            name=data.name,
            email=data.email,
            password_hash=hash_password(data.password),
            role=models.Role(role),
            address=data.address,
        )

    def register(
        self, db: Session, name: str, email: str, password: str, address: Optional[str] = None
    ) -> Tuple[models.User, str]:
        data = _validated(schemas.SignupRequest, name=name, email=email, password=password, address=address)
        return self.signup(db, data)

    def signup(self, db: Session, data: schemas.SignupRequest) -> Tuple[models.User, str]:
        # self-registration never picks its own role
        user = self.add_account(db, data, role=models.Role.NORMAL_USER)
        return user, self.token_for(user)

    def authenticate(self, db: Session, email: str, password: str) -> Tuple[models.User, str]:
        user = crud.get_user_by_email(db, email)
        if user is None:
            # keep timing comparable to a real hash check
            pwd_context.dummy_verify()
            logger.warning("Login failed for unknown email")
            raise InvalidCredentials()
        if not verify_password(password, user.password_hash):
            logger.warning("Login failed for user %s", user.id)
            raise InvalidCredentials()
        return user, self.token_for(user)

    def change_password(self, db: Session, user: models.User, current: str, new: str) -> None:
        _validated(schemas.PasswordUpdate, current_password=current, new_password=new)
        if not verify_password(current, user.password_hash):
            raise InvalidCredentials("Current password is incorrect")
        crud.set_password_hash(db, user, hash_password(new))
        logger.info("Password changed for user %s", user.id)
