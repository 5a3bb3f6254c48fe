import re
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import AliasChoices, BaseModel, EmailStr, Field, StrictInt, field_validator
from pydantic.config import ConfigDict

from .models import Role
from .utils import sanitize_input

NAME_MIN_LENGTH = 20
NAME_MAX_LENGTH = 60
ADDRESS_MAX_LENGTH = 400
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 16
PASSWORD_SPECIAL_CHARS = "!@#$&*"

_UPPERCASE = re.compile(r"[A-Z]")
_SPECIAL = re.compile("[" + re.escape(PASSWORD_SPECIAL_CHARS) + "]")


# Field rules shared by request models; also used directly by the auth service.

def validate_name(value: str) -> str:
    value = sanitize_input(value)
    if not NAME_MIN_LENGTH <= len(value) <= NAME_MAX_LENGTH:
        raise ValueError(f"Name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters")
    return value


def validate_address(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = sanitize_input(value)
    if len(value) > ADDRESS_MAX_LENGTH:
        raise ValueError(f"Address cannot exceed {ADDRESS_MAX_LENGTH} characters")
    return value or None


def validate_password(value: str) -> str:
    if not PASSWORD_MIN_LENGTH <= len(value) <= PASSWORD_MAX_LENGTH:
        raise ValueError(
            f"Password must be between {PASSWORD_MIN_LENGTH} and {PASSWORD_MAX_LENGTH} characters"
        )
    if not _UPPERCASE.search(value) or not _SPECIAL.search(value):
        raise ValueError("Password must contain at least one uppercase letter and one special character")
    return value


def parse_role(value) -> Role:
    if isinstance(value, Role):
        return value
    try:
        return Role(value)
    except ValueError:
        raise ValueError("Invalid role") from None


# -------------------- Requests --------------------

class SignupRequest(BaseModel):
    name: str
    email: EmailStr
    password: str
    address: Optional[str] = Field(default=None)

    @field_validator("name")
    def check_name(cls, v: str):
        return validate_name(v)

    @field_validator("password")
    def check_password(cls, v: str):
        return validate_password(v)

    @field_validator("address")
    def check_address(cls, v: Optional[str]):
        return validate_address(v)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class AdminUserCreate(SignupRequest):
    role: Role

    @field_validator("role", mode="before")
    def known_role(cls, v):
        return parse_role(v)


class ProfileUpdate(BaseModel):
    """Only fields present in the request body are applied."""

    name: Optional[str] = None
    address: Optional[str] = None

    @field_validator("name")
    def check_name(cls, v: Optional[str]):
        if v is None:
            raise ValueError("Name cannot be empty")
        return validate_name(v)

    @field_validator("address")
    def check_address(cls, v: Optional[str]):
        return validate_address(v)


class PasswordUpdate(BaseModel):
    current_password: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("currentPassword", "current_password")
    )
    new_password: str = Field(..., validation_alias=AliasChoices("newPassword", "new_password"))

    @field_validator("new_password")
    def check_new_password(cls, v: str):
        return validate_password(v)


class StoreCreate(BaseModel):
    name: str
    email: Optional[EmailStr] = None
    address: str

    @field_validator("name")
    def check_name(cls, v: str):
        return validate_name(v)

    @field_validator("address")
    def address_required(cls, v: str):
        v = validate_address(v)
        if not v:
            raise ValueError("Address is required")
        return v


class AdminStoreCreate(StoreCreate):
    owner_id: Optional[StrictInt] = None


class RatingSubmit(BaseModel):
    rating_value: StrictInt = Field(..., validation_alias=AliasChoices("rating_value", "value"))

    @field_validator("rating_value")
    def in_range(cls, v: int):
        if not 1 <= v <= 5:
            raise ValueError("Rating must be between 1 and 5")
        return v


# -------------------- Responses --------------------

class MessageResponse(BaseModel):
    message: str


class UserSummary(BaseModel):
    id: int
    name: str
    email: str
    role: Role

    model_config = ConfigDict(from_attributes=True)


class UserRead(UserSummary):
    address: Optional[str] = None
    created_at: datetime


class AuthResponse(BaseModel):
    message: str
    token: str
    token_type: str = "bearer"
    user: UserSummary


class UserEnvelope(BaseModel):
    message: str
    user: UserRead


class UserListResponse(BaseModel):
    count: int
    users: List[UserRead]


class OwnRating(BaseModel):
    id: int
    store_id: int
    store_name: str
    rating_value: int
    created_at: datetime
    updated_at: datetime


class CurrentUser(UserRead):
    ratings: List[OwnRating] = []


class CurrentUserResponse(BaseModel):
    user: CurrentUser


class StoreRead(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    address: str
    owner_id: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StoreEnvelope(BaseModel):
    message: str
    store: StoreRead


class StoreListItem(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    address: str
    created_at: datetime
    average_rating: float
    rating_count: int
    user_rating: Optional[int] = None


class StoreListResponse(BaseModel):
    count: int
    stores: List[StoreListItem]


class AdminStoreListItem(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    address: str
    owner_id: Optional[int] = None
    owner_name: Optional[str] = None
    owner_email: Optional[str] = None
    created_at: datetime
    average_rating: float
    rating_count: int


class AdminStoreListResponse(BaseModel):
    count: int
    stores: List[AdminStoreListItem]


class OwnedStore(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    address: str
    created_at: datetime
    average_rating: float
    rating_count: int


class AdminUserDetail(UserRead):
    stores: Optional[List[OwnedStore]] = None


class AdminUserDetailResponse(BaseModel):
    user: AdminUserDetail


class RatingRead(BaseModel):
    id: int
    user_id: int
    store_id: int
    rating_value: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StoreAggregate(BaseModel):
    id: int
    average_rating: float
    rating_count: int


class RatingSubmitResponse(BaseModel):
    message: str
    rating: RatingRead
    store: StoreAggregate


class UserCounts(BaseModel):
    total: int
    by_role: Dict[str, int]


class StoreCounts(BaseModel):
    total: int


class RatingCounts(BaseModel):
    total: int
    average: float


class AdminDashboard(BaseModel):
    users: UserCounts
    stores: StoreCounts
    ratings: RatingCounts


class PersonRef(BaseModel):
    id: int
    name: str
    email: str


class RatingsSummary(BaseModel):
    average_rating: float
    rating_count: int


class StoreRatingEntry(BaseModel):
    id: int
    rating_value: int
    created_at: datetime
    updated_at: datetime
    user: PersonRef


class OwnerStoreDetail(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    address: str
    created_at: datetime
    ratings_summary: RatingsSummary
    ratings: List[StoreRatingEntry]


class OwnerStoreResponse(BaseModel):
    store: OwnerStoreDetail


class OwnerSummary(BaseModel):
    total_ratings: int
    average_rating: float


class OwnerDashboard(BaseModel):
    owner: PersonRef
    stores_count: int
    summary: OwnerSummary
    stores: List[OwnerStoreDetail]
