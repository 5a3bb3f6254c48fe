"""Role and ownership checks. Pure functions of the token claims."""
from typing import AbstractSet

from .auth import Claims
from .errors import Forbidden
from .models import Role, Store

ALL_ROLES = frozenset(Role)


def authorize(claims: Claims, allowed_roles: AbstractSet[Role]) -> Claims:
    if claims.role not in allowed_roles:
        raise Forbidden()
    return claims


def authorize_owner(claims: Claims, store: Store) -> Claims:
    """Store-owner routes may only touch stores the caller owns."""
    if store.owner_id is None or store.owner_id != claims.user_id:
        raise Forbidden("Forbidden: not the owner of this store")
    return claims
