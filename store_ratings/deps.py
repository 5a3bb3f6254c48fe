from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .auth import AuthService, Claims
from .models import Role
from .policy import ALL_ROLES, authorize

bearer_scheme = HTTPBearer(auto_error=False)


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth


def get_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth: AuthService = Depends(get_auth_service),
) -> Claims:
    """Require a valid bearer token and return its claims."""
    token = credentials.credentials if credentials else None
    return auth.verify_token(token)


def require_roles(*roles: Role):
    """Dependency factory: the endpoint declares exactly which roles may call it."""
    allowed = frozenset(roles)

    def role_dependency(claims: Claims = Depends(get_claims)) -> Claims:
        return authorize(claims, allowed)

    return role_dependency


any_role = require_roles(*ALL_ROLES)
admin_only = require_roles(Role.SYSTEM_ADMINISTRATOR)
store_owner_only = require_roles(Role.STORE_OWNER)
