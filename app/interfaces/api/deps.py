"""FastAPI dependency — identity-provider token auth."""

from typing import Any, Dict, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.application.services import access_policy
from app.core.exceptions import UnauthorizedException
from app.domain.gateways import IdentityProvider
from app.domain.models.user import User
from app.domain.repositories.user_repository import UserRepository
from app.interfaces.deps import get_identity_provider, get_user_repository

security = HTTPBearer(auto_error=False)


def get_token_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> Dict[str, Any]:
    """Verify the bearer ID token with the identity provider."""
    if credentials is None:
        raise UnauthorizedException("Missing Authorization header")

    claims = identity.verify_token(credentials.credentials)
    if not claims.get("email"):
        raise UnauthorizedException("Token carries no email")
    return claims


def get_current_user(
    claims: Dict[str, Any] = Depends(get_token_claims),
    users: UserRepository = Depends(get_user_repository),
) -> User:
    """Load the registered account behind the token."""
    user = users.get_by_email(claims["email"])
    if user is None:
        raise UnauthorizedException("User is not registered")
    return user


def require_moderator(user: User = Depends(get_current_user)) -> User:
    """Require staff or admin role."""
    access_policy.can_moderate(user).enforce()
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    """Require admin role."""
    access_policy.can_administer(user).enforce()
    return user
