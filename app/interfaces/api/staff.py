"""Staff API routes — list and provision staff accounts."""

from fastapi import APIRouter, Depends, status

from app.application.services import user_service
from app.domain.gateways import IdentityProvider
from app.domain.models.user import User
from app.domain.repositories.user_repository import UserRepository
from app.domain.schemas.user import StaffCreate, UserRead
from app.interfaces.api.deps import require_admin
from app.interfaces.deps import get_identity_provider, get_user_repository

router = APIRouter(prefix="/staff", tags=["Staff"])


@router.get("", response_model=list[UserRead])
def list_staff(
    repo: UserRepository = Depends(get_user_repository),
    user: User = Depends(require_admin),
):
    return [UserRead.model_validate(u) for u in user_service.list_users(repo, role="staff")]


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def provision_staff(
    body: StaffCreate,
    repo: UserRepository = Depends(get_user_repository),
    identity: IdentityProvider = Depends(get_identity_provider),
    user: User = Depends(require_admin),
):
    """Create a login at the identity provider and a local staff account."""
    return UserRead.model_validate(user_service.provision_staff(repo, identity, body))
