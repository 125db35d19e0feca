"""User API routes — registration, account flags and profile edits."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from app.application.services import access_policy, user_service
from app.core.exceptions import ValidationException
from app.domain.gateways import BlobStore, IdentityProvider
from app.domain.models.user import User
from app.domain.repositories.user_repository import UserRepository
from app.domain.schemas.user import UserCreate, UserRead
from app.interfaces.api.deps import get_current_user, get_token_claims, require_admin
from app.interfaces.deps import get_blob_store, get_identity_provider, get_user_repository

router = APIRouter(prefix="/users", tags=["Users"])

PHOTO_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp"}


def _save_photo(blob_store: BlobStore, photo: Optional[UploadFile]) -> Optional[str]:
    if photo is None or not photo.filename:
        return None

    ext = photo.filename.rsplit(".", 1)[-1].lower() if "." in photo.filename else ""
    if ext not in PHOTO_EXTENSIONS:
        raise ValidationException("Only image files are accepted", details={"filename": photo.filename})
    return blob_store.save(photo.filename, photo.file.read())


@router.get("", response_model=list[UserRead])
def list_users(
    role: Optional[str] = None,
    repo: UserRepository = Depends(get_user_repository),
    user: User = Depends(require_admin),
):
    return [UserRead.model_validate(u) for u in user_service.list_users(repo, role)]


@router.post("", response_model=UserRead)
def register_user(
    body: UserCreate,
    repo: UserRepository = Depends(get_user_repository),
    claims: Dict[str, Any] = Depends(get_token_claims),
):
    """Create the local account for a signed-in identity, or return the existing one."""
    if claims["email"] != body.email:
        access_policy.deny(access_policy.NOT_OWNER).enforce()
    return UserRead.model_validate(user_service.register_or_fetch(repo, body, uid=claims.get("uid")))


@router.patch("/subscribe/{email}", response_model=UserRead)
def subscribe_user(
    email: str,
    repo: UserRepository = Depends(get_user_repository),
    user: User = Depends(require_admin),
):
    """Grant premium by hand. Customers get it through the payment webhook."""
    return UserRead.model_validate(user_service.set_premium(repo, email))


@router.patch("/block/{email}", response_model=UserRead)
def block_user(
    email: str,
    repo: UserRepository = Depends(get_user_repository),
    user: User = Depends(require_admin),
):
    return UserRead.model_validate(user_service.block_user(repo, email))


@router.patch("/unblock/{email}", response_model=UserRead)
def unblock_user(
    email: str,
    repo: UserRepository = Depends(get_user_repository),
    user: User = Depends(require_admin),
):
    return UserRead.model_validate(user_service.unblock_user(repo, email))


@router.patch("/update", response_model=UserRead)
def update_own_profile(
    name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    repo: UserRepository = Depends(get_user_repository),
    identity: IdentityProvider = Depends(get_identity_provider),
    blob_store: BlobStore = Depends(get_blob_store),
    user: User = Depends(get_current_user),
):
    """Update the caller's own name, phone, photo or password."""
    if email and email != user.email:
        access_policy.deny(access_policy.NOT_OWNER).enforce()

    updated = user_service.update_profile(
        repo,
        identity,
        user.email,
        name=name,
        phone=phone,
        photo=_save_photo(blob_store, photo),
        password=password,
    )
    return UserRead.model_validate(updated)


@router.patch("/updateadmin", response_model=UserRead)
def update_profile_as_admin(
    name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    repo: UserRepository = Depends(get_user_repository),
    identity: IdentityProvider = Depends(get_identity_provider),
    blob_store: BlobStore = Depends(get_blob_store),
    user: User = Depends(require_admin),
):
    """Update any account's profile; defaults to the admin's own."""
    updated = user_service.update_profile(
        repo,
        identity,
        email or user.email,
        name=name,
        phone=phone,
        photo=_save_photo(blob_store, photo),
        password=password,
    )
    return UserRead.model_validate(updated)


@router.get("/{email}", response_model=UserRead)
def get_user(
    email: str,
    repo: UserRepository = Depends(get_user_repository),
    user: User = Depends(get_current_user),
):
    return UserRead.model_validate(user_service.get_user(repo, email))
