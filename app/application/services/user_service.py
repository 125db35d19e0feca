"""User service — registration, account flags, profiles and staff provisioning."""

from typing import List, Optional

import structlog

from app.core.exceptions import ConflictException, EntityNotFoundException, ValidationException
from app.domain.gateways import IdentityProvider
from app.domain.models.user import User
from app.domain.repositories.user_repository import UserRepository
from app.domain.schemas.user import StaffCreate, UserCreate

logger = structlog.get_logger(__name__)


def get_user(repo: UserRepository, email: str) -> User:
    user = repo.get_by_email(email)
    if user is None:
        raise EntityNotFoundException("User not found", details={"email": email})
    return user


def list_users(repo: UserRepository, role: Optional[str] = None) -> List[User]:
    return repo.list_by_role(role)


def register_or_fetch(repo: UserRepository, profile: UserCreate, uid: Optional[str] = None) -> User:
    """Return the existing account for the email, or create a citizen account."""
    data = profile.model_dump()
    data.update(uid=uid, role="citizen", is_premium=False, is_blocked=False)

    user, created = repo.create_if_absent(data)
    if created:
        logger.info("User registered", email=user.email)
    return user


def _set_flag(repo: UserRepository, email: str, **flags) -> User:
    user = get_user(repo, email)
    user = repo.update(user, flags)
    logger.info("User flags changed", email=email, **flags)
    return user


def set_premium(repo: UserRepository, email: str) -> User:
    return _set_flag(repo, email, is_premium=True)


def block_user(repo: UserRepository, email: str) -> User:
    return _set_flag(repo, email, is_blocked=True)


def unblock_user(repo: UserRepository, email: str) -> User:
    return _set_flag(repo, email, is_blocked=False)


def update_profile(
    repo: UserRepository,
    identity: IdentityProvider,
    email: str,
    name: Optional[str] = None,
    phone: Optional[str] = None,
    photo: Optional[str] = None,
    password: Optional[str] = None,
) -> User:
    """Update the local profile and mirror name, photo and password to the identity provider."""
    user = get_user(repo, email)

    identity_changes = {}
    if name:
        identity_changes["display_name"] = name
    if photo:
        identity_changes["photo_url"] = photo
    if password:
        identity_changes["password"] = password

    linked_uid = None
    if identity_changes:
        uid = user.uid
        if uid is None:
            account = identity.get_by_email(email)
            if account is None:
                raise EntityNotFoundException("Identity account not found", details={"email": email})
            uid = linked_uid = account.uid
        identity.update_account(uid, **identity_changes)

    local_changes = {key: value for key, value in {"name": name, "phone": phone, "photo": photo}.items() if value}
    if linked_uid:
        local_changes["uid"] = linked_uid
    if local_changes:
        user = repo.update(user, local_changes)

    logger.info(
        "Profile updated",
        email=email,
        fields=sorted(local_changes),
        password_changed=bool(password),
        linked_identity=linked_uid is not None,
    )
    return user


def provision_staff(repo: UserRepository, identity: IdentityProvider, data: StaffCreate) -> User:
    """Create an identity account and a local staff record for it.

    If the local insert fails the identity account is deleted again, so a
    failed provisioning never leaves an orphaned login behind.
    """
    if not data.password:
        raise ValidationException("Password is required", details={"field": "password"})
    if repo.get_by_email(data.email) is not None:
        raise ConflictException("A user with this email already exists", details={"email": data.email})
    if identity.get_by_email(data.email) is not None:
        raise ConflictException("An identity account with this email already exists", details={"email": data.email})

    account = identity.create_account(
        email=data.email,
        password=data.password,
        display_name=data.name,
        photo_url=data.photo,
    )

    try:
        user = repo.create(
            {
                "uid": account.uid,
                "name": data.name,
                "email": data.email,
                "phone": data.phone,
                "photo": data.photo,
                "role": "staff",
                "is_premium": False,
                "is_blocked": False,
            }
        )
    except Exception:
        logger.exception("Staff record insert failed, removing identity account", email=data.email)
        identity.delete_account(account.uid)
        raise

    logger.info("Staff provisioned", email=user.email, uid=account.uid)
    return user


def ensure_admin(repo: UserRepository, email: str) -> User:
    """Make sure an admin account exists for the given email."""
    user, created = repo.create_if_absent(
        {"email": email, "name": "Admin", "role": "admin", "is_premium": True, "is_blocked": False}
    )
    if not created and user.role != "admin":
        user = repo.update(user, {"role": "admin"})
    if created:
        logger.info("Default admin user created", email=email)
    return user
