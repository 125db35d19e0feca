"""Access policy — stateless role and ownership checks.

Every check takes a snapshot of the records involved and returns a
``PolicyDecision``. A denial carries a reason code; ``enforce()`` turns it
into the matching application error.
"""

from dataclasses import dataclass
from typing import Optional

from app.core.exceptions import (
    AppError,
    ConflictException,
    EntityNotFoundException,
    ForbiddenException,
    QuotaExceededException,
    UnauthorizedException,
    ValidationException,
)
from app.domain.models.issue import Issue
from app.domain.models.user import User

MODERATOR_ROLES = frozenset({"staff", "admin"})

USER_NOT_FOUND = "user_not_found"
USER_BLOCKED = "user_blocked"
QUOTA_EXCEEDED = "quota_exceeded"
UNAUTHENTICATED = "unauthenticated"
SELF_UPVOTE = "self_upvote"
ALREADY_UPVOTED = "already_upvoted"
NOT_MODERATOR = "not_moderator"
NOT_ADMIN = "not_admin"
NOT_OWNER = "not_owner"
NOT_STAFF = "not_staff"

_DENIALS: dict[str, tuple[type[AppError], str]] = {
    USER_NOT_FOUND: (EntityNotFoundException, "User not found"),
    USER_BLOCKED: (ForbiddenException, "Blocked users cannot report issues"),
    QUOTA_EXCEEDED: (QuotaExceededException, "Free users can report a limited number of issues. Subscribe to report more."),
    UNAUTHENTICATED: (UnauthorizedException, "Sign in to continue"),
    SELF_UPVOTE: (ForbiddenException, "You cannot upvote your own issue"),
    ALREADY_UPVOTED: (ConflictException, "You have already upvoted this issue"),
    NOT_MODERATOR: (ForbiddenException, "Only staff or admins can moderate issues"),
    NOT_ADMIN: (ForbiddenException, "Only admins can perform this action"),
    NOT_OWNER: (ForbiddenException, "You can only manage your own records"),
    NOT_STAFF: (ValidationException, "Issues can only be assigned to staff members"),
}


@dataclass(frozen=True)
class PolicyDecision:
    allowed: bool
    reason: Optional[str] = None

    def error(self) -> Optional[AppError]:
        if self.allowed:
            return None
        error_cls, message = _DENIALS[self.reason]
        return error_cls(message, details={"reason": self.reason})

    def enforce(self) -> None:
        error = self.error()
        if error is not None:
            raise error


ALLOW = PolicyDecision(True)


def deny(reason: str) -> PolicyDecision:
    return PolicyDecision(False, reason)


def can_create_issue(user: Optional[User], issue_count: int, limit: int) -> PolicyDecision:
    if user is None:
        return deny(USER_NOT_FOUND)
    if user.is_blocked:
        return deny(USER_BLOCKED)
    if not user.is_premium and issue_count >= limit:
        return deny(QUOTA_EXCEEDED)
    return ALLOW


def can_upvote(issue: Issue, voter_email: Optional[str]) -> PolicyDecision:
    if not voter_email:
        return deny(UNAUTHENTICATED)
    if voter_email == issue.reporter_email:
        return deny(SELF_UPVOTE)
    if voter_email in issue.upvoter_emails:
        return deny(ALREADY_UPVOTED)
    return ALLOW


def can_moderate(user: Optional[User]) -> PolicyDecision:
    if user is None:
        return deny(UNAUTHENTICATED)
    return ALLOW if user.role in MODERATOR_ROLES else deny(NOT_MODERATOR)


def can_administer(user: Optional[User]) -> PolicyDecision:
    if user is None:
        return deny(UNAUTHENTICATED)
    return ALLOW if user.role == "admin" else deny(NOT_ADMIN)


def can_edit_issue(user: Optional[User], issue: Issue) -> PolicyDecision:
    if user is None:
        return deny(UNAUTHENTICATED)
    if user.email == issue.reporter_email or user.role in MODERATOR_ROLES:
        return ALLOW
    return deny(NOT_OWNER)


def can_manage_account(user: Optional[User], email: str) -> PolicyDecision:
    if user is None:
        return deny(UNAUTHENTICATED)
    if user.email == email or user.role == "admin":
        return ALLOW
    return deny(NOT_OWNER)


def can_be_assigned(user: Optional[User]) -> PolicyDecision:
    if user is None:
        return deny(USER_NOT_FOUND)
    return ALLOW if user.role == "staff" else deny(NOT_STAFF)
