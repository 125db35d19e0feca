"""Issue service — lifecycle rules for reporting, triage and upvoting."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

import structlog

from app.application.services import access_policy
from app.config import get_settings
from app.core.exceptions import EntityNotFoundException, ValidationException
from app.domain.models.issue import Issue
from app.domain.repositories.issue_repository import IssueRepository
from app.domain.repositories.user_repository import UserRepository
from app.domain.schemas.issue import IssueCreate, IssueFilter, IssueUpdate

settings = get_settings()
logger = structlog.get_logger(__name__)

CREATED_ACTION = "created"
REJECTED_ACTION = "rejected"
BOOSTED_ACTION = "boosted"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def get_issue(repo: IssueRepository, issue_id: str) -> Issue:
    issue = repo.get_by_id(issue_id)
    if issue is None:
        raise EntityNotFoundException("Issue not found", details={"id": issue_id})
    return issue


def list_issues(repo: IssueRepository, filters: IssueFilter) -> Union[List[Issue], Dict[str, Any]]:
    """Boosted issues first, newest first; paginated only when page or limit is given."""
    if not filters.is_paginated:
        return repo.list_all(filters)

    page = max(filters.page or 1, 1)
    limit = min(max(filters.limit or settings.DEFAULT_PAGE_SIZE, 1), settings.MAX_PAGE_SIZE)
    return repo.get_with_filters(filters.model_copy(update={"page": page, "limit": limit}))


def create_issue(
    issues: IssueRepository,
    users: UserRepository,
    data: IssueCreate,
    reporter_email: str,
    free_limit: Optional[int] = None,
) -> Issue:
    """File a new issue for a reporter.

    The reporter row is locked for the rest of the transaction so two
    concurrent submissions cannot both pass the quota check.
    """
    limit = settings.FREE_ISSUE_LIMIT if free_limit is None else free_limit

    reporter = users.get_by_email(reporter_email, for_update=True)
    issue_count = issues.count_by_reporter(reporter_email) if reporter else 0
    access_policy.can_create_issue(reporter, issue_count, limit).enforce()

    fields = data.model_dump(include={"title", "description", "category", "location", "photo"})
    fields.update(
        reporter_email=reporter_email,
        status="pending",
        priority="normal",
        is_boosted=False,
        upvote_count=0,
    )
    issue = issues.create_with_timeline(fields, action=CREATED_ACTION, timestamp=_now())
    logger.info("Issue created", issue_id=issue.id, reporter=reporter_email)
    return issue


def update_issue(repo: IssueRepository, issue_id: str, changes: IssueUpdate) -> Issue:
    """Apply the supplied fields and append the optional timeline entry."""
    issue = get_issue(repo, issue_id)

    fields = {key: value for key, value in changes.changed_fields().items() if value is not None}
    action = changes.timeline_entry.action if changes.timeline_entry else None
    if not fields and action is None:
        raise ValidationException("No data provided to update")

    issue = repo.apply_changes(issue, fields, action=action, timestamp=_now())
    logger.info("Issue updated", issue_id=issue_id, fields=sorted(fields), timeline=action is not None)
    return issue


def delete_issue(repo: IssueRepository, issue_id: str) -> None:
    if repo.delete(issue_id) is None:
        raise EntityNotFoundException("Issue not found", details={"id": issue_id})
    logger.info("Issue deleted", issue_id=issue_id)


def assign_issue(repo: IssueRepository, issue_id: str, staff_email: str) -> Issue:
    """Assign a staff member. The caller checks that staff_email belongs to staff."""
    issue = get_issue(repo, issue_id)
    issue = repo.apply_changes(
        issue,
        {"assigned_staff": staff_email},
        action=f"assigned to {staff_email}",
        timestamp=_now(),
    )
    logger.info("Issue assigned", issue_id=issue_id, staff=staff_email)
    return issue


def reject_issue(repo: IssueRepository, issue_id: str) -> Issue:
    issue = get_issue(repo, issue_id)
    if issue.status == "rejected":
        return issue

    issue = repo.apply_changes(issue, {"status": "rejected"}, action=REJECTED_ACTION, timestamp=_now())
    logger.info("Issue rejected", issue_id=issue_id)
    return issue


def boost_issue(repo: IssueRepository, issue_id: str) -> Issue:
    """Mark an issue as boosted so it sorts ahead of the rest."""
    issue = get_issue(repo, issue_id)
    if issue.is_boosted:
        return issue

    issue = repo.apply_changes(
        issue,
        {"is_boosted": True, "priority": "high"},
        action=BOOSTED_ACTION,
        timestamp=_now(),
    )
    logger.info("Issue boosted", issue_id=issue_id)
    return issue


def upvote_issue(repo: IssueRepository, issue_id: str, voter_email: Optional[str]) -> Issue:
    if not voter_email:
        access_policy.deny(access_policy.UNAUTHENTICATED).enforce()

    issue = get_issue(repo, issue_id)
    access_policy.can_upvote(issue, voter_email).enforce()

    if not repo.add_upvote(issue, voter_email):
        access_policy.deny(access_policy.ALREADY_UPVOTED).enforce()

    logger.info("Issue upvoted", issue_id=issue_id, voter=voter_email, upvotes=issue.upvote_count)
    return issue
