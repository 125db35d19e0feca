"""Issue API routes — report, browse, triage and upvote issues."""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, status

from app.application.services import access_policy, issue_service
from app.domain.models.user import User
from app.domain.repositories.issue_repository import IssueRepository
from app.domain.repositories.user_repository import UserRepository
from app.domain.schemas.issue import (
    AssignRequest,
    IssueCreate,
    IssueFilter,
    IssueRead,
    IssueUpdate,
    UpvoteRequest,
)
from app.interfaces.api.deps import get_current_user, require_admin, require_moderator
from app.interfaces.deps import get_issue_repository, get_user_repository

router = APIRouter(prefix="/issues", tags=["Issues"])

MODERATED_FIELDS = {"status", "priority"}


@router.get("")
def list_issues(
    page: Optional[int] = Query(None, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    search: Optional[str] = None,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    category: Optional[str] = None,
    email: Optional[str] = None,
    assigned_staff: Optional[str] = Query(None, alias="assignedStaff"),
    repo: IssueRepository = Depends(get_issue_repository),
):
    """List issues, boosted first. Returns a page object when page or limit is given."""
    filters = IssueFilter(
        status=status,
        priority=priority,
        category=category,
        assigned_staff=assigned_staff,
        reporter_email=email,
        search=search,
        page=page,
        limit=limit,
    )
    result = issue_service.list_issues(repo, filters)
    if isinstance(result, dict):
        result["items"] = [IssueRead.model_validate(i) for i in result["items"]]
        return result
    return [IssueRead.model_validate(i) for i in result]


@router.get("/{issue_id}", response_model=IssueRead)
def get_issue(issue_id: str, repo: IssueRepository = Depends(get_issue_repository)):
    return IssueRead.model_validate(issue_service.get_issue(repo, issue_id))


@router.post("", response_model=IssueRead, status_code=status.HTTP_201_CREATED)
def create_issue(
    body: IssueCreate,
    issues: IssueRepository = Depends(get_issue_repository),
    users: UserRepository = Depends(get_user_repository),
    user: User = Depends(get_current_user),
):
    reporter_email = body.reporter_email or user.email
    access_policy.can_manage_account(user, reporter_email).enforce()

    issue = issue_service.create_issue(issues, users, body, reporter_email)
    return IssueRead.model_validate(issue)


@router.patch("/assign/{issue_id}", response_model=IssueRead)
def assign_issue(
    issue_id: str,
    body: AssignRequest,
    issues: IssueRepository = Depends(get_issue_repository),
    users: UserRepository = Depends(get_user_repository),
    user: User = Depends(require_moderator),
):
    access_policy.can_be_assigned(users.get_by_email(body.staff_email)).enforce()
    return IssueRead.model_validate(issue_service.assign_issue(issues, issue_id, body.staff_email))


@router.patch("/reject/{issue_id}", response_model=IssueRead)
def reject_issue(
    issue_id: str,
    repo: IssueRepository = Depends(get_issue_repository),
    user: User = Depends(require_moderator),
):
    return IssueRead.model_validate(issue_service.reject_issue(repo, issue_id))


@router.patch("/boost/{issue_id}", response_model=IssueRead)
def boost_issue(
    issue_id: str,
    repo: IssueRepository = Depends(get_issue_repository),
    user: User = Depends(require_admin),
):
    return IssueRead.model_validate(issue_service.boost_issue(repo, issue_id))


@router.patch("/upvote/{issue_id}", response_model=IssueRead)
def upvote_issue(
    issue_id: str,
    body: Optional[UpvoteRequest] = Body(None),
    repo: IssueRepository = Depends(get_issue_repository),
    user: User = Depends(get_current_user),
):
    """Upvote as the signed-in user; a body email, if sent, must be the caller's."""
    voter_email = user.email
    if body is not None and body.email and body.email != user.email:
        access_policy.deny(access_policy.NOT_OWNER).enforce()

    return IssueRead.model_validate(issue_service.upvote_issue(repo, issue_id, voter_email))


@router.patch("/{issue_id}", response_model=IssueRead)
def update_issue(
    issue_id: str,
    body: IssueUpdate,
    repo: IssueRepository = Depends(get_issue_repository),
    user: User = Depends(get_current_user),
):
    """Edit fields and/or append a timeline entry. Status and priority need a moderator."""
    issue = issue_service.get_issue(repo, issue_id)
    access_policy.can_edit_issue(user, issue).enforce()
    if MODERATED_FIELDS & body.changed_fields().keys():
        access_policy.can_moderate(user).enforce()

    return IssueRead.model_validate(issue_service.update_issue(repo, issue_id, body))


@router.delete("/{issue_id}")
def delete_issue(
    issue_id: str,
    repo: IssueRepository = Depends(get_issue_repository),
    user: User = Depends(require_admin),
):
    issue_service.delete_issue(repo, issue_id)
    return {"success": True, "id": issue_id}
