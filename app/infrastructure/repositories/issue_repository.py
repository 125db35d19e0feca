"""
SQLAlchemy Implementation of Issue Repository.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query

from app.domain.models.issue import Issue, IssueTimelineEntry, IssueUpvote
from app.domain.repositories.issue_repository import IssueRepository
from app.domain.schemas.issue import IssueFilter
from app.infrastructure.repositories.base_repository import SQLAlchemyRepository


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class SQLAlchemyIssueRepository(SQLAlchemyRepository[Issue], IssueRepository):
    """Issue repository implementation using SQLAlchemy."""

    def create_with_timeline(self, data: Dict[str, Any], action: str, timestamp: datetime) -> Issue:
        issue = Issue(
            **data,
            created_at=timestamp,
            timeline=[IssueTimelineEntry(action=action, timestamp=timestamp)],
        )
        self.db.add(issue)
        self.db.commit()
        self.db.refresh(issue)
        return issue

    def count_by_reporter(self, email: str) -> int:
        return self.db.query(Issue).filter(Issue.reporter_email == email).count()

    def apply_changes(
        self,
        issue: Issue,
        fields: Dict[str, Any],
        action: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> Issue:
        for field, value in fields.items():
            setattr(issue, field, value)
        if action is not None:
            issue.timeline.append(IssueTimelineEntry(action=action, timestamp=timestamp))

        self.db.add(issue)
        self.db.commit()
        self.db.refresh(issue)
        return issue

    def add_upvote(self, issue: Issue, email: str) -> bool:
        # Vote row and counter bump share one transaction; the unique
        # (issue_id, email) constraint rejects a concurrent duplicate.
        self.db.add(IssueUpvote(issue_id=issue.id, email=email))
        self.db.query(Issue).filter(Issue.id == issue.id).update(
            {Issue.upvote_count: Issue.upvote_count + 1},
            synchronize_session=False,
        )
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            return False

        self.db.refresh(issue)
        return True

    def _filtered(self, filters: IssueFilter) -> Query:
        query = self.db.query(Issue)

        if filters.status:
            query = query.filter(Issue.status == filters.status)
        if filters.priority:
            query = query.filter(Issue.priority == filters.priority)
        if filters.category:
            query = query.filter(Issue.category == filters.category)
        if filters.assigned_staff:
            query = query.filter(Issue.assigned_staff == filters.assigned_staff)
        if filters.reporter_email:
            query = query.filter(Issue.reporter_email == filters.reporter_email)
        if filters.search:
            pattern = _like_pattern(filters.search)
            query = query.filter(
                or_(
                    Issue.title.ilike(pattern, escape="\\"),
                    Issue.category.ilike(pattern, escape="\\"),
                    Issue.location.ilike(pattern, escape="\\"),
                )
            )
        return query

    @staticmethod
    def _sorted(query: Query) -> Query:
        return query.order_by(Issue.is_boosted.desc(), Issue.created_at.desc(), Issue.id)

    def list_all(self, filters: IssueFilter) -> List[Issue]:
        return self._sorted(self._filtered(filters)).all()

    def get_with_filters(self, filters: IssueFilter) -> Dict[str, Any]:
        query = self._filtered(filters)

        total = query.count()
        offset = (filters.page - 1) * filters.limit
        issues = self._sorted(query).offset(offset).limit(filters.limit).all()

        return {
            "items": issues,
            "total": total,
            "page": filters.page,
            "limit": filters.limit,
            "total_pages": (total + filters.limit - 1) // filters.limit,
        }
