"""
Issue Repository Interface.
Defines data access operations for Issues, their upvotes and timeline.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from app.domain.repositories.base import BaseRepository
from app.domain.models.issue import Issue
from app.domain.schemas.issue import IssueFilter


class IssueRepository(BaseRepository[Issue]):
    """Interface for Issue-specific operations."""

    def create_with_timeline(self, data: Dict[str, Any], action: str, timestamp: datetime) -> Issue:
        """Insert an issue seeded with a single timeline entry."""
        ...

    def count_by_reporter(self, email: str) -> int:
        """Count every issue filed by a reporter, whatever its status."""
        ...

    def apply_changes(
        self,
        issue: Issue,
        fields: Dict[str, Any],
        action: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> Issue:
        """Set the given fields and optionally append a timeline entry, in one commit."""
        ...

    def add_upvote(self, issue: Issue, email: str) -> bool:
        """Record a vote and bump the counter atomically. False if the vote already exists."""
        ...

    def get_with_filters(self, filters: IssueFilter) -> Dict[str, Any]:
        """One page of filtered, sorted issues with total and total_pages."""
        ...

    def list_all(self, filters: IssueFilter) -> List[Issue]:
        """Filtered, sorted issues without pagination."""
        ...
