"""Issue domain model — maps to the 'issues' table and its child tables."""

import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.infrastructure.database import Base


def _new_issue_id() -> str:
    return uuid.uuid4().hex


class Issue(Base):
    __tablename__ = "issues"

    id = Column(String(32), primary_key=True, default=_new_issue_id)
    title = Column(String(300), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True, index=True)
    location = Column(String(500), nullable=True)
    photo = Column(String(1000), nullable=True)
    reporter_email = Column(String(255), nullable=False, index=True)

    status = Column(String(50), nullable=False, default="pending", index=True)
    priority = Column(String(50), nullable=False, default="normal", index=True)  # normal, high
    assigned_staff = Column(String(255), nullable=True, index=True)
    is_boosted = Column(Boolean, nullable=False, default=False)

    # Kept equal to len(upvotes) by IssueRepository.add_upvote
    upvote_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    upvotes = relationship(
        "IssueUpvote",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="IssueUpvote.id",
    )
    timeline = relationship(
        "IssueTimelineEntry",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="IssueTimelineEntry.id",
    )

    @property
    def upvoter_emails(self) -> list[str]:
        return [vote.email for vote in self.upvotes]

    def __repr__(self):
        return f"<Issue {self.id} - {self.status}>"


class IssueUpvote(Base):
    __tablename__ = "issue_upvotes"
    __table_args__ = (UniqueConstraint("issue_id", "email", name="uq_issue_upvote_email"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    issue_id = Column(String(32), ForeignKey("issues.id", ondelete="CASCADE"), nullable=False, index=True)
    email = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class IssueTimelineEntry(Base):
    __tablename__ = "issue_timeline"

    id = Column(Integer, primary_key=True, autoincrement=True)
    issue_id = Column(String(32), ForeignKey("issues.id", ondelete="CASCADE"), nullable=False, index=True)
    action = Column(String(500), nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f"<IssueTimelineEntry {self.issue_id} - {self.action}>"
