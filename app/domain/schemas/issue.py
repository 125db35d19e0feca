"""Pydantic schemas for Issue domain."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

IssueStatus = Literal["pending", "in-progress", "working", "resolved", "closed", "rejected"]
IssuePriority = Literal["normal", "high"]


class IssueBase(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    description: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    photo: Optional[str] = None


class IssueCreate(IssueBase):
    model_config = ConfigDict(populate_by_name=True)

    # Clients send the reporter as "email"; the API fills it from the caller when absent
    reporter_email: Optional[str] = Field(default=None, alias="email")


class TimelineEntryIn(BaseModel):
    action: str = Field(min_length=1, max_length=500)


class IssueUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = Field(default=None, min_length=1, max_length=300)
    description: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    photo: Optional[str] = None
    status: Optional[IssueStatus] = None
    priority: Optional[IssuePriority] = None
    timeline_entry: Optional[TimelineEntryIn] = Field(default=None, alias="timelineEntry")

    def changed_fields(self) -> dict:
        """Fields the client actually sent, excluding the timeline entry."""
        return self.model_dump(exclude_unset=True, exclude={"timeline_entry"})


class AssignRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    staff_email: str = Field(alias="staffEmail", min_length=1)


class UpvoteRequest(BaseModel):
    email: Optional[str] = None


class TimelineEntryRead(BaseModel):
    action: str
    timestamp: datetime

    model_config = {"from_attributes": True}


class IssueRead(IssueBase):
    id: str
    reporter_email: str
    status: str
    priority: str
    assigned_staff: Optional[str] = None
    is_boosted: bool
    upvotes: list[str] = []
    upvote_count: int
    created_at: datetime
    updated_at: Optional[datetime] = None
    timeline: list[TimelineEntryRead] = []

    model_config = {"from_attributes": True}

    @field_validator("upvotes", mode="before")
    @classmethod
    def _voter_emails(cls, value):
        return [getattr(vote, "email", vote) for vote in value or []]


class IssueFilter(BaseModel):
    status: Optional[str] = None
    priority: Optional[str] = None
    category: Optional[str] = None
    assigned_staff: Optional[str] = None
    reporter_email: Optional[str] = None
    search: Optional[str] = None
    page: Optional[int] = None
    limit: Optional[int] = None

    @property
    def is_paginated(self) -> bool:
        return self.page is not None or self.limit is not None


class IssuePage(BaseModel):
    items: list[IssueRead]
    total: int
    page: int
    limit: int
    total_pages: int
