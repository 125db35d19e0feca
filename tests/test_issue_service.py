import pytest

from app.application.services import issue_service
from app.core.exceptions import (
    ConflictException,
    EntityNotFoundException,
    ForbiddenException,
    QuotaExceededException,
    UnauthorizedException,
    ValidationException,
)
from app.domain.schemas.issue import IssueCreate, IssueFilter, IssueUpdate


def _report(issue_repo, user_repo, email, title="Broken streetlight", **fields):
    data = IssueCreate(title=title, **fields)
    return issue_service.create_issue(issue_repo, user_repo, data, email)


class TestCreateIssue:
    def test_new_issue_defaults(self, issue_repo, user_repo, make_user):
        make_user("alice@example.com")

        issue = _report(issue_repo, user_repo, "alice@example.com", category="lighting", location="Road 12")

        assert issue.id
        assert issue.status == "pending"
        assert issue.priority == "normal"
        assert issue.is_boosted is False
        assert issue.upvote_count == 0
        assert issue.upvoter_emails == []
        assert issue.reporter_email == "alice@example.com"
        assert [entry.action for entry in issue.timeline] == ["created"]
        assert issue.timeline[0].timestamp is not None

    def test_free_quota(self, issue_repo, user_repo, make_user):
        make_user("alice@example.com")
        for n in range(3):
            _report(issue_repo, user_repo, "alice@example.com", title=f"Issue {n}")

        with pytest.raises(QuotaExceededException):
            _report(issue_repo, user_repo, "alice@example.com", title="One too many")

        assert issue_repo.count_by_reporter("alice@example.com") == 3

    def test_quota_counts_rejected_issues(self, issue_repo, user_repo, make_user):
        make_user("alice@example.com")
        issues = [_report(issue_repo, user_repo, "alice@example.com", title=f"Issue {n}") for n in range(3)]
        issue_service.reject_issue(issue_repo, issues[0].id)

        with pytest.raises(QuotaExceededException):
            _report(issue_repo, user_repo, "alice@example.com")

    def test_premium_has_no_quota(self, issue_repo, user_repo, make_user):
        make_user("paid@example.com", is_premium=True)
        for n in range(5):
            _report(issue_repo, user_repo, "paid@example.com", title=f"Issue {n}")

        assert issue_repo.count_by_reporter("paid@example.com") == 5

    def test_custom_limit(self, issue_repo, user_repo, make_user):
        make_user("alice@example.com")
        data = IssueCreate(title="Flooding")
        issue_service.create_issue(issue_repo, user_repo, data, "alice@example.com", free_limit=1)

        with pytest.raises(QuotaExceededException):
            issue_service.create_issue(issue_repo, user_repo, data, "alice@example.com", free_limit=1)

    def test_blocked_reporter(self, issue_repo, user_repo, make_user):
        make_user("blocked@example.com", is_blocked=True, is_premium=True)

        with pytest.raises(ForbiddenException):
            _report(issue_repo, user_repo, "blocked@example.com")
        assert issue_repo.count_by_reporter("blocked@example.com") == 0

    def test_unknown_reporter(self, issue_repo, user_repo):
        with pytest.raises(EntityNotFoundException):
            _report(issue_repo, user_repo, "ghost@example.com")


class TestUpdateIssue:
    def test_partial_update_keeps_other_fields(self, issue_repo, user_repo, make_user):
        make_user("alice@example.com")
        issue = _report(issue_repo, user_repo, "alice@example.com", description="Dark at night", category="lighting")

        updated = issue_service.update_issue(issue_repo, issue.id, IssueUpdate(title="Streetlight out"))

        assert updated.title == "Streetlight out"
        assert updated.description == "Dark at night"
        assert updated.category == "lighting"
        assert len(updated.timeline) == 1

    def test_timeline_entry_is_appended(self, issue_repo, user_repo, make_user):
        make_user("alice@example.com")
        issue = _report(issue_repo, user_repo, "alice@example.com")

        changes = IssueUpdate.model_validate({"status": "in-progress", "timelineEntry": {"action": "crew dispatched"}})
        updated = issue_service.update_issue(issue_repo, issue.id, changes)

        assert updated.status == "in-progress"
        assert [entry.action for entry in updated.timeline] == ["created", "crew dispatched"]

    def test_timeline_only_update(self, issue_repo, user_repo, make_user):
        make_user("alice@example.com")
        issue = _report(issue_repo, user_repo, "alice@example.com")

        changes = IssueUpdate.model_validate({"timelineEntry": {"action": "inspected"}})
        updated = issue_service.update_issue(issue_repo, issue.id, changes)

        assert updated.status == "pending"
        assert updated.timeline[-1].action == "inspected"

    def test_empty_update(self, issue_repo, user_repo, make_user):
        make_user("alice@example.com")
        issue = _report(issue_repo, user_repo, "alice@example.com")

        with pytest.raises(ValidationException):
            issue_service.update_issue(issue_repo, issue.id, IssueUpdate())

    def test_missing_issue(self, issue_repo):
        with pytest.raises(EntityNotFoundException):
            issue_service.update_issue(issue_repo, "0" * 32, IssueUpdate(title="x"))


class TestTriage:
    def test_assign(self, issue_repo, user_repo, make_user):
        make_user("alice@example.com")
        issue = _report(issue_repo, user_repo, "alice@example.com")

        assigned = issue_service.assign_issue(issue_repo, issue.id, "staff@example.com")

        assert assigned.assigned_staff == "staff@example.com"
        assert assigned.timeline[-1].action == "assigned to staff@example.com"

    def test_reject_is_idempotent(self, issue_repo, user_repo, make_user):
        make_user("alice@example.com")
        issue = _report(issue_repo, user_repo, "alice@example.com")

        issue_service.reject_issue(issue_repo, issue.id)
        rejected = issue_service.reject_issue(issue_repo, issue.id)

        assert rejected.status == "rejected"
        assert [entry.action for entry in rejected.timeline] == ["created", "rejected"]

    def test_boost(self, issue_repo, user_repo, make_user):
        make_user("alice@example.com")
        issue = _report(issue_repo, user_repo, "alice@example.com")

        boosted = issue_service.boost_issue(issue_repo, issue.id)
        again = issue_service.boost_issue(issue_repo, issue.id)

        assert boosted.is_boosted is True
        assert boosted.priority == "high"
        assert [entry.action for entry in again.timeline] == ["created", "boosted"]

    def test_delete(self, issue_repo, user_repo, make_user):
        make_user("alice@example.com")
        issue = _report(issue_repo, user_repo, "alice@example.com")

        issue_service.delete_issue(issue_repo, issue.id)

        with pytest.raises(EntityNotFoundException):
            issue_service.get_issue(issue_repo, issue.id)
        with pytest.raises(EntityNotFoundException):
            issue_service.delete_issue(issue_repo, issue.id)


class TestUpvote:
    @pytest.fixture
    def issue(self, issue_repo, user_repo, make_user):
        make_user("alice@example.com")
        return _report(issue_repo, user_repo, "alice@example.com")

    def test_upvote_counts(self, issue_repo, issue):
        issue_service.upvote_issue(issue_repo, issue.id, "bob@example.com")
        voted = issue_service.upvote_issue(issue_repo, issue.id, "carol@example.com")

        assert voted.upvote_count == 2
        assert voted.upvoter_emails == ["bob@example.com", "carol@example.com"]

    def test_second_vote_rejected(self, issue_repo, issue):
        issue_service.upvote_issue(issue_repo, issue.id, "bob@example.com")

        with pytest.raises(ConflictException):
            issue_service.upvote_issue(issue_repo, issue.id, "bob@example.com")

        stored = issue_service.get_issue(issue_repo, issue.id)
        assert stored.upvote_count == 1
        assert stored.upvote_count == len(stored.upvoter_emails)

    def test_own_issue(self, issue_repo, issue):
        with pytest.raises(ForbiddenException):
            issue_service.upvote_issue(issue_repo, issue.id, "alice@example.com")

    def test_anonymous(self, issue_repo, issue):
        with pytest.raises(UnauthorizedException):
            issue_service.upvote_issue(issue_repo, issue.id, None)

    def test_missing_issue(self, issue_repo):
        with pytest.raises(EntityNotFoundException):
            issue_service.upvote_issue(issue_repo, "f" * 32, "bob@example.com")

    def test_duplicate_row_is_refused_by_the_database(self, issue_repo, issue):
        # Two writers that both passed the in-memory check
        assert issue_repo.add_upvote(issue, "bob@example.com") is True
        assert issue_repo.add_upvote(issue, "bob@example.com") is False

        stored = issue_repo.get_by_id(issue.id)
        assert stored.upvote_count == 1
        assert stored.upvoter_emails == ["bob@example.com"]


class TestListIssues:
    def test_pagination(self, issue_repo, user_repo, make_user):
        make_user("paid@example.com", is_premium=True)
        for n in range(5):
            _report(issue_repo, user_repo, "paid@example.com", title=f"Issue {n}")

        page = issue_service.list_issues(issue_repo, IssueFilter(status="pending", page=1, limit=2))

        assert page["total"] == 5
        assert page["total_pages"] == 3
        assert page["page"] == 1
        assert page["limit"] == 2
        assert len(page["items"]) == 2

        last = issue_service.list_issues(issue_repo, IssueFilter(page=3, limit=2))
        assert len(last["items"]) == 1

    def test_limit_is_clamped(self, issue_repo):
        page = issue_service.list_issues(issue_repo, IssueFilter(limit=10_000))
        assert page["limit"] == 100
        assert page["page"] == 1
        assert page["total"] == 0
        assert page["total_pages"] == 0

    def test_unpaginated_returns_list(self, issue_repo, user_repo, make_user):
        make_user("alice@example.com")
        _report(issue_repo, user_repo, "alice@example.com")

        issues = issue_service.list_issues(issue_repo, IssueFilter())
        assert isinstance(issues, list)
        assert len(issues) == 1

    def test_boosted_first_then_newest(self, issue_repo, user_repo, make_user):
        make_user("paid@example.com", is_premium=True)
        first = _report(issue_repo, user_repo, "paid@example.com", title="First")
        second = _report(issue_repo, user_repo, "paid@example.com", title="Second")
        third = _report(issue_repo, user_repo, "paid@example.com", title="Third")
        issue_service.boost_issue(issue_repo, first.id)

        issues = issue_service.list_issues(issue_repo, IssueFilter())

        assert [i.id for i in issues] == [first.id, third.id, second.id]

    def test_search_matches_title_category_location(self, issue_repo, user_repo, make_user):
        make_user("paid@example.com", is_premium=True)
        _report(issue_repo, user_repo, "paid@example.com", title="Pothole on Main", category="roads")
        _report(issue_repo, user_repo, "paid@example.com", title="Garbage pile", location="Main Street")
        _report(issue_repo, user_repo, "paid@example.com", title="Broken bench", category="parks")

        found = issue_service.list_issues(issue_repo, IssueFilter(search="main"))
        assert {i.title for i in found} == {"Pothole on Main", "Garbage pile"}

        by_category = issue_service.list_issues(issue_repo, IssueFilter(search="PARK"))
        assert [i.title for i in by_category] == ["Broken bench"]

    def test_search_treats_wildcards_literally(self, issue_repo, user_repo, make_user):
        make_user("alice@example.com")
        _report(issue_repo, user_repo, "alice@example.com", title="Drain blocked")

        assert issue_service.list_issues(issue_repo, IssueFilter(search="%")) == []

    def test_filters(self, issue_repo, user_repo, make_user):
        make_user("paid@example.com", is_premium=True)
        make_user("other@example.com")
        a = _report(issue_repo, user_repo, "paid@example.com", title="A", category="roads")
        _report(issue_repo, user_repo, "paid@example.com", title="B", category="water")
        _report(issue_repo, user_repo, "other@example.com", title="C", category="roads")
        issue_service.assign_issue(issue_repo, a.id, "staff@example.com")

        roads = issue_service.list_issues(issue_repo, IssueFilter(category="roads"))
        mine = issue_service.list_issues(issue_repo, IssueFilter(reporter_email="other@example.com"))
        assigned = issue_service.list_issues(issue_repo, IssueFilter(assigned_staff="staff@example.com"))

        assert {i.title for i in roads} == {"A", "C"}
        assert [i.title for i in mine] == ["C"]
        assert [i.id for i in assigned] == [a.id]
