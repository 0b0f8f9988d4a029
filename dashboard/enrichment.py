"""
PR enrichment: derive the dashboard's SLA fields from GitHub PR data.

Everything here is pure. The caller supplies the list-level PR, optionally
the detail payload and the submitted reviews, and the current time.
"""

from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Union

from models.data_models import (
    DashboardConfig,
    EnhancedPR,
    GitHubLabel,
    GitHubUser,
    PRStatus,
    PullRequest,
    PullRequestReview,
    RepoRef,
)

URGENT_LABEL = "urgent"
QUICK_LABEL = "quick"

RawOrModel = Union[dict[str, Any], PullRequest]


def _as_pr(pr: RawOrModel) -> PullRequest:
    return pr if isinstance(pr, PullRequest) else PullRequest.model_validate(pr)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def hours_open(pr: PullRequest, now: Optional[datetime] = None) -> float:
    """Wall-clock hours since the PR was created."""
    now = now or _utcnow()
    created = pr.created_at
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return (now - created).total_seconds() / 3600


def has_label(labels: Iterable[GitHubLabel], name: str) -> bool:
    """Case-insensitive label name match; color and description are ignored."""
    return any(label.name.lower() == name for label in labels)


def is_urgent(pr: PullRequest) -> bool:
    return has_label(pr.labels, URGENT_LABEL)


def is_quick(pr: PullRequest) -> bool:
    return has_label(pr.labels, QUICK_LABEL)


def merge_reviewers(
    requested: Iterable[GitHubUser],
    reviews: Iterable[PullRequestReview],
) -> list[GitHubUser]:
    """Union of requested reviewers and people who already submitted a review.

    GitHub drops a reviewer from ``requested_reviewers`` once they review,
    so both sources are merged by user ID. Reviews from deleted accounts
    (null user) are skipped.
    """
    by_id: dict[int, GitHubUser] = {user.id: user for user in requested}
    for review in reviews:
        if review.user is not None:
            by_id[review.user.id] = review.user
    return list(by_id.values())


def calculate_pr_status(missing_assignee: bool, hours: float, assignment_time_limit: float) -> PRStatus:
    """Assignee-driven status: a PR without assignee past the limit is a warning.

    Reviewer absence never affects the status.
    """
    if not missing_assignee:
        return "ok"
    if hours >= assignment_time_limit:
        return "warning"
    return "ok"


def is_over_max_days(hours: float, max_days_open: int) -> bool:
    return hours / 24 > max_days_open


def enhance_pr(
    pr: RawOrModel,
    repo: RepoRef,
    config: DashboardConfig,
    detail: Optional[RawOrModel] = None,
    reviews: Optional[list[dict[str, Any]]] = None,
    now: Optional[datetime] = None,
) -> EnhancedPR:
    """
    Build an EnhancedPR from a list-level PR and optional sub-fetches.

    Args:
        pr: PR summary from the list endpoint
        repo: Owning repository (GitHub's payload does not carry it)
        config: Dashboard thresholds
        detail: Detail payload; authoritative for people and comment counts
        reviews: Submitted reviews, merged into the reviewer list
        now: Current time (defaults to now, UTC)

    Returns:
        EnhancedPR with every derived field computed at call time
    """
    base = _as_pr(pr)
    source = _as_pr(detail) if detail is not None else base
    parsed_reviews = [PullRequestReview.model_validate(r) for r in (reviews or [])]

    hours = hours_open(base, now)
    reviewers = merge_reviewers(source.requested_reviewers, parsed_reviews)
    reviewer_count = len(reviewers) + len(source.requested_teams)

    issue_comments = source.comments or 0
    review_comments = source.review_comments or 0

    missing_assignee = len(source.assignees) == 0
    missing_reviewer = reviewer_count == 0

    fields = source.model_dump()
    fields.update(
        requested_reviewers=[r.model_dump() for r in reviewers],
        status=calculate_pr_status(missing_assignee, hours, config.assignment_time_limit),
        hours_open=hours,
        missing_assignee=missing_assignee,
        missing_reviewer=missing_reviewer,
        reviewer_count=reviewer_count,
        comment_count=issue_comments + review_comments,
        issue_comments=issue_comments,
        review_comments_count=review_comments,
        is_urgent=is_urgent(source),
        is_quick=is_quick(source),
        is_over_max_days=is_over_max_days(hours, config.max_days_open),
        repo=repo,
    )
    return EnhancedPR.model_validate(fields)


def format_time_ago(hours: float) -> str:
    """Compact age label: minutes under an hour, hours under a day, else days."""
    if hours < 1:
        return f"{int(hours * 60)}m"
    if hours < 24:
        return f"{int(hours)}h"
    return f"{int(hours // 24)}d"
