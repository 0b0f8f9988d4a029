"""Pure sort/filter helpers over enriched PRs."""

from typing import Iterable

from models.data_models import EnhancedPR

SORT_TIME_OPEN_ASC = "time-open-asc"
SORT_TIME_OPEN_DESC = "time-open-desc"
SORT_OPTIONS = (SORT_TIME_OPEN_DESC, SORT_TIME_OPEN_ASC)

FILTER_OPTIONS = ("urgent", "quick", "unassigned", "missing-assignee", "missing-reviewer")


def sort_prs(prs: Iterable[EnhancedPR], mode: str) -> list[EnhancedPR]:
    """Return a new list ordered by hours open. Ties keep input order."""
    result = list(prs)
    if mode == SORT_TIME_OPEN_DESC:
        result.sort(key=lambda pr: pr.hours_open, reverse=True)
    elif mode == SORT_TIME_OPEN_ASC:
        result.sort(key=lambda pr: pr.hours_open)
    return result


def pr_filter_tags(pr: EnhancedPR) -> set[str]:
    tags = set()
    if pr.is_urgent:
        tags.add("urgent")
    if pr.is_quick:
        tags.add("quick")
    if pr.missing_assignee:
        tags.add("missing-assignee")
    if pr.missing_reviewer:
        tags.add("missing-reviewer")
    if pr.missing_assignee or pr.missing_reviewer:
        tags.add("unassigned")
    return tags


def filter_prs(
    prs: Iterable[EnhancedPR],
    active_filters: Iterable[str],
    active_repos: Iterable[str],
) -> list[EnhancedPR]:
    """
    Keep the PRs visible under the given filter and repository selections.

    Filters work as visibility toggles: a PR is shown when its repository
    ("owner/name") is selected and it either carries none of the filter
    tags or at least one of its tags is selected. An empty selection on
    either axis shows nothing, and selecting every filter shows every PR
    of the selected repositories.
    """
    filters = set(active_filters)
    repos = set(active_repos)
    if not filters or not repos:
        return []

    visible = []
    for pr in prs:
        if pr.repo.full_name not in repos:
            continue
        tags = pr_filter_tags(pr)
        if not tags or tags & filters:
            visible.append(pr)
    return visible


def pr_stats(prs: Iterable[EnhancedPR]) -> dict[str, int]:
    """Counters shown in the dashboard header."""
    prs = list(prs)
    return {
        "total": len(prs),
        "urgent": sum(1 for pr in prs if pr.is_urgent),
        "quick": sum(1 for pr in prs if pr.is_quick),
        "warning": sum(1 for pr in prs if pr.status == "warning"),
        "overMaxDays": sum(1 for pr in prs if pr.is_over_max_days),
        "unassigned": sum(1 for pr in prs if pr.missing_assignee or pr.missing_reviewer),
        "missingAssignee": sum(1 for pr in prs if pr.missing_assignee),
        "missingReviewer": sum(1 for pr in prs if pr.missing_reviewer),
    }
