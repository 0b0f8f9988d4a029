"""Per-person load across the current PR set: assigned or reviewing, and authored."""

from typing import Any, Iterable

from models.data_models import EnhancedPR


def build_team_workload(
    prs: Iterable[EnhancedPR],
    registered_usernames: Iterable[str] = (),
) -> list[dict[str, Any]]:
    """
    Group PRs by the people assigned to or reviewing them.

    Registered dashboard users with no assignments are included with a
    zero count so idle teammates are visible. Sorted by load (descending),
    then login.

    Returns:
        List of ``{"user": {...}, "assignedPRs": [{"repo", "number", "title",
        "role"}], "totalAssigned": int}``
    """
    prs = list(prs)
    workloads: dict[str, dict[str, Any]] = {}

    def _slot(user) -> dict[str, Any]:
        key = user.login.lower()
        if key not in workloads:
            workloads[key] = {
                "user": {"login": user.login, "id": user.id, "avatar_url": user.avatar_url},
                "assignedPRs": [],
                "totalAssigned": 0,
            }
        return workloads[key]

    for pr in prs:
        for role, people in (("assignee", pr.assignees), ("reviewer", pr.requested_reviewers)):
            for person in people:
                slot = _slot(person)
                slot["assignedPRs"].append({
                    "repo": pr.repo.full_name,
                    "number": pr.number,
                    "title": pr.title,
                    "role": role,
                })
                slot["totalAssigned"] += 1

    known_users = {}
    for pr in prs:
        for person in [pr.user, *pr.assignees, *pr.requested_reviewers]:
            if person is not None:
                known_users.setdefault(person.login.lower(), person)

    for username in registered_usernames:
        key = username.lower()
        if key in workloads:
            continue
        person = known_users.get(key)
        workloads[key] = {
            "user": {
                "login": person.login if person else username,
                "id": person.id if person else None,
                "avatar_url": person.avatar_url if person else f"https://github.com/{username}.png",
            },
            "assignedPRs": [],
            "totalAssigned": 0,
        }

    return sorted(
        workloads.values(),
        key=lambda w: (-w["totalAssigned"], w["user"]["login"].lower()),
    )


def build_created_workload(prs: Iterable[EnhancedPR]) -> list[dict[str, Any]]:
    """
    Group PRs by their author.

    Only people with at least one open PR appear. Sorted by the number of
    PRs created (descending), then login.

    Returns:
        List of ``{"user": {...}, "createdPRs": [{"repo", "number", "title",
        "hoursOpen"}], "totalCreated": int}``
    """
    workloads: dict[int, dict[str, Any]] = {}

    for pr in prs:
        author = pr.user
        if author is None:
            continue
        if author.id not in workloads:
            workloads[author.id] = {
                "user": {"login": author.login, "id": author.id, "avatar_url": author.avatar_url},
                "createdPRs": [],
                "totalCreated": 0,
            }
        slot = workloads[author.id]
        slot["createdPRs"].append({
            "repo": pr.repo.full_name,
            "number": pr.number,
            "title": pr.title,
            "hoursOpen": pr.hours_open,
        })
        slot["totalCreated"] += 1

    return sorted(
        workloads.values(),
        key=lambda w: (-w["totalCreated"], w["user"]["login"].lower()),
    )
