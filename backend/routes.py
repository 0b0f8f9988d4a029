"""
API routes for the PR dashboard.

Each handler validates its input (pydantic models, 400 on missing fields),
gets an installation-scoped GitHub client from the auth cache, calls GitHub
and returns JSON. Expected failures are raised as DashboardError and
rendered by the app's exception handlers.
"""

import logging
from typing import Any, Literal, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from backend.dependencies import get_auth_cache, get_config_store, get_role_store
from dashboard.pr_service import fetch_dashboard_prs
from dashboard.sorting import FILTER_OPTIONS, SORT_TIME_OPEN_DESC, filter_prs, sort_prs
from dashboard.workload import build_created_workload, build_team_workload
from fetchers.github_auth import InstallationAuthCache
from models.data_models import DashboardConfig
from storage.config_store import ConfigStore
from storage.role_store import RoleStore
from utils.errors import CredentialsMissingError, DashboardError, GitHubNotFoundError, NotInstalledError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["dashboard"])

URGENT_LABEL = {"name": "urgent", "color": "d73a4a", "description": "Urgent PR - needs attention now"}
QUICK_LABEL = {"name": "quick", "color": "0e8a16", "description": "Quick PR - small and fast to review"}

# Accounts never offered as assignee/reviewer candidates
EXCLUDED_COLLABORATORS = {"dependabot", "github-actions", "renovate", "copilot", "codecov"}


class ToggleUrgentRequest(BaseModel):
    owner: str = Field(..., min_length=1)
    repo: str = Field(..., min_length=1)
    prNumber: int
    isUrgent: bool


class ToggleQuickRequest(BaseModel):
    owner: str = Field(..., min_length=1)
    repo: str = Field(..., min_length=1)
    prNumber: int
    isQuick: bool


class AssignAssigneesRequest(BaseModel):
    owner: str = Field(..., min_length=1)
    repo: str = Field(..., min_length=1)
    pull_number: int
    assignees: list[str] = Field(..., min_length=1)
    action: Literal["add", "remove"]


class AssignReviewersRequest(BaseModel):
    owner: str = Field(..., min_length=1)
    repo: str = Field(..., min_length=1)
    pull_number: int
    reviewers: list[str] = Field(..., min_length=1)
    action: Literal["add", "remove"]


class ValidateRepoRequest(BaseModel):
    owner: str = Field(..., min_length=1)
    repo: str = Field(..., min_length=1)


def _split_csv(value: Optional[str]) -> Optional[set[str]]:
    if value is None:
        return None
    return {part.strip() for part in value.split(",") if part.strip()}


def _require_github_app(auth_cache: InstallationAuthCache) -> None:
    if not auth_cache.has_credentials:
        raise CredentialsMissingError(
            "GitHub App not configured. Set GITHUB_APP_ID and GITHUB_PRIVATE_KEY."
        )


@router.get("/prs")
def list_prs(
    sort: str = Query(SORT_TIME_OPEN_DESC, pattern="^time-open-(asc|desc)$", description="Sort by time open"),
    filters: Optional[str] = Query(None, description="Comma-separated active filters (urgent, quick, unassigned, missing-assignee, missing-reviewer)"),
    repos: Optional[str] = Query(None, description="Comma-separated active repositories ('owner/name')"),
    config_store: ConfigStore = Depends(get_config_store),
    auth_cache: InstallationAuthCache = Depends(get_auth_cache),
):
    """
    List open PRs across all enabled repositories, enriched with SLA status.

    Query Parameters:
    - sort: time-open-desc (default) or time-open-asc
    - filters / repos: only applied when present; an empty value shows nothing

    Returns:
    - prs: EnhancedPR objects
    - config: the dashboard configuration used
    - errors: per-repository failures ("owner/name" -> message), only when any
    """
    try:
        _require_github_app(auth_cache)
        config = config_store.get_config()
        prs, errors = fetch_dashboard_prs(config, auth_cache)

        active_filters = _split_csv(filters)
        active_repos = _split_csv(repos)
        if active_filters is not None or active_repos is not None:
            prs = filter_prs(
                prs,
                active_filters if active_filters is not None else set(FILTER_OPTIONS),
                active_repos if active_repos is not None else {pr.repo.full_name for pr in prs},
            )
        prs = sort_prs(prs, sort)

        response: dict[str, Any] = {
            "prs": [pr.model_dump(by_alias=True, mode="json") for pr in prs],
            "config": config.to_json(),
        }
        if errors:
            response["errors"] = errors

        logger.info(f"Listed {len(prs)} PRs ({len(errors)} repository errors)")
        return response

    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        logger.error(f"Failed to list PRs: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to list PRs: {str(e)}")


@router.get("/config")
def get_config(config_store: ConfigStore = Depends(get_config_store)):
    """Return the dashboard configuration (defaults are created on first access)."""
    try:
        return config_store.get_config().to_json()
    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        logger.error(f"Failed to load config: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to load config: {str(e)}")


@router.post("/config")
def save_config(
    config: DashboardConfig,
    config_store: ConfigStore = Depends(get_config_store),
):
    """
    Replace the whole dashboard configuration.

    Validation (400 on failure): assignmentTimeLimit > 0, maxDaysOpen >= 1,
    0 <= warningThreshold <= 100 when given, and every repository has
    owner, name and a boolean enabled.
    """
    try:
        saved = config_store.save_config(config)
        return {"success": True, "config": saved.to_json()}
    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        logger.error(f"Failed to save config: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to save config: {str(e)}")


def _toggle_label(
    auth_cache: InstallationAuthCache,
    owner: str,
    repo: str,
    pr_number: int,
    label: dict[str, str],
    enabled: bool,
) -> None:
    """Make sure the label exists in the repo, then add it to or remove it from the PR."""
    client = auth_cache.get_scoped_client(owner)
    client.ensure_label(owner, repo, label["name"], label["color"], label["description"])
    if enabled:
        client.add_labels(owner, repo, pr_number, [label["name"]])
        logger.info(f"Added '{label['name']}' to {owner}/{repo}#{pr_number}")
    else:
        removed = client.remove_label(owner, repo, pr_number, label["name"])
        logger.info(
            f"Removed '{label['name']}' from {owner}/{repo}#{pr_number}"
            + ("" if removed else " (was not present)")
        )


@router.post("/toggle-urgent")
def toggle_urgent(
    request: ToggleUrgentRequest,
    auth_cache: InstallationAuthCache = Depends(get_auth_cache),
):
    """Add (isUrgent=true) or remove (false) the 'urgent' label."""
    try:
        _toggle_label(auth_cache, request.owner, request.repo, request.prNumber, URGENT_LABEL, request.isUrgent)
        return {"success": True, "isUrgent": request.isUrgent}
    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        logger.error(f"Failed to toggle urgent on {request.owner}/{request.repo}#{request.prNumber}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to toggle urgent: {str(e)}")


@router.post("/toggle-quick")
def toggle_quick(
    request: ToggleQuickRequest,
    auth_cache: InstallationAuthCache = Depends(get_auth_cache),
):
    """Add (isQuick=true) or remove (false) the 'quick' label."""
    try:
        _toggle_label(auth_cache, request.owner, request.repo, request.prNumber, QUICK_LABEL, request.isQuick)
        return {"success": True, "isQuick": request.isQuick}
    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        logger.error(f"Failed to toggle quick on {request.owner}/{request.repo}#{request.prNumber}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to toggle quick: {str(e)}")


@router.post("/assign-assignees")
def assign_assignees(
    request: AssignAssigneesRequest,
    auth_cache: InstallationAuthCache = Depends(get_auth_cache),
):
    """Add or remove assignees on a PR (explicit action, no toggling)."""
    try:
        client = auth_cache.get_scoped_client(request.owner)
        if request.action == "add":
            result = client.add_assignees(request.owner, request.repo, request.pull_number, request.assignees)
        else:
            result = client.remove_assignees(request.owner, request.repo, request.pull_number, request.assignees)

        logger.info(
            f"{request.action} assignees {request.assignees} on "
            f"{request.owner}/{request.repo}#{request.pull_number}"
        )
        return {"success": True, "assignees": (result or {}).get("assignees", [])}
    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        logger.error(f"Failed to update assignees: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to update assignees: {str(e)}")


@router.post("/assign-reviewers")
def assign_reviewers(
    request: AssignReviewersRequest,
    auth_cache: InstallationAuthCache = Depends(get_auth_cache),
):
    """Request or un-request reviewers on a PR."""
    try:
        client = auth_cache.get_scoped_client(request.owner)
        if request.action == "add":
            result = client.request_reviewers(request.owner, request.repo, request.pull_number, request.reviewers)
        else:
            result = client.remove_reviewers(request.owner, request.repo, request.pull_number, request.reviewers)

        logger.info(
            f"{request.action} reviewers {request.reviewers} on "
            f"{request.owner}/{request.repo}#{request.pull_number}"
        )
        return {"success": True, "requested_reviewers": (result or {}).get("requested_reviewers", [])}
    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        logger.error(f"Failed to update reviewers: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to update reviewers: {str(e)}")


def _is_excluded(user: dict[str, Any]) -> bool:
    login = (user.get("login") or "").lower()
    return (
        not login
        or user.get("type") == "Bot"
        or "[bot]" in login
        or login in EXCLUDED_COLLABORATORS
    )


@router.get("/collaborators")
def list_collaborators(
    owner: str = Query(..., min_length=1),
    repo: str = Query(..., min_length=1),
    auth_cache: InstallationAuthCache = Depends(get_auth_cache),
):
    """
    People who can be assigned or asked for review on a repository.

    Union of repository collaborators, contributors and organization
    members, deduplicated by user ID, without bots, sorted by login.
    A source that fails (e.g. org members for a personal account) is
    skipped with a warning.
    """
    try:
        client = auth_cache.get_scoped_client(owner)
        sources = (
            ("collaborators", lambda: client.list_collaborators(owner, repo)),
            ("contributors", lambda: client.list_contributors(owner, repo)),
            ("org members", lambda: client.list_org_members(owner)),
        )

        people: dict[int, dict[str, Any]] = {}
        for name, fetch in sources:
            try:
                users = fetch()
            except DashboardError as e:
                logger.warning(f"Could not load {name} for {owner}/{repo}: {e.message}")
                continue
            for user in users:
                if user.get("id") is None or _is_excluded(user):
                    continue
                people.setdefault(user["id"], {
                    "id": user["id"],
                    "login": user["login"],
                    "avatar_url": user.get("avatar_url", ""),
                })

        result = sorted(people.values(), key=lambda u: u["login"].lower())
        logger.info(f"Found {len(result)} collaborators for {owner}/{repo}")
        return result
    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        logger.error(f"Failed to list collaborators for {owner}/{repo}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to list collaborators: {str(e)}")


@router.post("/validate-repo")
def validate_repo(
    request: ValidateRepoRequest,
    auth_cache: InstallationAuthCache = Depends(get_auth_cache),
):
    """
    Check that a repository exists and the GitHub App can read it.

    Always answers 200 so the config panel can show the message inline:
    - valid=true with message and repository details
    - valid=false with error (not installed, not found, misconfigured)
    """
    full_name = f"{request.owner}/{request.repo}"
    try:
        client = auth_cache.get_scoped_client(request.owner)
        repo_data = client.get_repo(request.owner, request.repo)
    except NotInstalledError as e:
        return {"valid": False, "error": e.message, "details": e.details}
    except GitHubNotFoundError:
        return {
            "valid": False,
            "error": f"Repository {full_name} not found or the GitHub App has no access to it",
        }
    except DashboardError as e:
        logger.warning(f"Validation of {full_name} failed: {e.message}")
        return {"valid": False, "error": e.message, "details": e.details}
    except Exception as e:
        logger.error(f"Unexpected error validating {full_name}: {e}")
        return {"valid": False, "error": f"Could not validate {full_name}", "details": str(e)}

    logger.info(f"Validated repository {full_name}")
    return {
        "valid": True,
        "message": f"Repository {repo_data.get('full_name', full_name)} is accessible",
        "details": {
            "full_name": repo_data.get("full_name", full_name),
            "private": repo_data.get("private"),
            "default_branch": repo_data.get("default_branch"),
        },
    }


@router.get("/team-workload")
def team_workload(
    config_store: ConfigStore = Depends(get_config_store),
    role_store: RoleStore = Depends(get_role_store),
    auth_cache: InstallationAuthCache = Depends(get_auth_cache),
):
    """
    Load per person across the current PRs.

    ``workloads`` counts assignments and review requests and includes
    registered users with no PRs; ``created`` groups the PRs by author.
    """
    try:
        _require_github_app(auth_cache)
        config = config_store.get_config()
        prs, errors = fetch_dashboard_prs(config, auth_cache)
        usernames = [entry.username for entry in role_store.get_user_roles()]

        response: dict[str, Any] = {
            "workloads": build_team_workload(prs, usernames),
            "created": build_created_workload(prs),
        }
        if errors:
            response["errors"] = errors
        return response
    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        logger.error(f"Failed to build team workload: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to build team workload: {str(e)}")
