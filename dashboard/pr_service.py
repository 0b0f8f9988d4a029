"""
Fetch and enrich open PRs across every enabled repository.

Repositories are fetched concurrently, and inside each repository the
per-PR detail and review calls are fetched concurrently too. There is no
concurrency limit: one worker per repository and one per PR.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Optional

from dashboard.enrichment import enhance_pr
from fetchers.github import GitHubFetcher
from fetchers.github_auth import InstallationAuthCache
from models.data_models import DashboardConfig, EnhancedPR, RepoRef, Repository
from utils.errors import DashboardError

logger = logging.getLogger(__name__)


def _enrich_one(
    client: GitHubFetcher,
    raw_pr: dict[str, Any],
    repo: RepoRef,
    config: DashboardConfig,
    now: datetime,
) -> EnhancedPR:
    """Enrich a single PR; detail/review failures degrade to list-level data."""
    number = raw_pr["number"]

    detail: Optional[dict[str, Any]] = None
    try:
        detail = client.get_pr(repo.owner, repo.name, number)
    except Exception as e:
        logger.warning(f"Detail fetch failed for {repo.full_name}#{number}, using list data: {e}")

    reviews: Optional[list[dict[str, Any]]] = None
    try:
        reviews = client.list_reviews(repo.owner, repo.name, number)
    except Exception as e:
        logger.warning(f"Review fetch failed for {repo.full_name}#{number}, using requested reviewers: {e}")

    return enhance_pr(raw_pr, repo, config, detail=detail, reviews=reviews, now=now)


def fetch_repo_prs(
    auth_cache: InstallationAuthCache,
    repository: Repository,
    config: DashboardConfig,
    now: datetime,
) -> list[EnhancedPR]:
    """List and enrich the open PRs of one repository."""
    repo = RepoRef(owner=repository.owner, name=repository.name)
    client = auth_cache.get_scoped_client(repo.owner)
    raw_prs = client.list_open_prs(repo.owner, repo.name)
    if not raw_prs:
        return []

    with ThreadPoolExecutor(max_workers=len(raw_prs)) as executor:
        futures = [
            executor.submit(_enrich_one, client, raw_pr, repo, config, now)
            for raw_pr in raw_prs
        ]
        return [future.result() for future in futures]


def fetch_dashboard_prs(
    config: DashboardConfig,
    auth_cache: InstallationAuthCache,
    now: Optional[datetime] = None,
) -> tuple[list[EnhancedPR], dict[str, str]]:
    """
    Fetch enriched PRs for all enabled repositories.

    Args:
        config: Dashboard configuration (repositories + thresholds)
        auth_cache: Installation auth cache used to get scoped clients
        now: Reference time for ``hoursOpen`` (defaults to now, UTC)

    Returns:
        Tuple of (prs, errors). A failing repository adds
        ``errors["owner/name"]`` and does not abort the others.
    """
    now = now or datetime.now(timezone.utc)
    repositories = [r for r in config.repositories if r.enabled]
    if not repositories:
        logger.info("No enabled repositories configured")
        return [], {}

    prs: list[EnhancedPR] = []
    errors: dict[str, str] = {}

    with ThreadPoolExecutor(max_workers=len(repositories)) as executor:
        futures = {
            repository.full_name: executor.submit(fetch_repo_prs, auth_cache, repository, config, now)
            for repository in repositories
        }
        for full_name, future in futures.items():
            try:
                prs.extend(future.result())
            except DashboardError as e:
                logger.error(f"Failed to fetch PRs for {full_name}: {e.message}")
                errors[full_name] = e.message
            except Exception as e:
                logger.error(f"Failed to fetch PRs for {full_name}: {e}")
                errors[full_name] = str(e)

    logger.info(
        f"Fetched {len(prs)} PRs from {len(repositories) - len(errors)}/{len(repositories)} repositories"
    )
    return prs, errors
