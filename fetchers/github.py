"""GitHub REST client used by the dashboard handlers.

One ``GitHubFetcher`` is bound to one bearer token: either a short-lived
GitHub App JWT (for the installation directory) or an installation access
token (for everything repository-scoped). Nothing here retries; rate-limit
responses surface as ``GitHubAPIError`` like any other failure.
"""

import logging
from typing import Any, Optional
from urllib.parse import quote

import requests

from utils.errors import GitHubAPIError, GitHubNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15


class GitHubFetcher:
    """Thin wrapper over the GitHub REST endpoints the dashboard needs."""

    def __init__(self, token: str, base_url: str = "https://api.github.com"):
        """Initialize GitHub API client.

        Args:
            token: App JWT or installation access token
            base_url: API root (overridable for GitHub Enterprise)
        """
        self.token = token
        self.base_url = base_url
        self.headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {token}",
            "X-GitHub-Api-Version": "2022-11-28"
        }

    def _make_github_request(
        self,
        method: str,
        path: str,
        params: Optional[dict] = None,
        json: Optional[Any] = None,
    ) -> requests.Response:
        """Send one request and log the remaining rate limit.

        Args:
            method: HTTP verb
            path: Path below ``base_url`` (leading slash included)
            params: Optional query parameters
            json: Optional JSON body

        Returns:
            Response object from requests (status not checked)
        """
        url = f"{self.base_url}{path}"
        response = requests.request(
            method,
            url,
            headers=self.headers,
            params=params,
            json=json,
            timeout=DEFAULT_TIMEOUT,
        )

        remaining = response.headers.get("X-RateLimit-Remaining")
        limit = response.headers.get("X-RateLimit-Limit")
        if remaining and limit:
            logger.debug(f"Rate limit: {remaining}/{limit} remaining")

        return response

    def _check(self, response: requests.Response, what: str) -> requests.Response:
        """Raise the matching dashboard error for a non-2xx response."""
        if response.status_code < 400:
            return response

        body = response.text[:200]
        if response.status_code == 404:
            raise GitHubNotFoundError(f"{what}: not found")

        if response.status_code in (401, 403):
            logger.error(f"Authentication error: {response.status_code} - {body}")

        raise GitHubAPIError(
            f"{what}: GitHub returned {response.status_code}",
            upstream_status=response.status_code,
            details=body,
        )

    def _request_json(
        self,
        method: str,
        path: str,
        what: str,
        params: Optional[dict] = None,
        json: Optional[Any] = None,
    ) -> Any:
        response = self._check(self._make_github_request(method, path, params=params, json=json), what)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def _paginate(
        self,
        path: str,
        what: str,
        params: Optional[dict] = None,
        max_pages: int = 10,
    ) -> list[dict[str, Any]]:
        """Collect pages of 100 items until an empty or short page."""
        items: list[dict[str, Any]] = []
        for page in range(1, max_pages + 1):
            page_params = {**(params or {}), "per_page": 100, "page": page}
            data = self._request_json("GET", path, what, params=page_params)
            batch = data or []
            if not batch:
                break
            items.extend(batch)
            if len(batch) < 100:
                break

        logger.debug(f"{what}: {len(items)} items")
        return items

    # ------------------------------------------------------------------
    # App / installation directory (requires an App JWT)
    # ------------------------------------------------------------------

    def list_installations(self) -> list[dict[str, Any]]:
        """List every installation of the authenticated GitHub App."""
        return self._paginate("/app/installations", "List installations")

    def create_installation_token(self, installation_id: int) -> str:
        """Exchange the App JWT for an installation access token."""
        data = self._request_json(
            "POST",
            f"/app/installations/{installation_id}/access_tokens",
            f"Create token for installation {installation_id}",
        )
        return data["token"]

    # ------------------------------------------------------------------
    # Repository and pull requests
    # ------------------------------------------------------------------

    def get_repo(self, owner: str, repo: str) -> dict[str, Any]:
        return self._request_json("GET", f"/repos/{owner}/{repo}", f"Repository {owner}/{repo}")

    def list_open_prs(self, owner: str, repo: str, max_pages: int = 5) -> list[dict[str, Any]]:
        """Fetch open pull requests, oldest first.

        Args:
            owner: Repository owner (e.g., "facebook")
            repo: Repository name (e.g., "react")
            max_pages: Maximum number of pages to fetch (100 PRs each)

        Returns:
            List of raw GitHub PR summaries

        Raises:
            GitHubAPIError: On any non-2xx response
        """
        prs = self._paginate(
            f"/repos/{owner}/{repo}/pulls",
            f"List PRs for {owner}/{repo}",
            params={"state": "open", "sort": "created", "direction": "asc"},
            max_pages=max_pages,
        )
        logger.info(f"Fetched {len(prs)} open PRs from {owner}/{repo}")
        return prs

    def get_pr(self, owner: str, repo: str, pr_number: int) -> dict[str, Any]:
        """Fetch the detail payload of a PR (includes comment counts)."""
        return self._request_json(
            "GET", f"/repos/{owner}/{repo}/pulls/{pr_number}", f"PR {owner}/{repo}#{pr_number}"
        )

    def list_reviews(self, owner: str, repo: str, pr_number: int) -> list[dict[str, Any]]:
        """Fetch submitted reviews of a PR."""
        return self._paginate(
            f"/repos/{owner}/{repo}/pulls/{pr_number}/reviews",
            f"Reviews for {owner}/{repo}#{pr_number}",
            max_pages=3,
        )

    # ------------------------------------------------------------------
    # Labels
    # ------------------------------------------------------------------

    def get_label(self, owner: str, repo: str, name: str) -> dict[str, Any]:
        return self._request_json(
            "GET", f"/repos/{owner}/{repo}/labels/{quote(name)}", f"Label '{name}' in {owner}/{repo}"
        )

    def create_label(self, owner: str, repo: str, name: str, color: str, description: str) -> dict[str, Any]:
        return self._request_json(
            "POST",
            f"/repos/{owner}/{repo}/labels",
            f"Create label '{name}' in {owner}/{repo}",
            json={"name": name, "color": color, "description": description},
        )

    def ensure_label(self, owner: str, repo: str, name: str, color: str, description: str) -> dict[str, Any]:
        """Fetch a label, creating it with the given color/description on 404."""
        try:
            return self.get_label(owner, repo, name)
        except GitHubNotFoundError:
            logger.info(f"Label '{name}' missing in {owner}/{repo}, creating it")
            return self.create_label(owner, repo, name, color, description)

    def add_labels(self, owner: str, repo: str, issue_number: int, labels: list[str]) -> list[dict[str, Any]]:
        return self._request_json(
            "POST",
            f"/repos/{owner}/{repo}/issues/{issue_number}/labels",
            f"Add labels to {owner}/{repo}#{issue_number}",
            json={"labels": labels},
        )

    def remove_label(self, owner: str, repo: str, issue_number: int, name: str) -> bool:
        """Remove a label from an issue/PR.

        Returns:
            True if the label was removed, False if it was not on the PR
        """
        try:
            self._request_json(
                "DELETE",
                f"/repos/{owner}/{repo}/issues/{issue_number}/labels/{quote(name)}",
                f"Remove label '{name}' from {owner}/{repo}#{issue_number}",
            )
            return True
        except GitHubNotFoundError:
            logger.debug(f"Label '{name}' not present on {owner}/{repo}#{issue_number}")
            return False

    # ------------------------------------------------------------------
    # Assignees and reviewers
    # ------------------------------------------------------------------

    def add_assignees(self, owner: str, repo: str, issue_number: int, assignees: list[str]) -> dict[str, Any]:
        return self._request_json(
            "POST",
            f"/repos/{owner}/{repo}/issues/{issue_number}/assignees",
            f"Add assignees to {owner}/{repo}#{issue_number}",
            json={"assignees": assignees},
        )

    def remove_assignees(self, owner: str, repo: str, issue_number: int, assignees: list[str]) -> dict[str, Any]:
        return self._request_json(
            "DELETE",
            f"/repos/{owner}/{repo}/issues/{issue_number}/assignees",
            f"Remove assignees from {owner}/{repo}#{issue_number}",
            json={"assignees": assignees},
        )

    def request_reviewers(self, owner: str, repo: str, pr_number: int, reviewers: list[str]) -> dict[str, Any]:
        return self._request_json(
            "POST",
            f"/repos/{owner}/{repo}/pulls/{pr_number}/requested_reviewers",
            f"Request reviewers on {owner}/{repo}#{pr_number}",
            json={"reviewers": reviewers},
        )

    def remove_reviewers(self, owner: str, repo: str, pr_number: int, reviewers: list[str]) -> dict[str, Any]:
        return self._request_json(
            "DELETE",
            f"/repos/{owner}/{repo}/pulls/{pr_number}/requested_reviewers",
            f"Remove reviewers from {owner}/{repo}#{pr_number}",
            json={"reviewers": reviewers},
        )

    # ------------------------------------------------------------------
    # People
    # ------------------------------------------------------------------

    def list_collaborators(self, owner: str, repo: str) -> list[dict[str, Any]]:
        return self._paginate(f"/repos/{owner}/{repo}/collaborators", f"Collaborators of {owner}/{repo}")

    def list_contributors(self, owner: str, repo: str) -> list[dict[str, Any]]:
        return self._paginate(
            f"/repos/{owner}/{repo}/contributors", f"Contributors of {owner}/{repo}", max_pages=3
        )

    def list_org_members(self, org: str) -> list[dict[str, Any]]:
        return self._paginate(f"/orgs/{org}/members", f"Members of {org}")

    def get_authenticated_user(self) -> dict[str, Any]:
        """``GET /user`` for a user (OAuth) token."""
        return self._request_json("GET", "/user", "Authenticated user")
