"""Error taxonomy shared by the GitHub client, the stores and the API.

Every error knows the HTTP status it maps to, so the FastAPI exception
handler can turn it into the ``{"error": ..., "details": ...}`` envelope
without per-route bookkeeping.
"""

from typing import Any, Optional


class DashboardError(Exception):
    """Base class for all expected dashboard failures."""

    kind = "upstream-error"
    status_code = 500

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class RequestValidationFailed(DashboardError):
    """Missing or malformed request fields."""

    kind = "validation-error"
    status_code = 400


class AuthenticationError(DashboardError):
    """Missing, expired or invalid bearer token."""

    kind = "auth-error"
    status_code = 401


class PermissionDeniedError(DashboardError):
    """Authenticated, but the caller's role is not enough."""

    kind = "auth-error"
    status_code = 403


class CredentialsMissingError(DashboardError):
    """Server-side credentials (GitHub App, OAuth, JWT secret) are not set."""

    kind = "config-error"
    status_code = 500


class NotInstalledError(DashboardError):
    """The GitHub App has no installation for the requested owner."""

    kind = "not-installed"
    status_code = 500

    def __init__(self, owner: str, install_url: str):
        super().__init__(
            f"GitHub App is not installed for '{owner}'. "
            f"Install it at {install_url} and try again.",
            details={"owner": owner, "installUrl": install_url},
        )
        self.owner = owner
        self.install_url = install_url


class GitHubAPIError(DashboardError):
    """GitHub answered with an error status not otherwise classified."""

    kind = "upstream-error"
    status_code = 500

    def __init__(self, message: str, upstream_status: Optional[int] = None, details: Optional[Any] = None):
        super().__init__(message, details=details)
        self.upstream_status = upstream_status


class GitHubNotFoundError(GitHubAPIError):
    """GitHub answered 404."""

    kind = "not-found"
    status_code = 404

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message, upstream_status=404, details=details)
