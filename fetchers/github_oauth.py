"""GitHub OAuth web flow (authorize URL + code exchange)."""

import logging
from urllib.parse import urlencode

import requests

from utils.errors import AuthenticationError, GitHubAPIError

logger = logging.getLogger(__name__)

AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
ACCESS_TOKEN_URL = "https://github.com/login/oauth/access_token"


def build_authorize_url(client_id: str, redirect_uri: str, scope: str = "read:user user:email") -> str:
    query = urlencode({"client_id": client_id, "redirect_uri": redirect_uri, "scope": scope})
    return f"{AUTHORIZE_URL}?{query}"


def exchange_code_for_token(client_id: str, client_secret: str, code: str) -> str:
    """
    Exchange an OAuth ``code`` for a user access token.

    Raises:
        AuthenticationError: GitHub rejected the code (expired, reused, ...)
        GitHubAPIError: GitHub answered with an HTTP error
    """
    response = requests.post(
        ACCESS_TOKEN_URL,
        data={"client_id": client_id, "client_secret": client_secret, "code": code},
        headers={"Accept": "application/json"},
        timeout=15,
    )
    if response.status_code >= 400:
        raise GitHubAPIError(
            f"OAuth token exchange failed with status {response.status_code}",
            upstream_status=response.status_code,
            details=response.text[:200],
        )

    data = response.json()
    if "error" in data or "access_token" not in data:
        logger.warning(f"OAuth code exchange rejected: {data.get('error')}")
        raise AuthenticationError(data.get("error_description") or "GitHub rejected the login code")

    return data["access_token"]
