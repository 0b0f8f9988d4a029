"""GitHub App authentication with an owner-keyed installation cache.

A single App installation covers every repository of one account, so the
cache is keyed by owner login rather than by repository. Entries expire
purely by time; nothing evicts them early except ``clear()``.
"""

import logging
import time
from typing import Callable, Optional

import jwt

from fetchers.github import GitHubFetcher
from models.data_models import InstallationCacheEntry
from utils.errors import CredentialsMissingError, GitHubNotFoundError, NotInstalledError

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 5 * 60


class InstallationAuthCache:
    """Resolve owners to installation IDs and hand out scoped API clients.

    The cache is process-local and unsynchronized: two concurrent misses for
    the same owner both hit the directory and the last write wins, which is
    harmless since they store the same ID.
    """

    def __init__(
        self,
        app_id: Optional[str],
        private_key: Optional[str],
        legacy_installation_id: Optional[str] = None,
        app_slug: Optional[str] = None,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
        fetcher_factory: Callable[[str], GitHubFetcher] = GitHubFetcher,
    ):
        """
        Args:
            app_id: GitHub App ID (JWT issuer)
            private_key: PEM private key of the App
            legacy_installation_id: Installation used when no owner is given
            app_slug: App slug for the "install here" link in errors
            ttl_seconds: How long a resolved installation ID stays valid
            clock: Returns the current time in seconds (injected for tests)
            fetcher_factory: Builds a ``GitHubFetcher`` from a bearer token
        """
        self.app_id = app_id
        self.private_key = private_key
        self.legacy_installation_id = legacy_installation_id
        self.app_slug = app_slug
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self.fetcher_factory = fetcher_factory
        self._cache: dict[str, InstallationCacheEntry] = {}

    @property
    def has_credentials(self) -> bool:
        return bool(self.app_id and self.private_key)

    @property
    def install_url(self) -> str:
        if self.app_slug:
            return f"https://github.com/apps/{self.app_slug}/installations/new"
        return "https://github.com/settings/installations"

    def clear(self) -> None:
        self._cache.clear()

    def expires_at(self, owner: str) -> Optional[float]:
        entry = self._cache.get(owner.lower())
        return entry.expires_at if entry else None

    def _require_credentials(self) -> None:
        if not self.has_credentials:
            raise CredentialsMissingError(
                "GitHub App not configured: set GITHUB_APP_ID and GITHUB_PRIVATE_KEY"
            )

    def create_app_jwt(self) -> str:
        """Sign a short-lived JWT identifying the App itself.

        ``iat`` is backdated 60s for clock drift; GitHub caps ``exp`` at 10 minutes.
        """
        self._require_credentials()
        now = int(self.clock())
        payload = {"iat": now - 60, "exp": now + 540, "iss": str(self.app_id)}
        return jwt.encode(payload, self.private_key, algorithm="RS256")

    def app_client(self) -> GitHubFetcher:
        return self.fetcher_factory(self.create_app_jwt())

    def resolve_installation_id(self, owner: Optional[str]) -> int:
        """Return the installation ID covering ``owner``.

        Raises:
            CredentialsMissingError: App ID or private key not configured
            NotInstalledError: No installation matches the owner
        """
        if owner is None:
            if self.legacy_installation_id:
                return int(self.legacy_installation_id)
            raise CredentialsMissingError("No owner given and GITHUB_INSTALLATION_ID is not set")

        key = owner.lower()
        now = self.clock()
        entry = self._cache.get(key)
        if entry and entry.is_fresh(now):
            logger.debug(f"Installation cache hit for {owner}: {entry.installation_id}")
            return entry.installation_id

        self._require_credentials()
        try:
            installations = self.app_client().list_installations()
        except GitHubNotFoundError:
            raise NotInstalledError(owner, self.install_url)

        for installation in installations:
            account = installation.get("account") or {}
            if (account.get("login") or "").lower() == key:
                installation_id = installation["id"]
                self._cache[key] = InstallationCacheEntry(
                    installation_id=installation_id,
                    expires_at=now + self.ttl_seconds,
                )
                logger.info(f"Resolved installation {installation_id} for {owner}")
                return installation_id

        logger.warning(f"GitHub App is not installed for {owner}")
        raise NotInstalledError(owner, self.install_url)

    def get_scoped_client(self, owner: Optional[str]) -> GitHubFetcher:
        """Build a client authenticated as the installation covering ``owner``."""
        self._require_credentials()
        installation_id = self.resolve_installation_id(owner)
        token = self.app_client().create_installation_token(installation_id)
        return self.fetcher_factory(token)
