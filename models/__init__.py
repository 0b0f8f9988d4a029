"""Data models for the Hot Potato PR dashboard."""

from models.config_models import Config, CredentialsConfig
from models.data_models import (
    DashboardConfig,
    EnhancedPR,
    GitHubLabel,
    GitHubUser,
    InstallationCacheEntry,
    PullRequest,
    PullRequestReview,
    RepoRef,
    Repository,
    UserRoleEntry,
)

__all__ = [
    "Config",
    "CredentialsConfig",
    "DashboardConfig",
    "EnhancedPR",
    "GitHubLabel",
    "GitHubUser",
    "InstallationCacheEntry",
    "PullRequest",
    "PullRequestReview",
    "RepoRef",
    "Repository",
    "UserRoleEntry",
]
