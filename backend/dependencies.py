"""
FastAPI dependencies shared by the route modules.

Long-lived objects (config, Supabase client, installation cache) are built
once per process on first use. Tests replace them through
``app.dependency_overrides``.
"""

from functools import lru_cache
from typing import Any, Optional

from fastapi import Depends, Header

from backend.sessions import decode_session_token
from dashboard.permissions import has_role, permissions_for
from fetchers.github_auth import InstallationAuthCache
from models.config_models import Config
from storage.config_store import ConfigStore
from storage.role_store import RoleStore
from storage.supabase_client import SupabaseClient
from utils.config_loader import load_config
from utils.errors import AuthenticationError, CredentialsMissingError, PermissionDeniedError
from utils.logger import setup_logger


@lru_cache
def get_app_config() -> Config:
    config = load_config()
    setup_logger(config.log_level)
    return config


@lru_cache
def get_blob_store() -> SupabaseClient:
    config = get_app_config()
    return SupabaseClient(config.credentials.supabase_url, config.credentials.supabase_key)


@lru_cache
def get_auth_cache() -> InstallationAuthCache:
    config = get_app_config()
    creds = config.credentials
    return InstallationAuthCache(
        app_id=creds.github_app_id,
        private_key=creds.github_private_key,
        legacy_installation_id=creds.github_installation_id,
        app_slug=creds.github_app_slug,
        ttl_seconds=config.installation_cache_ttl,
    )


def get_config_store() -> ConfigStore:
    return ConfigStore(get_blob_store())


def get_role_store() -> RoleStore:
    creds = get_app_config().credentials
    return RoleStore(
        get_blob_store(),
        allowed_users_env=creds.allowed_users,
        user_roles_env=creds.user_roles,
    )


def get_current_user(
    authorization: Optional[str] = Header(None),
    config: Config = Depends(get_app_config),
    role_store: RoleStore = Depends(get_role_store),
) -> dict[str, Any]:
    """
    Resolve the caller from the ``Authorization: Bearer <jwt>`` header.

    The role is re-read from storage on every request so role changes take
    effect without a new login.

    Raises:
        AuthenticationError: Missing, malformed, expired or forged token
        PermissionDeniedError: The user is no longer registered
    """
    if not config.credentials.jwt_secret:
        raise CredentialsMissingError("JWT_SECRET is not configured")

    if not authorization or not authorization.lower().startswith("bearer "):
        raise AuthenticationError("Missing bearer token")

    claims = decode_session_token(authorization[7:].strip(), config.credentials.jwt_secret)
    role = role_store.get_user_role(claims["login"])
    if role is None:
        raise PermissionDeniedError(f"User '{claims['login']}' is no longer authorized")

    return {
        "login": claims["login"],
        "id": claims.get("id"),
        "avatar_url": claims.get("avatar_url"),
        "name": claims.get("name"),
        "email": claims.get("email"),
        "role": role,
        "permissions": permissions_for(role),
    }


def require_admin(user: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    """Allow only admin and superadmin callers."""
    if not has_role(user["role"], "admin"):
        raise PermissionDeniedError("Only admins can manage user roles")
    return user
