"""
Authentication and role-management routes.

Login is GitHub OAuth; the dashboard then issues its own signed session
token. Only users present in the role store may log in. Role endpoints
are limited to admins and superadmins.
"""

import logging
from typing import Any
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from backend.dependencies import get_app_config, get_current_user, get_role_store, require_admin
from backend.sessions import issue_session_token
from dashboard.permissions import has_role, permissions_for
from fetchers.github import GitHubFetcher
from fetchers.github_oauth import build_authorize_url, exchange_code_for_token
from models.config_models import Config
from models.data_models import UserRole
from storage.role_store import RoleStore
from utils.errors import (
    CredentialsMissingError,
    DashboardError,
    PermissionDeniedError,
    RequestValidationFailed,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])


class UserRoleRequest(BaseModel):
    username: str = Field(..., min_length=1)
    role: UserRole


class RemoveUserRequest(BaseModel):
    username: str = Field(..., min_length=1)


def _require_oauth(config: Config) -> None:
    creds = config.credentials
    if not (creds.github_client_id and creds.github_client_secret):
        raise CredentialsMissingError("GitHub OAuth not configured: set GITHUB_CLIENT_ID and GITHUB_CLIENT_SECRET")
    if not creds.jwt_secret:
        raise CredentialsMissingError("JWT_SECRET is not configured")


@router.get("/auth-login")
def auth_login(config: Config = Depends(get_app_config)):
    """Return the GitHub authorize URL the browser should be sent to."""
    _require_oauth(config)
    redirect_uri = f"{config.credentials.app_url.rstrip('/')}/auth/callback"
    return {"authUrl": build_authorize_url(config.credentials.github_client_id, redirect_uri)}


@router.get("/auth-callback")
def auth_callback(
    code: str = Query(..., min_length=1),
    config: Config = Depends(get_app_config),
    role_store: RoleStore = Depends(get_role_store),
):
    """
    Exchange the OAuth code, look up the GitHub user and issue a session.

    Returns:
    - token: signed session JWT (7 days)
    - user: GitHub identity plus role and permissions

    Raises:
    - 401: GitHub rejected the code
    - 403: the GitHub user is not registered in the dashboard
    """
    _require_oauth(config)
    creds = config.credentials
    try:
        access_token = exchange_code_for_token(creds.github_client_id, creds.github_client_secret, code)
        github_user = GitHubFetcher(access_token).get_authenticated_user()

        role = role_store.get_user_role(github_user["login"])
        if role is None:
            logger.warning(f"Login refused for unregistered user {github_user['login']}")
            raise PermissionDeniedError(
                f"User '{github_user['login']}' is not authorized to use this dashboard"
            )

        token = issue_session_token(github_user, role, creds.jwt_secret)
        logger.info(f"{github_user['login']} logged in as {role}")
        return {
            "token": token,
            "user": {
                "login": github_user["login"],
                "id": github_user["id"],
                "avatar_url": github_user.get("avatar_url"),
                "name": github_user.get("name"),
                "email": github_user.get("email"),
                "role": role,
                "permissions": permissions_for(role),
            },
        }
    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        logger.error(f"OAuth callback failed: {e}")
        raise HTTPException(status_code=500, detail=f"Authentication failed: {str(e)}")


@router.get("/auth-me")
def auth_me(user: dict[str, Any] = Depends(get_current_user)):
    """Session introspection: the caller with their current role."""
    return {"user": user}


@router.get("/get-user-roles")
def get_user_roles(
    _: dict[str, Any] = Depends(require_admin),
    role_store: RoleStore = Depends(get_role_store),
):
    """List every registered user and role."""
    try:
        users = [entry.to_json() for entry in role_store.get_user_roles()]
        return {"users": users}
    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        logger.error(f"Failed to list user roles: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to list user roles: {str(e)}")


@router.get("/manage-user-role")
def get_user_role(
    username: str = Query(..., min_length=1),
    _: dict[str, Any] = Depends(require_admin),
    role_store: RoleStore = Depends(get_role_store),
):
    role = role_store.get_user_role(username)
    if role is None:
        raise HTTPException(status_code=404, detail=f"User '{username}' not found")
    return {"username": username, "role": role}


@router.post("/manage-user-role")
def upsert_user_role(
    request: UserRoleRequest,
    caller: dict[str, Any] = Depends(require_admin),
    role_store: RoleStore = Depends(get_role_store),
):
    """
    Add a user or change their role.

    Only a superadmin may grant the superadmin role or change the role of
    an existing superadmin.
    """
    try:
        current = role_store.get_user_role(request.username)
        touches_superadmin = request.role == "superadmin" or current == "superadmin"
        if touches_superadmin and not has_role(caller["role"], "superadmin"):
            raise PermissionDeniedError("Only superadmins can grant or change the superadmin role")

        entry = role_store.upsert_user_role(request.username, request.role, added_by=caller["login"])
        return {"success": True, "user": entry.to_json()}
    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        logger.error(f"Failed to update role for {request.username}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to update role: {str(e)}")


@router.delete("/manage-user-role")
def remove_user_role(
    request: RemoveUserRequest,
    caller: dict[str, Any] = Depends(require_admin),
    role_store: RoleStore = Depends(get_role_store),
):
    """Remove a user. Nobody can remove themselves; only superadmins remove superadmins."""
    try:
        if request.username.lower() == caller["login"].lower():
            raise RequestValidationFailed("You cannot remove your own access")

        current = role_store.get_user_role(request.username)
        if current is None:
            raise HTTPException(status_code=404, detail=f"User '{request.username}' not found")
        if current == "superadmin" and not has_role(caller["role"], "superadmin"):
            raise PermissionDeniedError("Only superadmins can remove a superadmin")

        role_store.remove_user_role(request.username)
        return {"success": True, "username": request.username}
    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        logger.error(f"Failed to remove {request.username}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to remove user: {str(e)}")
