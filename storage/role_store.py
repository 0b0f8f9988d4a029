"""
User role persistence.

Roles live in one JSON list under ``user-roles``. Every change reads the
full list, edits it in memory and writes the full list back. There is no
locking, so two admins editing at the same moment can overwrite each
other's change.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from models.data_models import UserRole, UserRoleEntry

logger = logging.getLogger(__name__)

ROLES_KEY = "user-roles"
VALID_ROLES = ("superadmin", "admin", "developer", "guest")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_legacy_roles(allowed_users: Optional[str], user_roles: Optional[str]) -> list[UserRoleEntry]:
    """
    Convert the legacy environment variables into role entries.

    ``USER_ROLES`` holds ``user:role`` pairs; ``ALLOWED_USERS`` holds plain
    logins, which become developers unless ``USER_ROLES`` already names them.
    Unknown roles are skipped with a warning.
    """
    entries: dict[str, UserRoleEntry] = {}
    added_at = _now_iso()

    for pair in (user_roles or "").split(","):
        pair = pair.strip()
        if not pair:
            continue
        username, _, role = pair.partition(":")
        username, role = username.strip(), role.strip().lower()
        if not username or role not in VALID_ROLES:
            logger.warning(f"Skipping invalid legacy role entry '{pair}'")
            continue
        entries[username.lower()] = UserRoleEntry(
            username=username, role=role, added_at=added_at, added_by="migration"
        )

    for username in (allowed_users or "").split(","):
        username = username.strip()
        if username and username.lower() not in entries:
            entries[username.lower()] = UserRoleEntry(
                username=username, role="developer", added_at=added_at, added_by="migration"
            )

    return list(entries.values())


class RoleStore:
    """Whole-list read-modify-write store of UserRoleEntry records."""

    def __init__(
        self,
        blob_store: Any,
        allowed_users_env: Optional[str] = None,
        user_roles_env: Optional[str] = None,
    ):
        self.blob_store = blob_store
        self.allowed_users_env = allowed_users_env
        self.user_roles_env = user_roles_env

    def get_user_roles(self) -> list[UserRoleEntry]:
        """Return all role entries, migrating the legacy env on first access."""
        stored = self.blob_store.get_json(ROLES_KEY)
        if stored is not None:
            return [UserRoleEntry.model_validate(item) for item in stored]

        entries = parse_legacy_roles(self.allowed_users_env, self.user_roles_env)
        logger.info(f"Migrating {len(entries)} user roles from environment into storage")
        self._write(entries)
        return entries

    def get_user_role(self, username: str) -> Optional[UserRole]:
        key = username.lower()
        for entry in self.get_user_roles():
            if entry.username.lower() == key:
                return entry.role
        return None

    def upsert_user_role(self, username: str, role: UserRole, added_by: str) -> UserRoleEntry:
        """Add a user or change their role."""
        if role not in VALID_ROLES:
            raise ValueError(f"Invalid role '{role}'. Must be one of: {', '.join(VALID_ROLES)}")

        entries = self.get_user_roles()
        entry = UserRoleEntry(username=username, role=role, added_at=_now_iso(), added_by=added_by)
        remaining = [e for e in entries if e.username.lower() != username.lower()]
        self._write(remaining + [entry])
        logger.info(f"{added_by} set role of {username} to {role}")
        return entry

    def remove_user_role(self, username: str) -> bool:
        """Remove a user. Returns False if they were not registered."""
        entries = self.get_user_roles()
        remaining = [e for e in entries if e.username.lower() != username.lower()]
        if len(remaining) == len(entries):
            return False
        self._write(remaining)
        logger.info(f"Removed role entry for {username}")
        return True

    def _write(self, entries: list[UserRoleEntry]) -> None:
        self.blob_store.set_json(ROLES_KEY, [e.to_json() for e in entries])
