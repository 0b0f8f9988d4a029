#!/usr/bin/env python3
"""
Hot Potato PR Dashboard - Main CLI entrypoint

Serves the dashboard API and offers a few terminal shortcuts that reuse
the same GitHub App credentials and Supabase store.

Usage:
    python main.py serve --port 8000                 # Start the API
    python main.py prs                               # Print open PRs, oldest first
    python main.py prs --sort time-open-asc
    python main.py validate facebook/react           # Check App access to a repo
    python main.py validate https://github.com/facebook/react
    python main.py roles                             # List registered users
"""

import argparse
import sys

from dashboard.enrichment import format_time_ago
from dashboard.repo_input import parse_repo_input
from dashboard.sorting import SORT_OPTIONS, SORT_TIME_OPEN_DESC, pr_stats, sort_prs
from utils.config_loader import load_config
from utils.errors import DashboardError, GitHubNotFoundError
from utils.logger import setup_logger

logger = setup_logger(name=__name__)


def _build_services(config):
    """Create the store and auth cache the same way the API does."""
    from fetchers.github_auth import InstallationAuthCache
    from storage.supabase_client import SupabaseClient

    creds = config.credentials
    store = SupabaseClient(creds.supabase_url, creds.supabase_key)
    auth_cache = InstallationAuthCache(
        app_id=creds.github_app_id,
        private_key=creds.github_private_key,
        legacy_installation_id=creds.github_installation_id,
        app_slug=creds.github_app_slug,
        ttl_seconds=config.installation_cache_ttl,
    )
    return store, auth_cache


def show_prs(config, sort_mode: str = SORT_TIME_OPEN_DESC) -> bool:
    """
    Print the enriched PR list for all enabled repositories.

    Returns:
        bool: True if every repository was fetched, False otherwise
    """
    from dashboard.pr_service import fetch_dashboard_prs
    from storage.config_store import ConfigStore

    store, auth_cache = _build_services(config)
    dashboard_config = ConfigStore(store).get_config()

    if not auth_cache.has_credentials:
        logger.error("GitHub App not configured: set GITHUB_APP_ID and GITHUB_PRIVATE_KEY")
        return False

    prs, errors = fetch_dashboard_prs(dashboard_config, auth_cache)

    for pr in sort_prs(prs, sort_mode):
        flags = []
        if pr.is_urgent:
            flags.append("URGENT")
        if pr.is_quick:
            flags.append("quick")
        if pr.missing_assignee:
            flags.append("no-assignee")
        if pr.missing_reviewer:
            flags.append("no-reviewer")
        if pr.is_over_max_days:
            flags.append("over-max-days")
        print(
            f"[{pr.status:7}] {format_time_ago(pr.hours_open):>5}  "
            f"{pr.repo.full_name}#{pr.number}  {pr.title[:60]}"
            + (f"  ({', '.join(flags)})" if flags else "")
        )

    for full_name, message in errors.items():
        logger.error(f"{full_name}: {message}")

    stats = pr_stats(prs)
    logger.info(
        f"{stats['total']} open PRs: {stats['warning']} past the assignment limit, "
        f"{stats['urgent']} urgent, {stats['missingReviewer']} without reviewer, "
        f"{stats['overMaxDays']} over max days; {len(errors)} repository errors"
    )
    return not errors


def validate_repository(config, repository: str) -> bool:
    """Check that the GitHub App can read ``repository``."""
    parsed = parse_repo_input(repository)
    if not parsed:
        logger.error("Invalid repository format. Use 'owner/repo' or a GitHub URL")
        return False
    owner, name = parsed

    _, auth_cache = _build_services(config)
    try:
        repo_data = auth_cache.get_scoped_client(owner).get_repo(owner, name)
    except GitHubNotFoundError:
        logger.error(f"Repository {owner}/{name} not found or not accessible")
        return False
    except DashboardError as e:
        logger.error(e.message)
        return False

    logger.info(f"✓ {repo_data.get('full_name', f'{owner}/{name}')} is accessible")
    return True


def list_roles(config) -> bool:
    from storage.role_store import RoleStore

    store, _ = _build_services(config)
    role_store = RoleStore(
        store,
        allowed_users_env=config.credentials.allowed_users,
        user_roles_env=config.credentials.user_roles,
    )
    for entry in sorted(role_store.get_user_roles(), key=lambda e: e.username.lower()):
        print(f"{entry.username:30} {entry.role:12} added {entry.added_at} by {entry.added_by}")
    return True


def main():
    """Main CLI entrypoint."""
    parser = argparse.ArgumentParser(
        description="Hot Potato PR Dashboard - unassigned PRs are hot potatoes, pass them on fast",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py serve --host 0.0.0.0 --port 8080 --no-reload
  python main.py prs --sort time-open-asc
  python main.py validate facebook/react
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Start the dashboard API server")
    serve_parser.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind (default: 127.0.0.1)")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on (default: 8000)")
    serve_parser.add_argument("--no-reload", action="store_true", help="Disable auto-reload")

    prs_parser = subparsers.add_parser("prs", help="Print open PRs of all enabled repositories")
    prs_parser.add_argument(
        "--sort",
        choices=SORT_OPTIONS,
        default=SORT_TIME_OPEN_DESC,
        help="Sort order by time open (default: time-open-desc)"
    )

    validate_parser = subparsers.add_parser("validate", help="Check that the GitHub App can access a repository")
    validate_parser.add_argument("repository", help="'owner/repo' or https://github.com/owner/repo")

    subparsers.add_parser("roles", help="List registered users and their roles")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "serve":
        from backend.server import run_server
        run_server(args.host, args.port, reload=not args.no_reload)
        sys.exit(0)

    try:
        config = load_config()
    except Exception as e:
        logger.error(f"Failed to load configuration: {e}")
        sys.exit(1)

    try:
        if args.command == "prs":
            success = show_prs(config, args.sort)
        elif args.command == "validate":
            success = validate_repository(config, args.repository)
        else:
            success = list_roles(config)
    except Exception as e:
        logger.error(f"Command '{args.command}' failed: {e}")
        sys.exit(1)

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
