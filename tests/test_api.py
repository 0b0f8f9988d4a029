"""
Tests for the dashboard API endpoints.

These tests use FastAPI's TestClient with dependency overrides, so they run
without a server, GitHub or Supabase.
"""

from unittest.mock import Mock, patch
import pytest
from fastapi.testclient import TestClient

from backend.app import app
from backend.dependencies import get_app_config, get_auth_cache, get_config_store, get_role_store
from backend.sessions import issue_session_token
from conftest import InMemoryBlobStore, make_pr, make_user
from models.config_models import Config, CredentialsConfig
from storage.config_store import CONFIG_KEY, ConfigStore
from storage.role_store import ROLES_KEY, RoleStore
from utils.errors import GitHubNotFoundError, NotInstalledError

JWT_SECRET = "test-jwt-secret-0123456789abcdef0123"


def _role(username, role):
    return {"username": username, "role": role, "addedAt": "2025-01-01T00:00:00+00:00", "addedBy": "migration"}


@pytest.fixture
def app_config():
    return Config(credentials=CredentialsConfig(
        supabase_url="https://test-project.supabase.co",
        supabase_key="key",
        github_client_id="client123",
        github_client_secret="shh",
        jwt_secret=JWT_SECRET,
    ))


@pytest.fixture
def blob_store():
    return InMemoryBlobStore({
        CONFIG_KEY: {
            "assignmentTimeLimit": 4,
            "maxDaysOpen": 5,
            "repositories": [
                {"owner": "acme", "name": "web", "enabled": True},
                {"owner": "acme", "name": "legacy", "enabled": False},
            ],
        },
        ROLES_KEY: [
            _role("root", "superadmin"),
            _role("boss", "admin"),
            _role("dev", "developer"),
        ],
    })


@pytest.fixture
def github():
    """Installation-scoped GitHub client mock."""
    client = Mock()
    client.list_open_prs.return_value = [
        make_pr(number=1, hours_ago=1, assignees=[make_user("dev", 30)]),
        make_pr(number=2, hours_ago=48, labels=["urgent"]),
    ]
    client.get_pr.side_effect = GitHubNotFoundError("gone")
    client.list_reviews.return_value = []
    return client


@pytest.fixture
def auth_cache(github):
    cache = Mock()
    cache.has_credentials = True
    cache.get_scoped_client.return_value = github
    return cache


@pytest.fixture
def client(app_config, blob_store, auth_cache):
    """Create FastAPI test client with every external dependency replaced."""
    app.dependency_overrides[get_app_config] = lambda: app_config
    app.dependency_overrides[get_config_store] = lambda: ConfigStore(blob_store)
    app.dependency_overrides[get_role_store] = lambda: RoleStore(blob_store)
    app.dependency_overrides[get_auth_cache] = lambda: auth_cache
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _auth(login, role="developer"):
    token = issue_session_token({"login": login, "id": 1}, role, JWT_SECRET)
    return {"Authorization": f"Bearer {token}"}


class TestListPRs:
    """Tests for GET /api/prs endpoint."""

    def test_list_prs_default_sort(self, client, github):
        response = client.get("/api/prs")

        assert response.status_code == 200
        data = response.json()
        assert [pr["number"] for pr in data["prs"]] == [2, 1]
        urgent = data["prs"][0]
        assert urgent["isUrgent"] is True
        assert urgent["status"] == "warning"
        assert urgent["missingAssignee"] is True
        assert urgent["repo"] == {"owner": "acme", "name": "web"}
        assert data["config"]["assignmentTimeLimit"] == 4
        assert "errors" not in data
        github.list_open_prs.assert_called_once_with("acme", "web")

    def test_sort_ascending(self, client):
        data = client.get("/api/prs", params={"sort": "time-open-asc"}).json()
        assert [pr["number"] for pr in data["prs"]] == [1, 2]

    def test_invalid_sort_rejected(self, client):
        response = client.get("/api/prs", params={"sort": "by-title"})
        assert response.status_code == 400
        assert "sort" in response.json()["error"]

    def test_empty_filter_selection_shows_nothing(self, client):
        data = client.get("/api/prs", params={"filters": ""}).json()
        assert data["prs"] == []

    def test_filter_selection(self, client):
        data = client.get("/api/prs", params={"filters": "urgent", "repos": "acme/web"}).json()
        assert [pr["number"] for pr in data["prs"]] == [2]

    def test_repository_errors_are_returned(self, client, auth_cache, github, blob_store):
        blob_store.data[CONFIG_KEY]["repositories"].append({"owner": "ghost", "name": "lib", "enabled": True})

        def scoped(owner):
            if owner == "ghost":
                raise NotInstalledError("ghost", "https://github.com/settings/installations")
            return github
        auth_cache.get_scoped_client.side_effect = scoped

        data = client.get("/api/prs").json()

        assert len(data["prs"]) == 2
        assert "ghost" in data["errors"]["ghost/lib"]

    def test_missing_app_credentials(self, client, auth_cache):
        auth_cache.has_credentials = False
        response = client.get("/api/prs")
        assert response.status_code == 500
        assert "GITHUB_APP_ID" in response.json()["error"]


class TestConfigEndpoints:

    def test_get_config_creates_defaults(self, client, blob_store):
        del blob_store.data[CONFIG_KEY]

        response = client.get("/api/config")

        assert response.status_code == 200
        assert response.json() == {"assignmentTimeLimit": 4, "maxDaysOpen": 5, "repositories": []}
        assert CONFIG_KEY in blob_store.data

    def test_save_config(self, client, blob_store):
        body = {
            "assignmentTimeLimit": 6,
            "maxDaysOpen": 10,
            "warningThreshold": 75,
            "repositories": [{"owner": "acme", "name": "api", "enabled": True}],
        }
        response = client.post("/api/config", json=body)

        assert response.status_code == 200
        assert response.json() == {"success": True, "config": body}
        assert blob_store.data[CONFIG_KEY] == body

    @pytest.mark.parametrize("body", [
        {"assignmentTimeLimit": 0, "maxDaysOpen": 5, "repositories": []},
        {"assignmentTimeLimit": 4, "maxDaysOpen": 0, "repositories": []},
        {"assignmentTimeLimit": 4, "maxDaysOpen": 5, "warningThreshold": 101, "repositories": []},
        {"assignmentTimeLimit": 4, "maxDaysOpen": 5, "repositories": [{"owner": "a", "name": "b", "enabled": "yes"}]},
    ])
    def test_invalid_config_rejected(self, client, blob_store, body):
        before = dict(blob_store.data[CONFIG_KEY])

        response = client.post("/api/config", json=body)

        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid request")
        assert blob_store.data[CONFIG_KEY] == before

    def test_missing_repository_field(self, client):
        response = client.post("/api/config", json={"repositories": [{"owner": "acme", "enabled": True}]})

        assert response.status_code == 400
        assert response.json()["error"] == "Missing required field(s): repositories.0.name"

    def test_repository_without_enabled_rejected(self, client, blob_store):
        before = dict(blob_store.data[CONFIG_KEY])
        body = {"assignmentTimeLimit": 4, "maxDaysOpen": 5, "repositories": [{"owner": "acme", "name": "api"}]}

        response = client.post("/api/config", json=body)

        assert response.status_code == 400
        assert response.json()["error"] == "Missing required field(s): repositories.0.enabled"
        assert blob_store.data[CONFIG_KEY] == before


class TestToggleLabels:

    def test_add_urgent(self, client, github):
        response = client.post("/api/toggle-urgent", json={"owner": "acme", "repo": "web", "prNumber": 2, "isUrgent": True})

        assert response.status_code == 200
        assert response.json() == {"success": True, "isUrgent": True}
        github.ensure_label.assert_called_once_with("acme", "web", "urgent", "d73a4a", "Urgent PR - needs attention now")
        github.add_labels.assert_called_once_with("acme", "web", 2, ["urgent"])

    def test_removing_absent_label_succeeds(self, client, github):
        github.remove_label.return_value = False

        response = client.post("/api/toggle-quick", json={"owner": "acme", "repo": "web", "prNumber": 2, "isQuick": False})

        assert response.status_code == 200
        assert response.json() == {"success": True, "isQuick": False}
        github.remove_label.assert_called_once_with("acme", "web", 2, "quick")
        github.add_labels.assert_not_called()

    def test_missing_field(self, client):
        response = client.post("/api/toggle-urgent", json={"owner": "acme", "repo": "web", "isUrgent": True})

        assert response.status_code == 400
        assert response.json()["error"] == "Missing required field(s): prNumber"

    def test_not_installed_owner(self, client, auth_cache):
        auth_cache.get_scoped_client.side_effect = NotInstalledError("ghost", "https://github.com/settings/installations")

        response = client.post("/api/toggle-urgent", json={"owner": "ghost", "repo": "x", "prNumber": 1, "isUrgent": True})

        assert response.status_code == 500
        body = response.json()
        assert "ghost" in body["error"]
        assert body["details"]["owner"] == "ghost"


class TestAssignments:

    def test_add_assignees(self, client, github):
        github.add_assignees.return_value = {"assignees": [make_user("dev", 30)]}

        response = client.post("/api/assign-assignees", json={
            "owner": "acme", "repo": "web", "pull_number": 2, "assignees": ["dev"], "action": "add",
        })

        assert response.status_code == 200
        assert response.json()["assignees"][0]["login"] == "dev"
        github.add_assignees.assert_called_once_with("acme", "web", 2, ["dev"])

    def test_remove_reviewers(self, client, github):
        github.remove_reviewers.return_value = {"requested_reviewers": []}

        response = client.post("/api/assign-reviewers", json={
            "owner": "acme", "repo": "web", "pull_number": 2, "reviewers": ["dev"], "action": "remove",
        })

        assert response.json() == {"success": True, "requested_reviewers": []}
        github.remove_reviewers.assert_called_once_with("acme", "web", 2, ["dev"])
        github.request_reviewers.assert_not_called()

    def test_unknown_action_rejected(self, client):
        response = client.post("/api/assign-reviewers", json={
            "owner": "acme", "repo": "web", "pull_number": 2, "reviewers": ["dev"], "action": "toggle",
        })
        assert response.status_code == 400

    def test_empty_list_rejected(self, client):
        response = client.post("/api/assign-assignees", json={
            "owner": "acme", "repo": "web", "pull_number": 2, "assignees": [], "action": "add",
        })
        assert response.status_code == 400


class TestCollaborators:

    def test_union_without_bots_sorted(self, client, github):
        github.list_collaborators.return_value = [make_user("zoe", 1), make_user("dependabot[bot]", 2)]
        github.list_contributors.return_value = [make_user("zoe", 1), make_user("Amy", 3), make_user("renovate", 4)]
        github.list_org_members.side_effect = GitHubNotFoundError("Members of acme: not found")

        response = client.get("/api/collaborators", params={"owner": "acme", "repo": "web"})

        assert response.status_code == 200
        assert [u["login"] for u in response.json()] == ["Amy", "zoe"]

    def test_missing_query(self, client):
        response = client.get("/api/collaborators", params={"owner": "acme"})
        assert response.status_code == 400
        assert response.json()["error"] == "Missing required field(s): repo"


class TestValidateRepo:

    def test_not_installed_is_200_with_owner_in_message(self, client, auth_cache):
        auth_cache.get_scoped_client.side_effect = NotInstalledError("ghost-org", "https://github.com/settings/installations")

        response = client.post("/api/validate-repo", json={"owner": "ghost-org", "repo": "x"})

        assert response.status_code == 200
        body = response.json()
        assert body["valid"] is False
        assert "ghost-org" in body["error"]

    def test_not_found(self, client, github):
        github.get_repo.side_effect = GitHubNotFoundError("Repository acme/nope: not found")

        body = client.post("/api/validate-repo", json={"owner": "acme", "repo": "nope"}).json()

        assert body["valid"] is False
        assert "acme/nope" in body["error"]

    def test_valid(self, client, github):
        github.get_repo.return_value = {"full_name": "acme/web", "private": True, "default_branch": "main"}

        body = client.post("/api/validate-repo", json={"owner": "acme", "repo": "web"}).json()

        assert body["valid"] is True
        assert body["details"]["default_branch"] == "main"

    def test_missing_field_is_400(self, client):
        assert client.post("/api/validate-repo", json={"owner": "acme"}).status_code == 400


def test_team_workload(client):
    response = client.get("/api/team-workload")

    assert response.status_code == 200
    workloads = response.json()["workloads"]
    assert workloads[0]["user"]["login"] == "dev"
    assert workloads[0]["totalAssigned"] == 1
    assert {w["user"]["login"] for w in workloads} == {"dev", "root", "boss"}

    created = response.json()["created"]
    assert len(created) == 1
    assert created[0]["user"]["login"] == "author"
    assert created[0]["totalCreated"] == 2
    assert {p["number"] for p in created[0]["createdPRs"]} == {1, 2}


class TestAuth:

    def test_login_url(self, client):
        response = client.get("/api/auth-login")
        assert response.status_code == 200
        assert "client_id=client123" in response.json()["authUrl"]
        assert "auth%2Fcallback" in response.json()["authUrl"]

    def test_callback_issues_session(self, client):
        github_user = {"login": "Dev", "id": 30, "avatar_url": "a", "name": "Dev One", "email": None}
        with patch("backend.auth_routes.exchange_code_for_token", return_value="gho_x"), \
                patch("backend.auth_routes.GitHubFetcher") as mock_fetcher:
            mock_fetcher.return_value.get_authenticated_user.return_value = github_user
            response = client.get("/api/auth-callback", params={"code": "abc"})

        assert response.status_code == 200
        body = response.json()
        assert body["user"]["role"] == "developer"
        assert body["user"]["permissions"]["canAccessConfig"] is False

        me = client.get("/api/auth-me", headers={"Authorization": f"Bearer {body['token']}"})
        assert me.json()["user"]["login"] == "Dev"

    def test_callback_refuses_unregistered_user(self, client):
        with patch("backend.auth_routes.exchange_code_for_token", return_value="gho_x"), \
                patch("backend.auth_routes.GitHubFetcher") as mock_fetcher:
            mock_fetcher.return_value.get_authenticated_user.return_value = {"login": "stranger", "id": 99}
            response = client.get("/api/auth-callback", params={"code": "abc"})

        assert response.status_code == 403
        assert "stranger" in response.json()["error"]

    def test_me_requires_token(self, client):
        assert client.get("/api/auth-me").status_code == 401
        assert client.get("/api/auth-me", headers={"Authorization": "Bearer junk"}).status_code == 401

    def test_role_is_reread_on_each_request(self, client, blob_store):
        headers = _auth("dev", "superadmin")
        assert client.get("/api/auth-me", headers=headers).json()["user"]["role"] == "developer"

        blob_store.data[ROLES_KEY] = [r for r in blob_store.data[ROLES_KEY] if r["username"] != "dev"]
        assert client.get("/api/auth-me", headers=headers).status_code == 403


class TestRoleManagement:

    def test_developer_cannot_list_roles(self, client):
        assert client.get("/api/get-user-roles", headers=_auth("dev")).status_code == 403

    def test_admin_lists_roles(self, client):
        response = client.get("/api/get-user-roles", headers=_auth("boss"))
        assert response.status_code == 200
        assert {u["username"] for u in response.json()["users"]} == {"root", "boss", "dev"}

    def test_get_single_role(self, client):
        assert client.get("/api/manage-user-role", params={"username": "DEV"}, headers=_auth("boss")).json()["role"] == "developer"
        assert client.get("/api/manage-user-role", params={"username": "nobody"}, headers=_auth("boss")).status_code == 404

    def test_admin_adds_developer(self, client, blob_store):
        response = client.post("/api/manage-user-role", json={"username": "newbie", "role": "developer"}, headers=_auth("boss"))

        assert response.status_code == 200
        assert response.json()["user"]["addedBy"] == "boss"
        assert any(r["username"] == "newbie" for r in blob_store.data[ROLES_KEY])

    def test_only_superadmin_grants_superadmin(self, client):
        body = {"username": "dev", "role": "superadmin"}
        assert client.post("/api/manage-user-role", json=body, headers=_auth("boss")).status_code == 403
        assert client.post("/api/manage-user-role", json=body, headers=_auth("root")).status_code == 200

    def test_admin_cannot_demote_superadmin(self, client):
        body = {"username": "root", "role": "guest"}
        assert client.post("/api/manage-user-role", json=body, headers=_auth("boss")).status_code == 403

    def test_invalid_role(self, client):
        body = {"username": "dev", "role": "owner"}
        assert client.post("/api/manage-user-role", json=body, headers=_auth("root")).status_code == 400

    def test_cannot_remove_self(self, client):
        response = client.request("DELETE", "/api/manage-user-role", json={"username": "BOSS"}, headers=_auth("boss"))
        assert response.status_code == 400

    def test_remove_unknown_user(self, client):
        response = client.request("DELETE", "/api/manage-user-role", json={"username": "ghost"}, headers=_auth("boss"))
        assert response.status_code == 404

    def test_admin_cannot_remove_superadmin(self, client):
        response = client.request("DELETE", "/api/manage-user-role", json={"username": "root"}, headers=_auth("boss"))
        assert response.status_code == 403

    def test_remove_user(self, client, blob_store):
        response = client.request("DELETE", "/api/manage-user-role", json={"username": "dev"}, headers=_auth("boss"))

        assert response.json() == {"success": True, "username": "dev"}
        assert {r["username"] for r in blob_store.data[ROLES_KEY]} == {"root", "boss"}
