"""Data models for GitHub pull requests, dashboard configuration and user roles."""

from datetime import datetime
from typing import Any, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, StrictBool


PRStatus = Literal["ok", "warning", "overdue"]
UserRole = Literal["superadmin", "admin", "developer", "guest"]


class GitHubUser(BaseModel):
    """GitHub account as embedded in PR, review and collaborator payloads."""
    model_config = ConfigDict(extra="allow")

    login: str
    id: int
    avatar_url: str = ""
    html_url: str = ""
    type: Optional[str] = None


class GitHubLabel(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[int] = None
    name: str
    color: Optional[str] = None
    description: Optional[str] = None


class GitHubTeam(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int
    name: str
    slug: str = ""


class PullRequestReview(BaseModel):
    """A submitted review. ``user`` is null for deleted accounts."""
    model_config = ConfigDict(extra="allow")

    id: int
    user: Optional[GitHubUser] = None
    state: str = ""


class PullRequest(BaseModel):
    """Pull request as returned by the GitHub list/detail endpoints.
    
    Only the fields the dashboard reads are declared; everything else GitHub
    sends is kept (``extra="allow"``) so the frontend still receives it.
    ``comments``/``review_comments`` only exist on the detail payload.
    """
    model_config = ConfigDict(extra="allow")

    id: int
    number: int
    title: str
    html_url: str = ""
    state: str = "open"
    created_at: datetime
    updated_at: Optional[datetime] = None
    user: Optional[GitHubUser] = None
    assignees: list[GitHubUser] = Field(default_factory=list)
    requested_reviewers: list[GitHubUser] = Field(default_factory=list)
    requested_teams: list[GitHubTeam] = Field(default_factory=list)
    labels: list[GitHubLabel] = Field(default_factory=list)
    draft: bool = False
    comments: Optional[int] = None
    review_comments: Optional[int] = None


class RepoRef(BaseModel):
    """Source repository tag attached to every enriched PR."""
    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


class EnhancedPR(PullRequest):
    """PullRequest plus the derived, never-persisted dashboard fields.
    
    Serialized with camelCase aliases (``model_dump(by_alias=True)``),
    which is what the frontend consumes.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    status: PRStatus
    hours_open: float = Field(alias="hoursOpen")
    missing_assignee: bool = Field(alias="missingAssignee")
    missing_reviewer: bool = Field(alias="missingReviewer")
    reviewer_count: int = Field(alias="reviewerCount")
    comment_count: int = Field(alias="commentCount")
    issue_comments: int = Field(alias="issueComments")
    review_comments_count: int = Field(alias="reviewComments")
    is_urgent: bool = Field(alias="isUrgent")
    is_quick: bool = Field(alias="isQuick")
    is_over_max_days: bool = Field(alias="isOverMaxDays")
    repo: RepoRef


class Repository(BaseModel):
    owner: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    enabled: StrictBool

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


class DashboardConfig(BaseModel):
    """Persisted dashboard configuration. Always replaced as a whole."""
    model_config = ConfigDict(populate_by_name=True)

    assignment_time_limit: float = Field(default=4, gt=0, alias="assignmentTimeLimit")
    max_days_open: int = Field(default=5, ge=1, alias="maxDaysOpen")
    warning_threshold: Optional[float] = Field(default=None, ge=0, le=100, alias="warningThreshold")
    repositories: list[Repository] = Field(default_factory=list)

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class UserRoleEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: str = Field(..., min_length=1)
    role: UserRole
    added_at: str = Field(alias="addedAt")
    added_by: str = Field(alias="addedBy")

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class InstallationCacheEntry(BaseModel):
    """Owner to installation mapping held in process memory until ``expires_at``."""
    installation_id: int
    expires_at: float

    def is_fresh(self, now: float) -> bool:
        return now < self.expires_at
