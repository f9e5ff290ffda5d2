"""Configuration models for the collector and its remote APIs."""

from pathlib import Path

from pydantic import BaseModel, Field


class PlatformConfig(BaseModel):
    """Configuration for the test-management platform API."""

    base_url: str = Field(..., description="Platform URL, e.g. https://dws.example.com")
    api_path: str = Field(default="SwifTest", description="API root below base_url")
    auth_file: Path = Field(
        default=Path("playwright/.auth/dws-user.json"),
        description="Storage state written by the login step",
    )
    request_timeout: float = Field(
        default=30.0, gt=0, description="Timeout in seconds for listing calls"
    )
    detail_timeout: float = Field(
        default=60.0, gt=0, description="Timeout in seconds for history detail calls"
    )
    listing_attempts: int = Field(
        default=3, ge=1, description="Attempts for listing calls before giving up"
    )
    retry_delay: float = Field(
        default=2.0, ge=0, description="Base delay in seconds between attempts"
    )

    @property
    def api_url(self) -> str:
        """Root URL of the platform API."""
        return f"{self.base_url.rstrip('/')}/{self.api_path.strip('/')}"


class IssueTrackerConfig(BaseModel):
    """Configuration for the Jira issue tracker."""

    base_url: str = Field(..., description="Jira base URL")
    email: str = Field(..., description="Account email for basic auth")
    api_token: str = Field(..., description="Jira API token")
    project: str = Field(..., description="Project key searched for test names")
    batch_size: int = Field(
        default=5, ge=1, description="Concurrent searches per batch"
    )
    request_timeout: float = Field(default=30.0, gt=0, description="Timeout in seconds")


class CollectorSettings(BaseModel):
    """Top-level collector settings."""

    platform: PlatformConfig
    issue_tracker: IssueTrackerConfig
    reports_path: Path = Field(..., description="Directory receiving all outputs")
    queues_file: Path = Field(
        default=Path("dws-queues.json"), description="Queue registry (JSON or YAML)"
    )
    cache_path: Path = Field(
        default=Path("test-name-jira-key-mapping.json"),
        description="Persistent test name to issue key mapping",
    )
    results_per_queue: int = Field(
        default=1, ge=1, description="Most recent executions considered per queue"
    )
    tests_per_queue: int = Field(
        default=150, ge=1, description="Page size when fetching execution results"
    )
    listing_page_size: int = Field(
        default=50, ge=1, description="Page size when listing queue executions"
    )
    detail_concurrency: int | None = Field(
        default=None,
        ge=1,
        description="Cap on concurrent failure detail fetches (unbounded if unset)",
    )
