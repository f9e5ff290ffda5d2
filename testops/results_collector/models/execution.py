"""Models for execution records returned by the test-management platform."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

_PASSED_VALUES = frozenset({"SUCCESS", "TRUE", "PASS", "PASSED"})
_FAILED_VALUES = frozenset({"FAIL", "FAILED", "FALSE"})


class Outcome(Enum):
    """Normalized outcome of a test or a test step."""

    PASSED = "passed"
    FAILED = "failed"
    UNKNOWN = "unknown"


def normalize_outcome(raw: str | bool | None) -> Outcome:
    """Map a raw platform status value to an Outcome.

    The platform reports outcomes as free-form strings ("SUCCESS", "FAIL",
    "true", ...) and occasionally as booleans. Comparison is
    case-insensitive; anything unrecognized is UNKNOWN.
    """
    if raw is None:
        return Outcome.UNKNOWN
    value = str(raw).strip().upper()
    if value in _PASSED_VALUES:
        return Outcome.PASSED
    if value in _FAILED_VALUES:
        return Outcome.FAILED
    return Outcome.UNKNOWN


class ExecutionRecord(BaseModel):
    """Single automated test outcome within a queue execution.

    Platform fields not declared here are kept as extras so a written report
    carries the full record. Enrichment fields left untouched are omitted on
    serialization; ``jira_key`` set to ``None`` means "looked up, not found".
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    test_name: str | None = Field(default=None, alias="testName")
    scenario_name: str | None = Field(default=None, alias="scenarioName")
    key: str | int | None = Field(default=None, description="Execution key")
    successful: str | bool | None = Field(
        default=None, description="Raw platform status"
    )
    execution_status: str | None = Field(default=None, alias="executionStatus")
    execution_start: str | None = Field(default=None, alias="executionStartTimeStamp")
    execution_end: str | None = Field(default=None, alias="executionEndTimeStamp")
    duration: str | None = Field(default=None, description="HH:MM:SS[.fraction]")
    executed_by: str | None = Field(default=None, alias="executedByUserName")
    description: str | None = None

    error_title: str | None = Field(default=None, alias="cErrorTitle")
    error_description: str | None = Field(default=None, alias="cErrorDescription")
    image_url: str | None = Field(default=None, alias="cImageUrl")
    jira_key: str | None = Field(default=None, alias="cJiraKey")

    @property
    def outcome(self) -> Outcome:
        """Normalized outcome of this record."""
        return normalize_outcome(self.successful)

    def to_report(self) -> dict[str, object]:
        """Serialize using platform field names, omitting unset fields."""
        return self.model_dump(by_alias=True, exclude_unset=True)


class DetailStep(BaseModel):
    """One step of a test execution's history detail."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    title: str | None = None
    description: str | None = None
    key: str | None = Field(default=None, description="Screenshot reference")
    execution_status: str | None = Field(default=None, alias="executionStatus")
    successful: str | bool | None = None

    @property
    def outcome(self) -> Outcome:
        """Normalized outcome of this step."""
        return normalize_outcome(self.successful)

    @property
    def is_disabled(self) -> bool:
        """Whether the step was disabled and never executed."""
        return (self.execution_status or "").lower() == "disabled"


class ResultsPage(BaseModel):
    """The ``data`` wrapper of a results response."""

    model_config = ConfigDict(populate_by_name=True)

    value: list[ExecutionRecord] = Field(default_factory=list, alias="Value")


class ExecutionResults(BaseModel):
    """Result page for one queue execution."""

    model_config = ConfigDict(populate_by_name=True)

    data: ResultsPage = Field(default_factory=ResultsPage)
    total: int | None = Field(
        default=None, description="Total records reported by the platform"
    )

    @property
    def records(self) -> list[ExecutionRecord]:
        """Records contained in the page."""
        return self.data.value

    def to_report(self) -> dict[str, object]:
        """Render the report artifact document."""
        document: dict[str, object] = {
            "data": {"Value": [record.to_report() for record in self.records]}
        }
        if self.total is not None:
            document["total"] = self.total
        return document
