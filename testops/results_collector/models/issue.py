"""Models for issue-tracker search responses."""

from pydantic import BaseModel, ConfigDict, Field


class Issue(BaseModel):
    """Issue returned by a search."""

    model_config = ConfigDict(extra="allow")

    key: str
    fields: dict[str, object] = Field(default_factory=dict)


class IssueSearchResponse(BaseModel):
    """One page of search results."""

    model_config = ConfigDict(extra="allow")

    issues: list[Issue] = Field(default_factory=list)
