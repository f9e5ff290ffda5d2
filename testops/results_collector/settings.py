"""Collector settings loaded from environment variables."""

import os
from collections.abc import Mapping
from pathlib import Path

from testops.results_collector.models.config import (
    CollectorSettings,
    IssueTrackerConfig,
    PlatformConfig,
)

REQUIRED_VARIABLES = (
    "DWS_URL",
    "REPORTS_PATH",
    "JIRA_BASE_URL",
    "JIRA_EMAIL",
    "JIRA_API_TOKEN",
    "JIRA_PROJECT",
)


def _required(environ: Mapping[str, str], name: str) -> str:
    value = environ.get(name)
    if not value:
        raise ValueError(f"Missing environment variable: {name}")
    return value


def load_settings(environ: Mapping[str, str] | None = None) -> CollectorSettings:
    """Build collector settings from environment variables.

    Args:
        environ: Variables to read (defaults to ``os.environ``)

    Returns:
        Validated settings

    Raises:
        ValueError: If a required variable is missing
        pydantic.ValidationError: If a value is out of range or malformed

    """
    env = os.environ if environ is None else environ
    values = {name: _required(env, name) for name in REQUIRED_VARIABLES}

    platform: dict[str, object] = {"base_url": values["DWS_URL"]}
    if env.get("AUTH_FILE"):
        platform["auth_file"] = Path(env["AUTH_FILE"])
    if env.get("REQUEST_TIMEOUT"):
        platform["request_timeout"] = env["REQUEST_TIMEOUT"]
    if env.get("LISTING_ATTEMPTS"):
        platform["listing_attempts"] = env["LISTING_ATTEMPTS"]

    settings: dict[str, object] = {
        "platform": PlatformConfig.model_validate(platform),
        "issue_tracker": IssueTrackerConfig(
            base_url=values["JIRA_BASE_URL"],
            email=values["JIRA_EMAIL"],
            api_token=values["JIRA_API_TOKEN"],
            project=values["JIRA_PROJECT"],
        ),
        "reports_path": Path(values["REPORTS_PATH"]),
    }

    optional = {
        "QUEUES_FILE": "queues_file",
        "JIRA_CACHE_PATH": "cache_path",
        "NUMBER_OF_QUEUE_RESULTS": "results_per_queue",
        "NUMBER_OF_TESTS_PER_QUEUE": "tests_per_queue",
        "DETAIL_CONCURRENCY": "detail_concurrency",
    }
    for variable, field_name in optional.items():
        if env.get(variable):
            settings[field_name] = env[variable]

    return CollectorSettings.model_validate(settings)
