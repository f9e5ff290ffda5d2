"""Tests for platform session creation."""

import json
from pathlib import Path

import pytest
from yarl import URL

from testops.results_collector.models.config import PlatformConfig
from testops.results_collector.session import (
    create_platform_session,
    load_storage_state_cookies,
)


def _write_state(path: Path, cookies: object) -> Path:
    path.write_text(json.dumps({"cookies": cookies, "origins": []}))
    return path


def test_load_storage_state_cookies(tmp_path: Path) -> None:
    """load_storage_state_cookies keeps named cookie entries."""
    auth_file = _write_state(
        tmp_path / "dws-user.json",
        [{"name": "session", "value": "abc"}, {"value": "nameless"}, "junk"],
    )

    cookies = load_storage_state_cookies(auth_file)

    assert cookies == [{"name": "session", "value": "abc"}]


def test_load_storage_state_cookies_missing_file(tmp_path: Path) -> None:
    """load_storage_state_cookies asks for the login step when no state exists."""
    with pytest.raises(FileNotFoundError, match="Run the login step first"):
        load_storage_state_cookies(tmp_path / "dws-user.json")


def test_load_storage_state_cookies_invalid(tmp_path: Path) -> None:
    """load_storage_state_cookies rejects files that are not storage states."""
    auth_file = tmp_path / "dws-user.json"
    auth_file.write_text("{")
    with pytest.raises(ValueError, match="Invalid session file"):
        load_storage_state_cookies(auth_file)

    auth_file.write_text(json.dumps({"origins": []}))
    with pytest.raises(ValueError, match="no cookie list"):
        load_storage_state_cookies(auth_file)


async def test_create_platform_session_sends_platform_cookies(tmp_path: Path) -> None:
    """create_platform_session loads cookies scoped to their domains."""
    auth_file = _write_state(
        tmp_path / "dws-user.json",
        [
            {
                "name": "ASP.NET_SessionId",
                "value": "abc123",
                "domain": "dws.example.com",
                "path": "/",
            },
            {
                "name": "tracking",
                "value": "xyz",
                "domain": ".other.example.com",
                "path": "/",
            },
        ],
    )
    config = PlatformConfig(base_url="https://dws.example.com", auth_file=auth_file)

    async with create_platform_session(config) as session:
        cookies = session.cookie_jar.filter_cookies(
            URL("https://dws.example.com/SwifTest/Queue/GetItems")
        )

    assert cookies["ASP.NET_SessionId"].value == "abc123"
    assert "tracking" not in cookies


async def test_create_platform_session_keeps_parent_domain_cookies(
    tmp_path: Path,
) -> None:
    """create_platform_session sends cookies set for a parent domain."""
    auth_file = _write_state(
        tmp_path / "dws-user.json",
        [
            {"name": "sso", "value": "token", "domain": ".example.com", "path": "/"},
            {"name": "host", "value": "h", "domain": "dws.example.com", "path": "/"},
        ],
    )
    config = PlatformConfig(base_url="https://dws.example.com", auth_file=auth_file)

    async with create_platform_session(config) as session:
        sent = session.cookie_jar.filter_cookies(
            URL("https://dws.example.com/SwifTest/Queue/GetItems")
        )
        elsewhere = session.cookie_jar.filter_cookies(
            URL("https://reports.example.com/")
        )

    assert sent["sso"].value == "token"
    assert sent["host"].value == "h"
    assert "sso" in elsewhere
    assert "host" not in elsewhere


async def test_create_platform_session_secure_cookie(tmp_path: Path) -> None:
    """create_platform_session keeps secure cookies off plain HTTP."""
    auth_file = _write_state(
        tmp_path / "dws-user.json",
        [
            {
                "name": "auth",
                "value": "s3cret",
                "domain": "dws.example.com",
                "path": "/",
                "secure": True,
                "httpOnly": True,
            }
        ],
    )
    config = PlatformConfig(base_url="https://dws.example.com", auth_file=auth_file)

    async with create_platform_session(config) as session:
        secure = session.cookie_jar.filter_cookies(URL("https://dws.example.com/"))
        plain = session.cookie_jar.filter_cookies(URL("http://dws.example.com/"))

    assert secure["auth"].value == "s3cret"
    assert "auth" not in plain
