"""Builds the authenticated platform session from the login step's output."""

import json
import logging
from http.cookies import Morsel
from pathlib import Path

import aiohttp
from yarl import URL

from testops.results_collector.models.config import PlatformConfig

logger = logging.getLogger(__name__)


def load_storage_state_cookies(auth_file: Path) -> list[dict[str, object]]:
    """Read the cookies of a browser storage-state file.

    Raises:
        FileNotFoundError: If the login step has not produced the file
        ValueError: If the file is not a storage state

    """
    if not auth_file.exists():
        raise FileNotFoundError(
            f"Session file not found: {auth_file}. Run the login step first."
        )

    try:
        data = json.loads(auth_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid session file {auth_file}: {e}") from e

    cookies = data.get("cookies") if isinstance(data, dict) else None
    if not isinstance(cookies, list):
        raise ValueError(f"Session file {auth_file} has no cookie list")

    return [c for c in cookies if isinstance(c, dict) and "name" in c]


def _to_morsel(cookie: dict[str, object]) -> Morsel[str]:
    """Convert a storage-state cookie, keeping its scope attributes.

    A domain with a leading dot applies to every subdomain and is kept on
    the morsel. Without one the cookie stays bound to its exact host.
    """
    name = str(cookie["name"])
    value = str(cookie.get("value", ""))
    morsel: Morsel[str] = Morsel()
    morsel.set(name, value, value)

    domain = str(cookie.get("domain") or "")
    if domain.startswith("."):
        morsel["domain"] = domain
    morsel["path"] = str(cookie.get("path") or "/")
    if cookie.get("secure"):
        morsel["secure"] = True
    if cookie.get("httpOnly"):
        morsel["httponly"] = True
    return morsel


def create_platform_session(config: PlatformConfig) -> aiohttp.ClientSession:
    """Open a session carrying the cookies of the authenticated browser context."""
    cookies = load_storage_state_cookies(config.auth_file)
    jar = aiohttp.CookieJar(unsafe=True)

    platform_url = URL(config.base_url)
    for cookie in cookies:
        host = str(cookie.get("domain") or "").lstrip(".")
        origin = platform_url.with_host(host) if host else platform_url
        morsel = _to_morsel(cookie)
        jar.update_cookies({morsel.key: morsel}, response_url=origin.with_path("/"))

    logger.info(f"Loaded {len(cookies)} session cookies from {config.auth_file}")

    return aiohttp.ClientSession(
        cookie_jar=jar,
        timeout=aiohttp.ClientTimeout(total=config.request_timeout),
    )
