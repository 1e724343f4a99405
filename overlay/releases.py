"""Fetch the latest upstream release tag from the GitHub API."""

import json
import urllib.request
from urllib.error import HTTPError, URLError

from .config import OverlayConfig
from .console import Console
from .errors import ReleaseLookupError
from .versions import is_valid_version, normalize_tag


def make_api_request(url: str, token: str | None = None, timeout: int = 30) -> dict:
    """GET a GitHub API URL and decode the JSON body."""
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
        "User-Agent": "opencode-overlay-update/1.0",
    }
    if token:
        headers["Authorization"] = f"token {token}"

    req = urllib.request.Request(url, headers=headers)
    try:
        with urllib.request.urlopen(req, timeout=timeout) as response:
            return json.loads(response.read().decode("utf-8"))
    except HTTPError as e:
        if e.code == 403:
            raise ReleaseLookupError(
                f"GitHub API returned HTTP 403 for {url} (rate limit? set GITHUB_TOKEN)"
            ) from e
        raise ReleaseLookupError(f"GitHub API returned HTTP {e.code} for {url}") from e
    except URLError as e:
        raise ReleaseLookupError(f"Failed to connect to GitHub API: {e.reason}") from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ReleaseLookupError(f"Failed to parse release data: {e}") from e
    except OSError as e:
        raise ReleaseLookupError(f"Failed to fetch release data: {e}") from e


def get_latest_release(config: OverlayConfig, console: Console | None = None) -> str:
    """Return the newest published release as a bare version string."""
    console = console or Console()
    console.info("Fetching latest release from GitHub...")

    data = make_api_request(
        config.release_url, token=config.github_token, timeout=config.http_timeout
    )
    if not isinstance(data, dict):
        raise ReleaseLookupError("Unexpected release data from GitHub")

    tag_name = data.get("tag_name")
    if not isinstance(tag_name, str) or not tag_name.strip():
        raise ReleaseLookupError("Failed to parse release tag")

    version = normalize_tag(tag_name)
    if not is_valid_version(version):
        raise ReleaseLookupError(f"Release tag {tag_name!r} is not a usable version")

    if data.get("prerelease", False):
        console.warn(f"Release {tag_name} is marked as pre-release")
    return version
