"""
Overlay configuration

Constants describing the overlay and the package it maintains, and the two
frozen config objects built once per invocation and passed down explicitly.
"""

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

# ─── Constants ────────────────────────────────────────────────────────────────

SOURCE_DIR = Path(__file__).resolve().parent.parent
OVERLAY_NAME = "opencode-overlay"
OVERLAY_PRIORITY = 50
REPOS_CONF_DIR = Path("/etc/portage/repos.conf")

CATEGORY = "dev-util"
PACKAGE = "opencode"
BINARY = "opencode"
GITHUB_REPO = "sst/opencode"
GITHUB_API = "https://api.github.com/repos"
TEMPLATE_VERSION = "0.5.29"
HTTP_TIMEOUT = 30


def default_overlay_dir(source_dir: Path | None = None, cwd: Path | None = None) -> Path:
    """
    The checkout these tools ship in, or the working directory when installed.

    An installed package sits in site-packages, which has no
    ``profiles/repo_name`` beside it.
    """
    source_dir = SOURCE_DIR if source_dir is None else source_dir
    if (source_dir / "profiles" / "repo_name").is_file():
        return source_dir
    return Path(cwd if cwd is not None else Path.cwd()).resolve()


@dataclass(frozen=True)
class LogConfig:
    """How the console renders messages. Built once from parsed arguments."""

    color: bool = True

    @classmethod
    def from_args(cls, no_color: bool = False, stream=None) -> "LogConfig":
        stream = stream if stream is not None else sys.stderr
        if no_color or os.environ.get("NO_COLOR"):
            return cls(color=False)
        isatty = getattr(stream, "isatty", None)
        return cls(color=bool(isatty and isatty()))


@dataclass(frozen=True)
class OverlayConfig:
    """Where the overlay lives and which package it carries."""

    overlay_dir: Path = field(default_factory=default_overlay_dir)
    category: str = CATEGORY
    package: str = PACKAGE
    binary: str = BINARY
    github_repo: str = GITHUB_REPO
    template_version: str = TEMPLATE_VERSION
    repos_conf_dir: Path = REPOS_CONF_DIR
    overlay_name: str = OVERLAY_NAME
    priority: int = OVERLAY_PRIORITY
    github_token: str | None = None
    http_timeout: int = HTTP_TIMEOUT

    @classmethod
    def from_env(cls, environ=None, **overrides) -> "OverlayConfig":
        """Build a config, honouring OVERLAY_DIR, PORTAGE_REPOS_CONF and GITHUB_TOKEN."""
        env = os.environ if environ is None else environ
        values = {}
        if env.get("OVERLAY_DIR"):
            values["overlay_dir"] = Path(env["OVERLAY_DIR"]).resolve()
        if env.get("PORTAGE_REPOS_CONF"):
            values["repos_conf_dir"] = Path(env["PORTAGE_REPOS_CONF"])
        if env.get("GITHUB_TOKEN"):
            values["github_token"] = env["GITHUB_TOKEN"]
        values.update(overrides)
        return cls(**values)

    @property
    def atom(self) -> str:
        return f"{self.category}/{self.package}"

    @property
    def package_dir(self) -> Path:
        return self.overlay_dir / self.category / self.package

    @property
    def repos_conf_file(self) -> Path:
        return self.repos_conf_dir / f"{self.overlay_name}.conf"

    @property
    def release_url(self) -> str:
        return f"{GITHUB_API}/{self.github_repo}/releases/latest"

    def ebuild_name(self, version: str) -> str:
        return f"{self.package}-{version}.ebuild"

    def template_path(self) -> Path:
        return self.package_dir / self.ebuild_name(self.template_version)
