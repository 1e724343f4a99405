#!/usr/bin/env python3
"""
Ebuild updater

Bumps the overlay's package to a new upstream release:

1. resolve the target version (explicit, or latest GitHub release)
2. copy the template ebuild to the new version
3. regenerate the Manifest
4. commit the change to git

Fatal problems raise an OverlayError; everything else is logged as a warning
and recorded on the UpdateResult.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from .commands import CommandRunner, Preflight
from .config import OverlayConfig
from .console import Console
from .ebuilds import EbuildDirectory
from .errors import (
    DependencyMissingError,
    InvalidVersionError,
    OverlayError,
    VersionControlFailure,
)
from .manifest import UPDATE_CHAIN, ManifestGenerator
from .releases import get_latest_release
from .versions import is_valid_version, newest_version, normalize_tag


@dataclass
class UpdateResult:
    """Outcome of one update run."""

    success: bool
    package: str
    version: str = ""
    ebuild_path: str = ""
    created: bool = False
    up_to_date: bool = False
    committed: bool = False
    manifest_tool: str | None = None
    warnings: list[str] = field(default_factory=list)


class EbuildUpdater:
    def __init__(
        self,
        config: OverlayConfig,
        runner: CommandRunner | None = None,
        console: Console | None = None,
        fetch_release: Callable[[OverlayConfig, Console], str] = get_latest_release,
    ):
        self.config = config
        self.console = console or Console()
        self.runner = runner or CommandRunner(self.console)
        self.ebuilds = EbuildDirectory(config)
        self.fetch_release = fetch_release

    # ─── Steps ───────────────────────────────────────────────────────────────

    def check_deps(self, skip_git: bool = False):
        preflight = Preflight(required=() if skip_git else ("git",))
        missing = preflight.missing(self.runner)
        if missing:
            raise DependencyMissingError(missing)

    def resolve_version(self, version: str | None = None) -> str:
        """Explicit version (minus any 'v' prefix) or the latest release."""
        if version:
            version = normalize_tag(version)
            if not is_valid_version(version):
                raise InvalidVersionError(version)
            return version
        return self.fetch_release(self.config, self.console)

    def ebuild_exists(self, version: str) -> bool:
        return self.ebuilds.exists(version)

    def create_ebuild(self, version: str, force: bool = False) -> tuple[Path, bool]:
        """
        Create the ebuild for ``version`` from the template.

        Returns (path, created). An existing ebuild is left alone unless
        ``force`` is set.
        """
        path = self.ebuilds.path_for(version)
        if path.is_file() and not force:
            return path, False
        self.console.info(f"Creating ebuild for version {version}...")
        path = self.ebuilds.create_from_template(version)
        self.console.ok(f"Created: {path.name}")
        return path, True

    def generate_manifest(self) -> str | None:
        generator = ManifestGenerator(
            self.ebuilds, self.runner, self.console, chain=UPDATE_CHAIN, required=False
        )
        probe = generator.generate()
        return probe.name if probe else None

    def update_git(self, version: str, result: UpdateResult) -> bool:
        """Stage and commit the package directory. Returns True if a commit was made."""
        cwd = str(self.config.overlay_dir)

        if self.runner.run(["git", "rev-parse", "--git-dir"], cwd=cwd).returncode != 0:
            self._warn(
                result, VersionControlFailure("Not a git repository, skipping git operations")
            )
            return False

        self.console.info("Updating git repository...")
        pathspec = f"{self.config.atom}/"
        add = self.runner.run(["git", "add", pathspec], cwd=cwd)
        if add.returncode != 0:
            self._warn(result, VersionControlFailure(f"git add failed: {add.stderr.strip()}"))
            return False

        diff = self.runner.run(["git", "diff", "--cached", "--quiet", "--", pathspec], cwd=cwd)
        if diff.returncode == 0:
            self.console.info("No changes to commit")
            return False
        if diff.returncode != 1:
            self._warn(result, VersionControlFailure("git diff failed"))
            return False

        message = f"{self.config.atom}: bump to {version}"
        self.console.info("Committing changes...")
        commit = self.runner.run(["git", "commit", "-m", message, "--", pathspec], cwd=cwd)
        if commit.returncode != 0:
            self._warn(
                result, VersionControlFailure(f"git commit failed: {commit.stderr.strip()}")
            )
            return False

        self.console.ok(f"Successfully committed: {message}")
        return True

    # ─── Flow ────────────────────────────────────────────────────────────────

    def update(
        self,
        version: str | None = None,
        force: bool = False,
        skip_git: bool = False,
        dry_run: bool = False,
    ) -> UpdateResult:
        result = UpdateResult(success=False, package=self.config.atom)

        self.check_deps(skip_git=skip_git)

        version = self.resolve_version(version)
        result.version = version
        self.console.info(f"Target version: {version}")

        exists = self.ebuild_exists(version)
        result.ebuild_path = str(self.ebuilds.path_for(version))
        if exists and not force:
            self.console.ok(f"Ebuild for version {version} already exists")
            self.console.info("Use --force to recreate it")
            result.success = True
            result.up_to_date = True
            return result

        if dry_run:
            current = newest_version(self.ebuilds.versions())
            self.console.ok(f"Update available: {current or 'none'} → {version}")
            result.success = True
            return result

        path, created = self.create_ebuild(version, force=force)
        result.ebuild_path = str(path)
        result.created = created

        result.manifest_tool = self.generate_manifest()
        if result.manifest_tool is None:
            result.warnings.append("Manifest was not regenerated")

        if not skip_git:
            result.committed = self.update_git(version, result)

        result.success = True
        self.console.ok("Update completed successfully!")
        return result

    def _warn(self, result: UpdateResult, err: OverlayError):
        self.console.warn(str(err))
        result.warnings.append(str(err))


def next_steps(config: OverlayConfig, version: str) -> list[str]:
    return [
        f"1. Test the ebuild: emerge -av ={config.atom}-{version}",
        "2. Push to overlay repository if satisfied",
    ]
