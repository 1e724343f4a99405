#!/usr/bin/env python3
"""
Ebuild tester

Checks that an ebuild in the overlay parses, has a fresh Manifest, passes QA
and really builds, installs and runs. Stages run strictly in order and a
fatal failure stops everything after it.
"""

import os
from dataclasses import dataclass, field
from typing import Callable

from .commands import CommandRunner, Preflight, ToolProbe, first_available
from .config import OverlayConfig
from .console import Console
from .ebuilds import EbuildDirectory
from .errors import (
    BuildFailure,
    DependencyMissingError,
    InstallFailure,
    InvalidVersionError,
    OverlayError,
    PrivilegeError,
    QualityCheckFailure,
    SmokeTestFailure,
    SyntaxValidationError,
)
from .manifest import VERIFY_CHAIN, ManifestGenerator
from .versions import is_valid_version, normalize_tag

PKGCHECK = ToolProbe("pkgcheck", (("pkgcheck", "scan", "."),))
REPOMAN_QA = ToolProbe("repoman", (("repoman", "scan"), ("repoman", "full")))
QA_CHAIN = (PKGCHECK, REPOMAN_QA)

PASSED = "passed"
WARNING = "warning"
FAILED = "failed"
SKIPPED = "skipped"


@dataclass
class StageOutcome:
    name: str
    status: str
    detail: str = ""


@dataclass
class VerificationReport:
    """What happened during one verification run."""

    package: str
    version: str = ""
    stages: list[StageOutcome] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    success: bool = False

    def record(self, name: str, status: str, detail: str = ""):
        self.stages.append(StageOutcome(name, status, detail))

    def status_of(self, name: str) -> str | None:
        for stage in self.stages:
            if stage.name == name:
                return stage.status
        return None

    @property
    def stage_names(self) -> list[str]:
        return [stage.name for stage in self.stages]


class EbuildTester:
    def __init__(
        self,
        config: OverlayConfig,
        runner: CommandRunner | None = None,
        console: Console | None = None,
        geteuid: Callable[[], int] = os.geteuid,
    ):
        self.config = config
        self.console = console or Console()
        self.runner = runner or CommandRunner(self.console)
        self.ebuilds = EbuildDirectory(config)
        self.geteuid = geteuid
        self.report: VerificationReport | None = None

    # ─── Preflight ───────────────────────────────────────────────────────────

    def check_root(self):
        if self.geteuid() != 0:
            raise PrivilegeError("This script must be run as root for package operations")

    def check_deps(self, report: VerificationReport):
        preflight = Preflight(
            required=("emerge", "ebuild"), optional=("pkgdev", "pkgcheck", "repoman")
        )
        missing = preflight.missing(self.runner)
        if missing:
            raise DependencyMissingError(missing)
        if not preflight.any_optional(self.runner):
            self._warn(
                report,
                "No QA tools found (pkgdev, pkgcheck, or repoman). "
                "Some tests may be skipped.",
            )

    # ─── Stages ──────────────────────────────────────────────────────────────

    def setup_overlay(self):
        """Register the overlay with Portage. Safe to repeat."""
        self.console.info("Setting up overlay configuration...")
        conf = self.config.repos_conf_file
        conf.parent.mkdir(parents=True, exist_ok=True)
        conf.write_text(
            f"[{self.config.overlay_name}]\n"
            f"location = {self.config.overlay_dir}\n"
            "masters = gentoo\n"
            f"priority = {self.config.priority}\n"
            "auto-sync = no\n"
        )
        self.console.ok(f"Overlay configuration created: {conf}")

    def list_ebuilds(self) -> list[str]:
        versions = list(self.ebuilds)
        if not versions:
            self.console.warn("No ebuilds found")
            return versions
        self.console.info("Available ebuilds:")
        for version in versions:
            self.console.info(f"  - {version}")
        return versions

    def select_version(self, version: str | None = None) -> str:
        """Explicit version (minus any 'v' prefix) or the newest non-live ebuild."""
        if version:
            version = normalize_tag(version)
            if not is_valid_version(version):
                raise InvalidVersionError(version)
            self.ebuilds.require(version)
            return version
        version = self.ebuilds.newest()
        self.console.info(f"Auto-selected version: {version}")
        return version

    def validate_ebuild(self, version: str):
        ebuild_file = self.ebuilds.require(version)
        self.console.info(f"Validating ebuild syntax: {ebuild_file.stem}")
        result = self.runner.run(
            ["ebuild", ebuild_file.name, "clean"], cwd=str(self.ebuilds.path)
        )
        if result.returncode != 0:
            detail = (result.stderr or result.stdout or "").strip()
            raise SyntaxValidationError(
                "Ebuild syntax validation failed" + (f": {detail}" if detail else "")
            )
        self.console.ok("Syntax validation passed")

    def generate_manifest(self) -> str | None:
        generator = ManifestGenerator(
            self.ebuilds, self.runner, self.console, chain=VERIFY_CHAIN, required=True
        )
        probe = generator.generate()
        return probe.name if probe else None

    def run_qa_checks(self, report: VerificationReport) -> str:
        """Lint the package directory. Findings are warnings, never failures."""
        self.console.info("Running quality assurance checks...")
        probe = first_available(QA_CHAIN, self.runner)
        if probe is None:
            self._warn(
                report,
                "No QA tools available (pkgcheck or repoman). Skipping QA checks.",
            )
            return WARNING

        status = PASSED
        for argv in probe.argvs():
            label = " ".join(argv[:2])
            result = self.runner.run(argv, cwd=str(self.ebuilds.path), capture=False)
            if result.returncode != 0:
                self._warn(report, QualityCheckFailure(f"{label} found issues"))
                status = WARNING
            else:
                self.console.ok(f"{label} passed")
        return status

    def test_compile(
        self, version: str, report: VerificationReport, keep_installed: bool = False
    ) -> str:
        """Pretend merge, real merge, smoke test, then unmerge."""
        atom = f"={self.config.atom}-{version}"
        status = PASSED
        self.console.info(f"Testing compilation: {self.config.package}-{version}")

        # Clean any previous attempts; failure just means it wasn't installed
        self.runner.run(["emerge", "--unmerge", self.config.atom])

        self.console.info("Running pretend merge...")
        pretend = self.runner.run(["emerge", "--pretend", "--verbose", atom], capture=False)
        if pretend.returncode != 0:
            raise BuildFailure(f"Pretend merge failed for {atom}")

        self.console.info("Compiling package...")
        merge = self.runner.run(["emerge", "--oneshot", "--verbose", atom], capture=False)
        if merge.returncode != 0:
            raise InstallFailure(f"Package compilation failed for {atom}")
        self.console.ok("Compilation successful!")

        if not self.smoke_test(report):
            status = WARNING

        if not keep_installed:
            self.console.info("Cleaning up...")
            unmerge = self.runner.run(["emerge", "--unmerge", self.config.atom])
            if unmerge.returncode != 0:
                self._warn(report, "Failed to unmerge package")
                status = WARNING
        return status

    def smoke_test(self, report: VerificationReport) -> bool:
        binary = self.config.binary
        if self.runner.which(binary) is None:
            self._warn(
                report, SmokeTestFailure(f"{binary} binary not found in PATH after installation")
            )
            return False
        self.console.info("Testing binary functionality...")
        result = self.runner.run([binary, "--version"])
        if result.returncode != 0:
            self._warn(report, SmokeTestFailure("Binary version check failed"))
            return False
        if result.stdout.strip():
            self.console.info(f"{binary} --version: {result.stdout.strip()}")
        self.console.ok("Binary test completed")
        return True

    # ─── Flow ────────────────────────────────────────────────────────────────

    def run(
        self,
        version: str | None = None,
        skip_compile: bool = False,
        skip_qa: bool = False,
        setup_only: bool = False,
        keep_installed: bool = False,
    ) -> VerificationReport:
        report = self.report = VerificationReport(package=self.config.atom)

        self.check_root()
        self.check_deps(report)

        self.setup_overlay()
        report.record("setup", PASSED)
        if setup_only:
            self.console.ok("Overlay setup completed")
            report.success = True
            return report

        self.list_ebuilds()
        report.version = self.select_version(version)

        self._stage(report, "syntax", lambda: self.validate_ebuild(report.version))
        self._stage(report, "manifest", lambda: self.generate_manifest() or WARNING)

        if skip_qa:
            report.record("qa", SKIPPED)
        else:
            report.record("qa", self.run_qa_checks(report))

        if skip_compile:
            report.record("compile", SKIPPED)
        else:
            self._stage(
                report,
                "compile",
                lambda: self.test_compile(report.version, report, keep_installed),
            )

        report.success = True
        self.console.ok("All tests completed successfully!")
        return report

    def _stage(self, report: VerificationReport, name: str, func: Callable):
        try:
            outcome = func()
        except OverlayError as e:
            report.record(name, FAILED, str(e))
            raise
        report.record(name, outcome if outcome in (WARNING, SKIPPED) else PASSED)

    def _warn(self, report: VerificationReport, err: "OverlayError | str"):
        self.console.warn(str(err))
        report.warnings.append(str(err))
