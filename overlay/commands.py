"""
External command execution

``CommandRunner`` wraps subprocess the way the update scripts always have:
log the command, run it, hand back the CompletedProcess without raising.
``ToolProbe`` lists describe fallback chains (modern tool first) and
``first_available`` picks the first one present on this machine.
"""

import shutil
import subprocess
from dataclasses import dataclass, field
from typing import Sequence

from .console import Console


class CommandRunner:
    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def run(
        self, cmd: list[str], cwd: str | None = None, capture: bool = True
    ) -> subprocess.CompletedProcess:
        """Run a command and return result. Does NOT raise on failure."""
        self.console.command(cmd)
        if capture:
            try:
                return subprocess.run(cmd, cwd=cwd, capture_output=True, text=True)
            except FileNotFoundError as e:
                return subprocess.CompletedProcess(cmd, 127, stdout="", stderr=str(e))
        # Stream output to terminal in real-time, capture nothing
        try:
            r = subprocess.run(cmd, cwd=cwd)
        except FileNotFoundError as e:
            return subprocess.CompletedProcess(cmd, 127, stdout="", stderr=str(e))
        return subprocess.CompletedProcess(cmd, r.returncode, stdout="", stderr="")

    def which(self, name: str) -> str | None:
        return shutil.which(name)


@dataclass(frozen=True)
class ToolProbe:
    """
    One entry in a fallback chain.

    ``commands`` holds one or more argv templates run in order; ``{ebuild}``
    is replaced with the target ebuild file name.
    """

    name: str
    commands: tuple[tuple[str, ...], ...]

    @property
    def executable(self) -> str:
        return self.commands[0][0]

    @property
    def needs_ebuild(self) -> bool:
        return any("{ebuild}" in part for cmd in self.commands for part in cmd)

    def argvs(self, **params) -> list[list[str]]:
        return [[part.format(**params) for part in cmd] for cmd in self.commands]

    def available(self, runner: CommandRunner) -> bool:
        return runner.which(self.executable) is not None


@dataclass
class Preflight:
    """Required and optional tool sets checked before a workflow starts."""

    required: Sequence[str] = ()
    optional: Sequence[str] = field(default_factory=tuple)

    def missing(self, runner: CommandRunner) -> list[str]:
        return [tool for tool in self.required if runner.which(tool) is None]

    def any_optional(self, runner: CommandRunner) -> bool:
        return any(runner.which(tool) is not None for tool in self.optional)


def first_available(
    probes: Sequence[ToolProbe], runner: CommandRunner
) -> ToolProbe | None:
    """Return the first probe whose tool is installed, in preference order."""
    for probe in probes:
        if probe.available(runner):
            return probe
    return None
