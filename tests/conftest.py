import io
import subprocess

import pytest

from overlay.commands import CommandRunner
from overlay.config import LogConfig, OverlayConfig
from overlay.console import Console

TEMPLATE = """\
EAPI=8
DESCRIPTION="AI coding agent for the terminal"
SRC_URI="https://github.com/sst/opencode/archive/refs/tags/v${PV}.tar.gz -> ${P}.tar.gz"
"""


class FakeRunner(CommandRunner):
    """
    Records commands instead of running them.

    ``results`` maps an argv prefix (tuple) to a return code or a callable
    ``(cmd, cwd) -> int``; the longest matching prefix wins, default 0.
    """

    def __init__(self, tools=(), results=None, console=None):
        super().__init__(console or Console(LogConfig(color=False), stream=io.StringIO()))
        self.tools = set(tools)
        self.results = dict(results or {})
        self.calls: list[list[str]] = []
        self.cwds: list[str | None] = []

    def run(self, cmd, cwd=None, capture=True):
        self.calls.append(list(cmd))
        self.cwds.append(cwd)
        match = None
        for prefix in self.results:
            if tuple(cmd[: len(prefix)]) == prefix:
                if match is None or len(prefix) > len(match):
                    match = prefix
        outcome = self.results.get(match, 0) if match is not None else 0
        if callable(outcome):
            outcome = outcome(cmd, cwd)
        if isinstance(outcome, subprocess.CompletedProcess):
            return outcome
        return subprocess.CompletedProcess(cmd, outcome, stdout="", stderr="")

    def which(self, name):
        return f"/usr/bin/{name}" if name in self.tools else None

    def called(self, *prefix) -> bool:
        return any(tuple(c[: len(prefix)]) == prefix for c in self.calls)

    def index_of(self, *prefix) -> int:
        for i, c in enumerate(self.calls):
            if tuple(c[: len(prefix)]) == prefix:
                return i
        raise AssertionError(f"{prefix} was never run: {self.calls}")


@pytest.fixture
def overlay_dir(tmp_path):
    root = tmp_path / "overlay"
    pkg = root / "dev-util" / "opencode"
    pkg.mkdir(parents=True)
    (pkg / "opencode-0.5.29.ebuild").write_text(TEMPLATE)
    (pkg / "opencode-9999.ebuild").write_text(TEMPLATE)
    (pkg / "metadata.xml").write_text("<pkgmetadata/>\n")
    return root


@pytest.fixture
def config(overlay_dir, tmp_path):
    return OverlayConfig(overlay_dir=overlay_dir, repos_conf_dir=tmp_path / "repos.conf")


@pytest.fixture
def log_stream():
    return io.StringIO()


@pytest.fixture
def console(log_stream):
    return Console(LogConfig(color=False), stream=log_stream)


def add_ebuild(config: OverlayConfig, version: str, text: str = TEMPLATE):
    path = config.package_dir / config.ebuild_name(version)
    path.write_text(text)
    return path
