"""
Manifest regeneration

Both workflows go through ``ManifestGenerator``; they differ only in the tool
chain they offer and in whether a missing tool is fatal.
"""

from .commands import CommandRunner, ToolProbe, first_available
from .console import Console
from .ebuilds import EbuildDirectory
from .errors import ManifestError, ManifestToolMissingError, NoArtifactError

PKGDEV = ToolProbe("pkgdev", (("pkgdev", "manifest"),))
REPOMAN = ToolProbe("repoman", (("repoman", "manifest"),))
EBUILD = ToolProbe("ebuild", (("ebuild", "{ebuild}", "manifest"),))

UPDATE_CHAIN = (REPOMAN, EBUILD)
VERIFY_CHAIN = (PKGDEV, REPOMAN, EBUILD)


class ManifestGenerator:
    def __init__(
        self,
        ebuilds: EbuildDirectory,
        runner: CommandRunner,
        console: Console,
        chain: tuple[ToolProbe, ...] = UPDATE_CHAIN,
        required: bool = False,
    ):
        self.ebuilds = ebuilds
        self.runner = runner
        self.console = console
        self.chain = chain
        self.required = required

    def generate(self) -> ToolProbe | None:
        """
        Regenerate the Manifest with the first available tool.

        Returns the probe that ran, or None when nothing could run and a
        missing tool is tolerated (the warning is logged here). Tool failures
        always raise ManifestError.
        """
        self.console.info("Generating Manifest...")
        probe = first_available(self.chain, self.runner)
        if probe is None:
            names = ", ".join(p.executable for p in self.chain)
            err = ManifestToolMissingError(
                f"No manifest generation tool found ({names})", fatal=self.required
            )
            if err.fatal:
                raise err
            self.console.warn(str(err))
            return None

        params = {}
        if probe.needs_ebuild:
            try:
                newest = self.ebuilds.newest()
            except NoArtifactError:
                self.console.warn("No non-live ebuilds found for manifest generation")
                return None
            params["ebuild"] = self.ebuilds.path_for(newest).name

        for argv in probe.argvs(**params):
            result = self.runner.run(argv, cwd=str(self.ebuilds.path))
            if result.returncode != 0:
                detail = (result.stderr or result.stdout or "").strip()
                raise ManifestError(
                    f"{probe.name} manifest failed (exit {result.returncode})"
                    + (f": {detail}" if detail else "")
                )

        self.console.ok(f"Manifest generated with {probe.name}")
        return probe
