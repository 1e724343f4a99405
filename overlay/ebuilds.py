"""
Package definition files in the overlay

One ``EbuildDirectory`` per package directory. Iteration re-reads the
directory every time, so a listing can be repeated and always reflects what
is on disk.
"""

import shutil
from pathlib import Path
from typing import Iterator

from .config import OverlayConfig
from .errors import NoArtifactError, TemplateMissingError
from .versions import is_valid_version, newest_version, sort_versions


class EbuildDirectory:
    def __init__(self, config: OverlayConfig):
        self.config = config
        self.path = config.package_dir
        self.prefix = f"{config.package}-"

    def __iter__(self) -> Iterator[str]:
        return iter(self.versions())

    def extract_version(self, ebuild_path: Path) -> str | None:
        """package-VERSION.ebuild → VERSION, or None for foreign files."""
        stem = ebuild_path.stem
        if not stem.startswith(self.prefix):
            return None
        version = stem[len(self.prefix) :]
        return version if is_valid_version(version) else None

    def versions(self) -> list[str]:
        """All versions with an ebuild here, live included, in version order."""
        if not self.path.is_dir():
            return []
        found = (self.extract_version(p) for p in self.path.glob("*.ebuild"))
        return sort_versions(v for v in found if v)

    def path_for(self, version: str) -> Path:
        return self.path / self.config.ebuild_name(version)

    def exists(self, version: str) -> bool:
        return self.path_for(version).is_file()

    def newest(self) -> str:
        """Highest non-live version. Raises NoArtifactError when there is none."""
        version = newest_version(self.versions())
        if version is None:
            raise NoArtifactError(f"No ebuilds found to test in {self.path}")
        return version

    def require(self, version: str) -> Path:
        path = self.path_for(version)
        if not path.is_file():
            raise NoArtifactError(f"Ebuild not found: {path}")
        return path

    def create_from_template(self, version: str) -> Path:
        """Copy the template ebuild to the file for ``version``."""
        template = self.config.template_path()
        if not template.is_file():
            raise TemplateMissingError(f"Template ebuild not found: {template}")
        new_ebuild = self.path_for(version)
        if new_ebuild.resolve() != template.resolve():
            shutil.copy2(template, new_ebuild)
        return new_ebuild
