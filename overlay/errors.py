"""
Error taxonomy

Every error carries a ``fatal`` flag. Fatal errors abort the invocation with a
non-zero exit; the others are logged as warnings and collected on the
workflow's result.
"""


class OverlayError(Exception):
    fatal = True

    def __init__(self, message: str, fatal: bool | None = None):
        super().__init__(message)
        if fatal is not None:
            self.fatal = fatal


class DependencyMissingError(OverlayError):
    """A required external tool is not on PATH."""

    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        super().__init__(f"Missing dependencies: {' '.join(self.missing)}")


class PrivilegeError(OverlayError):
    """Package operations need root."""


class ReleaseLookupError(OverlayError):
    """The upstream release index is unreachable or returned no usable tag."""


class InvalidVersionError(OverlayError, ValueError):
    def __init__(self, version: str):
        self.version = version
        super().__init__(f"Invalid version: {version!r}")


class TemplateMissingError(OverlayError):
    pass


class NoArtifactError(OverlayError):
    pass


class SyntaxValidationError(OverlayError):
    pass


class ManifestToolMissingError(OverlayError):
    """No manifest generator available. Fatality depends on the workflow."""


class ManifestError(OverlayError):
    """The manifest generator ran and failed."""


class QualityCheckFailure(OverlayError):
    fatal = False


class BuildFailure(OverlayError):
    pass


class InstallFailure(OverlayError):
    pass


class SmokeTestFailure(OverlayError):
    fatal = False


class VersionControlFailure(OverlayError):
    fatal = False
