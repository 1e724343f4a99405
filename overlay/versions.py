"""
Gentoo package versions

Parses ``N(.N)*[letter](_suffix[N])*(-rN)`` strings and orders them the way
Portage does, so ``0.5.29`` sorts above ``0.5.9`` and ``1.0_rc1`` below
``1.0``. The live sentinel ``9999`` parses like any other version; callers
exclude it with ``is_live`` rather than by pattern matching file names.
"""

import functools
import re
from dataclasses import dataclass
from typing import Iterable

from .errors import InvalidVersionError

LIVE_VERSION = "9999"

VERSION_RE = re.compile(
    r"^(?P<numbers>\d+(?:\.\d+)*)"
    r"(?P<letter>[a-z])?"
    r"(?P<suffixes>(?:_(?:alpha|beta|pre|rc|p)\d*)*)"
    r"(?:-r(?P<revision>\d+))?$"
)
SUFFIX_RE = re.compile(r"_(alpha|beta|pre|rc|p)(\d*)")

# Releases without a suffix rank between rc and p.
SUFFIX_RANK = {"alpha": 0, "beta": 1, "pre": 2, "rc": 3, "p": 5}


def _cmp(a, b) -> int:
    return (a > b) - (a < b)


def _compare_numbers(a: tuple[str, ...], b: tuple[str, ...]) -> int:
    r = _cmp(int(a[0]), int(b[0]))
    if r:
        return r
    for x, y in zip(a[1:], b[1:]):
        if x.startswith("0") or y.startswith("0"):
            r = _cmp(x.rstrip("0"), y.rstrip("0"))
        else:
            r = _cmp(int(x), int(y))
        if r:
            return r
    return _cmp(len(a), len(b))


def _compare_suffixes(a: tuple, b: tuple) -> int:
    for (sa, na), (sb, nb) in zip(a, b):
        r = _cmp(SUFFIX_RANK[sa], SUFFIX_RANK[sb]) or _cmp(na, nb)
        if r:
            return r
    if len(a) == len(b):
        return 0
    # A trailing _p beats a bare release; any other trailing suffix loses to it.
    if len(a) > len(b):
        return 1 if a[len(b)][0] == "p" else -1
    return -1 if b[len(a)][0] == "p" else 1


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class Version:
    text: str
    numbers: tuple[str, ...]
    letter: str = ""
    suffixes: tuple[tuple[str, int], ...] = ()
    revision: int = 0

    def compare(self, other: "Version") -> int:
        return (
            _compare_numbers(self.numbers, other.numbers)
            or _cmp(self.letter, other.letter)
            or _compare_suffixes(self.suffixes, other.suffixes)
            or _cmp(self.revision, other.revision)
        )

    def __eq__(self, other):
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) == 0

    def __lt__(self, other):
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) < 0

    def __hash__(self):
        # same normalization _compare_numbers applies, so 1.0 and 1.00 collide
        numbers = (int(self.numbers[0]),) + tuple(
            n.rstrip("0") if n.startswith("0") else int(n) for n in self.numbers[1:]
        )
        return hash((numbers, self.letter, self.suffixes, self.revision))

    def __str__(self):
        return self.text

    @property
    def is_live(self) -> bool:
        return self.text == LIVE_VERSION


def parse_version(text: str) -> Version:
    """Parse a Gentoo version string. Raises InvalidVersionError."""
    m = VERSION_RE.match(text or "")
    if not m:
        raise InvalidVersionError(text)
    suffixes = tuple(
        (name, int(num or 0)) for name, num in SUFFIX_RE.findall(m.group("suffixes"))
    )
    return Version(
        text=text,
        numbers=tuple(m.group("numbers").split(".")),
        letter=m.group("letter") or "",
        suffixes=suffixes,
        revision=int(m.group("revision") or 0),
    )


def is_valid_version(text: str) -> bool:
    return VERSION_RE.match(text or "") is not None


def is_live(version: "str | Version") -> bool:
    """True for the perpetually-latest live variant."""
    return str(version) == LIVE_VERSION


def normalize_tag(tag: str) -> str:
    """Turn a release tag like 'v0.6.0' into a bare version string."""
    tag = (tag or "").strip()
    return re.sub(r"^v", "", tag)


def sort_versions(versions: Iterable[str]) -> list[str]:
    """Sort version strings in ascending version order, dropping unparseable ones."""
    parsed = [parse_version(v) for v in versions if is_valid_version(v)]
    return [v.text for v in sorted(parsed)]


def newest_version(versions: Iterable[str]) -> str | None:
    """Highest non-live version, or None when there is none."""
    candidates = [v for v in versions if not is_live(v)]
    ordered = sort_versions(candidates)
    return ordered[-1] if ordered else None
