"""Semantic version validation, normalisation and ordering.

Every version source and the update decision go through this module so
that all of them agree on what a valid version is and how two versions
compare. Ordering follows SemVer 2.0.0 precedence: a pre-release sorts
below its release and build metadata is ignored.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

# 1.2.3, v1.2.3, =1.2.3, 1.2.3-beta.1, 1.2.3+build.5 (optional leading '=' and 'v')
_SEMVER_RE = re.compile(
    r"^=?v?(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<pre>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)


@dataclass(frozen=True)
class SemVer:
    """A parsed semantic version."""

    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()
    build: tuple[str, ...] = ()

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += "-" + ".".join(self.prerelease)
        return text

    @property
    def sort_key(self) -> tuple[object, ...]:
        if not self.prerelease:
            pre: tuple[object, ...] = (1,)
        else:
            pre = (
                0,
                tuple(
                    (0, int(ident), "") if ident.isdigit() else (1, 0, ident)
                    for ident in self.prerelease
                ),
            )
        return (self.major, self.minor, self.patch, pre)


def parse(version: str | None) -> SemVer | None:
    """Parse *version* into a ``SemVer``.

    Returns None if the string is not a valid semantic version.
    """
    if not isinstance(version, str):
        return None
    m = _SEMVER_RE.match(version.strip())
    if m is None:
        return None
    pre = m.group("pre")
    build = m.group("build")
    return SemVer(
        major=int(m.group("major")),
        minor=int(m.group("minor")),
        patch=int(m.group("patch")),
        prerelease=tuple(pre.split(".")) if pre else (),
        build=tuple(build.split(".")) if build else (),
    )


def valid(version: str | None) -> str | None:
    """Return the normalised form of *version*, or None if it is invalid."""
    parsed = parse(version)
    return str(parsed) if parsed else None


def clean(version: str | None) -> str | None:
    """Normalise a loosely written version (``=v1.2.3 `` -> ``1.2.3``)."""
    if not isinstance(version, str):
        return None
    return valid(version.strip().lstrip("=v").strip())


def _require(version: str) -> SemVer:
    parsed = parse(version)
    if parsed is None:
        raise ValueError(f"Invalid version: {version!r}")
    return parsed


def compare(a: str, b: str) -> int:
    """Return -1, 0 or 1 as *a* sorts before, equal to or after *b*.

    Raises ValueError if either version is invalid.
    """
    ka = _require(a).sort_key
    kb = _require(b).sort_key
    return (ka > kb) - (ka < kb)


def gt(a: str, b: str) -> bool:
    """Return True if *a* is strictly newer than *b*."""
    return compare(a, b) > 0


def sort_versions(versions: Iterable[str]) -> list[str]:
    """Drop invalid entries and sort the rest in ascending precedence.

    The original strings are kept, so ``v1.2.3`` stays ``v1.2.3``.
    """
    entries: list[tuple[str, SemVer]] = []
    for version in versions:
        parsed = parse(version)
        if parsed is not None:
            entries.append((version, parsed))
    entries.sort(key=lambda entry: entry[1].sort_key)
    return [version for version, _ in entries]
