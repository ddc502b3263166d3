"""Split CPAN distribution archive names into name and version.

Follows the CPAN archive naming convention ``<Name>-<version>.<ext>``:

    Sub-Uplevel-0.2800.tar.gz  -> dist "Sub-Uplevel", version "0.2800"
    libwww-perl-6.05.tgz       -> dist "libwww-perl", version "6.05"
    Foo-Bar-v1.2.3-TRIAL.zip   -> dist "Foo-Bar", version "v1.2.3-TRIAL"

Names without a recognizable version keep the whole stem as the dist name
and report ``version=None``.
"""

from __future__ import annotations

import posixpath
import re
from dataclasses import asdict, dataclass
from urllib.parse import unquote

_ARCHIVE_EXTENSION = re.compile(
    r"\.(tar\.(?:g?z|bz2|xz|Z)|tgz|tbz2?|txz|zip|pm\.gz)$",
    re.IGNORECASE,
)

# Non-greedy name, then the first hyphen that starts a version which runs to
# the end of the stem.
_DIST_VERSION = re.compile(
    r"^(?P<dist>.+?)-(?P<version>v?\d[^-]*(?:-TRIAL\d*)?)$"
)


@dataclass(frozen=True)
class DistInfo:
    """Parsed archive name.

    maturity is ``developer`` for underscore versions and TRIAL releases,
    ``released`` otherwise.
    """

    filename: str
    distvname: str
    dist: str
    version: str | None
    extension: str
    maturity: str

    def to_dict(self) -> dict:
        return asdict(self)


def split_distvname(distvname: str) -> tuple[str, str | None]:
    """Split ``Name-1.23`` into ``("Name", "1.23")``."""
    match = _DIST_VERSION.match(distvname)
    if not match:
        return distvname, None
    return match.group("dist"), match.group("version")


def parse_distname(path: str) -> DistInfo:
    """Parse the archive component of *path* (a locator, path or bare file name)."""
    # Drop any query string or fragment before taking the last path segment.
    bare = path.split("?", 1)[0].split("#", 1)[0]
    filename = unquote(posixpath.basename(bare.rstrip("/")))

    ext_match = _ARCHIVE_EXTENSION.search(filename)
    if ext_match:
        extension = ext_match.group(1)
        distvname = filename[: ext_match.start()]
    else:
        extension = ""
        distvname = filename

    dist, version = split_distvname(distvname)

    if version and ("_" in version or "TRIAL" in version):
        maturity = "developer"
    else:
        maturity = "released"

    return DistInfo(
        filename=filename,
        distvname=distvname,
        dist=dist,
        version=version,
        extension=extension,
        maturity=maturity,
    )
