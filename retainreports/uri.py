"""Resource locator parsing.

Turns a locator such as
``http://www.cpan.org/authors/id/D/DA/DAGOLDEN/Sub-Uplevel-0.2800.tar.gz``
into a :class:`ResourceIdentifier` carrying the distribution name, version,
CPAN author id and the author-relative file path.

Three rejections are possible, all subclasses of ``SkipEventError``:
1) the scheme is not one of http, https, ftp, cpan, file,
2) no author id can be derived from the path,
3) the author is the reserved ``LOCAL`` id.
"""

from __future__ import annotations

import logging
import re
from typing import Protocol
from urllib.parse import unquote, urlsplit

from retainreports.distname import parse_distname
from retainreports.models import ALLOWED_SCHEMES, RESERVED_AUTHOR, ResourceIdentifier
from retainreports.utils import (
    AuthorResolutionError,
    ReservedAuthorError,
    UnsupportedSchemeError,
)

logger = logging.getLogger(__name__)

_AUTHOR_ID = r"[A-Za-z][-A-Za-z0-9]*"

# Path shapes that carry a CPAN id, most specific first.
_AUTHOR_PATTERNS = (
    # .../authors/id/D/DA/DAGOLDEN/Foo-1.0.tar.gz (also bare id/...)
    re.compile(rf"(?:^|/)(?:authors/)?id/[^/]+/[^/]+/(?P<author>{_AUTHOR_ID})/.+$"),
    # cpan:///distfile/DAGOLDEN/Foo-1.0.tar.gz
    re.compile(rf"^/*distfile/(?P<author>{_AUTHOR_ID})/.+$"),
    # D/DA/DAGOLDEN/Foo-1.0.tar.gz
    re.compile(rf"^/*[A-Za-z]/[A-Za-z0-9]{{2}}/(?P<author>{_AUTHOR_ID})/.+$"),
    # DAGOLDEN/Foo-1.0.tar.gz; upper case only, so plain web paths do not match
    re.compile(r"^/*(?P<author>[A-Z][-A-Z0-9]*)/[^/]+$"),
)


class AuthorResolver(Protocol):
    def resolve(self, path: str) -> str | None:
        """Return the upper-case CPAN id for *path*, or None if unknown."""
        ...


class PathAuthorResolver:
    """Read the CPAN id straight from the locator path.

    Understands the mirror layout (``authors/id/X/XY/AUTHOR/...``), the
    ``cpan:///distfile/AUTHOR/...`` form and bare ``AUTHOR/file`` paths.
    """

    def resolve(self, path: str) -> str | None:
        path = unquote(path)
        for pattern in _AUTHOR_PATTERNS:
            match = pattern.search(path)
            if match:
                return match.group("author").upper()
        logger.debug("No CPAN id in path '%s'", path)
        return None


_default_resolver: PathAuthorResolver | None = None


def get_author_resolver() -> PathAuthorResolver:
    """Return module-level resolver singleton."""
    global _default_resolver
    if _default_resolver is None:
        _default_resolver = PathAuthorResolver()
    return _default_resolver


def parse_uri(locator: str, resolver: AuthorResolver | None = None) -> ResourceIdentifier:
    """Parse *locator* into a ResourceIdentifier.

    Raises UnsupportedSchemeError, AuthorResolutionError or
    ReservedAuthorError; callers treat all three as "skip this event".
    """
    info = parse_distname(locator)

    parts = urlsplit(locator)
    scheme = parts.scheme.lower()
    if scheme not in ALLOWED_SCHEMES:
        raise UnsupportedSchemeError(
            f"invalid scheme '{scheme}' for resource '{locator}'",
            resource=locator,
        )

    if scheme == "file":
        # Local files carry no reliable author.
        author = ""
    else:
        author = (resolver or get_author_resolver()).resolve(parts.path)
        if author is None:
            raise AuthorResolutionError(
                f"error fetching author for resource '{locator}'",
                resource=locator,
            )

    if author == RESERVED_AUTHOR:
        raise ReservedAuthorError(
            f"'{RESERVED_AUTHOR}' user is reserved, resource '{locator}'",
            resource=locator,
        )

    start = locator.find(author)
    dist_file = locator[start:] if start >= 0 else locator

    return ResourceIdentifier(
        locator=locator,
        scheme=scheme,
        dist_name=info.dist,
        dist_version=info.version,
        author=author,
        dist_file=dist_file,
    )
