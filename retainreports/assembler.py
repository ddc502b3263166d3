"""Build OutcomeRecords from distribution events."""

from __future__ import annotations

import logging
import os
from typing import Iterable

from retainreports import __version__
from retainreports.metadata import MetadataLookup
from retainreports.models import RESERVED_NAMESPACE_PREFIX, Grade, OutcomeRecord
from retainreports.uri import AuthorResolver, parse_uri
from retainreports.utils import InvalidGradeError, InvalidLabelError, ReservedNamespaceError

logger = logging.getLogger(__name__)

PRODUCER_NAME = "retainreports"
UNKNOWN_CPANM_VERSION = "unknown cpanm version"


def format_via(cpanm_version: str | None = None) -> str:
    """``retainreports 0.10.0 (1.7043)``"""
    return f"{PRODUCER_NAME} {__version__} ({cpanm_version or UNKNOWN_CPANM_VERSION})"


def is_safe_label(dist_label: str) -> bool:
    """True if *dist_label* can name a file inside the report directory."""
    if not dist_label or dist_label in (".", "..") or "\0" in dist_label:
        return False
    separators = {"/", os.sep}
    if os.altsep:
        separators.add(os.altsep)
    return not any(sep in dist_label for sep in separators)


def assemble(
    locator: str,
    dist_label: str,
    grade: str,
    test_output: Iterable[str] = (),
    *,
    cpanm_version: str | None = None,
    resolver: AuthorResolver | None = None,
    metadata_lookup: MetadataLookup | None = None,
) -> OutcomeRecord:
    """Assemble the report record for one distribution.

    Args:
        locator: Where the archive was fetched from.
        dist_label: Distribution label from the build log, e.g. ``Mason-Tidy-2.57``.
        grade: PASS, FAIL, NA or UNKNOWN.
        test_output: Captured lines, joined without separator.
        cpanm_version: cpanm version reported in the log header.
        resolver: Author resolver passed to :func:`parse_uri`.
        metadata_lookup: Source of META data for ``prereqs``.

    Raises:
        ReservedNamespaceError: label under ``Local-``; nothing else is tried.
        InvalidLabelError: label holds a path separator or is ``.``/``..``.
        InvalidGradeError: grade outside PASS, FAIL, NA, UNKNOWN.
        SkipEventError: any locator rejection from :func:`parse_uri`.
    """
    if dist_label.startswith(RESERVED_NAMESPACE_PREFIX):
        raise ReservedNamespaceError(
            f"'Local::' namespace is reserved, resource '{locator}'",
            resource=locator,
        )

    if not is_safe_label(dist_label):
        raise InvalidLabelError(
            f"distribution label {dist_label!r} is not a plain file name, resource '{locator}'",
            resource=locator,
        )

    if str(grade).upper() not in Grade.__members__:
        raise InvalidGradeError(
            f"invalid grade {grade!r} for {dist_label}, resource '{locator}'",
            resource=locator,
        )

    identifier = parse_uri(locator, resolver=resolver)

    prereqs = None
    if metadata_lookup is not None:
        meta = metadata_lookup.get_meta_for(dist_label)
        if isinstance(meta, dict) and isinstance(meta.get("prereqs"), dict):
            prereqs = meta["prereqs"]

    return OutcomeRecord(
        author=identifier.author,
        distname=dist_label,
        grade=grade,
        via=format_via(cpanm_version),
        test_output="".join(test_output),
        prereqs=prereqs,
        distversion=identifier.dist_version,
        dist=identifier.dist_name,
    )
