"""Record types shared by the parser, assembler, store and log driver."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class Grade(str, Enum):
    """CPAN Testers result grades."""
    PASS = "PASS"
    FAIL = "FAIL"
    NA = "NA"
    UNKNOWN = "UNKNOWN"


ALLOWED_SCHEMES = frozenset({"http", "https", "ftp", "cpan", "file"})

# Author id that marks local, never-distributed uploads.
RESERVED_AUTHOR = "LOCAL"

# Distribution label prefix reserved for local-only packages.
RESERVED_NAMESPACE_PREFIX = "Local-"


@dataclass(frozen=True)
class ResourceIdentifier:
    """Identity of a distribution derived from its locator.

    dist_file is the locator tail starting at the author id, e.g.
    ``DAGOLDEN/Sub-Uplevel-0.2800.tar.gz``; for ``file`` locators it is the
    whole locator.
    """

    locator: str
    scheme: str
    dist_name: str
    dist_version: str | None
    author: str
    dist_file: str

    def to_dict(self) -> dict:
        return asdict(self)


class OutcomeRecord(BaseModel):
    """One retained test report.

    ``distname`` is the raw label from the build log (``Sub-Uplevel-0.2800``)
    while ``dist`` is the name parsed from the locator (``Sub-Uplevel``).
    """

    model_config = ConfigDict(frozen=True)

    author: str = ""
    distname: str
    grade: str
    via: str
    test_output: str = ""
    prereqs: dict[str, Any] | None = None
    distversion: str | None = None
    dist: str

    @field_validator("grade")
    @classmethod
    def validate_grade(cls, v: str) -> str:
        if v.upper() not in Grade.__members__:
            raise ValueError(
                f"grade must be one of {', '.join(Grade.__members__)}, got {v!r}"
            )
        return v

    def to_report_dict(self) -> dict[str, Any]:
        """Fields written to the ``.log.json`` file."""
        return self.model_dump()


@dataclass(frozen=True)
class BuildEvent:
    """A finished distribution found in a cpanm build log."""

    resource: str
    dist: str
    grade: str
    test_output: list[str] = field(default_factory=list)
    cpanm_version: str | None = None


@dataclass(frozen=True)
class SubmissionOutcome:
    """Result of handing a record to a report submitter."""

    sent: bool
    reason: str = ""
