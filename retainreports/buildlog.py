"""cpanm build.log reader.

Walks a ``build.log`` in order and yields one :class:`BuildEvent` per
distribution that reached a result:

    Fetching http://www.cpan.org/authors/id/D/DA/DAGOLDEN/Sub-Uplevel-0.2800.tar.gz
    Entering Sub-Uplevel-0.2800
    Running Makefile.PL
    Building and testing Sub-Uplevel-0.2800
    t/00-compile.t .. ok
    Result: PASS
    -> OK

Dependencies are built while their parent is still open, so open
distributions are kept on a stack and resumed when the inner one closes.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator

from retainreports.models import BuildEvent, Grade
from retainreports.utils import BuildLogError, StaleLogError

logger = logging.getLogger(__name__)

_HEADER = re.compile(r"^cpanm \(App::cpanminus\) (?P<version>\S+)")
_FETCHING = re.compile(r"^Fetching (?P<resource>\S+)")
_ENTERING = re.compile(r"^Entering (?P<dist>\S+)")
_CONFIGURE = re.compile(r"^Running (?:Build|Makefile)\.PL")
_BUILDING = re.compile(r"^Building (?:and testing )?(?P<dist>\S+)")
_RESULT = re.compile(r"^Result: (?P<result>PASS|FAIL|NA|UNKNOWN|NOTESTS)")
_STATUS = re.compile(r"^-> (?P<status>OK|FAIL|N/A)")
_CONFIGURE_FAIL = re.compile(
    r"^-> FAIL (?:Configure failed|Bailing out the installation) for (?P<dist>\S+?)\.?(?:\s|$)"
)

_RESULT_GRADES = {
    "PASS": Grade.PASS,
    "FAIL": Grade.FAIL,
    "NA": Grade.NA,
    "UNKNOWN": Grade.UNKNOWN,
    "NOTESTS": Grade.UNKNOWN,
}


@dataclass
class _OpenDist:
    dist: str
    resource: str | None
    recording: str | None = None
    output: list[str] = field(default_factory=list)
    grade: Grade | None = None
    found_na: bool = False


class BuildLogParser:
    """Incremental build.log parser; feed lines, collect events."""

    def __init__(self) -> None:
        self.cpanm_version: str | None = None
        self._fetched: str | None = None
        self._current: _OpenDist | None = None
        self._stack: list[_OpenDist] = []

    def feed(self, line: str) -> BuildEvent | None:
        """Consume one line; return an event when a distribution closes."""
        text = line.rstrip("\r\n")

        if self.cpanm_version is None:
            match = _HEADER.match(text)
            if match:
                self.cpanm_version = match.group("version")
                return None

        match = _FETCHING.match(text)
        if match:
            if not match.group("resource").endswith("CHECKSUMS"):
                self._fetched = match.group("resource")
            return None

        match = _ENTERING.match(text)
        if match:
            if self._current is not None:
                self._stack.append(self._current)
            self._current = _OpenDist(dist=match.group("dist"), resource=self._fetched)
            self._fetched = None
            return None

        current = self._current
        if current is None:
            return None

        if _CONFIGURE.match(text):
            current.recording = "configure"
            current.output = [line]
            return None

        match = _BUILDING.match(text)
        if match and match.group("dist") == current.dist:
            current.recording = "test"
            current.output = []
            return None

        match = _STATUS.match(text)
        if match:
            return self._on_status(current, match.group("status"), line)

        if current.recording is None:
            return None

        current.output.append(line)
        if current.recording == "test":
            match = _RESULT.match(text)
            if match:
                current.grade = _RESULT_GRADES[match.group("result")]
        return None

    def _on_status(self, current: _OpenDist, status: str, line: str) -> BuildEvent | None:
        if current.recording == "configure":
            if status == "N/A":
                current.found_na = True
                current.output.append(line)
                return None
            if status == "FAIL":
                # dependency failures are reported against the parent too;
                # under --force it still goes on to build and test
                match = _CONFIGURE_FAIL.match(line.rstrip("\r\n"))
                if match is None or match.group("dist") != current.dist:
                    return None
                grade = Grade.NA if current.found_na else None
                return self._close(current, grade)
            # configure OK
            return None

        if current.recording == "test":
            if status == "FAIL":
                grade = current.grade or Grade.FAIL
            else:
                grade = current.grade or Grade.UNKNOWN
            return self._close(current, grade)

        return None

    def _close(self, current: _OpenDist, grade: Grade | None) -> BuildEvent | None:
        self._current = self._stack.pop() if self._stack else None

        if grade is None:
            logger.debug("No result for %s", current.dist)
            return None
        if current.resource is None:
            logger.debug("No resource fetched for %s", current.dist)
            return None

        return BuildEvent(
            resource=current.resource,
            dist=current.dist,
            grade=grade.value,
            test_output=list(current.output),
            cpanm_version=self.cpanm_version,
        )

    def pending(self) -> list[str]:
        """Distributions entered but never closed."""
        open_dists = [d.dist for d in self._stack]
        if self._current is not None:
            open_dists.append(self._current.dist)
        return open_dists


def iter_events(lines: Iterable[str]) -> Iterator[BuildEvent]:
    """Yield events from build.log lines in log order."""
    parser = BuildLogParser()
    for line in lines:
        event = parser.feed(line)
        if event is not None:
            yield event
    for dist in parser.pending():
        logger.debug("Build log ended before %s finished", dist)


def read_build_log(path: str | Path) -> Iterator[BuildEvent]:
    """Yield events from a build.log file."""
    path = Path(path)
    try:
        f = open(path, "r", encoding="utf-8", errors="replace")
    except OSError as exc:
        raise BuildLogError(f"Unable to open build log {path}: {exc}") from exc
    with f:
        yield from iter_events(f)


def check_log_freshness(path: str | Path, max_age_minutes: float = 30, force: bool = False) -> None:
    """Reject a build.log older than *max_age_minutes* unless *force*."""
    path = Path(path)
    try:
        mtime = path.stat().st_mtime
    except OSError as exc:
        raise BuildLogError(f"Unable to find build log {path}: {exc}") from exc

    if force:
        return
    age_minutes = (time.time() - mtime) / 60
    if age_minutes > max_age_minutes:
        raise StaleLogError(
            f"{path} is {age_minutes:.0f} minutes old; "
            f"rerun cpanm or use --force to parse it anyway"
        )
