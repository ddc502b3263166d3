"""Run orchestration: build.log events in, retained report files out."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from retainreports.assembler import assemble
from retainreports.buildlog import check_log_freshness, read_build_log
from retainreports.metadata import BuildDirMetadata, MetadataLookup
from retainreports.models import BuildEvent
from retainreports.settings import RetainSettings, get_settings
from retainreports.store import ReportStore
from retainreports.submission import DryRunSubmitter, ReportSubmitter
from retainreports.uri import AuthorResolver, get_author_resolver
from retainreports.utils import MissingDirectoryError, SkipEventError

logger = logging.getLogger(__name__)

REPORT_DIR_MODE = 0o711


@dataclass
class RunSummary:
    written: list[Path] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    submitted: int = 0


class RetainReporter:
    """Parse a cpanm build.log and retain one JSON report per distribution.

    Skipped events (bad scheme, unknown or reserved author, ``Local-``
    label) are logged unless ``quiet`` and the run continues. Storage
    errors propagate and end the run.
    """

    def __init__(
        self,
        settings: RetainSettings | None = None,
        *,
        resolver: AuthorResolver | None = None,
        metadata_lookup: MetadataLookup | None = None,
        submitter: ReportSubmitter | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.quiet = self.settings.quiet
        self.verbose = self.settings.verbose
        self.resolver = resolver or get_author_resolver()
        self.metadata_lookup = metadata_lookup or BuildDirMetadata(self.settings.build_dir)
        self.submitter = submitter or DryRunSubmitter()
        self._transmit = self.settings.transmit
        self._report_dir: Path | None = None
        self.summary = RunSummary()

        if self.settings.report_dir is not None:
            self.set_report_dir(self.settings.report_dir)

    # -- Report directory -----------------------------------------------------

    def set_report_dir(self, path: str | Path) -> Path:
        """Use *path* for reports, creating it (mode 0711) if needed."""
        path = Path(path)
        if not path.is_dir():
            try:
                path.mkdir(mode=REPORT_DIR_MODE, parents=True, exist_ok=True)
            except OSError as exc:
                raise MissingDirectoryError(f"Unable to create {path}: {exc}") from exc
            logger.info("Created report directory %s", path)
        self._report_dir = path
        return path

    def get_report_dir(self) -> Path | None:
        return self._report_dir

    def transmit_report(self) -> "RetainReporter":
        """Also hand each stored report to the submitter."""
        self._transmit = True
        return self

    # -- Per-event processing -------------------------------------------------

    def make_report(self, event: BuildEvent) -> Path | None:
        """Assemble and store the report for one event.

        Returns the written path, or None if the event was skipped.
        """
        try:
            record = assemble(
                event.resource,
                event.dist,
                event.grade,
                event.test_output,
                cpanm_version=event.cpanm_version,
                resolver=self.resolver,
                metadata_lookup=self.metadata_lookup,
            )
        except SkipEventError as exc:
            if not self.quiet:
                logger.warning("%s. Skipping...", exc)
            self.summary.skipped.append(exc.resource or event.resource)
            return None

        if self._report_dir is None:
            raise MissingDirectoryError("No report directory set; call set_report_dir() first")

        path = ReportStore(self._report_dir).persist(record)
        self.summary.written.append(path)
        if self.verbose:
            logger.info("Retained %s (%s) in %s", event.dist, record.grade, path)

        if self._transmit:
            if not self.quiet:
                logger.info(
                    "sending: (%s, %s, %s, %s)",
                    event.resource, record.author, event.dist, record.grade,
                )
            outcome = self.submitter.submit(record)
            if outcome.sent:
                self.summary.submitted += 1
        return path

    def process(self, events: Iterable[BuildEvent]) -> RunSummary:
        """Handle *events* in order; a storage error stops at that event."""
        for event in events:
            self.make_report(event)
        return self.summary

    def run(self, log_path: str | Path | None = None) -> RunSummary:
        """Parse the build.log and retain a report per distribution."""
        log_path = Path(log_path) if log_path else self.settings.log_path
        check_log_freshness(
            log_path,
            max_age_minutes=self.settings.max_log_age_minutes,
            force=self.settings.force,
        )
        logger.info("Parsing %s", log_path)
        summary = self.process(read_build_log(log_path))
        logger.info(
            "Retained %d report(s), skipped %d",
            len(summary.written), len(summary.skipped),
        )
        return summary
