"""Optional hand-off of retained reports to a submission client.

Transmission to CPAN Testers is not implemented here. A reporter with
transmission enabled passes each stored record to a ``ReportSubmitter``;
the bundled :class:`DryRunSubmitter` only logs what would be sent.
"""

from __future__ import annotations

import logging
from typing import Protocol

from retainreports.models import OutcomeRecord, SubmissionOutcome

logger = logging.getLogger(__name__)


class ReportSubmitter(Protocol):
    def submit(self, record: OutcomeRecord) -> SubmissionOutcome:
        ...


class DryRunSubmitter:
    """Submitter that records requests and sends nothing."""

    def __init__(self) -> None:
        self.requests: list[OutcomeRecord] = []

    def submit(self, record: OutcomeRecord) -> SubmissionOutcome:
        self.requests.append(record)
        logger.info(
            "not sending (dry run): (%s, %s, %s)",
            record.author, record.distname, record.grade,
        )
        return SubmissionOutcome(sent=False, reason="dry run")
