"""
retain-reports
Parse cpanm build logs and retain per-distribution test reports on disk.
"""

__version__ = "0.10.0"

from retainreports.assembler import assemble
from retainreports.models import BuildEvent, OutcomeRecord, ResourceIdentifier
from retainreports.reporter import RetainReporter
from retainreports.store import ReportStore
from retainreports.uri import parse_uri

__all__ = [
    "assemble",
    "parse_uri",
    "BuildEvent",
    "OutcomeRecord",
    "ResourceIdentifier",
    "ReportStore",
    "RetainReporter",
]
