"""
Utility functions for retain-reports

Provides logging setup and the exception hierarchy shared by all modules
"""

import logging
from pathlib import Path
from typing import Optional


# ═══════════════════════════════════════════════════════════════════
# LOGGING
# ═══════════════════════════════════════════════════════════════════

def setup_logging(log_level: str = "INFO", log_file: Optional[str | Path] = None) -> None:
    """Configure logging for retain-reports"""
    level = getattr(logging, log_level.upper())

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path))

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
        force=True,
    )


def get_logger(name: str) -> logging.Logger:
    """Get logger instance for module"""
    return logging.getLogger(name)


# ═══════════════════════════════════════════════════════════════════
# EXCEPTIONS
# ═══════════════════════════════════════════════════════════════════

class RetainReportsError(Exception):
    """Base exception for retain-reports"""
    pass


class SkipEventError(RetainReportsError):
    """A distribution event that cannot produce a report.

    Raised while parsing or assembling; the reporter logs it and moves on
    to the next event.
    """

    def __init__(self, message: str, resource: str = "") -> None:
        super().__init__(message)
        self.resource = resource


class UnsupportedSchemeError(SkipEventError):
    """Locator scheme outside http, https, ftp, cpan, file"""
    pass


class AuthorResolutionError(SkipEventError):
    """No author could be derived from the locator path"""
    pass


class ReservedAuthorError(SkipEventError):
    """Locator resolved to the reserved LOCAL author"""
    pass


class ReservedNamespaceError(SkipEventError):
    """Distribution label lives under the reserved Local- namespace"""
    pass


class InvalidGradeError(SkipEventError):
    """Grade outside PASS, FAIL, NA, UNKNOWN"""
    pass


class InvalidLabelError(SkipEventError):
    """Distribution label cannot be used as a report file name"""
    pass


class StoreError(RetainReportsError):
    """Fatal report storage error; aborts the run"""
    pass


class MissingDirectoryError(StoreError):
    """Report directory does not exist"""
    pass


class WriteFailureError(StoreError):
    """Report file could not be opened, written or closed"""
    pass


class BuildLogError(RetainReportsError):
    """Build log missing or unusable"""
    pass


class StaleLogError(BuildLogError):
    """Build log is older than the configured maximum age"""
    pass
