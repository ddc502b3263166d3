"""End-to-end tests for RetainReporter."""

import logging
import stat
from unittest.mock import MagicMock

import pytest

from retainreports.models import BuildEvent, SubmissionOutcome
from retainreports.reporter import RetainReporter
from retainreports.settings import RetainSettings
from retainreports.store import load_report
from retainreports.submission import DryRunSubmitter
from retainreports.utils import MissingDirectoryError

from tests.conftest import SUB_UPLEVEL_URI


@pytest.fixture
def settings(tmp_path, report_dir):
    return RetainSettings(report_dir=report_dir, build_dir=tmp_path / "cpanm")


class TestReportDir:
    def test_set_report_dir_creates(self, tmp_path):
        target = tmp_path / "results" / "perl-5.27.0"
        reporter = RetainReporter(RetainSettings(build_dir=tmp_path))
        assert reporter.get_report_dir() is None

        assert reporter.set_report_dir(target) == target
        assert target.is_dir()
        assert stat.S_IMODE(target.stat().st_mode) & 0o700 == 0o700
        assert reporter.get_report_dir() == target

    def test_existing_dir_reused(self, settings, report_dir):
        reporter = RetainReporter(settings)
        assert reporter.get_report_dir() == report_dir


class TestMakeReport:
    def test_scenario_pass(self, settings, report_dir, pass_event):
        path = RetainReporter(settings).make_report(pass_event)

        assert path == report_dir / "DAGOLDEN.Sub-Uplevel.log.json"
        data = load_report(path)
        assert data["author"] == "DAGOLDEN"
        assert data["dist"] == "Sub-Uplevel"
        assert data["distversion"] == "0.2800"
        assert data["grade"] == "PASS"
        assert data["distname"] == "Sub-Uplevel"

    def test_scenario_fail(self, settings):
        event = BuildEvent(
            resource=SUB_UPLEVEL_URI,
            dist="Sub-Uplevel",
            grade="FAIL",
            test_output=["t/00-load.t .. FAIL\n"],
        )
        data = load_report(RetainReporter(settings).make_report(event))
        assert data["grade"] == "FAIL"
        assert data["test_output"] == "t/00-load.t .. FAIL\n"

    def test_scenario_reserved_namespace(self, settings, report_dir, caplog):
        event = BuildEvent(resource=SUB_UPLEVEL_URI, dist="Local-Foo", grade="PASS")
        reporter = RetainReporter(settings)

        with caplog.at_level(logging.WARNING):
            assert reporter.make_report(event) is None

        assert list(report_dir.iterdir()) == []
        assert SUB_UPLEVEL_URI in caplog.text
        assert "Skipping" in caplog.text
        assert reporter.summary.skipped == [SUB_UPLEVEL_URI]

    def test_quiet_suppresses_skip_diagnostic(self, tmp_path, report_dir, caplog):
        reporter = RetainReporter(
            RetainSettings(report_dir=report_dir, build_dir=tmp_path, quiet=True)
        )
        event = BuildEvent(resource="gopher://x/Foo-1.0.tar.gz", dist="Foo-1.0", grade="PASS")

        with caplog.at_level(logging.WARNING):
            assert reporter.make_report(event) is None
        assert caplog.text == ""

    def test_invalid_grade_skipped_and_run_continues(self, settings, report_dir, caplog):
        events = [
            BuildEvent(resource=SUB_UPLEVEL_URI, dist="Sub-Uplevel-0.2800", grade="NOTESTS"),
            BuildEvent(resource=SUB_UPLEVEL_URI, dist="Sub-Uplevel", grade="PASS"),
        ]
        reporter = RetainReporter(settings)

        with caplog.at_level(logging.WARNING):
            summary = reporter.process(events)

        assert [p.name for p in report_dir.iterdir()] == ["DAGOLDEN.Sub-Uplevel.log.json"]
        assert summary.skipped == [SUB_UPLEVEL_URI]
        assert "NOTESTS" in caplog.text

    def test_label_escaping_report_dir_skipped(self, settings, tmp_path, report_dir):
        event = BuildEvent(resource=SUB_UPLEVEL_URI, dist="../escaped", grade="PASS")
        assert RetainReporter(settings).make_report(event) is None
        assert list(report_dir.iterdir()) == []
        assert not list(tmp_path.glob("*escaped*"))

    def test_scenario_missing_directory(self, settings, report_dir, pass_event):
        reporter = RetainReporter(settings)
        report_dir.rmdir()
        with pytest.raises(MissingDirectoryError):
            reporter.make_report(pass_event)

    def test_no_report_dir_configured(self, tmp_path, pass_event):
        reporter = RetainReporter(RetainSettings(build_dir=tmp_path))
        with pytest.raises(MissingDirectoryError):
            reporter.make_report(pass_event)

    def test_prereqs_from_build_dir(self, settings, pass_event):
        meta_dir = settings.build_dir / "latest-build" / "Sub-Uplevel"
        meta_dir.mkdir(parents=True)
        (meta_dir / "META.json").write_text(
            '{"meta-spec": {"version": 2}, "prereqs": {"runtime": {"requires": {"Carp": "0"}}}}'
        )
        data = load_report(RetainReporter(settings).make_report(pass_event))
        assert data["prereqs"] == {"runtime": {"requires": {"Carp": "0"}}}

    def test_round_trip_matches_inputs(self, settings, pass_event):
        reporter = RetainReporter(settings)
        data = load_report(reporter.make_report(pass_event))
        assert data["test_output"] == "".join(pass_event.test_output)
        assert data["via"].endswith("(1.7043)")


class TestTransmission:
    def test_not_submitted_by_default(self, settings, pass_event):
        submitter = MagicMock()
        RetainReporter(settings, submitter=submitter).make_report(pass_event)
        submitter.submit.assert_not_called()

    def test_transmit_report_enables_submission(self, settings, pass_event):
        submitter = DryRunSubmitter()
        reporter = RetainReporter(settings, submitter=submitter).transmit_report()
        reporter.make_report(pass_event)

        assert [r.distname for r in submitter.requests] == ["Sub-Uplevel"]
        assert reporter.summary.submitted == 0

    def test_sent_submissions_counted(self, tmp_path, report_dir, pass_event):
        submitter = MagicMock()
        submitter.submit.return_value = SubmissionOutcome(sent=True)
        settings = RetainSettings(report_dir=report_dir, build_dir=tmp_path, transmit=True)
        reporter = RetainReporter(settings, submitter=submitter)

        reporter.make_report(pass_event)
        assert reporter.summary.submitted == 1

    def test_skipped_event_not_submitted(self, settings):
        submitter = MagicMock()
        reporter = RetainReporter(settings, submitter=submitter).transmit_report()
        reporter.make_report(BuildEvent(resource=SUB_UPLEVEL_URI, dist="Local-Foo", grade="PASS"))
        submitter.submit.assert_not_called()


class TestRun:
    def test_run_over_build_log(self, tmp_path, report_dir, build_log):
        settings = RetainSettings(
            report_dir=report_dir,
            build_dir=tmp_path,
            build_logfile=build_log,
        )
        summary = RetainReporter(settings).run()

        assert sorted(p.name for p in report_dir.iterdir()) == [
            "BIGJ.Test-Warn-0.32.log.json",
            "DAGOLDEN.Sub-Uplevel-0.2800.log.json",
            "XYZZY.Win32-Only-0.01.log.json",
        ]
        assert len(summary.written) == 3
        assert len(summary.skipped) == 1

        data = load_report(report_dir / "DAGOLDEN.Sub-Uplevel-0.2800.log.json")
        assert data["distname"] == "Sub-Uplevel-0.2800"
        assert data["dist"] == "Sub-Uplevel"
        assert data["via"].endswith("(1.7043)")

    def test_rerun_overwrites(self, tmp_path, report_dir, build_log):
        settings = RetainSettings(report_dir=report_dir, build_dir=tmp_path)
        RetainReporter(settings).run(build_log)
        RetainReporter(settings).run(build_log)
        assert len(list(report_dir.iterdir())) == 3

    def test_store_failure_stops_run(self, tmp_path, report_dir):
        events = [
            BuildEvent(resource=SUB_UPLEVEL_URI, dist="Sub-Uplevel", grade="PASS"),
            BuildEvent(resource=SUB_UPLEVEL_URI, dist="Sub-Uplevel-2", grade="PASS"),
        ]
        reporter = RetainReporter(RetainSettings(report_dir=report_dir, build_dir=tmp_path))
        report_dir.rmdir()

        consumed = []

        def stream():
            for event in events:
                consumed.append(event)
                yield event

        with pytest.raises(MissingDirectoryError):
            reporter.process(stream())
        assert consumed == events[:1]
