"""Shared test fixtures for the retain-reports test suite."""

import os

import pytest

from retainreports.models import BuildEvent


# Keep the developer's environment out of settings under test
for _var in list(os.environ):
    if _var.startswith("RETAIN_"):
        del os.environ[_var]


SUB_UPLEVEL_URI = "http://www.cpan.org/authors/id/J/KE/DAGOLDEN/Sub-Uplevel-0.2800.tar.gz"


BUILD_LOG = """\
cpanm (App::cpanminus) 1.7043 on perl 5.026000 built for x86_64-linux
Work directory is /home/tester/.cpanm/work/1500000000.4242
You have make /usr/bin/make
Searching Test::Warn on cpanmetadb ...
--> Working on Test::Warn
Fetching http://www.cpan.org/authors/id/B/BI/BIGJ/Test-Warn-0.32.tar.gz
-> OK
Unpacking Test-Warn-0.32.tar.gz
Entering Test-Warn-0.32
Checking configure dependencies from META.json
Configuring Test-Warn-0.32
Running Makefile.PL
Checking if your kit is complete...
Looks good
Writing Makefile for Test::Warn
-> OK
Checking dependencies from MYMETA.json ...
==> Found dependencies: Sub::Uplevel
Searching Sub::Uplevel on cpanmetadb ...
--> Working on Sub::Uplevel
Fetching http://www.cpan.org/authors/id/J/KE/DAGOLDEN/Sub-Uplevel-0.2800.tar.gz
-> OK
Unpacking Sub-Uplevel-0.2800.tar.gz
Entering Sub-Uplevel-0.2800
Configuring Sub-Uplevel-0.2800
Running Makefile.PL
Writing Makefile for Sub::Uplevel
-> OK
Building and testing Sub-Uplevel-0.2800
t/00-load.t .. ok
All tests successful.
Result: PASS
-> OK
Successfully installed Sub-Uplevel-0.2800
Building and testing Test-Warn-0.32
t/1.t .. ok
t/2.t .. FAIL
Result: FAIL
-> FAIL Installing Test-Warn-0.32 failed. See /home/tester/.cpanm/work/1500000000.4242/build.log for details.
--> Working on Local::Thing
Fetching http://www.cpan.org/authors/id/A/AB/ABC/Local-Thing-1.00.tar.gz
-> OK
Entering Local-Thing-1.00
Running Makefile.PL
-> OK
Building and testing Local-Thing-1.00
Result: PASS
-> OK
--> Working on Win32::Only
Fetching http://www.cpan.org/authors/id/X/XY/XYZZY/Win32-Only-0.01.tar.gz
-> OK
Entering Win32-Only-0.01
Running Makefile.PL
OS unsupported
-> N/A
-> FAIL Configure failed for Win32-Only-0.01. See /home/tester/.cpanm/work/1500000000.4242/build.log for details.
2 distributions installed
"""


@pytest.fixture
def build_log(tmp_path):
    """A cpanm build.log on disk with four distributions."""
    path = tmp_path / "build.log"
    path.write_text(BUILD_LOG)
    return path


@pytest.fixture
def report_dir(tmp_path):
    path = tmp_path / "reports"
    path.mkdir()
    return path


@pytest.fixture
def pass_event():
    return BuildEvent(
        resource=SUB_UPLEVEL_URI,
        dist="Sub-Uplevel",
        grade="PASS",
        test_output=["t/00-load.t .. ok\n"],
        cpanm_version="1.7043",
    )
