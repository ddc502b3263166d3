"""
Test suite for retain-reports

- Unit tests for archive name and locator parsing
- Record assembly and report storage
- cpanm build.log reading
- End-to-end reporter runs and the CLI
"""
