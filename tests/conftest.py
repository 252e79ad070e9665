"""Shared fixtures for the Spira xUnit reader tests."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from spira_xunit_reader.config import SpiraConfig
from spira_xunit_reader.spira_client import SpiraClient


SAMPLE_REPORT = """<?xml version="1.0" encoding="UTF-8"?>
<testsuites name="LIS Tests" tests="4" failures="1" errors="1" skipped="0" assertions="6">
  <testsuite name="LIS.Registration" tests="2">
    <testcase name="registration1" classname="LIS.Registration" time="1.5" assertions="3">
      <system-out>Registered user [[ATTACHMENT|shot.png]]</system-out>
    </testcase>
    <testcase name="registration2" classname="LIS.Registration" time="0.25">
      <failure message="Expected 2 but was 3">AssertionError: Expected 2 but was 3</failure>
    </testcase>
  </testsuite>
  <testsuite name="LIS.Authentication">
    <testsuite name="LIS.Authentication.Login">
      <testcase name="login1" classname="LIS.Authentication.Login" time="0.5">
        <error message="Timeout">Connection timed out</error>
      </testcase>
    </testsuite>
    <testcase name="logout1" classname="LIS.Authentication" time="0.1"/>
  </testsuite>
</testsuites>
"""


@pytest.fixture(autouse=True)
def clear_spira_env(monkeypatch):
    """Keep credentials from the developer's environment out of the tests."""
    for key in ("SPIRA_URL", "SPIRA_USERNAME", "SPIRA_TOKEN"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def config() -> SpiraConfig:
    return SpiraConfig(
        url="https://spira.example.com",
        username="fredbloggs",
        token="{token}",
        project_id=1,
        release_id=-1,
        test_set_id=-1,
        test_case_ids={
            "lis.registration.registration1": 2,
            "lis.registration.registration2": 3,
            "lis.authentication.login.login1": 4,
        },
        test_set_ids={"lis.registration": 7},
    )


@pytest.fixture
def report_file(tmp_path: Path) -> Path:
    path = tmp_path / "xunit.xml"
    path.write_text(SAMPLE_REPORT, encoding="utf-8")
    (tmp_path / "shot.png").write_bytes(b"\x89PNG")
    return path


@pytest.fixture
def mock_client() -> MagicMock:
    client = MagicMock(spec=SpiraClient)
    client.create_build.return_value = 42
    client.record_test_run.return_value = 100
    client.add_document.return_value = 200
    return client
