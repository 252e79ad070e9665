"""End-to-end tests for the command line entry point."""

import json
from pathlib import Path
from unittest.mock import patch

import cli

CONFIG = """
[credentials]
url = {url}
username = fredbloggs
token = secret
project_id = 1
create_build = false

[test_cases]
Calc.add = 5
"""

REPORT = """<testsuites>
  <testsuite name="Calc">
    <testcase name="add" classname="Calc" time="0.1"/>
    <testcase name="sub" classname="Calc" time="0.1"/>
  </testsuite>
</testsuites>
"""


def write_inputs(tmp_path: Path, url: str = "https://spira.example.com"):
    report = tmp_path / "xunit.xml"
    report.write_text(REPORT, encoding="utf-8")
    config = tmp_path / "spira.cfg"
    config.write_text(CONFIG.format(url=url), encoding="utf-8")
    return report, config


class TestMain:
    """Tests for cli.main."""

    def test_one_passing_case_records_one_run(self, tmp_path: Path, mock_client) -> None:
        report, config = write_inputs(tmp_path)

        with patch("spira_xunit_reader.submitter.SpiraClient", return_value=mock_client):
            assert cli.main([str(report), str(config)]) == 0

        mock_client.create_build.assert_not_called()
        mock_client.record_test_run.assert_called_once()
        kwargs = mock_client.record_test_run.call_args.kwargs
        assert kwargs["test_case_id"] == 5
        assert kwargs["execution_status_id"] == 2

    def test_empty_url_sends_nothing(self, tmp_path: Path) -> None:
        report, config = write_inputs(tmp_path, url="")

        with patch("spira_xunit_reader.submitter.SpiraClient") as client_cls:
            assert cli.main([str(report), str(config)]) == 0

        client_cls.assert_not_called()

    def test_missing_report_exits_1(self, tmp_path: Path, capsys) -> None:
        _, config = write_inputs(tmp_path)

        assert cli.main([str(tmp_path / "missing.xml"), str(config)]) == 1
        assert "Error" in capsys.readouterr().err

    def test_malformed_report_exits_1(self, tmp_path: Path, capsys) -> None:
        report, config = write_inputs(tmp_path)
        report.write_text("<testsuites>", encoding="utf-8")

        assert cli.main([str(report), str(config)]) == 1
        assert "Error" in capsys.readouterr().err

    def test_dry_run_json(self, tmp_path: Path, capsys) -> None:
        report, config = write_inputs(tmp_path)

        with patch("spira_xunit_reader.submitter.SpiraClient") as client_cls:
            assert cli.main([str(report), str(config), "--dry-run", "--format", "json"]) == 0

        client_cls.assert_not_called()
        output = json.loads(capsys.readouterr().out)
        assert [r["test_case_id"] for r in output] == [5]
        assert output[0]["name"] == "Calc.add"

    def test_dry_run_text(self, tmp_path: Path, capsys) -> None:
        report, config = write_inputs(tmp_path)

        assert cli.main([str(report), str(config), "--dry-run"]) == 0
        assert "TC:5" in capsys.readouterr().out
