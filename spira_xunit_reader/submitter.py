"""Sends extracted test results to Spira, optionally grouped under a new build."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from .config import SpiraConfig
from .models import BuildStatus, ExecutionStatus, ReportSummary, TestResult
from .spira_client import RUNNER_NAME, SpiraClient

logger = logging.getLogger(__name__)


def build_status_for(results: list[TestResult]) -> BuildStatus:
    """A build fails if any result failed."""
    for result in results:
        if result.execution_status_id == ExecutionStatus.FAILED:
            return BuildStatus.FAILED
    return BuildStatus.PASSED


def describe_build(summary: ReportSummary, now: Optional[datetime] = None) -> tuple[str, str]:
    """Compose the build name and description from the report totals."""
    now = now or datetime.now(timezone.utc)
    stamp = now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    name = f"{summary.name or RUNNER_NAME} Build {stamp}"

    description = ""
    for label, value in (("Tests", summary.tests), ("Failures", summary.failures),
                         ("Errors", summary.errors), ("Skipped", summary.skipped),
                         ("Assertions", summary.assertions)):
        if value:
            description += f"# {label}: {value}\n"
    return name, description


class ResultSubmitter:
    """Records each result as a Spira test run, one call at a time."""

    def __init__(self, config: SpiraConfig, client: Optional[SpiraClient] = None):
        self.config = config
        self._client = client

    @property
    def client(self) -> SpiraClient:
        if self._client is None:
            self._client = SpiraClient(self.config.url, self.config.username,
                                       self.config.token, self.config.project_id)
        return self._client

    def submit(self, results: list[TestResult], summary: Optional[ReportSummary] = None) -> int:
        """Send all results to Spira.

        Returns:
            Number of test runs successfully recorded
        """
        if not self.config.url:
            logger.warning("Unable to report test results back to Spira since URL in "
                           "configuration is empty")
            return 0

        success_count = 0
        try:
            build_id = -1
            if self.config.create_build:
                build_id = self.create_build(results, summary or ReportSummary())

            logger.info(f"Sending test results to Spira at URL '{self.config.url}'.")
            for result in results:
                if self.send_result(result, datetime.now(timezone.utc), build_id):
                    success_count += 1
            logger.info(f"Successfully reported {success_count} test cases to Spira.")
        except Exception as e:
            logger.error(f"Unable to report test cases to Spira due to error '{e}'.")
        return success_count

    def create_build(self, results: list[TestResult], summary: ReportSummary) -> int:
        logger.info(f"Creating new build in Spira at URL '{self.config.url}'.")
        name, description = describe_build(summary)
        build_id = self.client.create_build(
            self.config.release_id, int(build_status_for(results)), name, description)
        if build_id != -1:
            logger.info(f"Created build BL:{build_id}")
        return build_id

    def send_result(self, result: TestResult, now: datetime, build_id: int = -1) -> bool:
        """Record one result and its attachments; returns True if the test run was created."""
        try:
            # Suite-specific test set, otherwise the global default
            test_set_id = result.test_set_id if result.test_set_id > 0 else self.config.test_set_id

            test_run_id = self.client.record_test_run(
                test_case_id=result.test_case_id,
                test_name=result.name,
                execution_status_id=result.execution_status_id,
                start_time=now - timedelta(seconds=result.duration_seconds),
                end_time=now,
                message=result.message,
                stack_trace=result.details,
                assert_count=result.assert_count,
                release_id=self.config.release_id,
                test_set_id=test_set_id,
                build_id=build_id,
            )
            if test_run_id < 1:
                return False

            logger.debug(f"Recorded '{result.name}' as TR:{test_run_id}")
            for attachment in result.attachments:
                self.client.add_document(test_run_id, attachment.filename, attachment.binary_data)
            for link in result.links:
                self.client.add_document(test_run_id, link.url)
            return True
        except Exception as e:
            logger.error(f"Unable to report test case '{result.name}' to Spira due to error '{e}'.")
            return False
