"""Turns parsed test cases into results that can be recorded in Spira."""

import base64
import logging
import re
from pathlib import Path
from typing import Optional, Union

from .config import SpiraConfig
from .models import (
    Attachment,
    ExecutionStatus,
    Link,
    ParsedCase,
    ParsedReport,
    StatusNode,
    TestResult,
)

logger = logging.getLogger(__name__)

# Matches [[ATTACHMENT|path/to/file.png]] inside captured output
ATTACHMENT_PATTERN = re.compile(r'\[\[ATTACHMENT\|([a-zA-Z0-9_/\\.]+)\]\]')
ATTACHMENT_PROPERTY_PREFIX = "attachment"
NO_DETAILS = "Nothing Reported"

# Checked in this order; the first status node present decides the result
STATUS_RULES = (
    ("failure", ExecutionStatus.FAILED, "Test Failed"),
    ("warning", ExecutionStatus.CAUTION, "Test Warning"),
    ("error", ExecutionStatus.BLOCKED, "Test Error"),
    ("skipped", ExecutionStatus.NOT_APPLICABLE, "Test Skipped"),
)


def read_attachment_file(report_file: Union[str, Path], filepath: str) -> Optional[Attachment]:
    """Read a file relative to the report's folder and base64-encode it.

    Returns None (and logs) if the file cannot be read.
    """
    full_path = Path(report_file).parent / filepath
    try:
        data = full_path.read_bytes()
    except OSError as e:
        logger.warning(f"Unable to read attachment file '{filepath}' due to error '{e}', "
                       f"so skipping attachment.")
        return None
    return Attachment(filename=filepath, binary_data=base64.b64encode(data).decode("ascii"))


class ResultExtractor:
    """Maps ParsedCase records onto Spira test cases and test sets."""

    def __init__(self, config: SpiraConfig):
        self.config = config

    def extract(self, report: ParsedReport) -> list[TestResult]:
        """Build results for every case in the report that maps to a Spira test case."""
        results = []
        for case in report.cases:
            result = self.extract_case(case, report.report_file)
            if result:
                results.append(result)
        logger.info(f"Matched {len(results)} of {len(report.cases)} test cases to Spira test cases")
        return results

    def extract_case(self, case: ParsedCase, report_file: Union[str, Path]) -> Optional[TestResult]:
        full_name = case.full_name

        # 0 is not a valid Spira id, so it is treated as unmapped
        test_case_id = self.config.get_test_case_id(full_name)
        if not test_case_id:
            logger.warning(f"Unable to find Spira id tag for test case '{full_name}', "
                           f"so skipping this test case.")
            return None

        test_set_id = self.config.get_test_set_id(case.suite_name) or -1

        result = TestResult(
            test_case_id=test_case_id,
            name=full_name,
            details=NO_DETAILS,
            duration_seconds=case.time_seconds,
            test_set_id=test_set_id,
        )

        for tag, status, fallback_message in STATUS_RULES:
            node: Optional[StatusNode] = getattr(case, tag)
            if node is None:
                continue
            result.execution_status_id = status
            result.message = node.message or fallback_message
            result.details = node.text or node.message or ""
            result.assert_count = 1
            break

        if case.assertions is not None:
            result.assert_count = case.assertions

        details = [result.details.rstrip("\n")] if result.details else []

        if case.system_out:
            details.append(f"System Out: {case.system_out}")
            self._extract_attachments(case.system_out, report_file, result.attachments)

        if case.system_err:
            details.append(f"System Err: {case.system_err}")
            self._extract_attachments(case.system_err, report_file, result.attachments)

        for prop in case.properties:
            details.append(f"- {prop.name}={prop.value}")
            if prop.name.startswith(ATTACHMENT_PROPERTY_PREFIX):
                if prop.value.startswith("http"):
                    result.links.append(Link(url=prop.value))
                else:
                    attachment = read_attachment_file(report_file, prop.value)
                    if attachment:
                        result.attachments.append(attachment)
            else:
                self._extract_attachments(prop.value, report_file, result.attachments)

        result.details = "".join(f"{line}\n" for line in details)
        logger.debug(f"Test case '{full_name}' -> TC:{test_case_id} "
                     f"status={result.execution_status_id} test_set={test_set_id}")
        return result

    def _extract_attachments(self, text: str, report_file: Union[str, Path],
                             attachments: list[Attachment]):
        for match in ATTACHMENT_PATTERN.finditer(text):
            attachment = read_attachment_file(report_file, match.group(1))
            if attachment:
                attachments.append(attachment)
