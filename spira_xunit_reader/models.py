"""
Data models for xUnit results and their Spira representation.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional


class ExecutionStatus(IntEnum):
    """Spira execution status of a test run."""
    FAILED = 1
    PASSED = 2
    NOT_APPLICABLE = 4
    BLOCKED = 5
    CAUTION = 6


class BuildStatus(IntEnum):
    """Spira status of a build."""
    FAILED = 1
    PASSED = 2


@dataclass
class StatusNode:
    """A failure/warning/error/skipped child of a test case."""
    message: Optional[str] = None
    text: Optional[str] = None


@dataclass
class Property:
    """A <property name=... value=...> entry of a test case."""
    name: str
    value: str = ""


@dataclass
class ParsedCase:
    """Represents a single <testcase> element as read from the report."""
    name: str
    classname: str
    suite_name: str = ""
    time_seconds: float = 0.0
    assertions: Optional[int] = None
    failure: Optional[StatusNode] = None
    warning: Optional[StatusNode] = None
    error: Optional[StatusNode] = None
    skipped: Optional[StatusNode] = None
    system_out: Optional[str] = None
    system_err: Optional[str] = None
    properties: list[Property] = field(default_factory=list)

    @property
    def full_name(self) -> str:
        return f"{self.classname}.{self.name}"


@dataclass
class Attachment:
    """A file attachment, read into memory as base64."""
    filename: str
    binary_data: str


@dataclass
class Link:
    """A URL attachment."""
    url: str


@dataclass
class TestResult:
    """A test case result ready to be sent to Spira."""
    __test__ = False

    test_case_id: int
    name: str
    execution_status_id: int = ExecutionStatus.PASSED
    message: str = "Success"
    details: str = ""
    duration_seconds: float = 0.0
    assert_count: int = 0
    test_set_id: int = -1
    attachments: list[Attachment] = field(default_factory=list)
    links: list[Link] = field(default_factory=list)


@dataclass
class ReportSummary:
    """Totals from the root <testsuites> element, used to describe a build."""
    name: Optional[str] = None
    tests: Optional[str] = None
    failures: Optional[str] = None
    errors: Optional[str] = None
    skipped: Optional[str] = None
    assertions: Optional[str] = None


@dataclass
class ParsedReport:
    """Everything read from one xUnit report file."""
    report_file: str
    cases: list[ParsedCase] = field(default_factory=list)
    summary: ReportSummary = field(default_factory=ReportSummary)
