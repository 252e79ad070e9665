"""Parser for xUnit/JUnit XML report files."""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Optional, Union

from .models import ParsedCase, ParsedReport, Property, ReportSummary, StatusNode

logger = logging.getLogger(__name__)

SUITES_TAG = "testsuites"
SUITE_TAG = "testsuite"
CASE_TAG = "testcase"
STATUS_TAGS = ("failure", "warning", "error", "skipped")


def get_field(element: ET.Element, key: str) -> Optional[str]:
    """Return a child element's text, falling back to the attribute of the same name.

    A child element wins over an attribute when both are present.
    """
    child = element.find(key)
    if child is not None:
        return child.text or ""
    return element.get(key)


def _parse_float(value: Optional[str]) -> float:
    try:
        return max(0.0, float(value)) if value else 0.0
    except ValueError:
        return 0.0


def _parse_int(value: Optional[str]) -> Optional[int]:
    try:
        return int(value) if value else None
    except ValueError:
        return None


class JUnitParser:
    """Reads a report into ParsedCase records, tagged with their enclosing suite name."""

    def parse_file(self, report_file: Union[str, Path]) -> ParsedReport:
        """Parse an xUnit XML report.

        Args:
            report_file: Path to the XML file

        Returns:
            ParsedReport with cases in document order

        Raises:
            OSError: if the file cannot be read
            xml.etree.ElementTree.ParseError: if the file is not well-formed XML
        """
        report = self._parse_root(ET.parse(report_file).getroot(), report_file)
        logger.debug(f"Read {len(report.cases)} test cases from {report_file}")
        return report

    def parse_string(self, xml_text: str, report_file: Union[str, Path] = "report.xml") -> ParsedReport:
        """Parse report XML held in memory; report_file anchors relative attachment paths."""
        return self._parse_root(ET.fromstring(xml_text), report_file)

    def _parse_root(self, root: ET.Element, report_file: Union[str, Path]) -> ParsedReport:
        report = ParsedReport(report_file=str(report_file))
        if root.tag == SUITES_TAG:
            report.summary = self._parse_summary(root)
            suites = root.findall(SUITE_TAG)
            if not suites:
                # Cases placed straight under <testsuites>
                suites = [root]
            for suite in suites:
                self._walk_suite(suite, "", report.cases)
        else:
            # A bare <testsuite> root is itself the outermost suite
            self._walk_suite(root, "", report.cases)
        return report

    def _parse_summary(self, root: ET.Element) -> ReportSummary:
        return ReportSummary(
            name=get_field(root, "name"),
            tests=get_field(root, "tests"),
            failures=get_field(root, "failures"),
            errors=get_field(root, "errors"),
            skipped=get_field(root, "skipped"),
            assertions=get_field(root, "assertions"),
        )

    def _walk_suite(self, suite: ET.Element, parent_name: str, cases: list[ParsedCase]):
        """Depth-first walk; the nearest named suite wins."""
        suite_name = get_field(suite, "name") or parent_name

        for child in suite.findall(SUITE_TAG):
            self._walk_suite(child, suite_name, cases)

        for testcase in suite.findall(CASE_TAG):
            cases.append(self._parse_case(testcase, suite_name))

    def _parse_case(self, testcase: ET.Element, suite_name: str) -> ParsedCase:
        case = ParsedCase(
            name=get_field(testcase, "name") or "",
            classname=get_field(testcase, "classname") or "",
            suite_name=suite_name,
            time_seconds=_parse_float(get_field(testcase, "time")),
            assertions=_parse_int(get_field(testcase, "assertions")),
            system_out=get_field(testcase, "system-out"),
            system_err=get_field(testcase, "system-err"),
        )

        for tag in STATUS_TAGS:
            node = testcase.find(tag)
            if node is not None:
                setattr(case, tag, StatusNode(
                    message=node.get("message"),
                    text=node.text if node.text and node.text.strip() else None,
                ))

        properties = testcase.find("properties")
        if properties is not None:
            for prop in properties.findall("property"):
                value = get_field(prop, "value")
                if value is None:
                    value = prop.text or ""
                case.properties.append(Property(name=get_field(prop, "name") or "", value=value))

        return case
