#!/usr/bin/env python3
"""CLI for sending xUnit test results to Spira."""

import argparse
import json
import logging
import sys
import xml.etree.ElementTree as ET
from dataclasses import asdict

from spira_xunit_reader.config import DEFAULT_CONFIG_FILE, load_config
from spira_xunit_reader.junit_parser import JUnitParser
from spira_xunit_reader.models import ExecutionStatus
from spira_xunit_reader.result_extractor import ResultExtractor
from spira_xunit_reader.submitter import ResultSubmitter

DEFAULT_REPORT_FILE = "xunit.xml"


def setup_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(levelname)s: %(message)s'
    )


def _print_summary(results: list):
    """Print human-readable summary of the results that would be sent."""
    print(f"\n{'='*60}")
    print(f"Test results matched to Spira: {len(results)}")
    for r in results:
        status = ExecutionStatus(r.execution_status_id).name
        print(f"  TC:{r.test_case_id:<8} {status:<15} {r.name[:60]}")
        for a in r.attachments:
            print(f"      attachment: {a.filename}")
        for link in r.links:
            print(f"      link: {link.url}")
    print(f"{'='*60}\n")


def _print_json(results: list):
    output = []
    for r in results:
        data = asdict(r)
        # Binary payloads are not useful on the console
        data["attachments"] = [a.filename for a in r.attachments]
        output.append(data)
    print(json.dumps(output, indent=2, default=str))


def run(args) -> int:
    config = load_config(args.config_file)
    report = JUnitParser().parse_file(args.report_file)
    results = ResultExtractor(config).extract(report)

    if args.dry_run:
        if args.format == 'json':
            _print_json(results)
        else:
            _print_summary(results)
        return 0

    ResultSubmitter(config).submit(results, report.summary)
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(description='Send xUnit test results to Spira')
    parser.add_argument('report_file', nargs='?', default=DEFAULT_REPORT_FILE,
                        help=f'xUnit XML report (default: {DEFAULT_REPORT_FILE})')
    parser.add_argument('config_file', nargs='?', default=DEFAULT_CONFIG_FILE,
                        help=f'Spira config file (default: {DEFAULT_CONFIG_FILE})')
    parser.add_argument('-v', '--verbose', action='store_true')
    parser.add_argument('--dry-run', action='store_true',
                        help='Parse and map results without sending them to Spira')
    parser.add_argument('--format', '-f', choices=['text', 'json'], default='text',
                        help='Output format for --dry-run')

    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        return run(args)
    except (OSError, ET.ParseError) as e:
        print(f"Error parsing results: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
