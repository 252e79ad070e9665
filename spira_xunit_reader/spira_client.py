"""Spira REST client for recording builds, test runs and documents."""

import logging
from datetime import datetime
from typing import Optional

import requests

logger = logging.getLogger(__name__)

RUNNER_NAME = "xUnit (Python)"
REST_SERVICE_URL = "/Services/v6_0/RestService.svc/"

POST_BUILD = "projects/{project_id}/releases/{release_id}/builds"
POST_TEST_RUN = "projects/{project_id}/test-runs/record"
POST_DOCUMENT_FILE = "projects/{project_id}/documents/file"
POST_DOCUMENT_URL = "projects/{project_id}/documents/url"

TEST_RUN_FORMAT_PLAIN_TEXT = 1
ATTACHMENT_TYPE_FILE = 1
ATTACHMENT_TYPE_URL = 2
ARTIFACT_TYPE_TEST_RUN = 5
DOCUMENT_VERSION = "1.0"

REQUEST_TIMEOUT = 30


def format_timestamp(moment: datetime) -> str:
    """Format a UTC datetime as ISO-8601 without fractional seconds, e.g. 2024-01-31T10:00:00Z."""
    return moment.strftime("%Y-%m-%dT%H:%M:%SZ")


def _is_not_found(error: requests.RequestException) -> bool:
    return error.response is not None and error.response.status_code == 404


def _get_id(payload: dict, key: str, default: Optional[int] = -1) -> Optional[int]:
    """Read an id from a response, treating a missing or null value as default."""
    value = payload.get(key)
    return default if value is None else value


class SpiraClient:
    """Client for the Spira v6.0 REST API.

    Every call passes the username and API key as query parameters. HTTP
    failures are logged and reported through the return value, never raised.
    """

    def __init__(self, url: str, username: str, token: str, project_id: int):
        self.base_url = url.rstrip("/") + REST_SERVICE_URL
        self.project_id = project_id
        self.session = requests.Session()
        self.session.params = {"username": username, "api-key": token}
        self.session.headers.update({
            "accept": "application/json",
            "Content-Type": "application/json",
            "User-Agent": RUNNER_NAME,
        })

    def _post(self, path: str, body: dict) -> dict:
        response = self.session.post(self.base_url + path, json=body, timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            logger.warning(f"Unexpected response from {path}: {payload!r}")
            return {}
        return payload

    def create_build(self, release_id: int, build_status_id: int, name: str,
                     description: str = "") -> int:
        """Create a build under a release.

        Returns:
            The new build id, or -1 if the build could not be created
        """
        body = {
            "ProjectId": self.project_id,
            "BuildStatusId": build_status_id,
            "ReleaseId": release_id,
            "Name": name,
            "Description": description,
        }
        path = POST_BUILD.format(project_id=self.project_id, release_id=release_id)
        try:
            return _get_id(self._post(path, body), "BuildId")
        except requests.RequestException as e:
            if _is_not_found(e):
                logger.error(f"Unable to find a matching Spira release of id RL:{release_id}, "
                             f"so not able to create build")
            else:
                logger.error(f"Unable to create build due to HTTP error: {e}")
            return -1

    def record_test_run(self, test_case_id: int, test_name: str, execution_status_id: int,
                        start_time: datetime, end_time: datetime, message: str = "",
                        stack_trace: str = "", assert_count: int = 0, release_id: int = -1,
                        test_set_id: int = -1, build_id: int = -1) -> int:
        """Record an automated test run against a test case.

        Release and test set are only sent when set; the build is only sent
        together with a release.

        Returns:
            The new test run id, or -1 if the run could not be recorded
        """
        body = {
            "TestRunFormatId": TEST_RUN_FORMAT_PLAIN_TEXT,
            "StartDate": format_timestamp(start_time),
            "EndDate": format_timestamp(end_time),
            "RunnerName": RUNNER_NAME,
            "RunnerTestName": test_name,
            "RunnerMessage": message,
            "RunnerStackTrace": stack_trace,
            "RunnerAssertCount": assert_count,
            "TestCaseId": test_case_id,
            "ExecutionStatusId": int(execution_status_id),
        }
        if release_id != -1:
            body["ReleaseId"] = release_id
            if build_id != -1:
                body["BuildId"] = build_id
        if test_set_id != -1:
            body["TestSetId"] = test_set_id

        path = POST_TEST_RUN.format(project_id=self.project_id)
        try:
            return _get_id(self._post(path, body), "TestRunId")
        except requests.RequestException as e:
            if _is_not_found(e):
                logger.error(f"Unable to find a matching Spira test case of id TC:{test_case_id}, "
                             f"so not able to post result")
            else:
                logger.error(f"Unable to send results due to HTTP error: {e}")
            return -1

    def add_document(self, test_run_id: int, filename_or_url: str,
                     binary_data: Optional[str] = None) -> Optional[int]:
        """Attach a file (when binary_data is given) or a URL to a test run.

        Returns:
            The new attachment id, or None if the document could not be created
        """
        is_file = binary_data is not None
        body = {
            "ProjectId": self.project_id,
            "AttachmentTypeId": ATTACHMENT_TYPE_FILE if is_file else ATTACHMENT_TYPE_URL,
            "FilenameOrUrl": filename_or_url,
            "CurrentVersion": DOCUMENT_VERSION,
            "AttachedArtifacts": [{
                "ArtifactId": test_run_id,
                "ArtifactTypeId": ARTIFACT_TYPE_TEST_RUN,
            }],
        }
        if is_file:
            body["BinaryData"] = binary_data
            path = POST_DOCUMENT_FILE.format(project_id=self.project_id)
        else:
            path = POST_DOCUMENT_URL.format(project_id=self.project_id)

        try:
            return _get_id(self._post(path, body), "AttachmentId", default=None)
        except requests.RequestException as e:
            if _is_not_found(e):
                logger.error(f"Unable to find a matching Spira test run of id TR:{test_run_id}, "
                             f"so not able to attach '{filename_or_url}'")
            else:
                logger.error(f"Unable to create document due to HTTP error: {e}")
            return None
