"""Spira connection settings and test case / test set mappings."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "spira.cfg"

CREDENTIALS_SECTION = "credentials"
TEST_CASES_SECTION = "test_cases"
TEST_SETS_SECTION = "test_sets"

INTEGER_SETTINGS = ("project_id", "release_id", "test_set_id")
STRING_SETTINGS = ("url", "username", "token")

# Environment variables that take precedence over the [credentials] section
ENV_OVERRIDES = {
    "SPIRA_URL": "url",
    "SPIRA_USERNAME": "username",
    "SPIRA_TOKEN": "token",
}


@dataclass
class SpiraConfig:
    """Settings loaded once from the config file."""
    url: str = ""
    username: str = ""
    token: str = ""
    project_id: int = -1
    release_id: int = -1
    test_set_id: int = -1
    create_build: bool = False
    test_case_ids: dict[str, int] = field(default_factory=dict)
    test_set_ids: dict[str, int] = field(default_factory=dict)

    def get_test_case_id(self, full_name: str) -> Optional[int]:
        """Look up the Spira test case id for a "classname.name" key."""
        return self.test_case_ids.get(full_name.lower())

    def get_test_set_id(self, suite_name: str) -> Optional[int]:
        """Look up the Spira test set id for a suite name."""
        return self.test_set_ids.get(suite_name.lower())


def _parse_int(value: str, key: str) -> Optional[int]:
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring non-integer value '{value}' for '{key}'")
        return None


def load_config(config_file: Union[str, Path] = DEFAULT_CONFIG_FILE) -> SpiraConfig:
    """Load a sectioned key=value config file.

    Blank lines and lines starting with '#' are skipped. Keys and values are
    split on the first '='. Environment variables listed in ENV_OVERRIDES
    take precedence over the file.

    Raises:
        OSError: if the file cannot be read
    """
    config = SpiraConfig()
    section = ""

    for line in Path(config_file).read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith('#'):
            continue

        if line.startswith('[') and line.endswith(']'):
            section = line[1:-1].strip()
            continue

        if '=' not in line:
            continue
        key, value = line.split('=', 1)
        key = key.strip()
        value = value.strip()
        if not key:
            continue

        if section == CREDENTIALS_SECTION:
            _apply_credential(config, key, value)
        elif section == TEST_CASES_SECTION:
            test_case_id = _parse_int(value, key)
            if test_case_id is not None:
                config.test_case_ids[key.lower()] = test_case_id
        elif section == TEST_SETS_SECTION:
            test_set_id = _parse_int(value, key)
            if test_set_id is not None:
                config.test_set_ids[key.lower()] = test_set_id

    for env_key, attr in ENV_OVERRIDES.items():
        env_value = os.environ.get(env_key)
        if env_value is not None:
            setattr(config, attr, env_value)

    logger.debug(f"Loaded {len(config.test_case_ids)} test case and "
                 f"{len(config.test_set_ids)} test set mappings from {config_file}")
    return config


def _apply_credential(config: SpiraConfig, key: str, value: str):
    if key == "create_build":
        config.create_build = value.lower() == "true"
    elif key in INTEGER_SETTINGS:
        number = _parse_int(value, key)
        if number is not None:
            setattr(config, key, number)
    elif key in STRING_SETTINGS:
        setattr(config, key, value)
    else:
        logger.debug(f"Ignoring unknown credentials setting '{key}'")
