"""
Settings for a deptree run.

Values come from the command line, the environment and an optional TOML
file, in that order of precedence.
"""
import os
import sys
import logging
from dataclasses import dataclass, fields
from typing import Optional

from deptree.core.errors import ConfigError
from deptree.core.scanner import GITHUB_API_URL, REQUEST_TIMEOUT, USER_AGENT

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

CONFIG_ENV = "DEPTREE_CONFIG"
TOKEN_ENV = "GITHUB_TOKEN"
DEFAULT_CONFIG_PATH = os.path.join("~", ".config", "deptree", "config.toml")


@dataclass
class Settings:
    token: str = ""
    timeout: float = REQUEST_TIMEOUT
    api_url: str = GITHUB_API_URL
    user_agent: str = USER_AGENT
    max_concurrency: Optional[int] = None


_TYPES = {
    "token": (str,),
    "timeout": (int, float),
    "api_url": (str,),
    "user_agent": (str,),
    "max_concurrency": (int,),
}


def find_config_file(explicit: Optional[str] = None) -> Optional[str]:
    if explicit:
        return explicit

    from_env = os.environ.get(CONFIG_ENV)
    if from_env:
        return from_env

    default = os.path.expanduser(DEFAULT_CONFIG_PATH)
    if os.path.exists(default):
        return default

    return None


def read_config_file(path: str) -> dict:
    logging.debug(f"Reading config file {path}")
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except OSError as e:
        raise ConfigError(f"cannot read config file {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"invalid config file {path}: {e}") from e

    values = {}
    for key, value in data.items():
        if key not in _TYPES:
            logging.warning(f"Ignoring unknown config key '{key}' in {path}")
            continue
        # bool is an int subclass but never a valid value here
        if isinstance(value, bool) or not isinstance(value, _TYPES[key]):
            raise ConfigError(f"config key '{key}' in {path} has the wrong type")
        if key == "timeout" and value <= 0:
            raise ConfigError(f"config key 'timeout' in {path} must be positive")
        values[key] = value

    return values


def load_settings(config_path: Optional[str] = None, **overrides) -> Settings:
    """
    Builds the effective settings.

    ``overrides`` are command-line values; ``None`` means "not given".
    """
    values = {}

    path = find_config_file(config_path)
    if path:
        values.update(read_config_file(path))

    token_env = os.environ.get(TOKEN_ENV)
    if token_env:
        values["token"] = token_env

    known = {f.name for f in fields(Settings)}
    for key, value in overrides.items():
        if key not in known:
            raise TypeError(f"unknown setting {key}")
        if value is not None:
            values[key] = value

    if "max_concurrency" in values and values["max_concurrency"] <= 0:
        values["max_concurrency"] = None

    return Settings(**values)
