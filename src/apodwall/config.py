"""
apodwall Configuration Management

This file handles building the configuration that a single apodwall invocation runs with.
An ApodwallConfig is constructed once at startup (see cli.py) and passed explicitly to
every handler, so no handler reaches for process-wide state such as a shared HTTP client
or a global cache directory. Raise an ApodwallConfigError for any issues that arise in
processing or retrieving these configuration variables.

Values are resolved in order of precedence:

    command line option > environment variable > config.json > built-in default

The optional configuration file is "config.json". For Linux this is looked up at
~/.config/apodwall/config.json as per modern Linux app development conventions, or in the
directory named by the APODWALL_CONFIG_DIR environment variable. The file should be
a flat json object, e.g.

    {"cache_dir": "~/Pictures/apod", "timeout": 10}

The NASA API key is read from the DATA_GOV_API_KEY environment variable. A .env file in
the working directory is honoured through python-dotenv. Without a key the public
DEMO_KEY is used, which NASA rate limits heavily but which works out of the box.
"""

import json
import os
import sys
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path
from typing import Optional

import requests
from dotenv import find_dotenv
from dotenv import load_dotenv


DEFAULT_API_KEY = "DEMO_KEY"
DEFAULT_TIMEOUT = 30.0
CACHE_SUBDIR = "apodwall"


class ApodwallConfigError(Exception):
    """Raise when an issue occurs with handling apodwall configuration."""

    pass


@dataclass
class ApodwallConfig:
    """
    Dataclass to represent the configuration for one apodwall run. Provides a namespace for the
    settings and shared resources that handlers need: where cached files live, how long a network
    call may take, which API key to send, and the HTTP session used for every request.
    """

    cache_dir: Path = None
    api_key: str = DEFAULT_API_KEY
    timeout: float = DEFAULT_TIMEOUT
    session: requests.Session = field(default_factory=requests.Session, repr=False)

    def __post_init__(self):
        """
        Handle the case where a config is created from JSON or the command line, which cannot
        deserialize a str into a Path.
        """

        if self.cache_dir is None:
            self.cache_dir = default_cache_dir()

        self.cache_dir = Path(self.cache_dir).expanduser()

        try:
            self.timeout = float(self.timeout)
        except (TypeError, ValueError):
            raise ApodwallConfigError(f"Invalid timeout: {self.timeout!r} is not a number.")

        if self.timeout <= 0:
            raise ApodwallConfigError(f"Invalid timeout: {self.timeout} must be positive.")


def user_cache_home(platform: str = None) -> Path:
    """
    Return the base directory the current OS uses for per-user cache data.
    """

    platform = platform or sys.platform

    if platform == "darwin":
        return Path("~/Library/Caches").expanduser()

    if platform.startswith("win"):
        local_app_data = os.environ.get("LOCALAPPDATA")
        if not local_app_data:
            raise ApodwallConfigError("%LOCALAPPDATA% is not defined.")
        return Path(local_app_data)

    # XDG base directory spec, used on Linux and other unix-likes
    cache_home = os.environ.get("XDG_CACHE_HOME")
    if cache_home:
        return Path(cache_home)

    return Path("~/.cache").expanduser()


def default_cache_dir(platform: str = None) -> Path:
    return user_cache_home(platform) / CACHE_SUBDIR


def retrieve_api_key() -> str:
    """
    Attempt to get the user's API key from environment, loading a .env file first if one exists.
    Fall back to NASA's public demo key.
    """

    load_dotenv(find_dotenv(usecwd=True))
    return os.environ.get("DATA_GOV_API_KEY") or DEFAULT_API_KEY


def read_config_file() -> dict:
    """
    Load config.json from environment variable APODWALL_CONFIG_DIR or alternatively ~/.config/apodwall.
    A missing file is not an error and yields an empty dict. Raise ApodwallConfigError if the file exists
    but cannot be read or parsed.
    """

    config_src = Path("~/.config/apodwall/config.json").expanduser()

    # try to retrieve config directory from environment
    try:
        config_src = Path(os.environ["APODWALL_CONFIG_DIR"]) / "config.json"

    except KeyError:
        pass

    try:
        with config_src.open("r") as file:
            from_json = json.loads(file.read())

    except FileNotFoundError:
        return {}

    except json.JSONDecodeError as error:
        raise ApodwallConfigError(f"There was an issue reading the config: {error}")

    except OSError as error:
        raise ApodwallConfigError(f"There was an issue opening the config: {error}")

    if not isinstance(from_json, dict):
        raise ApodwallConfigError(
            f"There was an issue reading the config: {config_src} must hold a json object."
        )

    return from_json


def load_config(
    cache_dir: Optional[Path] = None,
    api_key: Optional[str] = None,
    timeout: Optional[float] = None,
) -> ApodwallConfig:
    """
    Build an ApodwallConfig. Arguments are values supplied on the command line and take
    precedence over the environment and the config file. None means "not supplied".
    """

    from_file = read_config_file()

    unknown = set(from_file) - {"cache_dir", "api_key", "timeout"}
    if unknown:
        raise ApodwallConfigError(
            f"Unknown setting(s) in config file: {', '.join(sorted(unknown))}"
        )

    if cache_dir is None:
        cache_dir = os.environ.get("APODWALL_CACHE_DIR") or from_file.get("cache_dir")

    if api_key is None:
        env_key = retrieve_api_key()
        if env_key == DEFAULT_API_KEY:
            api_key = from_file.get("api_key") or DEFAULT_API_KEY
        else:
            api_key = env_key

    if timeout is None:
        timeout = from_file.get("timeout", DEFAULT_TIMEOUT)

    return ApodwallConfig(cache_dir=cache_dir, api_key=api_key, timeout=timeout)


def init_cache_dir(config: ApodwallConfig) -> Path:
    """
    Make sure that the cache directory structure exists. Raise ApodwallConfigError if it cannot
    be created.
    """

    try:
        config.cache_dir.mkdir(parents=True, exist_ok=True)

    except OSError as error:
        raise ApodwallConfigError(
            f"There was an error creating the cache directory {config.cache_dir}: {error}"
        )

    return config.cache_dir
