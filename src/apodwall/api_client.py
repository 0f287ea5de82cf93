"""
API Client

Thin wrapper around the requests session carried by ApodwallConfig. Every network call
apodwall makes goes through get(), so timeouts and error classification live in one place.

Failures are classified as:
  - TransportError: the request never produced a response (DNS, refused connection, timeout)
  - StatusError: the server answered with a non-success status code
  - DecodeError: the body is not valid json or does not have the expected shape

Nothing is retried. The first failure is the outcome of the call.
"""

import json
import logging

import requests

from apodwall.config import ApodwallConfig

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """
    Base class for failures talking to a remote service.
    """

    pass


class TransportError(ApiError):
    """
    Raised when a request fails before a response is received.
    """

    pass


class StatusError(ApiError):
    """
    Raised when a response carries a non-success status code.
    """

    def __init__(self, url: str, status_code: int):
        self.url = url
        self.status_code = status_code
        super().__init__(f"{url} returned status {status_code}")


class DecodeError(ApiError):
    """
    Raised when a response body is malformed json or does not match the expected schema.
    """

    pass


def get(
    config: ApodwallConfig, url: str, params: dict = None, stream: bool = False
) -> requests.Response:
    """
    Perform a single GET request with the configured session and timeout. Redirects are
    followed by requests. Returns the response once its status has been checked.
    """

    logger.debug("GET %s %s", url, _redact(params) if params else "")

    try:
        r = config.session.get(url, params=params, timeout=config.timeout, stream=stream)

    except requests.exceptions.Timeout as error:
        raise TransportError(f"request to {url} timed out after {config.timeout}s: {error}")

    except requests.exceptions.RequestException as error:
        raise TransportError(f"request to {url} failed: {error}")

    # successful request but received a bad response from the server.
    try:
        r.raise_for_status()
    except requests.exceptions.HTTPError:
        r.close()
        raise StatusError(url, r.status_code)

    return r


def decode_json(body: bytes, source: str):
    """
    Decode a json document, raising DecodeError on malformed input. source is only used
    in the error message.
    """

    try:
        return json.loads(body)
    except (ValueError, TypeError) as error:
        raise DecodeError(f"failed to parse json from {source}: {error}")


def get_json(config: ApodwallConfig, url: str, params: dict = None) -> tuple:
    """
    GET a json document. Returns a tuple of the decoded value and the raw body bytes so
    callers can persist the response verbatim.
    """

    r = get(config, url, params=params)

    try:
        body = r.content
    except requests.exceptions.RequestException as error:
        raise TransportError(f"failed to read response from {url}: {error}")

    return decode_json(body, url), body


def _redact(params: dict) -> dict:
    """Hide the api key in debug logs."""

    return {k: ("***" if k == "api_key" else v) for k, v in params.items()}
