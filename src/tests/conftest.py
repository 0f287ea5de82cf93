"""
conftest.py

Test configuration for apodwall tests.

Defines Pytest fixtures for supplying test data to tests across the entire
test suite. Fixtures used within only a single module are defined
directly in that module. Conftest.py should only be used for universal
fixtures.

*** MOCKING REQUEST CALLS ***

Every network call apodwall makes goes through the requests.Session stored on the
ApodwallConfig. The config fixture replaces that session with an autospec'd mock so no
test ever touches the network, and make_response builds the fake Response objects the
session hands back. Call counts on config.session.get are how tests assert that a cache
hit did not perform any network I/O.
"""

import json
import unittest.mock
from pathlib import Path

import pytest
import requests
from PIL import Image

from apodwall.config import ApodwallConfig


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """
    Keep tests away from the real user's cache, config file and API key.
    """

    monkeypatch.setenv("APODWALL_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "xdg-cache"))
    monkeypatch.delenv("APODWALL_CACHE_DIR", raising=False)
    monkeypatch.delenv("DATA_GOV_API_KEY", raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def config(tmp_path) -> ApodwallConfig:
    """
    An ApodwallConfig whose cache lives in tmp_path and whose session is a mock.
    """

    return ApodwallConfig(
        cache_dir=tmp_path / "cache",
        api_key="TEST_KEY",
        timeout=5,
        session=unittest.mock.create_autospec(requests.Session, instance=True),
    )


@pytest.fixture
def make_response():
    """
    Return a factory for fake requests.Response objects. Pass payload to get a json body,
    body for raw bytes, chunks for a streamed body, status_code >= 400 for an HTTPError.
    """

    def factory(payload=None, body: bytes = None, chunks: list = None, status_code: int = 200):
        response = unittest.mock.MagicMock()
        response.status_code = status_code

        if body is None:
            body = json.dumps(payload).encode() if payload is not None else b""
        response.content = body
        response.iter_content.return_value = chunks if chunks is not None else [body]

        if status_code >= 400:
            response.raise_for_status.side_effect = requests.exceptions.HTTPError(
                f"{status_code} Error"
            )

        return response

    return factory


@pytest.fixture
def test_image(tmp_path) -> Path:
    """
    Returns the path of a small, valid jpeg written to tmp_path.
    """

    path = tmp_path / "img" / "test_image.jpg"
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", (32, 18), color=(12, 34, 56)).save(path, format="JPEG")

    return path


@pytest.fixture
def huge_image(tmp_path) -> Path:
    """
    Returns the path of a png larger than Pillow's decompression bomb limit, the size of the
    biggest NASA library originals. One bit per pixel keeps it cheap to build.
    """

    path = tmp_path / "img" / "huge_image.png"
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("1", (20000, 10000)).save(path, format="PNG")

    return path


@pytest.fixture
def not_an_image(tmp_path) -> Path:
    path = tmp_path / "img" / "not_an_image.txt"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("this is definitely not an image")

    return path
