"""
Image Handler

Utilities for downloading images into the apodwall cache and validating image files.

Downloading images: supports only plain GET requests for image files specified by url, with no
expectation of authentication or other API requests (searching for images on a service, etc).
Such activities should be performed by the specific source handler (apod_handler,
nasa_image_handler).

Downloaded files are content-addressed by their source url: the file name is derived from the
sha256 of the url, so the same url always maps to the same file and a second request for it is
served from disk without touching the network. A file being present is taken as proof that it
is complete. To keep that assumption honest the download is streamed into a temporary ".part"
file and only renamed onto its final name once the whole body has been written.
"""

import hashlib
import logging
import os
from pathlib import Path
from pathlib import PurePosixPath
from typing import Optional
from urllib.parse import urlparse

import requests
from PIL import Image, UnidentifiedImageError

from apodwall import api_client
from apodwall.config import ApodwallConfig

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".jpg"
CHUNK_SIZE = 64 * 1024


class InvalidImageError(Exception):
    """
    Raised when a provided binary input file is not an image. Wrapper around the PIL
    UnidentifiedImageError for better identification of errors during debugging
    and custom error messaging.
    """

    pass


class ImageCacheError(Exception):
    """
    Raised when a downloaded image cannot be written to the cache directory.
    """

    pass


def validate_image(input) -> Optional[str]:
    """
    Determine whether input is a valid image and return its format (e.g. "JPEG"). PIL open accepts a
    Path object, string, or file object. The header is read to determine the file type but pixel data
    is not loaded, so this is cheap even for very large APOD images.

    Pillow refuses to open images past its decompression bomb limit, which some NASA originals
    exceed. The header has been recognised by then, so those are accepted with an unknown format.
    """

    try:
        with Image.open(input) as image:

            return image.format

    except Image.DecompressionBombError as error:
        logger.debug("accepting oversized image %s: %s", input, error)
        return None

    except UnidentifiedImageError:
        raise InvalidImageError(f"Input {str(input)} does not appear to be an image.")

    except (FileNotFoundError, IsADirectoryError):
        raise InvalidImageError(f"Input {str(input)} could not be found.")


def url_extension(url: str) -> str:
    """
    Return the file extension of the path component of url, or .jpg when it has none.
    Query strings and fragments are ignored.
    """

    suffix = PurePosixPath(urlparse(url).path).suffix
    return suffix if suffix else DEFAULT_EXTENSION


def cache_filename(url: str) -> str:
    digest = hashlib.sha256(url.encode("utf-8")).digest()
    return f"image_{digest[:8].hex()}{url_extension(url)}"


def cache_path(url: str, cache_dir: Path) -> Path:
    """
    Deterministic location of the cached copy of url.
    """

    return Path(cache_dir) / cache_filename(url)


def download_image(url: str, config: ApodwallConfig) -> Path:
    """
    Return the local path of the image at url, downloading it into the cache directory first
    if it is not already there. A cache hit performs no network activity.

    Raise api_client.TransportError or api_client.StatusError when the download fails and
    ImageCacheError when the file cannot be written.
    """

    destination_path = cache_path(url, config.cache_dir)

    if destination_path.exists():
        logger.info("using cached image %s", destination_path)
        return destination_path

    try:
        destination_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as error:
        raise ImageCacheError(f"could not create cache directory: {error}")

    r = api_client.get(config, url, stream=True)

    partial_path = destination_path.with_name(destination_path.name + ".part")

    try:
        with open(partial_path, "wb") as file:
            for chunk in r.iter_content(chunk_size=CHUNK_SIZE):
                file.write(chunk)

        os.replace(partial_path, destination_path)

    except requests.exceptions.RequestException as error:
        _discard(partial_path)
        raise api_client.TransportError(f"failed to download image from {url}: {error}")

    except OSError as error:
        _discard(partial_path)
        raise ImageCacheError(f"failed to save image to {destination_path}: {error}")

    finally:
        r.close()

    logger.info("saved %s to %s", url, destination_path)
    return destination_path


def _discard(path: Path):
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as error:
        logger.warning("could not remove partial download %s: %s", path, error)
