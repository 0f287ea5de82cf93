"""
Astronomy Picture of the Day Handler

This module resolves a random Astronomy Picture of the Day (APOD) into an image url.

NASA publishes one APOD per calendar date, starting on 1995-06-16. A random date between
that first entry and today is chosen and the metadata document for that date is requested
from the APOD API. Metadata never changes once published, so the raw response body is cached
in the apodwall cache directory as apod_<date>.json and re-read on later runs that happen to
land on the same date.

Not every APOD is a picture: some days are videos or interactive pages. Those records are
reported as failures rather than silently re-rolling to another date.

API reference: https://github.com/nasa/apod-api
"""

import logging
import random
from dataclasses import dataclass
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Optional

from apodwall import api_client
from apodwall.config import ApodwallConfig

logger = logging.getLogger(__name__)

APOD_URL = "https://api.nasa.gov/planetary/apod"
APOD_START_DATE = date(1995, 6, 16)


class ApodError(Exception):
    """
    Raised when an APOD record cannot be turned into an image url.
    """

    pass


class MediaType(Enum):
    IMAGE = "image"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str) -> "MediaType":
        return cls.IMAGE if value == cls.IMAGE.value else cls.OTHER


@dataclass(frozen=True)
class ApodRecord:
    """
    Metadata for a single APOD. hdurl is optional and preferred over url when present.
    raw_media_type keeps the service's own label (e.g. "video") for error messages.
    """

    date: str
    media_type: MediaType
    url: str = ""
    hdurl: Optional[str] = None
    title: str = ""
    explanation: str = ""
    copyright: str = ""
    raw_media_type: str = ""

    @classmethod
    def from_json(cls, data) -> "ApodRecord":
        """
        Build a record from a decoded APOD response. Missing fields default to empty values,
        a field of the wrong type is a DecodeError.
        """

        if not isinstance(data, dict):
            raise api_client.DecodeError(
                f"expected a json object for APOD record, got {type(data).__name__}"
            )

        fields = {}
        for key in ("date", "media_type", "url", "hdurl", "title", "explanation", "copyright"):
            value = data.get(key)
            if value is not None and not isinstance(value, str):
                raise api_client.DecodeError(
                    f"APOD field '{key}' should be a string, got {type(value).__name__}"
                )
            fields[key] = value or ""

        return cls(
            date=fields["date"],
            media_type=MediaType.parse(fields["media_type"]),
            url=fields["url"],
            hdurl=fields["hdurl"] or None,
            title=fields["title"],
            explanation=fields["explanation"],
            copyright=fields["copyright"].strip(),
            raw_media_type=fields["media_type"],
        )

    @property
    def image_url(self) -> str:
        """
        The best available image url: the high definition one when published, otherwise the
        standard one. Raise ApodError when the record is not an image or has no url at all.
        """

        if self.media_type is not MediaType.IMAGE:
            raise ApodError(
                f"APOD for {self.date} is not an image (type: {self.raw_media_type or 'unknown'})"
            )

        url = self.hdurl or self.url
        if not url:
            raise ApodError(f"APOD for {self.date} does not include an image url")

        return url


def random_date(start: date = APOD_START_DATE, today: Optional[date] = None, rng=random) -> str:
    """
    Return a uniformly random ISO date in [start, today). Every day in the range, including
    start itself, can be drawn. today itself never is, since that day's APOD may not have been
    published yet in every timezone.
    """

    today = today or date.today()
    span = (today - start).days
    offset = rng.randrange(span)

    return date.fromordinal(start.toordinal() + offset).isoformat()


def cache_path(date_str: str, cache_dir: Path) -> Path:
    return Path(cache_dir) / f"apod_{date_str}.json"


def read_cached_record(path: Path) -> Optional[ApodRecord]:
    """
    Return the record cached at path, or None on a miss. An entry that can't be read or parsed
    counts as a miss so it gets refetched and overwritten.
    """

    try:
        body = path.read_bytes()
    except FileNotFoundError:
        return None
    except OSError as error:
        logger.warning("could not read cached APOD %s: %s", path, error)
        return None

    try:
        record = ApodRecord.from_json(api_client.decode_json(body, str(path)))
    except api_client.DecodeError as error:
        logger.warning("ignoring corrupt cache entry %s: %s", path, error)
        return None

    logger.debug("APOD cache hit %s", path)
    return record


def fetch_record(config: ApodwallConfig, date_str: str, path: Path) -> ApodRecord:
    """
    Request the APOD for date_str and save the raw response at path. A failure to write the cache
    entry is only a warning: the record has already been fetched and is still returned.
    """

    data, body = api_client.get_json(
        config, APOD_URL, params={"api_key": config.api_key, "date": date_str}
    )
    record = ApodRecord.from_json(data)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(body)
    except OSError as error:
        logger.warning("failed to cache APOD response: %s", error)

    return record


def get_record(config: ApodwallConfig, date_str: str) -> ApodRecord:
    """Return the APOD record for date_str, from cache when possible."""

    path = cache_path(date_str, config.cache_dir)
    record = read_cached_record(path)

    if record is None:
        record = fetch_record(config, date_str, path)

    return record


def resolve_apod(config: ApodwallConfig, rng=random) -> str:
    """
    Pick a random APOD and return its best image url.
    """

    date_str = random_date(rng=rng)
    logger.info("picked APOD date %s", date_str)

    record = get_record(config, date_str)
    if record.title:
        logger.info("APOD %s: %s", record.date or date_str, record.title)

    return record.image_url
