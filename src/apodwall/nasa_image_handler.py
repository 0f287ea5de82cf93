"""
NASA Image and Video Library Handler

This module resolves a free-text query into the url of a random matching image from the
NASA Image and Video Library (https://images.nasa.gov).

Resolution takes two requests. The search endpoint returns a "collection" envelope with a
total hit count and a page of items. Each item's href points at a manifest: a flat json array
with the url of every rendition of the asset. The manifest lists the original (largest) file
first, so its first entry is the one used.

API reference: https://images.nasa.gov/docs/images.nasa.gov_api_docs.pdf
"""

import logging
import random
from dataclasses import dataclass
from dataclasses import field

from apodwall import api_client
from apodwall.config import ApodwallConfig

logger = logging.getLogger(__name__)

SEARCH_URL = "https://images-api.nasa.gov/search"
DEFAULT_QUERY = "sun"


class NasaSearchError(Exception):
    """
    Raised when a search or manifest yields nothing usable.
    """

    pass


@dataclass(frozen=True)
class AssetMetadata:
    nasa_id: str = ""
    title: str = ""
    center: str = ""
    description: str = ""
    date_created: str = ""


@dataclass(frozen=True)
class SearchItem:
    """
    One search hit. href is the manifest url for the asset.
    """

    href: str
    data: list = field(default_factory=list)

    @property
    def title(self) -> str:
        return self.data[0].title if self.data else ""


@dataclass(frozen=True)
class SearchResult:
    total_hits: int
    items: list = field(default_factory=list)

    @classmethod
    def from_json(cls, data) -> "SearchResult":
        """
        Build a SearchResult from a decoded search response. Raise DecodeError when the
        document does not have the collection/metadata/items shape.
        """

        try:
            collection = data["collection"]
            total_hits = collection.get("metadata", {}).get("total_hits", 0)
            raw_items = collection.get("items", [])

            items = [
                SearchItem(
                    href=item["href"],
                    data=[_asset_metadata(entry) for entry in item.get("data", [])],
                )
                for item in raw_items
            ]

        except (KeyError, TypeError, AttributeError) as error:
            raise api_client.DecodeError(f"unexpected search response shape: {error!r}")

        if not isinstance(total_hits, int) or isinstance(total_hits, bool):
            raise api_client.DecodeError(f"total_hits should be an integer, got {total_hits!r}")

        if any(not isinstance(item.href, str) for item in items):
            raise api_client.DecodeError("search item href should be a string")

        return cls(total_hits=total_hits, items=items)


def _asset_metadata(entry: dict) -> AssetMetadata:
    return AssetMetadata(
        **{
            key: str(entry.get(key) or "")
            for key in ("nasa_id", "title", "center", "description", "date_created")
        }
    )


def parse_manifest(data) -> list:
    """
    Validate a decoded manifest: a json array of url strings.
    """

    if not isinstance(data, list) or not all(isinstance(url, str) for url in data):
        raise api_client.DecodeError("image manifest should be a json array of url strings")

    return data


def search(config: ApodwallConfig, query: str) -> SearchResult:
    """
    Run one image search for query. Only the first page of results is requested.
    """

    data, _ = api_client.get_json(
        config, SEARCH_URL, params={"media_type": "image", "q": query}
    )
    result = SearchResult.from_json(data)
    logger.info("search for '%s' matched %d images", query, result.total_hits)

    return result


def fetch_manifest(config: ApodwallConfig, href: str) -> list:
    data, _ = api_client.get_json(config, href)
    return parse_manifest(data)


def resolve_nasa_image(config: ApodwallConfig, query: str = DEFAULT_QUERY, rng=random) -> str:
    """
    Return the url of the original file of a random image matching query.
    """

    result = search(config, query)

    if result.total_hits == 0:
        raise NasaSearchError(f"no images found for query: {query}")

    if not result.items:
        raise NasaSearchError("no items in response")

    item = rng.choice(result.items)
    if item.title:
        logger.info("picked '%s'", item.title)

    manifest = fetch_manifest(config, item.href)
    if not manifest:
        raise NasaSearchError("no image URLs in collection")

    return manifest[0]
