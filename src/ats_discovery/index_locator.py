"""
Index shard discovery.

Common Crawl publishes one CDX index per crawl, listed in collinfo.json.
Individual indexes go offline or rate-limit without warning, so we probe
each one with a cheap known-good lookup before harvesting from it.
"""

import requests

from .config import CrawlerConfig, SHARD_PROBE_URL
from .types import CrawlerError


class MetadataFetchError(CrawlerError):
    """The shard listing (collinfo.json) could not be fetched or parsed."""


class ServiceUnavailable(CrawlerError):
    """No candidate shard answered the probe."""


def build_index_url(index_api_url: str, shard: str) -> str:
    return f"{index_api_url}/{shard}-index"


class IndexLocator:
    """Finds live index shards."""

    def __init__(self, config: CrawlerConfig, session: requests.Session | None = None):
        self.config = config
        self.session = session or requests.Session()

    def fetch_candidates(self) -> list[str]:
        """Fetch the shard listing, newest crawl first (document order)."""
        url = f"{self.config.index_api_url}/collinfo.json"
        print("Fetching Common Crawl index metadata...", flush=True)

        try:
            response = self.session.get(url, timeout=self.config.probe_timeout)
            response.raise_for_status()
            indexes = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            raise MetadataFetchError(f"Failed to fetch index list: {e}") from e

        if not isinstance(indexes, list):
            raise MetadataFetchError("Index list is not a JSON array")

        return [index['id'] for index in indexes if isinstance(index, dict) and index.get('id')]

    def probe(self, shard: str) -> bool:
        """One lookup, no retry. Any 2xx means the shard is live."""
        url = build_index_url(self.config.index_api_url, shard)
        params = {'url': SHARD_PROBE_URL, 'limit': 1, 'output': 'json'}

        try:
            response = self.session.get(url, params=params, timeout=self.config.probe_timeout)
        except requests.exceptions.RequestException:
            print(f"  ✗ Index {shard} connection FAILED", flush=True)
            return False

        if response.ok:
            print(f"  ✓ Index {shard} is ONLINE", flush=True)
            return True

        print(f"  ✗ Index {shard} returned STATUS {response.status_code}", flush=True)
        return False

    def discover(self, k: int) -> list[str]:
        """
        Find up to k live shards.

        Args:
            k: How many live shards we want

        Returns:
            Live shard ids in listing order (at most k)

        Raises:
            MetadataFetchError: collinfo.json unreachable
            ServiceUnavailable: every candidate failed its probe
        """
        candidates = self.fetch_candidates()
        live = []

        for shard in candidates:
            if self.probe(shard):
                live.append(shard)
                if len(live) >= k:
                    break

        if not live:
            raise ServiceUnavailable(
                f"All {len(candidates)} Common Crawl indexes are currently unreachable."
            )

        return live
