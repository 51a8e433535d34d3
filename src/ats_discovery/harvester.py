"""
Slug harvesting from the Common Crawl CDX index.

For one (shard, ATS) pair, walks every result page of the index query,
streams the NDJSON body and pulls company slugs out of the archived URLs.

Failures stay local: a failed page-count probe means "assume one page",
a page that fails all retries is skipped, a malformed line is dropped.
"""

import time
from typing import Callable

import requests

from .config import CrawlerConfig
from .index_locator import build_index_url
from .types import AtsDefinition
from .utils import extract_slug, parse_index_line


class SlugHarvester:
    """Collects unique slugs for one ATS platform from one index shard."""

    def __init__(
        self,
        config: CrawlerConfig,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.session = session or requests.Session()
        self.sleep = sleep

    def _query_params(self, ats: AtsDefinition) -> dict:
        return {'url': ats.target_url, 'matchType': ats.match_type, 'output': 'json'}

    def count_pages(self, shard: str, ats: AtsDefinition) -> int:
        """
        Ask the index how many pages the query spans.

        Best effort - any failure falls back to a single page.
        """
        url = build_index_url(self.config.index_api_url, shard)
        params = {**self._query_params(ats), 'showNumPages': 'true'}

        try:
            response = self.session.get(url, params=params, timeout=self.config.probe_timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            print(f"  ⚠ Page count probe failed ({e}), assuming 1 page", flush=True)
            return 1

        # Newer indexes return {"pages": N, ...}, older ones a bare integer
        pages = data.get('pages') if isinstance(data, dict) else data
        # 0 pages means the index holds no captures for this platform
        if isinstance(pages, int) and not isinstance(pages, bool) and pages >= 0:
            return pages

        print(f"  ⚠ Unexpected page count response: {data!r}, assuming 1 page", flush=True)
        return 1

    def fetch_page(self, shard: str, ats: AtsDefinition, page: int) -> requests.Response | None:
        """
        Fetch one result page with retry and exponential backoff.

        Returns:
            Streaming response on success, None if every attempt failed
        """
        url = build_index_url(self.config.index_api_url, shard)
        params = {**self._query_params(ats), 'page': page}
        delay = self.config.backoff_seconds
        last_error = None

        for attempt in range(1, self.config.max_attempts + 1):
            try:
                response = self.session.get(url, params=params, stream=True, timeout=self.config.http_timeout)
                if response.ok:
                    return response
                last_error = f"HTTP {response.status_code}"
                response.close()
            except requests.exceptions.RequestException as e:
                last_error = str(e)

            if attempt < self.config.max_attempts:
                print(f"  ⚠ Page {page} attempt {attempt} failed ({last_error}), retrying in {delay:g}s...", flush=True)
                self.sleep(delay)
                delay *= 2

        print(f"  ✗ Page {page} failed after {self.config.max_attempts} attempts: {last_error}", flush=True)
        return None

    def harvest(self, shard: str, ats: AtsDefinition) -> set[str]:
        """
        Harvest every unique slug for an ATS platform from one shard.

        Args:
            shard: Index id (e.g. 'CC-MAIN-2024-10')
            ats: Platform definition

        Returns:
            Set of lowercased slugs that passed the length/reserved filter
        """
        name = ats.ats_type.value.upper()
        print(f"Processing ATS: {name} ({shard})", flush=True)

        page_count = self.count_pages(shard, ats)
        slugs = set()
        scanned = 0
        failed_pages = []

        for page in range(page_count):
            response = self.fetch_page(shard, ats, page)
            if response is None:
                failed_pages.append(page)
                continue

            try:
                for line in response.iter_lines():
                    if not line:
                        continue
                    scanned += 1

                    record = parse_index_line(line)
                    if record:
                        slug = extract_slug(record.url, ats, self.config.reserved_slugs)
                        if slug:
                            slugs.add(slug)

                    if scanned % self.config.progress_interval == 0:
                        print(f"  → [{page + 1}/{page_count}] Found {len(slugs):,} companies "
                              f"(scanned {scanned:,} records)", flush=True)
            except requests.exceptions.RequestException as e:
                # Keep what we already read from this page
                print(f"  ⚠ Page {page} stream interrupted: {e}", flush=True)
            finally:
                response.close()

        if failed_pages:
            print(f"  ⚠ Skipped {len(failed_pages)} failed pages: {failed_pages}", flush=True)

        print(f"  ✓ {name} completed: {len(slugs):,} unique slugs identified.", flush=True)
        return slugs
