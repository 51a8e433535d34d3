#!/usr/bin/env python3
"""
ATS Slug Crawler

Discovers companies on ATS platforms from the Common Crawl index, guesses
each company's domain via DNS, and appends new entries to slugs.json.

Re-running is safe: entries already in the catalog are skipped, and
domains resolved earlier are reused for the same slug on other platforms.

Usage:
    python -m ats_discovery.run
    python -m ats_discovery.run --type=greenhouse
    python -m ats_discovery.run --limit=500
"""

import argparse
import asyncio
import sys

from .config import ATS_DEFINITIONS, ConfigError, CrawlerConfig
from .domain_resolver import DomainResolver
from .entry_store import AppendCorruptionError, EntryStore
from .harvester import SlugHarvester
from .index_locator import IndexLocator
from .types import AtsDefinition, AtsType, CompanyEntry, CrawlerError
from .utils import format_name


class Orchestrator:
    """
    Drives one crawl run.

    LOAD_CACHE -> DISCOVER_SHARDS -> (per shard x ATS: HARVEST -> FILTER_NEW
    -> ENRICH_CHUNKED -> PERSIST_PERIODIC) -> FINALIZE
    """

    def __init__(
        self,
        config: CrawlerConfig,
        store: EntryStore,
        locator: IndexLocator,
        harvester: SlugHarvester,
        resolver: DomainResolver,
        sources: list[AtsDefinition] | None = None,
        limit: int | None = None,
    ):
        self.config = config
        self.store = store
        self.locator = locator
        self.harvester = harvester
        self.resolver = resolver
        self.sources = list(ATS_DEFINITIONS.values()) if sources is None else sources
        self.limit = limit

        self.seen: set[tuple[str, str]] = set()
        self.domain_cache: dict[str, str] = {}
        self.entries: list[CompanyEntry] = []
        self.buffer: list[CompanyEntry] = []
        self.stats = {
            'shards': 0,
            'harvested': 0,
            'new': 0,
            'with_domain': 0,
            'reused': 0,
            'flushed': 0,
            'dropped': 0,
            'by_type': {},
        }

    @property
    def remaining(self) -> int | None:
        """How many more entries this run may process (None = unlimited)."""
        if self.limit is None:
            return None
        return max(0, self.limit - self.stats['new'])

    @property
    def limit_reached(self) -> bool:
        return self.remaining == 0

    def load_cache(self):
        """Seed the dedup set and slug -> domain reuse map from the catalog."""
        existing = self.store.load()
        self.entries = list(existing)

        for entry in existing:
            self.seen.add(entry.key)
            if entry.domain:
                self.domain_cache.setdefault(entry.slug, entry.domain)

        print(f"Loaded {len(existing):,} existing entries "
              f"({len(self.domain_cache):,} known domains) from {self.store.path}", flush=True)

    async def enrich_one(self, ats: AtsDefinition, slug: str) -> CompanyEntry:
        """Build the entry for one slug, reusing a known domain when we have one."""
        domain = self.domain_cache.get(slug)
        if domain:
            self.stats['reused'] += 1
        else:
            domain = await self.resolver.resolve(slug)

        return CompanyEntry(
            name=format_name(slug),
            ats_type=ats.ats_type.value,
            slug=slug,
            board_url=ats.board_url(slug),
            api_url=ats.api_url(slug),
            domain=domain,
        )

    async def enrich(self, ats: AtsDefinition, slugs: list[str]):
        """Enrich new slugs in fixed-size concurrent chunks, flushing as we go."""
        chunk_size = self.config.concurrency
        total = len(slugs)
        done = 0

        for start in range(0, total, chunk_size):
            if self.limit_reached:
                print(f"  ⚠ Limit of {self.limit:,} new entries reached, stopping", flush=True)
                break

            size = chunk_size if self.remaining is None else min(chunk_size, self.remaining)
            chunk = slugs[start:start + size]

            # gather keeps results in input order
            results = await asyncio.gather(*(self.enrich_one(ats, slug) for slug in chunk))

            for entry in results:
                self.seen.add(entry.key)
                if entry.domain:
                    self.domain_cache.setdefault(entry.slug, entry.domain)
                    self.stats['with_domain'] += 1
                self.entries.append(entry)
                self.buffer.append(entry)

            type_name = ats.ats_type.value
            self.stats['new'] += len(results)
            self.stats['by_type'][type_name] = self.stats['by_type'].get(type_name, 0) + len(results)
            done += len(results)

            found = sum(1 for entry in results if entry.domain)
            print(f"  [{done:,}/{total:,}] {found}/{len(results)} domains resolved in chunk", flush=True)

            if len(self.buffer) >= self.config.flush_threshold:
                self.flush()

    def flush(self):
        """Append buffered entries to the catalog. A failed append drops that batch."""
        if not self.buffer:
            return

        batch, self.buffer = self.buffer, []
        try:
            self.store.append_batch(batch)
        except AppendCorruptionError as e:
            self.stats['dropped'] += len(batch)
            print(f"  ✗ Failed to append {len(batch)} entries: {e}", flush=True)
            return

        self.stats['flushed'] += len(batch)
        print(f"  → Saved {len(batch)} entries to {self.store.path}", flush=True)

    async def process_source(self, shard: str, ats: AtsDefinition):
        slugs = await asyncio.to_thread(self.harvester.harvest, shard, ats)
        self.stats['harvested'] += len(slugs)

        type_name = ats.ats_type.value
        new_slugs = sorted(slug for slug in slugs if (type_name, slug) not in self.seen)
        if not new_slugs:
            print(f"  No new {type_name} companies on {shard}, skipping", flush=True)
            return

        print(f"  → {len(new_slugs):,} new {type_name} companies to enrich", flush=True)
        await self.enrich(ats, new_slugs)

    async def run(self) -> dict:
        """
        Execute a full crawl.

        Returns:
            Stats dict

        Raises:
            MetadataFetchError, ServiceUnavailable: no usable index shards
            StoreLoadError: existing catalog unreadable
        """
        self.load_cache()

        sources = []
        for ats in self.sources:
            if ats.harvestable:
                sources.append(ats)
            else:
                print(f"Skipping {ats.ats_type.value.upper()} ({ats.skip_reason})", flush=True)

        if not sources:
            print("⚠ No harvestable ATS sources selected", flush=True)
            self.finalize()
            return self.stats

        shards = await asyncio.to_thread(self.locator.discover, self.config.shard_count)
        self.stats['shards'] = len(shards)
        print(f"✓ Using {len(shards)} index shards: {', '.join(shards)}", flush=True)

        try:
            for shard in shards:
                for ats in sources:
                    if self.limit_reached:
                        break
                    print(f"\n{'=' * 60}", flush=True)
                    await self.process_source(shard, ats)
        finally:
            # Also runs on cancellation / Ctrl-C so buffered work isn't lost
            self.flush()

        self.finalize()
        return self.stats

    def finalize(self):
        """Print run statistics and optionally write the sorted canonical catalog."""
        lookups = getattr(self.resolver, 'lookups', 0)

        print(f"\n{'=' * 60}", flush=True)
        print("SUMMARY", flush=True)
        print('=' * 60, flush=True)
        print(f"Index shards used:     {self.stats['shards']}", flush=True)
        print(f"Slugs harvested:       {self.stats['harvested']:,}", flush=True)
        print(f"New entries:           {self.stats['new']:,}", flush=True)
        print(f"  With domain:         {self.stats['with_domain']:,}", flush=True)
        print(f"  Domains reused:      {self.stats['reused']:,}", flush=True)
        print(f"DNS lookups:           {lookups:,}", flush=True)
        print(f"DNS lookups skipped:   {self.stats['reused']:,} slugs answered from known domains", flush=True)
        print(f"Catalog size:          {len(self.entries):,} entries across {len(ATS_DEFINITIONS)} ATS sources", flush=True)

        if self.stats['by_type']:
            print("\nNew entries by ATS platform:", flush=True)
            for type_name, count in sorted(self.stats['by_type'].items(), key=lambda x: -x[1]):
                print(f"  {type_name}: {count:,}", flush=True)

        if self.stats['dropped']:
            print(f"\n⚠ {self.stats['dropped']} entries could not be appended to {self.store.path}", flush=True)

        if self.config.sorted_output:
            self.store.finalize(self.entries)
            print(f"✓ Wrote sorted catalog to {self.store.path}", flush=True)


def build_orchestrator(config: CrawlerConfig, ats_type: str | None = None, limit: int | None = None) -> Orchestrator:
    """Wire up the real components for a run."""
    harvester = SlugHarvester(config)
    sources = None
    if ats_type:
        sources = [ATS_DEFINITIONS[AtsType(ats_type)]]

    return Orchestrator(
        config=config,
        store=EntryStore(config.slugs_file, window=config.append_window),
        locator=IndexLocator(config, session=harvester.session),
        harvester=harvester,
        resolver=DomainResolver(config),
        sources=sources,
        limit=limit,
    )


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(
        description='Discover ATS company slugs from Common Crawl and guess their domains',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m ats_discovery.run
  python -m ats_discovery.run --type=ashby
  python -m ats_discovery.run --limit=200
        """
    )

    parser.add_argument(
        '--limit',
        type=int,
        default=None,
        help='Maximum number of new entries to process (default: unlimited)'
    )

    parser.add_argument(
        '--type',
        dest='ats_type',
        choices=[ats_type.value for ats_type in AtsType],
        help='Only crawl this ATS platform (default: all)'
    )

    parser.add_argument(
        '--shards',
        type=int,
        default=None,
        help='Number of live index shards to use (default: SHARD_COUNT or 3)'
    )

    parser.add_argument(
        '--output',
        default=None,
        help='Catalog file (default: SLUGS_FILE or slugs.json)'
    )

    args = parser.parse_args(argv)

    if args.limit is not None and args.limit < 1:
        print("Error: --limit must be >= 1")
        sys.exit(1)

    if args.shards is not None and args.shards < 1:
        print("Error: --shards must be >= 1")
        sys.exit(1)

    try:
        config = CrawlerConfig.from_env()
    except ConfigError as e:
        print(f"Error: {e}")
        sys.exit(1)

    config = config.with_overrides(shard_count=args.shards, slugs_file=args.output)

    print("Initializing ATS slug crawler\n", flush=True)
    orchestrator = build_orchestrator(config, ats_type=args.ats_type, limit=args.limit)

    try:
        asyncio.run(orchestrator.run())
    except KeyboardInterrupt:
        print("\n⚠ Interrupted - buffered entries were flushed", flush=True)
        sys.exit(130)
    except CrawlerError as e:
        print(f"\n✗ Fatal execution error: {e}", flush=True)
        sys.exit(1)
    except Exception as e:
        print(f"\n✗ Fatal execution error: {type(e).__name__}: {e}", flush=True)
        sys.exit(1)

    print("\n✓ Crawler operation completed.", flush=True)


if __name__ == '__main__':
    main()
