"""
ATS discovery - find companies on ATS platforms via the Common Crawl index.

Usage:
    python -m ats_discovery.run
    python -m ats_discovery.run --type=greenhouse --limit=100
"""

from .types import AtsDefinition, AtsType, CompanyEntry, CrawlerError, IndexRecord
from .config import ATS_DEFINITIONS, CrawlerConfig
from .index_locator import IndexLocator, MetadataFetchError, ServiceUnavailable
from .harvester import SlugHarvester
from .domain_resolver import DomainResolver, generate_candidates
from .entry_store import AppendCorruptionError, EntryStore, StoreLoadError

__all__ = [
    'AtsDefinition',
    'AtsType',
    'CompanyEntry',
    'CrawlerError',
    'IndexRecord',
    'ATS_DEFINITIONS',
    'CrawlerConfig',
    'IndexLocator',
    'MetadataFetchError',
    'ServiceUnavailable',
    'SlugHarvester',
    'DomainResolver',
    'generate_candidates',
    'AppendCorruptionError',
    'EntryStore',
    'StoreLoadError',
]
