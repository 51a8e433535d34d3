"""Configuration for the ATS slug crawler.

Static tables (ATS definitions, reserved slugs, TLD priorities) are module
constants and never mutated. Tunables come from the environment (.env is
loaded on import) and are frozen into a CrawlerConfig once per run.

Usage:
    from ats_discovery.config import CrawlerConfig

    config = CrawlerConfig.from_env()
"""

import os
import re
from dataclasses import dataclass, field, replace
from types import MappingProxyType

from dotenv import load_dotenv

from .types import AtsDefinition, AtsType, CrawlerError

load_dotenv()

# =============================================================================
# ATS Platforms
# =============================================================================

ATS_DEFINITIONS = MappingProxyType({
    AtsType.GREENHOUSE: AtsDefinition(
        ats_type=AtsType.GREENHOUSE,
        target_url='boards.greenhouse.io',
        match_type='prefix',
        pattern=re.compile(r'boards\.greenhouse\.io/([a-zA-Z0-9_-]+)'),
        board_url_template='https://boards.greenhouse.io/{slug}',
        api_url_template='https://boards-api.greenhouse.io/v1/boards/{slug}/jobs',
    ),
    AtsType.LEVER: AtsDefinition(
        ats_type=AtsType.LEVER,
        target_url='jobs.lever.co',
        match_type='prefix',
        pattern=re.compile(r'jobs\.lever\.co/([a-zA-Z0-9_-]+)'),
        board_url_template='https://jobs.lever.co/{slug}',
        api_url_template='https://api.lever.co/v0/postings/{slug}',
        skip_reason='commoncrawl robots.txt restriction',
    ),
    AtsType.SMARTRECRUITERS: AtsDefinition(
        ats_type=AtsType.SMARTRECRUITERS,
        target_url='jobs.smartrecruiters.com',
        match_type='prefix',
        pattern=re.compile(r'jobs\.smartrecruiters\.com/([a-zA-Z0-9_-]+)'),
        board_url_template='https://jobs.smartrecruiters.com/{slug}',
        api_url_template='https://api.smartrecruiters.com/v1/companies/{slug}/postings',
    ),
    AtsType.ASHBY: AtsDefinition(
        ats_type=AtsType.ASHBY,
        target_url='jobs.ashbyhq.com',
        match_type='prefix',
        pattern=re.compile(r'jobs\.ashbyhq\.com/([a-zA-Z0-9_-]+)'),
        board_url_template='https://jobs.ashbyhq.com/{slug}',
        api_url_template='https://api.ashbyhq.com/posting-api/job-board/{slug}',
    ),
    AtsType.WORKABLE: AtsDefinition(
        ats_type=AtsType.WORKABLE,
        target_url='apply.workable.com',
        match_type='prefix',
        pattern=re.compile(r'apply\.workable\.com/([a-zA-Z0-9_-]+)'),
        board_url_template='https://apply.workable.com/{slug}',
        api_url_template='https://apply.workable.com/api/v1/widget/accounts/{slug}',
    ),
    AtsType.RECRUITEE: AtsDefinition(
        ats_type=AtsType.RECRUITEE,
        target_url='recruitee.com',
        match_type='domain',
        pattern=re.compile(r'([a-zA-Z0-9_-]+)\.recruitee\.com'),
        board_url_template='https://{slug}.recruitee.com',
        api_url_template='https://{slug}.recruitee.com/api/offers',
    ),
    AtsType.BREEZY: AtsDefinition(
        ats_type=AtsType.BREEZY,
        target_url='breezy.hr',
        match_type='domain',
        pattern=re.compile(r'([a-zA-Z0-9_-]+)\.breezy\.hr'),
        board_url_template='https://{slug}.breezy.hr',
        api_url_template='https://{slug}.breezy.hr/json',
    ),
})

# Platform path segments that show up in board URLs but aren't companies
RESERVED_SLUGS = frozenset({
    'embed', 'frames', 'internal', 'api', 'admin', 'interface', 's', 'v1', 'jobs', 'robots',
    'www', 'blog', 'help', 'support', 'app', 'status', 'assets', 'static', 'cdn',
    'privacy', 'terms', 'cookie', 'legal',
})

MIN_SLUG_LENGTH = 3

# =============================================================================
# Domain Guessing
# =============================================================================

# Tried in this order for every candidate base (region TLDs go in front)
PRIORITY_TLDS = ('com', 'io', 'co', 'ai', 'app', 'dev', 'tech', 'net', 'org', 'xyz', 'so', 'sh', 'me')

# Reduced set for the naming-variant phase (getacme.com, acmeapp.io, ...)
VARIANT_TLDS = ('com', 'io', 'co')

# Order matters: first success wins
NAME_VARIANTS = ('www.{base}', 'get{base}', 'try{base}', 'use{base}', '{base}app')

# How many candidate bases get the variant treatment
VARIANT_BASE_LIMIT = 2

DIGIT_WORDS = ('zero', 'one', 'two', 'three', 'four', 'five', 'six', 'seven', 'eight', 'nine')

# Known-good lookup used to check whether an index shard is alive
SHARD_PROBE_URL = 'google.com'


class ConfigError(CrawlerError):
    """An environment setting has an unusable value."""


def _env_int(name: str, default: int) -> int:
    """Read a positive integer setting. Zero or negative values are rejected."""
    value = os.getenv(name)
    if not value:
        return default

    try:
        number = int(value)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from None

    if number < 1:
        raise ConfigError(f"{name} must be >= 1, got {number}")
    return number


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if not value:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _env_list(name: str) -> tuple[str, ...]:
    value = os.getenv(name, '')
    return tuple(part.strip().lstrip('.').lower() for part in value.split(',') if part.strip())


@dataclass(frozen=True)
class CrawlerConfig:
    """Run-wide settings, built once at startup and handed to each component."""
    slugs_file: str = 'slugs.json'
    index_api_url: str = 'https://index.commoncrawl.org'
    shard_count: int = 3
    concurrency: int = 50
    flush_threshold: int = 200
    dns_timeout_ms: int = 3000
    http_timeout: int = 60
    probe_timeout: int = 15
    progress_interval: int = 250
    max_attempts: int = 3
    backoff_seconds: float = 2.0
    append_window: int = 4096
    sorted_output: bool = False
    region_tlds: tuple[str, ...] = ()
    reserved_slugs: frozenset = field(default=RESERVED_SLUGS)

    @classmethod
    def from_env(cls) -> 'CrawlerConfig':
        """
        Build config from environment variables (falls back to defaults).

        Raises:
            ConfigError: A numeric setting is not a positive integer
        """
        return cls(
            slugs_file=os.getenv('SLUGS_FILE', 'slugs.json'),
            index_api_url=os.getenv('INDEX_API_URL', 'https://index.commoncrawl.org').rstrip('/'),
            shard_count=_env_int('SHARD_COUNT', 3),
            concurrency=_env_int('CONCURRENCY', 50),
            flush_threshold=_env_int('FLUSH_THRESHOLD', 200),
            dns_timeout_ms=_env_int('DNS_TIMEOUT_MS', 3000),
            http_timeout=_env_int('HTTP_TIMEOUT', 60),
            progress_interval=_env_int('PROGRESS_INTERVAL', 250),
            sorted_output=_env_bool('SORTED_OUTPUT'),
            region_tlds=_env_list('REGION_TLDS'),
        )

    def with_overrides(self, **overrides) -> 'CrawlerConfig':
        """Return a copy with the given non-None values replaced (CLI flags)."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    @property
    def tlds(self) -> tuple[str, ...]:
        """Exact-match TLD order: region TLDs first, then the global priority list."""
        ordered = []
        for tld in self.region_tlds + PRIORITY_TLDS:
            if tld not in ordered:
                ordered.append(tld)
        return tuple(ordered)
