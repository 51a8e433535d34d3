"""
Company domain guessing via DNS.

Given an ATS slug ('web3-solutions'), generate likely company domains and
race DNS lookups to find one that exists. This is a heuristic - a resolving
domain is a good guess, not proof the company owns it.

Search order:
    1. Exact phase: every candidate base x priority TLDs, one race per base
    2. Variant phase: first two bases x naming transforms (getacme, acmeapp, ...)
       x reduced TLD set, one race per transform
"""

import asyncio
import re

import dns.asyncresolver
import dns.exception

from .config import (
    CrawlerConfig,
    DIGIT_WORDS,
    NAME_VARIANTS,
    VARIANT_BASE_LIMIT,
    VARIANT_TLDS,
)
from .utils import unique_in_order

# A digit word standing alone between -, _, or the ends of the slug
_DIGIT_WORD_RE = re.compile(r'(?<![^-_])(' + '|'.join(DIGIT_WORDS) + r')(?![^-_])')


def generate_candidates(slug: str) -> list[str]:
    """
    Generate candidate domain bases for a slug, highest priority first.

    Examples:
        'web3-solutions' -> ['web3solutions', 'web3-solutions',
                             'webthree-solutions', 'webthreesolutions']
        'one-medical'    -> ['onemedical', 'one-medical', '1-medical', '1medical']
        '123'            -> ['123', 'onetwothree']
    """
    candidates = []

    if '-' in slug:
        candidates.append(slug.replace('-', ''))
    candidates.append(slug)

    # Digits spelled out one at a time: '3d' -> 'threed', '24' -> 'twofour'
    if any(c.isdigit() for c in slug):
        spelled = re.sub(r'\d', lambda m: DIGIT_WORDS[int(m.group())], slug)
        candidates.append(spelled)
        if '-' in spelled:
            candidates.append(spelled.replace('-', ''))

    if _DIGIT_WORD_RE.search(slug):
        numeric = _DIGIT_WORD_RE.sub(lambda m: str(DIGIT_WORDS.index(m.group(1))), slug)
        numeric = re.sub(r'-{2,}', '-', numeric)
        candidates.append(numeric)
        candidates.append(numeric.replace('-', ''))

    return unique_in_order(candidates)


class DomainResolver:
    """Resolves slugs to live domains with concurrent, timeout-bounded DNS probes."""

    def __init__(self, config: CrawlerConfig, resolver=None):
        self.config = config
        self.timeout = config.dns_timeout_ms / 1000
        if resolver is None:
            resolver = dns.asyncresolver.Resolver()
            resolver.lifetime = self.timeout
        self.resolver = resolver
        self.lookups = 0

    async def _lookup(self, host: str) -> bool:
        """A record first, then a general address lookup."""
        try:
            await self.resolver.resolve(host, 'A')
            return True
        except dns.exception.DNSException:
            pass

        try:
            await self.resolver.resolve_name(host)
            return True
        except dns.exception.DNSException:
            return False

    async def probe(self, host: str) -> bool:
        """Check one host. Timeouts and DNS errors are just misses."""
        self.lookups += 1
        try:
            return await asyncio.wait_for(self._lookup(host), timeout=self.timeout)
        except asyncio.TimeoutError:
            return False

    async def race(self, hosts: list[str]) -> str | None:
        """
        Probe all hosts concurrently and return the first one that resolves.

        Remaining probes are cancelled once a winner settles.
        """
        if not hosts:
            return None

        async def probe_one(host: str) -> tuple[str, bool]:
            return host, await self.probe(host)

        tasks = [asyncio.create_task(probe_one(host)) for host in hosts]
        try:
            for next_done in asyncio.as_completed(tasks):
                host, found = await next_done
                if found:
                    return host
            return None
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    def exact_batches(self, bases: list[str]) -> list[list[str]]:
        return [[f"{base}.{tld}" for tld in self.config.tlds] for base in bases]

    def variant_batches(self, bases: list[str]) -> list[list[str]]:
        batches = []
        for base in bases[:VARIANT_BASE_LIMIT]:
            for variant in NAME_VARIANTS:
                name = variant.format(base=base)
                batches.append([f"{name}.{tld}" for tld in VARIANT_TLDS])
        return batches

    async def resolve(self, slug: str) -> str | None:
        """
        Find a live domain for a slug.

        Returns:
            Domain like 'acme.io', or None when nothing resolves
        """
        bases = generate_candidates(slug)

        for batch in self.exact_batches(bases) + self.variant_batches(bases):
            domain = await self.race(batch)
            if domain:
                return domain

        return None
