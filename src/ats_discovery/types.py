"""
Crawler type definitions.

The crawler moves three kinds of records around:
    AtsDefinition  - how one ATS platform shows up in the web-archive index
    IndexRecord    - one parsed line of an index (CDX) response
    CompanyEntry   - one catalog row, persisted to slugs.json
"""

import re
from dataclasses import dataclass
from enum import Enum


class CrawlerError(Exception):
    """Base class for crawler failures that callers may want to handle."""


class AtsType(str, Enum):
    """Supported ATS platforms (value is the name written to the catalog)."""
    GREENHOUSE = 'greenhouse'
    LEVER = 'lever'
    SMARTRECRUITERS = 'smartrecruiters'
    ASHBY = 'ashby'
    WORKABLE = 'workable'
    RECRUITEE = 'recruitee'
    BREEZY = 'breezy'


@dataclass(frozen=True)
class AtsDefinition:
    """
    How to find one ATS platform in the index.

    Attributes:
        ats_type: Which platform this is
        target_url: Host (or host prefix) queried against the index
        match_type: 'prefix' for path-style boards, 'domain' for subdomain boards
        pattern: Regex with exactly one capture group - the company slug
        board_url_template: Human-facing board URL, with a {slug} placeholder
        api_url_template: Machine API URL, with a {slug} placeholder
        skip_reason: Set when the platform must never be harvested
    """
    ats_type: AtsType
    target_url: str
    match_type: str
    pattern: re.Pattern
    board_url_template: str
    api_url_template: str
    skip_reason: str | None = None

    def board_url(self, slug: str) -> str:
        return self.board_url_template.format(slug=slug)

    def api_url(self, slug: str) -> str:
        return self.api_url_template.format(slug=slug)

    @property
    def harvestable(self) -> bool:
        return self.skip_reason is None


@dataclass(frozen=True)
class IndexRecord:
    """One line of an index query response."""
    url: str
    status: str | None = None
    timestamp: str | None = None


@dataclass(frozen=True)
class CompanyEntry:
    """
    A company discovered on an ATS platform.

    (ats_type, slug) is the identity key across the whole catalog.
    domain is only set when it resolved in DNS during the run that created it.
    """
    name: str
    ats_type: str
    slug: str
    board_url: str
    api_url: str
    domain: str | None = None

    @property
    def key(self) -> tuple[str, str]:
        return self.ats_type, self.slug

    def to_dict(self) -> dict:
        data = {
            'name': self.name,
            'type': self.ats_type,
            'slug': self.slug,
            'board_url': self.board_url,
            'api_url': self.api_url,
        }
        if self.domain:
            data['domain'] = self.domain
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'CompanyEntry':
        return cls(
            name=data['name'],
            ats_type=data['type'],
            slug=data['slug'],
            board_url=data.get('board_url', ''),
            api_url=data.get('api_url', ''),
            domain=data.get('domain') or None,
        )
