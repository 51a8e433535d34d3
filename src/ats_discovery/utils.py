"""
Shared helpers for the crawler.

Slug extraction, name formatting and index-line parsing.
"""

import json
import re

from .config import MIN_SLUG_LENGTH, RESERVED_SLUGS
from .types import AtsDefinition, IndexRecord


def extract_slug(url: str, ats: AtsDefinition, reserved: frozenset = RESERVED_SLUGS) -> str | None:
    """
    Extract a company slug from an ATS URL.

    Examples:
        boards.greenhouse.io/airbnb/jobs/123 -> airbnb
        acme.recruitee.com/o/engineer -> acme
        boards.greenhouse.io/embed/job_board -> None (reserved)

    Returns:
        Lowercased slug, or None if no match / too short / reserved
    """
    if not url:
        return None

    match = ats.pattern.search(url)
    if not match:
        return None

    slug = match.group(1).lower()
    if len(slug) < MIN_SLUG_LENGTH or slug in reserved:
        return None
    return slug


def format_name(slug: str) -> str:
    """Turn a slug into a display name: 'acme-corp' -> 'Acme Corp'.

    Empty parts from doubled separators are kept, so 'acme--corp' -> 'Acme  Corp'.
    A slug made only of separators keeps the slug itself as its name.
    """
    name = ' '.join(w[:1].upper() + w[1:] for w in re.split(r'[-_]', slug))
    return name if name.strip() else slug


def parse_index_line(line: str | bytes) -> IndexRecord | None:
    """Parse one NDJSON line from the index. Returns None for anything unusable."""
    try:
        data = json.loads(line)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError):
        return None

    if not isinstance(data, dict) or not isinstance(data.get('url'), str):
        return None

    return IndexRecord(
        url=data['url'],
        status=data.get('status'),
        timestamp=data.get('timestamp'),
    )


def unique_in_order(items) -> list:
    """Remove duplicates while preserving order (drops empty values)."""
    seen = set()
    unique = []
    for item in items:
        if item and item not in seen:
            seen.add(item)
            unique.append(item)
    return unique
