"""
Catalog persistence (slugs.json).

The catalog is a pretty-printed JSON array of company entries. New entries
are spliced onto the end of the array in place, so a crash mid-run loses at
most the current unflushed buffer and earlier bytes are never rewritten.

Single writer only: appends must not run concurrently.
"""

import json
import os
from pathlib import Path

from .types import CompanyEntry, CrawlerError

_WHITESPACE = b' \t\r\n'


class StoreLoadError(CrawlerError):
    """Existing catalog is unreadable - refuse to append to it."""


class AppendCorruptionError(CrawlerError):
    """Could not find the closing bracket of the catalog array."""


def _serialize(entries: list[CompanyEntry]) -> str:
    """Serialize entries as array elements indented to match json.dump(indent=2)."""
    blocks = []
    for entry in entries:
        block = json.dumps(entry.to_dict(), indent=2, ensure_ascii=False)
        blocks.append('\n'.join('  ' + line for line in block.splitlines()))
    return ',\n'.join(blocks)


class EntryStore:
    """Loads and appends CompanyEntry records to a JSON array file."""

    def __init__(self, path: str | Path, window: int = 4096):
        self.path = Path(path)
        self.window = window

    def load(self) -> list[CompanyEntry]:
        """
        Read the existing catalog.

        Returns:
            Entries in file order, or [] if the file doesn't exist yet

        Raises:
            StoreLoadError: File exists but isn't a JSON array of entries
        """
        if not self.path.exists():
            return []

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise StoreLoadError(f"Failed to read {self.path}: {e}") from e

        if not isinstance(data, list):
            raise StoreLoadError(f"{self.path} does not contain a JSON array")

        try:
            return [CompanyEntry.from_dict(item) for item in data]
        except (KeyError, TypeError, AttributeError) as e:
            raise StoreLoadError(f"Malformed entry in {self.path}: {e}") from e

    def _write_fresh(self, entries: list[CompanyEntry]):
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump([entry.to_dict() for entry in entries], f, indent=2, ensure_ascii=False)

    def _find_splice_offset(self, f) -> tuple[int, bool]:
        """
        Locate where new elements go.

        Returns:
            (offset, needs_comma) - offset just past the last array element
            (or just past '[' for an empty array)
        """
        size = f.seek(0, os.SEEK_END)
        start = max(0, size - self.window)
        f.seek(start)
        tail = f.read(size - start)

        close = tail.rfind(b']')
        if close == -1:
            raise AppendCorruptionError(
                f"No closing bracket in the last {self.window} bytes of {self.path}"
            )

        # Walk back from ']' to the previous non-whitespace byte, reading
        # further back in the file if the window runs out
        pos = start + close - 1
        chunk_start, chunk = start, tail
        while pos >= 0:
            if pos < chunk_start:
                chunk_start = max(0, pos + 1 - self.window)
                f.seek(chunk_start)
                chunk = f.read(pos + 1 - chunk_start)

            byte = chunk[pos - chunk_start:pos - chunk_start + 1]
            if byte not in _WHITESPACE:
                return pos + 1, byte != b'['
            pos -= 1

        raise AppendCorruptionError(f"No opening bracket before the closing bracket in {self.path}")

    def append_batch(self, entries: list[CompanyEntry]):
        """
        Append entries to the catalog without rewriting existing content.

        Raises:
            AppendCorruptionError: Closing bracket not found near end of file
        """
        if not entries:
            return

        if not self.path.exists():
            self._write_fresh(entries)
            return

        with open(self.path, 'r+b') as f:
            offset, needs_comma = self._find_splice_offset(f)
            payload = (',\n' if needs_comma else '\n') + _serialize(entries) + '\n]'

            f.seek(offset)
            f.write(payload.encode('utf-8'))
            f.truncate()

    def finalize(self, entries: list[CompanyEntry]):
        """Rewrite the whole catalog sorted by name (legacy canonical output)."""
        self._write_fresh(sorted(entries, key=lambda entry: entry.name.lower()))
