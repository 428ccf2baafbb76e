"""URL exclusion and prioritization."""

from typing import Iterable, List, Optional, Sequence

from .models import UrlRecord


def is_excluded(url: str, exclude_patterns: Iterable[str]) -> bool:
    """Whether url contains any of the excluded path substrings."""
    return any(pattern in url for pattern in exclude_patterns)


def is_absolute_http_url(url: str) -> bool:
    return url.startswith(("http://", "https://"))


def prioritize(
    records: Iterable[UrlRecord],
    priority_patterns: Sequence[str] = (),
    max_per_site: Optional[int] = 0,
) -> List[UrlRecord]:
    """Order records for warming.

    Records matching an earlier pattern of priority_patterns come first. When
    the patterns do not decide, higher sitemap priority comes first. The sort
    is stable, so ties keep their sitemap order.

    Args:
        records: Records in sitemap order
        priority_patterns: URL substrings, most important first
        max_per_site: Keep only the first N records after sorting; 0 or None
            means no cap

    Returns:
        New ordered list; the input is not modified
    """
    patterns = list(priority_patterns)

    def sort_key(record: UrlRecord):
        # A matched pattern sorts before an unmatched one at the first
        # pattern where two records differ.
        matches = tuple(0 if pattern in record.url else 1 for pattern in patterns)
        return matches + (-record.priority,)

    ordered = sorted(records, key=sort_key)

    if max_per_site and max_per_site > 0:
        return ordered[:max_per_site]
    return ordered
