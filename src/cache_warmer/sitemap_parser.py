"""Sitemap resolver: fetches a sitemap and expands nested sitemap indexes."""

import gzip
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set
from xml.etree import ElementTree as ET

import httpx

from .constants import DEFAULT_REQUEST_TIMEOUT_MS, DEFAULT_USER_AGENT
from .exceptions import FetchError, ParseError
from .models import UrlRecord, parse_priority
from .prioritizer import is_absolute_http_url, is_excluded

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"


@dataclass
class SitemapDocument:
    """Parsed shape of one sitemap document.

    A <urlset> fills `entries` (one dict per <url> with loc, lastmod and
    priority texts); a <sitemapindex> fills `sitemaps` with the nested <loc>
    values. Any other root leaves both empty.
    """
    root_tag: str = ""
    entries: List[Dict[str, Optional[str]]] = field(default_factory=list)
    sitemaps: List[str] = field(default_factory=list)


def _local_name(tag: str) -> str:
    """Tag name without its XML namespace."""
    return tag.split('}')[-1] if '}' in tag else tag


def _child_text(element: ET.Element, name: str) -> Optional[str]:
    for child in element:
        if _local_name(child.tag) == name:
            return child.text.strip() if child.text else None
    return None


def _clean_xml_content(content: bytes) -> bytes:
    """Decompress gzipped sitemaps and drop any DOCTYPE declaration."""
    if content.startswith(GZIP_MAGIC):
        try:
            content = gzip.decompress(content)
        except (OSError, EOFError) as e:
            raise ValueError(f"Invalid gzip sitemap: {e}") from e
    return re.sub(rb'<!DOCTYPE[^>]*>', b'', content)


def parse_sitemap_document(content: bytes, url: str = "") -> SitemapDocument:
    """
    Parse sitemap bytes into a SitemapDocument.

    Args:
        content: Raw (optionally gzipped) XML body
        url: Source URL, used in error messages

    Returns:
        SitemapDocument

    Raises:
        ParseError: If the body is not well-formed XML
    """
    try:
        root = ET.fromstring(_clean_xml_content(content))
    except (ET.ParseError, ValueError) as e:
        raise ParseError(f"Failed to parse sitemap XML: {e}", url) from e

    document = SitemapDocument(root_tag=_local_name(root.tag))

    if document.root_tag == 'urlset':
        for element in root:
            if _local_name(element.tag) != 'url':
                continue
            document.entries.append({
                'loc': _child_text(element, 'loc'),
                'lastmod': _child_text(element, 'lastmod'),
                'priority': _child_text(element, 'priority'),
            })
    elif document.root_tag == 'sitemapindex':
        for element in root:
            if _local_name(element.tag) != 'sitemap':
                continue
            loc = _child_text(element, 'loc')
            if loc:
                document.sitemaps.append(loc)
    else:
        logger.warning(f"Unknown sitemap root element: {document.root_tag}")

    return document


class SitemapResolver:
    """
    Resolve a sitemap URL into a flat, ordered list of UrlRecords.

    Supports:
    - Standard sitemap.xml files
    - Sitemap index files, expanded recursively in document order
    - Gzipped sitemaps

    Failures never propagate: a sitemap that cannot be fetched or parsed
    contributes no URLs, and its siblings are still resolved. Every sitemap
    URL is fetched at most once per resolve() call, so cyclic indexes
    terminate.
    """

    def __init__(
        self,
        exclude_patterns: Sequence[str] = (),
        user_agent: str = DEFAULT_USER_AGENT,
        timeout_ms: int = DEFAULT_REQUEST_TIMEOUT_MS,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the resolver.

        Args:
            exclude_patterns: URL substrings dropped from the result
            user_agent: User agent sent with sitemap requests
            timeout_ms: Fetch timeout per sitemap document
            client: Shared HTTP client; when None a client is created per resolve()
        """
        self.exclude_patterns = list(exclude_patterns)
        self.user_agent = user_agent
        self.timeout_ms = timeout_ms
        self._client = client

    @classmethod
    def from_config(cls, config, client: Optional[httpx.AsyncClient] = None) -> "SitemapResolver":
        return cls(
            exclude_patterns=config.exclude_patterns,
            user_agent=config.user_agent,
            timeout_ms=config.request_timeout,
            client=client,
        )

    async def resolve(self, sitemap_url: str) -> List[UrlRecord]:
        """
        Fetch and expand a sitemap.

        Args:
            sitemap_url: URL of sitemap.xml or of a sitemap index

        Returns:
            UrlRecords in document order (empty on failure)
        """
        visited: Set[str] = set()

        if self._client is not None:
            return await self._resolve(self._client, sitemap_url, visited)

        async with httpx.AsyncClient(
            timeout=self.timeout_ms / 1000,
            follow_redirects=True,
            headers=self._headers(),
        ) as client:
            return await self._resolve(client, sitemap_url, visited)

    def _headers(self) -> Dict[str, str]:
        return {
            'User-Agent': self.user_agent,
            'Accept': 'application/xml, text/xml, */*',
        }

    async def _resolve(
        self,
        client: httpx.AsyncClient,
        sitemap_url: str,
        visited: Set[str],
    ) -> List[UrlRecord]:
        if sitemap_url in visited:
            logger.warning(f"Skipping already visited sitemap: {sitemap_url}")
            return []
        visited.add(sitemap_url)

        logger.info(f"Extracting URLs from sitemap: {sitemap_url}")
        try:
            content = await self._fetch(client, sitemap_url)
            document = parse_sitemap_document(content, sitemap_url)
        except (FetchError, ParseError) as e:
            logger.error(f"Failed to extract sitemap {sitemap_url} - {e}")
            return []

        records = self._to_records(document.entries)

        for nested_url in document.sitemaps:
            logger.info(f"Found child sitemap: {nested_url}")
            records.extend(await self._resolve(client, nested_url, visited))

        logger.info(f"Extracted {len(records)} URLs from {sitemap_url}")
        return records

    async def _fetch(self, client: httpx.AsyncClient, url: str) -> bytes:
        try:
            response = await client.get(
                url,
                headers=self._headers(),
                timeout=self.timeout_ms / 1000,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FetchError(
                f"HTTP {e.response.status_code} fetching sitemap",
                url,
                status_code=e.response.status_code,
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeError) as e:
            # InvalidURL is raised while building the request, outside HTTPError
            raise FetchError(f"{type(e).__name__}: {e}", url) from e
        return response.content

    def _to_records(self, entries: List[Dict[str, Optional[str]]]) -> List[UrlRecord]:
        records = []
        for entry in entries:
            url = entry.get('loc')
            if not url or not is_absolute_http_url(url):
                continue
            if is_excluded(url, self.exclude_patterns):
                continue
            records.append(UrlRecord(
                url=url,
                last_modified=entry.get('lastmod') or None,
                priority=parse_priority(entry.get('priority')),
            ))
        return records
