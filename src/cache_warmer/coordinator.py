"""
Top-level cache warming run.

RunCoordinator takes the run lock, then for each site resolves its sitemap,
prioritizes the URLs and hands them to the BatchScheduler. The lock is
released on every exit path.
"""

import logging
import time
from typing import Optional, Sequence

from .constants import SITEMAP_PATH
from .logging_config import log_stats
from .models import Statistics
from .prioritizer import prioritize
from .run_lock import LockState, RunLock
from .scheduler import BatchScheduler
from .sitemap_parser import SitemapResolver

logger = logging.getLogger(__name__)


def sitemap_url_for(site: str) -> str:
    """Sitemap location of a site root."""
    return f"{site.rstrip('/')}{SITEMAP_PATH}"


class RunCoordinator:
    """
    Runs the whole warming workflow for a list of sites.

    Usage:
        stats = await RunCoordinator(config).run()
    """

    def __init__(
        self,
        config,
        resolver: Optional[SitemapResolver] = None,
        scheduler: Optional[BatchScheduler] = None,
        lock: Optional[RunLock] = None,
    ):
        """
        Initialize the coordinator.

        Args:
            config: WarmerConfig
            resolver: Sitemap resolver (defaults to one built from config)
            scheduler: Batch scheduler (defaults to one built from config)
            lock: Run lock (defaults to config.lock_file)
        """
        self.config = config
        self.resolver = resolver or SitemapResolver.from_config(config)
        self.scheduler = scheduler or BatchScheduler(config)
        self.lock = lock or RunLock(config.lock_file, config.lock_stale_seconds)

    async def run(self, sites: Optional[Sequence[str]] = None) -> Optional[Statistics]:
        """
        Warm every site.

        Args:
            sites: Site roots; defaults to config.sites

        Returns:
            Totals over all sites, or None if another run holds the lock
        """
        sites = list(sites if sites is not None else self.config.sites)

        with self.lock.hold() as state:
            if state is LockState.ALREADY_HELD:
                return None

            start_time = time.time()
            totals = Statistics()
            for site in sites:
                try:
                    site_stats = await self.warm_site(site)
                except Exception as e:
                    # One broken site must not stop the remaining sites
                    logger.error(
                        f"Error during cache warming of {site} - {type(e).__name__}: {e}",
                        exc_info=True,
                    )
                    continue
                if site_stats is not None:
                    totals.merge(site_stats)

            totals.execution_time_seconds = time.time() - start_time
            log_stats(logger, totals, sites=len(sites))
            return totals

    async def warm_site(self, site: str) -> Optional[Statistics]:
        """
        Warm one site.

        Returns:
            Statistics for the site, or None if its sitemap yielded no URLs
        """
        logger.info(f"Parsing site: {site}")
        records = await self.resolver.resolve(sitemap_url_for(site))

        if not records:
            logger.info(f"No URLs to warm: {site}")
            return None

        prioritized = prioritize(
            records,
            self.config.priority_patterns,
            self.config.max_urls_per_site,
        )
        logger.info(f"Selected URLs: {len(prioritized)} of {len(records)} for {site}")

        stats = await self.scheduler.run(prioritized)
        log_stats(logger, stats, site=site)
        return stats
