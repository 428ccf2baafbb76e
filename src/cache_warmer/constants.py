# src/cache_warmer/constants.py
"""Centralized constants for the cache warmer.

Default values shared by the configuration model, the browser layer and the
run coordinator. For user-configurable values, see config.py and WarmerConfig.
"""

# =============================================================================
# Run Constants
# =============================================================================

# URLs visited under one browser process before it is recycled
DEFAULT_BATCH_SIZE = 50

# Concurrent pages in the bounded worker pool mode
DEFAULT_MAX_CONCURRENCY = 3

# Navigation timeout per page (milliseconds)
DEFAULT_PAGE_TIMEOUT_MS = 60000

# Sitemap fetch timeout (milliseconds)
DEFAULT_REQUEST_TIMEOUT_MS = 20000

# Randomized pause after each URL (milliseconds)
DEFAULT_DELAY_MIN_MS = 500
DEFAULT_DELAY_MAX_MS = 2000

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; CacheWarmer/1.0)"

# Sitemap location relative to the site root
SITEMAP_PATH = "/sitemap.xml"


# =============================================================================
# Lock Constants
# =============================================================================

DEFAULT_LOCK_FILE = "/tmp/cache_warmer.lock"

# Age after which a leftover lock file is considered abandoned
DEFAULT_LOCK_STALE_HOURS = 3.0


# =============================================================================
# Logging Constants
# =============================================================================

DEFAULT_LOG_DIR = "~/logs/cache_warmer"

LOG_FILE_TEMPLATE = "cache_warming_{date}.log"


# =============================================================================
# Composite Cache Constants
# =============================================================================

# Paths that never produce cacheable public pages
DEFAULT_EXCLUDE_PATTERNS = [
    "/bitrix/",
    "/admin/",
    "/auth/",
    "/?login=",
    "/?logout=",
    "/ajax/",
    ".php",
]

# Resource types that do not influence server-side cache generation
DEFAULT_BLOCKED_RESOURCE_TYPES = ["image", "media", "font"]

# Analytics, ads and social widgets
DEFAULT_BLOCKED_URL_SUBSTRINGS = [
    "yandex",
    "google",
    "vk.com",
    "facebook",
    "gstat",
    "ya.",
    "tag",
]

# Cache-busting query parameters appended to every warmed URL
DEFAULT_QUERY_PARAMS = [("clear_cache", "Y")]

# Client-side marker set by the composite cache once the page was stored
DEFAULT_SUCCESS_PROBE = """
() => {
    try {
        return typeof window.BX !== 'undefined'
            && typeof window.BX.getCacheFlag === 'function'
            && window.BX.getCacheFlag() === true;
    } catch (e) {
        return false;
    }
}
"""

GUEST_ID_COOKIE = "BITRIX_SM_GUEST_ID"
LAST_VISIT_COOKIE = "BITRIX_SM_LAST_VISIT"

# Bytes of randomness in the generated guest id
GUEST_ID_BYTES = 10

DEFAULT_LAUNCH_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]
