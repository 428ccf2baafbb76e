"""
Infrastructure Package.

Provides the browser session, request blocking policy and request throttling
used while warming pages.
"""

from .browser_session import BrowserSession
from .request_policy import RequestPolicy
from .throttle import RandomDelay
from .browser_setup import install_browser

__all__ = [
    # Browser
    "BrowserSession",
    "install_browser",
    # Request shaping
    "RequestPolicy",
    "RandomDelay",
]
