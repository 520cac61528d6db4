"""
Host extraction and same-host link policy.
"""

import logging
from typing import Optional
from urllib.parse import urlparse


logger = logging.getLogger(__name__)


def get_host(url: str) -> Optional[str]:
    """
    Extract the host part of an absolute URL.

    Returns None when the URL can't be parsed or has no host, so callers can
    treat a malformed URL the same way as one without a host.
    """
    if not url:
        return None

    try:
        host = urlparse(url).hostname
    except ValueError:
        logger.debug(f"Invalid URL: {url}")
        return None

    return host or None


class DomainPolicy:
    """
    Decides whether a discovered link may be followed.

    The reference host is whatever page the link was found on, not the seed,
    so the restriction is re-evaluated at every hop.
    """

    def same_host(self, candidate_url: str, reference_host: Optional[str]) -> bool:
        """Check if candidate_url lives on reference_host (case-insensitive)."""
        if not reference_host:
            return False

        host = get_host(candidate_url)
        return host is not None and host.lower() == reference_host.lower()

    def allows(self, candidate_url: str, page_url: str) -> bool:
        """Check a link found on page_url against that page's own host."""
        return self.same_host(candidate_url, get_host(page_url))
