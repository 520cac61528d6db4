"""
Result accumulation for discovered images, logo candidates and favicons.
"""

from typing import Dict, List, Optional

from .url_store import ResultSet


LOGO_MARKER = "logo"


def is_logo_candidate(image_url: str, alt_text: Optional[str] = None) -> bool:
    """Check if an image URL or its alt text mentions a logo."""
    if LOGO_MARKER in image_url.lower():
        return True
    return bool(alt_text) and LOGO_MARKER in alt_text.lower()


class CrawlResults:
    """Image, logo and favicon URL sets for a single crawl run."""

    def __init__(self):
        self.images = ResultSet()
        self.logos = ResultSet()
        self.favicons = ResultSet()

    def add_image(self, image_url: str, alt_text: Optional[str] = None) -> bool:
        """
        Record an image URL, and also record it as a logo candidate if it
        looks like one. The image is always added first, so logos stay a
        subset of images.

        Returns True if the image was recorded as a logo candidate.
        """
        self.images.add(image_url)
        if is_logo_candidate(image_url, alt_text):
            self.logos.add(image_url)
            return True
        return False

    def add_favicon(self, icon_url: str):
        self.favicons.add(icon_url)

    def image_urls(self) -> List[str]:
        return self.images.snapshot()

    def to_dict(self) -> Dict[str, List[str]]:
        """Snapshot all three sets for serialization."""
        return {
            'images': self.images.snapshot(),
            'logos': self.logos.snapshot(),
            'favicons': self.favicons.snapshot(),
        }
