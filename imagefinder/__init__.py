"""
ImageFinder Crawler

A concurrent, depth-bounded same-host crawler that collects image, logo and
favicon URLs from a website.
"""

__version__ = "1.0.0"
__description__ = "A concurrent web crawler that finds images, logos and favicons on a website"
