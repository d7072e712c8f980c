"""
pixelmeta - ROM metadata scraper and cache for the Pixel front-end

Turns ROM filenames into normalized game metadata using ScreenScraper or
IGDB, downloads the best artwork per category and caches everything under
the application data directory.
"""

__version__ = "0.3.0"
__author__ = "pixel-frontend"
