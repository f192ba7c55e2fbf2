"""TikTok video page scraper: fetch, extract, normalize, persist."""

__version__ = "0.1.0"
