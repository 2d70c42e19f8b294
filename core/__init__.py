"""Stateless aggregation core: normalize, deduplicate, rank, and judge findings."""

__version__ = "1.0.0"
