"""Bags.fm fee collector and buyback bot."""

__version__ = "0.1.0"
