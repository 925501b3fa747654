"""Classify unread FreshRSS items with an LLM and remove advertisements."""

__version__ = "0.1.0"
