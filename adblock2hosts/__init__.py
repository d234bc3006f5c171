"""Merge remote adblock lists into a single hosts-format blocklist."""

__version__ = "0.1.0"
