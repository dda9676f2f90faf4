"""Scrape portal attendance tables and keep daily snapshots, deltas and eligibility metrics."""

__version__ = "0.1.0"
