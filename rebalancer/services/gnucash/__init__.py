"""Readers for GnuCash books (SQLite and XML backends)."""

from rebalancer.services.gnucash.book import Book

__all__ = ["Book"]
