"""Compliance Masonry - OpenControl workspace loading and gap analysis."""

__version__ = "1.1.0"
