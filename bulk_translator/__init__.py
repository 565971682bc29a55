"""Bulk creation of content translations from a source language revision."""

__version__ = "0.1.0"
