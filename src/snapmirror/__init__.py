"""Publish a private branch as snapshot commits on a public branch."""

__version__ = "0.1.0"
