"""
Package version.

Kept in a standalone module so packaging tools can read it without importing
the package.
"""

__version__ = "0.1.0"
