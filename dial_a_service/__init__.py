"""
Top-level package for the Dial a Service API.

All functionality lives in submodules under ``app``; the package
itself has no public exports.
"""

__all__ = []
