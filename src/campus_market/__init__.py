"""Chat threads and seller contact workflow for a university marketplace."""

from campus_market._version import __version__

__all__ = ["__version__"]
