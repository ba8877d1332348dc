"""timeledger: append timeline entries to a CSV dataset kept in a hosted git repository."""

from __future__ import annotations

__all__ = ["__version__"]
__version__ = "0.3.0"
