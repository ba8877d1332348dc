"""Core package initializer for timeledger.

Settings, the error taxonomy, entry contracts and the CSV row codec live here:
    from timeledger.core.settings import Settings, load_settings, get_logger
"""

from __future__ import annotations

__all__ = ["__doc__"]
