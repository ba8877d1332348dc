"""HTTP interface: FastAPI application factory, access gate and routers."""

from __future__ import annotations

__all__ = ["__doc__"]
