"""Submission orchestration, image handling and maintenance passes."""

from __future__ import annotations

from .submission import SubmissionResult, SubmissionService

__all__ = ["SubmissionResult", "SubmissionService"]
