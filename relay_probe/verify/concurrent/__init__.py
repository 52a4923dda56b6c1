"""Concurrent verification components."""

from .runner import CONCURRENCY_LIMIT, VerificationRun, VerificationRunner

__all__ = ["CONCURRENCY_LIMIT", "VerificationRun", "VerificationRunner"]
