"""Shared building blocks: errors, logging helpers and constants."""

from feedstore.shared.errors import ErrorCode, ErrorContext, FeedStoreError

__all__ = ["ErrorCode", "ErrorContext", "FeedStoreError"]
