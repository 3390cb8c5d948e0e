"""Data models for tocsync."""

from tocsync.models.components import (
    Heading,
    InsertionPoint,
    ParsedDocument,
    ParsedHeading,
    SyncConfig,
    SyncResult,
    TOCBlock,
)

__all__ = [
    "Heading",
    "InsertionPoint",
    "ParsedDocument",
    "ParsedHeading",
    "SyncConfig",
    "SyncResult",
    "TOCBlock",
]
