"""Table of Contents generation and persistence module."""

from tocsync.toc.generator import TOCGenerator, slugify, synchronize
from tocsync.toc.persistence import ConfigManager, DocumentStore, strip_file, sync_file

__all__ = [
    "ConfigManager",
    "DocumentStore",
    "TOCGenerator",
    "slugify",
    "strip_file",
    "sync_file",
    "synchronize",
]
