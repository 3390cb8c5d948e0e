"""tocsync - keep the table of contents of a markdown file up to date."""

from tocsync.toc import TOCGenerator, sync_file, synchronize

__version__ = "0.1.0"

__all__ = ["TOCGenerator", "sync_file", "synchronize", "__version__"]
