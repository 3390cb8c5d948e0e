"""Markdown structure analysis module."""

from tocsync.analyzer.parser import MarkdownParser, split_lines

__all__ = ["MarkdownParser", "split_lines"]
