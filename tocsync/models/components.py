"""Data models for headings, TOC blocks and synchronization settings."""

import re
from enum import Enum

from pydantic import BaseModel, Field, field_validator

# The markdown-toc markers, recognized whatever the configured markers are
OPEN_MARKER_RE = re.compile(r"^<!--\s*toc\s*-->$", re.IGNORECASE)
CLOSE_MARKER_RE = re.compile(r"^<!--\s*toc\s*stop\s*-->$", re.IGNORECASE)


class InsertionPoint(str, Enum):
    """Where a fresh TOC block goes when a document has none."""

    AFTER_FIRST_H1 = "after_first_h1"
    TOP = "top"


class Heading(BaseModel):
    """A heading found in a markdown document."""

    level: int = Field(..., ge=1, le=6, description="Heading level (1 = top level)")
    title: str = Field(..., description="Heading text as written in the source")
    slug: str = Field(..., description="Anchor identifier for the heading")
    line_number: int = Field(..., description="1-based line of the heading text")

    def as_tuple(self) -> tuple[int, str, str]:
        """Return the heading as a ``(level, title, slug)`` triple."""
        return (self.level, self.title, self.slug)


class ParsedHeading(BaseModel):
    """A heading as located by the parser, before slugging."""

    level: int
    title: str
    start_line: int = Field(..., description="0-based index of the heading text")
    end_line: int = Field(..., description="0-based index of the last line (underline for setext)")


class TOCBlock(BaseModel):
    """Location of a TOC block, as 0-based line indexes (inclusive)."""

    start_line: int
    end_line: int

    @property
    def has_close_marker(self) -> bool:
        """A lone open marker occupies a single line."""
        return self.end_line > self.start_line


class ParsedDocument(BaseModel):
    """Line-level structure of a markdown document."""

    lines: list[str] = Field(
        default_factory=list, description="Raw lines including their terminators"
    )
    newline: str = "\n"
    body_start: int = Field(0, description="First line after any front matter")
    headings: list[ParsedHeading] = Field(default_factory=list)
    blocks: list[TOCBlock] = Field(default_factory=list)


class SyncConfig(BaseModel):
    """Configuration for TOC synchronization."""

    open_marker: str = "<!-- toc -->"
    close_marker: str = "<!-- tocstop -->"
    insertion_point: InsertionPoint = InsertionPoint.AFTER_FIRST_H1
    min_depth: int = Field(1, ge=1, le=6)
    max_depth: int = Field(6, ge=1, le=6)
    skip_first_h1: bool = Field(
        False, description="Leave the first level-1 heading out of the list"
    )
    bullet: str = "-"
    indent: int = Field(2, ge=1, description="Spaces per nesting level")

    class Config:
        """Pydantic configuration."""

        extra = "forbid"
        validate_default = True

    @field_validator("open_marker", "close_marker")
    @classmethod
    def check_marker(cls, value: str, info) -> str:
        """Store markers stripped, and keep the pair distinguishable.

        A marker must be a single non-empty line. The parser must be able to
        tell it apart from fence and front matter lines, and from the other
        marker.
        """
        value = value.strip()
        if not value:
            raise ValueError("marker must not be empty")
        if "\n" in value or "\r" in value:
            raise ValueError("marker must be a single line")
        if value.startswith(("```", "~~~")) or value in ("---", "..."):
            raise ValueError("marker must not look like a code fence or front matter delimiter")

        if info.field_name == "close_marker" and "open_marker" in info.data:
            open_marker = info.data["open_marker"]
            if value == open_marker:
                raise ValueError("close_marker must differ from open_marker")
            if OPEN_MARKER_RE.match(value) or CLOSE_MARKER_RE.match(open_marker):
                raise ValueError("markers must not swap the roles of <!-- toc --> and <!-- tocstop -->")
        return value

    @field_validator("bullet")
    @classmethod
    def check_bullet(cls, value: str) -> str:
        if value not in ("-", "*", "+"):
            raise ValueError("bullet must be one of '-', '*', '+'")
        return value

    @field_validator("max_depth")
    @classmethod
    def check_depth_range(cls, value: int, info) -> int:
        min_depth = info.data.get("min_depth", 1)
        if value < min_depth:
            raise ValueError("max_depth must not be smaller than min_depth")
        return value


class SyncResult(BaseModel):
    """Outcome of synchronizing one document."""

    text: str
    headings: list[Heading] = Field(default_factory=list)
    changed: bool = False
    inserted: bool = Field(False, description="Fresh markers were added")
    warnings: list[str] = Field(default_factory=list)
