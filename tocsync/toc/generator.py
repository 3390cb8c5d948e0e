"""Table of Contents generator for markdown documents."""

import re

from tocsync.analyzer.parser import MarkdownParser, has_terminator, line_content
from tocsync.models.components import (
    Heading,
    InsertionPoint,
    ParsedDocument,
    SyncConfig,
    SyncResult,
    TOCBlock,
)

IMAGE_RE = re.compile(r"!\[([^\]]*)\]\([^)]*\)")
INLINE_LINK_RE = re.compile(r"\[([^\]]*)\]\([^)]*\)")
REFERENCE_LINK_RE = re.compile(r"\[([^\]]*)\]\[[^\]]*\]")
HTML_TAG_RE = re.compile(r"</?[A-Za-z][^>]*>")
PUNCTUATION_RE = re.compile(r"[^\w\s-]")
WHITESPACE_RE = re.compile(r"\s+")

DEFAULT_SLUG = "section"


def plain_title(title: str) -> str:
    """Reduce a heading title to text usable as a link label.

    Links and images are replaced by their label, HTML tags are dropped.
    """
    title = IMAGE_RE.sub(r"\1", title)
    title = INLINE_LINK_RE.sub(r"\1", title)
    title = REFERENCE_LINK_RE.sub(r"\1", title)
    title = HTML_TAG_RE.sub("", title)
    return WHITESPACE_RE.sub(" ", title).strip()


def slugify(title: str) -> str:
    """Convert a title to an anchor slug.

    Lower-cases, strips punctuation and replaces whitespace runs with a
    hyphen. Titles with nothing left become ``section``.
    """
    slug = PUNCTUATION_RE.sub("", title.lower()).strip()
    slug = WHITESPACE_RE.sub("-", slug)
    return slug or DEFAULT_SLUG


def unique_slug(base: str, used: set[str]) -> str:
    """Return ``base`` or the first free ``base-N`` and mark it as used."""
    slug = base
    suffix = 1
    while slug in used:
        slug = f"{base}-{suffix}"
        suffix += 1
    used.add(slug)
    return slug


class TOCGenerator:
    """Generate and maintain a table of contents inside markdown text."""

    def __init__(self, config: SyncConfig | None = None):
        """Initialize the TOC generator.

        Args:
            config: Synchronization settings. Defaults are used when omitted.
        """
        self.config = config or SyncConfig()
        self.parser = MarkdownParser(
            open_marker=self.config.open_marker,
            close_marker=self.config.close_marker,
        )

    def extract_headings(self, text: str) -> list[Heading]:
        """Extract every heading of a document with its slug.

        Args:
            text: Markdown source.

        Returns:
            Headings in document order, excluding those inside code fences,
            front matter or the TOC block.
        """
        return self._headings(self.parser.parse(text))

    def select(self, headings: list[Heading]) -> list[Heading]:
        """Filter headings according to the configured depth range."""
        selected = list(headings)

        if self.config.skip_first_h1:
            for index, heading in enumerate(selected):
                if heading.level == 1:
                    del selected[index]
                    break

        return [
            heading
            for heading in selected
            if self.config.min_depth <= heading.level <= self.config.max_depth
        ]

    def render(self, headings: list[Heading]) -> list[str]:
        """Render headings as nested markdown list lines."""
        if not headings:
            return []

        min_level = min(heading.level for heading in headings)
        lines = []
        for heading in headings:
            indent = " " * (self.config.indent * (heading.level - min_level))
            lines.append(f"{indent}{self.config.bullet} [{heading.title}](#{heading.slug})")
        return lines

    def build_block(self, headings: list[Heading]) -> list[str]:
        """Render the full TOC block, markers included."""
        items = self.render(headings)
        if not items:
            return [self.config.open_marker, self.config.close_marker]
        return [self.config.open_marker, "", *items, "", self.config.close_marker]

    def synchronize(self, text: str) -> str:
        """Return ``text`` with an up-to-date TOC block.

        Calling this on its own output returns the output unchanged.
        """
        return self.sync(text).text

    def sync(self, text: str) -> SyncResult:
        """Synchronize the TOC block of ``text``.

        An existing block is refreshed in place; otherwise a new block is
        inserted at the configured insertion point. Text outside the block is
        left untouched.

        Args:
            text: Markdown source, possibly empty or malformed.

        Returns:
            SyncResult with the new text and what happened.
        """
        document = self.parser.parse(text)

        if len(document.blocks) > 1:
            # Dropping blocks can join lines into new setext headings, so the
            # list is built from the text without them
            first, *extra = document.blocks
            empty_block = document.newline.join(
                [self.config.open_marker, self.config.close_marker]
            )
            result = self.sync(self._replace_block(document, first, extra, empty_block))
            warning = (
                f"Found {len(document.blocks)} TOC blocks; kept the one at "
                f"line {first.start_line + 1} and removed the others"
            )
            return result.model_copy(
                update={
                    "changed": result.text != text,
                    "warnings": [warning, *result.warnings],
                }
            )

        headings = self._headings(document)
        block_text = document.newline.join(self.build_block(self.select(headings)))

        if document.blocks:
            new_text = self._replace_block(document, document.blocks[0], [], block_text)
            inserted = False
        else:
            index = self._insertion_index(document)
            new_text = self._insert_block(document, index, block_text)
            inserted = True

        return SyncResult(
            text=new_text,
            headings=headings,
            changed=new_text != text,
            inserted=inserted,
        )

    def strip(self, text: str) -> str:
        """Remove every TOC block from ``text``."""
        document = self.parser.parse(text)
        if not document.blocks:
            return text
        return "".join(self._drop_blocks(document.lines, document.blocks))

    def to_dict(self, headings: list[Heading]) -> list[dict]:
        """Convert headings to a JSON-ready representation."""
        return [heading.model_dump() for heading in headings]

    def _headings(self, document: ParsedDocument) -> list[Heading]:
        used = set()
        headings = []
        for parsed in document.headings:
            title = plain_title(parsed.title)
            headings.append(
                Heading(
                    level=parsed.level,
                    title=title,
                    slug=unique_slug(slugify(title), used),
                    line_number=parsed.start_line + 1,
                )
            )
        return headings

    def _insertion_index(self, document: ParsedDocument) -> int:
        """Return the line index before which a new block is inserted."""
        if self.config.insertion_point == InsertionPoint.AFTER_FIRST_H1:
            for parsed in document.headings:
                if parsed.level == 1:
                    return parsed.end_line + 1
        return document.body_start

    def _insert_block(self, document: ParsedDocument, index: int, block_text: str) -> str:
        before = "".join(document.lines[:index])
        after = "".join(document.lines[index:])
        newline = document.newline

        # Only the last line can lack a terminator
        if index > 0 and not has_terminator(document.lines[index - 1]):
            return before + newline + block_text + after
        return before + block_text + newline + after

    def _replace_block(
        self,
        document: ParsedDocument,
        block: TOCBlock,
        extra: list[TOCBlock],
        block_text: str,
    ) -> str:
        lines = list(document.lines)
        last = lines[block.end_line]
        terminator = last[len(line_content(last)):]
        lines[block.start_line:block.end_line + 1] = [block_text + terminator]

        # Later blocks shift up by the lines the first block lost
        shift = block.end_line - block.start_line
        shifted = [
            TOCBlock(start_line=b.start_line - shift, end_line=b.end_line - shift)
            for b in extra
        ]
        return "".join(self._drop_blocks(lines, shifted))

    @staticmethod
    def _drop_blocks(lines: list[str], blocks: list[TOCBlock]) -> list[str]:
        dropped = set()
        for block in blocks:
            dropped.update(range(block.start_line, block.end_line + 1))

        kept = [line for index, line in enumerate(lines) if index not in dropped]

        # A removed final line took the end of the text with it
        if kept and (len(lines) - 1) in dropped and not has_terminator(lines[-1]):
            kept[-1] = line_content(kept[-1])

        return kept


def synchronize(text: str, config: SyncConfig | None = None) -> str:
    """Return ``text`` with a synchronized table of contents."""
    return TOCGenerator(config).synchronize(text)
