"""Line-based markdown scanner for headings, code fences and TOC markers."""

import re

from tocsync.models.components import (
    CLOSE_MARKER_RE,
    OPEN_MARKER_RE,
    ParsedDocument,
    ParsedHeading,
    TOCBlock,
)

ATX_HEADING_RE = re.compile(r"^ {0,3}(#{1,6})[ \t]+(.+?)(?:[ \t]+#+)?[ \t]*$")
SETEXT_UNDERLINE_RE = re.compile(r"^ {0,3}(=+|-+)[ \t]*$")
FENCE_OPEN_RE = re.compile(r"^ {0,3}(`{3,}|~{3,})(.*)$")
FENCE_CLOSE_RE = re.compile(r"^ {0,3}(`{3,}|~{3,})[ \t]*$")
# Lines that start some other block and so cannot carry a setext heading
NON_PARAGRAPH_RE = re.compile(r"^ {0,3}(?:[-*+][ \t]|\d{1,9}[.)][ \t]|>|\|)")
THEMATIC_BREAK_RE = re.compile(r"^ {0,3}([-*_])(?:[ \t]*\1){2,}[ \t]*$")
LINE_SPLIT_RE = re.compile(r"(?<=\n)")


def split_lines(text: str) -> list[str]:
    """Split text into lines, keeping each line's terminator."""
    return [line for line in LINE_SPLIT_RE.split(text) if line]


def line_content(raw: str) -> str:
    """Return a raw line without its terminator."""
    if raw.endswith("\r\n"):
        return raw[:-2]
    if raw.endswith("\n"):
        return raw[:-1]
    return raw


def has_terminator(raw: str) -> bool:
    return raw.endswith("\n")


class MarkdownParser:
    """Scan markdown source for the structure needed to maintain a TOC.

    Only the constructs that affect heading detection are recognized: YAML
    front matter, fenced code blocks, ATX and setext headings, and TOC marker
    comments. Anything else is treated as ordinary text.
    """

    def __init__(
        self,
        open_marker: str | None = None,
        close_marker: str | None = None,
    ):
        """Initialize the parser.

        Args:
            open_marker: Additional literal accepted as an opening marker.
            close_marker: Additional literal accepted as a closing marker.
        """
        self.open_marker = open_marker.strip() if open_marker else None
        self.close_marker = close_marker.strip() if close_marker else None

    def parse(self, text: str) -> ParsedDocument:
        """Parse markdown text.

        Args:
            text: Full document text.

        Returns:
            ParsedDocument describing lines, headings and TOC blocks.
        """
        lines = split_lines(text)
        contents = [line_content(raw) for raw in lines]

        body_start = self._front_matter_end(contents)
        code_lines = self._find_code_lines(contents, body_start)
        blocks = self._find_blocks(contents, body_start, code_lines)

        hidden = set(code_lines)
        for block in blocks:
            hidden.update(range(block.start_line, block.end_line + 1))

        headings = self._find_headings(contents, body_start, hidden)

        return ParsedDocument(
            lines=lines,
            newline=self._detect_newline(lines),
            body_start=body_start,
            headings=headings,
            blocks=blocks,
        )

    def is_open_marker(self, content: str) -> bool:
        stripped = content.strip()
        if self._indent_width(content) > 3:
            return False
        return bool(OPEN_MARKER_RE.match(stripped)) or stripped == self.open_marker

    def is_close_marker(self, content: str) -> bool:
        stripped = content.strip()
        if self._indent_width(content) > 3:
            return False
        return bool(CLOSE_MARKER_RE.match(stripped)) or stripped == self.close_marker

    def _detect_newline(self, lines: list[str]) -> str:
        for raw in lines:
            if raw.endswith("\r\n"):
                return "\r\n"
            if raw.endswith("\n"):
                return "\n"
        return "\n"

    def _front_matter_end(self, contents: list[str]) -> int:
        """Return the index of the first line after YAML front matter."""
        if not contents or contents[0].rstrip() != "---":
            return 0

        for index in range(1, len(contents)):
            if contents[index].rstrip() in ("---", "..."):
                return index + 1

        # No closing delimiter: not front matter
        return 0

    def _find_code_lines(self, contents: list[str], start: int) -> set[int]:
        """Return indexes of lines belonging to fenced code blocks."""
        code_lines = set()
        fence = None

        for index in range(start, len(contents)):
            content = contents[index]

            if fence is not None:
                code_lines.add(index)
                match = FENCE_CLOSE_RE.match(content)
                if match:
                    marker = match.group(1)
                    if marker[0] == fence[0] and len(marker) >= len(fence):
                        fence = None
                continue

            match = FENCE_OPEN_RE.match(content)
            if match:
                marker, info = match.group(1), match.group(2)
                # A backtick fence's info string may not contain backticks
                if marker[0] == "`" and "`" in info:
                    continue
                fence = marker
                code_lines.add(index)

        return code_lines

    def _find_blocks(
        self,
        contents: list[str],
        start: int,
        code_lines: set[int],
    ) -> list[TOCBlock]:
        """Pair open and close markers into TOC blocks.

        An open marker with no matching close marker forms a one-line block.
        Close markers without an open marker are ignored.
        """
        blocks = []
        open_index = None

        for index in range(start, len(contents)):
            if index in code_lines:
                continue
            content = contents[index]

            if self.is_open_marker(content):
                if open_index is not None:
                    blocks.append(TOCBlock(start_line=open_index, end_line=open_index))
                open_index = index
            elif self.is_close_marker(content) and open_index is not None:
                blocks.append(TOCBlock(start_line=open_index, end_line=index))
                open_index = None

        if open_index is not None:
            blocks.append(TOCBlock(start_line=open_index, end_line=open_index))

        return blocks

    def _find_headings(
        self,
        contents: list[str],
        start: int,
        hidden: set[int],
    ) -> list[ParsedHeading]:
        headings = []
        # First line of the paragraph currently being read, if any
        paragraph_start = None

        for index in range(start, len(contents)):
            if index in hidden:
                paragraph_start = None
                continue
            content = contents[index]

            if not content.strip():
                paragraph_start = None
                continue

            match = ATX_HEADING_RE.match(content)
            if match:
                headings.append(
                    ParsedHeading(
                        level=len(match.group(1)),
                        title=match.group(2).strip(),
                        start_line=index,
                        end_line=index,
                    )
                )
                paragraph_start = None
                continue

            match = SETEXT_UNDERLINE_RE.match(content)
            if match and paragraph_start is not None:
                title = " ".join(
                    contents[i].strip() for i in range(paragraph_start, index)
                )
                headings.append(
                    ParsedHeading(
                        level=1 if match.group(1)[0] == "=" else 2,
                        title=title,
                        start_line=paragraph_start,
                        end_line=index,
                    )
                )
                paragraph_start = None
                continue

            if paragraph_start is None:
                if (
                    self._indent_width(content) < 4
                    and not NON_PARAGRAPH_RE.match(content)
                    and not THEMATIC_BREAK_RE.match(content)
                ):
                    paragraph_start = index

        return headings

    @staticmethod
    def _indent_width(content: str) -> int:
        return len(content) - len(content.lstrip(" "))
