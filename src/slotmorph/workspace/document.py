"""
Text documents and edit application.

A TextDocument is an immutable snapshot of a file's text with a stable uri.
It translates between character offsets, parser byte offsets and
line/character positions, and applies batches of edits computed against it.
"""

import bisect
import logging
from pathlib import Path

from slotmorph.config.models import Position, Range, TextEdit

logger = logging.getLogger(__name__)


class OverlappingEditsError(ValueError):
    """Raised when a batch contains edits whose ranges overlap."""

    pass


class TextDocument:
    """An addressable text buffer with a stable identity."""

    def __init__(self, uri: str, text: str, version: int = 0):
        self.uri = uri
        self.version = version
        self._text = text
        self._encoded: bytes | None = None
        self._line_offsets = self._compute_line_offsets(text)

    @classmethod
    def from_path(cls, path: Path) -> "TextDocument":
        """Load a document from disk."""
        text = path.read_text(encoding="utf-8")
        return cls(path.resolve().as_uri(), text)

    @staticmethod
    def _compute_line_offsets(text: str) -> list[int]:
        offsets = [0]
        for i, ch in enumerate(text):
            if ch == "\n":
                offsets.append(i + 1)
        return offsets

    # =========================================================================
    # Text Access
    # =========================================================================

    def get_text(self, range: Range | None = None) -> str:
        if range is None:
            return self._text
        return self._text[self.offset_at(range.start) : self.offset_at(range.end)]

    @property
    def encoded(self) -> bytes:
        """UTF-8 bytes of the text, as seen by the parser."""
        if self._encoded is None:
            self._encoded = self._text.encode("utf-8")
        return self._encoded

    @property
    def line_count(self) -> int:
        return len(self._line_offsets)

    def line_text(self, line: int) -> str:
        """Get a line without its trailing newline."""
        start = self._line_offsets[line]
        end = self._line_offsets[line + 1] - 1 if line + 1 < len(self._line_offsets) else len(self._text)
        return self._text[start:end]

    # =========================================================================
    # Offset Translation
    # =========================================================================

    def position_at(self, offset: int) -> Position:
        """Convert a character offset into a position."""
        offset = max(0, min(offset, len(self._text)))
        line = bisect.bisect_right(self._line_offsets, offset) - 1
        return Position(line=line, character=offset - self._line_offsets[line])

    def offset_at(self, position: Position) -> int:
        """Convert a position into a character offset, clamping to the line end."""
        if position.line >= len(self._line_offsets):
            return len(self._text)
        line_start = self._line_offsets[position.line]
        if position.line + 1 < len(self._line_offsets):
            line_end = self._line_offsets[position.line + 1] - 1
        else:
            line_end = len(self._text)
        return min(line_start + position.character, line_end)

    def char_offset_from_byte(self, byte_offset: int) -> int:
        return len(self.encoded[:byte_offset].decode("utf-8", errors="replace"))

    def range_from_offsets(self, start: int, end: int) -> Range:
        return Range(start=self.position_at(start), end=self.position_at(end))

    def range_from_bytes(self, start_byte: int, end_byte: int) -> Range:
        """Translate a parser byte span into a displayable range."""
        return self.range_from_offsets(
            self.char_offset_from_byte(start_byte), self.char_offset_from_byte(end_byte)
        )

    def __repr__(self) -> str:
        return f"TextDocument(uri={self.uri!r}, version={self.version}, lines={self.line_count})"


def apply_edits(document: TextDocument, edits: list[TextEdit]) -> str:
    """
    Apply a batch of edits computed against the same document snapshot.

    Edits are ordered by start position; edits sharing a start position keep
    the order in which they were supplied.

    Args:
        document: The document all edit ranges refer to
        edits: Edits with pairwise non-overlapping ranges

    Returns:
        The resulting text

    Raises:
        OverlappingEditsError: If two edits overlap
    """
    spans = []
    for index, edit in enumerate(edits):
        start = document.offset_at(edit.range.start)
        end = document.offset_at(edit.range.end)
        if end < start:
            raise OverlappingEditsError(f"Edit range ends before it starts: {edit.range}")
        spans.append((start, end, index, edit.new_text))

    spans.sort(key=lambda span: (span[0], span[2]))

    text = document.get_text()
    parts: list[str] = []
    last = 0
    for start, end, _, new_text in spans:
        if start < last:
            raise OverlappingEditsError(
                f"Overlapping edit at offset {start} (previous edit ends at {last})"
            )
        parts.append(text[last:start])
        parts.append(new_text)
        last = max(last, end)
    parts.append(text[last:])

    logger.debug(f"Applied {len(edits)} edits to {document.uri}")
    return "".join(parts)
