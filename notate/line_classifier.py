"""Line classification and a lookahead reader over raw tab lines."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from notate.models import Line, LineKind


def classify(raw_line: str) -> Line:
    """
    Classify one raw line.

    Rules are checked in a fixed order and the first match wins, so a line such
    as ``[{x}]`` is a section, never a chord definition.
    """
    if not raw_line:
        return Line(LineKind.BLANK, raw_line)
    if raw_line.startswith("#"):
        return Line(LineKind.TITLE, raw_line)
    if raw_line.startswith("[") and raw_line.endswith("]"):
        return Line(LineKind.SECTION, raw_line)
    if raw_line.startswith("{") and raw_line.endswith("}"):
        return Line(LineKind.CHORD_DEFINITION, raw_line)
    return Line(LineKind.PLAIN, raw_line)


class LineReader:
    """
    Iterate classified lines with one line of lookahead.

    Trailing newlines (``\\n`` or ``\\r\\n``) are stripped before classification,
    so both ``io.TextIOBase`` streams and plain lists of strings can be fed in.
    """

    def __init__(self, lines: Iterable[str]) -> None:
        self._source: Iterator[str] = iter(lines)
        self._pending: Line | None = None
        self._has_pending = False
        self.line_number = 0

    def _pull(self) -> Line | None:
        raw = next(self._source, None)
        if raw is None:
            return None
        return classify(raw.rstrip("\r\n"))

    def peek(self) -> Line | None:
        """Return the next line without consuming it, or None at end of stream."""
        if not self._has_pending:
            self._pending = self._pull()
            self._has_pending = True
        return self._pending

    def read(self) -> Line | None:
        """Consume and return the next line, or None at end of stream."""
        line = self.peek()
        self._pending = None
        self._has_pending = False
        if line is not None:
            self.line_number += 1
        return line

    def __iter__(self) -> LineReader:
        return self

    def __next__(self) -> Line:
        line = self.read()
        if line is None:
            raise StopIteration
        return line
