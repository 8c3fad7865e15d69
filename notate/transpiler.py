"""Transpiler: streams a tab document into Markdown with inline chord images."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Final, TextIO, assert_never

from notate.artifacts import ArtifactOrchestrator
from notate.chord_parser import DEFAULT_DELIMITER, DEFAULT_SKIP_KEYWORD, ChordParser, parse_chord_line
from notate.errors import MalformedTabError
from notate.line_classifier import LineReader
from notate.models import Chord, Line, LineKind, TabDialect

logger = logging.getLogger(__name__)

FENCE: Final[str] = "````"
IMAGE_SEPARATOR: Final[str] = " &nbsp; &nbsp; "


@dataclass(frozen=True)
class TranspileConfig:
    """
    Settings for one transpilation run.

    Attributes:
        ly_source_dir:   Directory that receives the generated LilyPond sources.
        image_dir:       Directory that receives the chord images; also the
                         prefix of every image reference in the Markdown.
        dialect:         How chord-definition lines pair with lyric lines.
        skip_keyword:    Body of a chord-definition line that declares no chords.
        chord_delimiter: Field separator inside one chord token.
    """

    ly_source_dir: str = "lys"
    image_dir: str = "svgs"
    dialect: TabDialect = TabDialect.GROUPED
    skip_keyword: str = DEFAULT_SKIP_KEYWORD
    chord_delimiter: str = DEFAULT_DELIMITER


def code_span(text: str) -> str:
    """
    Wrap *text* in an inline code span that shows it verbatim.

    The fence is one backtick longer than the longest backtick run inside
    *text*; padding spaces keep edge backticks from merging with the fence.
    """
    longest = max((len(run) for run in re.findall(r"`+", text)), default=0)
    fence = "`" * (longest + 1)
    if longest:
        return f"{fence} {text} {fence}"
    return f"{fence}{text}{fence}"


def titlefy(text: str) -> str:
    """Turn ``# My Song`` into a heading that displays the title literally."""
    _marker, separator, title = text.partition(" ")
    title = title.strip()
    if not separator or not title:
        raise ValueError(f"Title line has no text after its marker: {text!r}")
    return f"# {code_span(title)}"


def sectionify(text: str) -> str:
    """Turn ``[Verse 1]`` into a literal sub-heading."""
    return f"### {code_span(text[1:-1].strip())}"


class Transpiler:
    """
    Convert a tab document into Markdown, one classified line at a time.

    The only state carried across lines is the artifact counter, which numbers
    chord images in strict document order starting from 0 on every call to
    :meth:`transpile`. The counter advances only once every chord on a line
    has rendered, so it always equals the number of image references written.
    """

    def __init__(
        self,
        config: TranspileConfig | None = None,
        orchestrator: ArtifactOrchestrator | None = None,
    ) -> None:
        self.config = config or TranspileConfig()
        self.orchestrator = orchestrator or ArtifactOrchestrator()
        self.parser = ChordParser(self.config.chord_delimiter)
        self.artifact_count = 0

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _parse_chords(self, line: Line, line_number: int) -> list[Chord]:
        chords = parse_chord_line(line.text, self.parser, self.config.skip_keyword)
        logger.debug("Line %d declares %d chord(s)", line_number, len(chords))
        return chords

    def _emit_chords(self, chords: list[Chord], sink: TextIO) -> None:
        if not chords:
            return

        paths = [
            self.orchestrator.render(
                chord,
                self.artifact_count + offset,
                self.config.ly_source_dir,
                self.config.image_dir,
            )
            for offset, chord in enumerate(chords)
        ]
        _writeln(sink, IMAGE_SEPARATOR.join(f"![]({path})" for path in paths))
        self.artifact_count += len(chords)

    def _emit_block(self, lines: list[str], sink: TextIO) -> None:
        _writeln(sink, FENCE)
        for text in lines:
            _writeln(sink, text)
        _writeln(sink, FENCE)

    def _emit_heading(self, line: Line, reader: LineReader, sink: TextIO) -> None:
        if line.kind is LineKind.BLANK:
            _writeln(sink, "")
        elif line.kind is LineKind.TITLE:
            try:
                _writeln(sink, titlefy(line.text))
            except ValueError as exc:
                raise MalformedTabError("title has no text", reader.line_number, line.text) from exc
        elif line.kind is LineKind.SECTION:
            _writeln(sink, sectionify(line.text))
        else:
            raise AssertionError(f"not a heading line: {line.kind}")

    def _transpile_grouped(self, reader: LineReader, sink: TextIO) -> None:
        previous: LineKind | None = None

        while (line := reader.read()) is not None:
            kind = line.kind
            if kind is LineKind.BLANK or kind is LineKind.TITLE or kind is LineKind.SECTION:
                self._emit_heading(line, reader, sink)
            elif kind is LineKind.CHORD_DEFINITION:
                if previous is not LineKind.PLAIN:
                    raise MalformedTabError(
                        "chord-definition line must follow chord-name/lyric lines",
                        reader.line_number,
                        line.text,
                    )
                self._emit_chords(self._parse_chords(line, reader.line_number), sink)
            elif kind is LineKind.PLAIN:
                block = [line.text]
                while (following := reader.peek()) is not None and following.kind is LineKind.PLAIN:
                    block.append(following.text)
                    reader.read()
                self._emit_block(block, sink)
            else:
                assert_never(kind)
            previous = kind

    def _transpile_paired(self, reader: LineReader, sink: TextIO) -> None:
        while (line := reader.read()) is not None:
            kind = line.kind
            if kind is LineKind.BLANK or kind is LineKind.TITLE or kind is LineKind.SECTION:
                self._emit_heading(line, reader, sink)
            elif kind is LineKind.CHORD_DEFINITION:
                raise MalformedTabError(
                    "chord-definition line without chord-name and lyric lines",
                    reader.line_number,
                    line.text,
                )
            elif kind is LineKind.PLAIN:
                lyrics = reader.read()
                if lyrics is None:
                    raise MalformedTabError("document ends after a chord-name line", reader.line_number, line.text)
                if lyrics.kind is not LineKind.PLAIN:
                    raise MalformedTabError(
                        "expected a lyric line after the chord-name line",
                        reader.line_number,
                        lyrics.text,
                    )
                chord_line = reader.read()
                if chord_line is None:
                    raise MalformedTabError("document ends after a lyric line", reader.line_number, lyrics.text)
                if chord_line.kind is not LineKind.CHORD_DEFINITION:
                    raise MalformedTabError(
                        "expected a chord-definition line after the lyric line",
                        reader.line_number,
                        chord_line.text,
                    )
                chords = self._parse_chords(chord_line, reader.line_number)
                self._emit_block([line.text, lyrics.text], sink)
                self._emit_chords(chords, sink)
            else:
                assert_never(kind)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def transpile(self, lines: Iterable[str], sink: TextIO) -> int:
        """
        Transpile *lines* into Markdown written to *sink*.

        Returns:
            The number of chord images rendered.

        Raises:
            MalformedChordError: If a chord token cannot be parsed.
            MalformedTabError: If a chord-definition line lacks its companion
                lines or the document ends inside a group.
            RenderError: If the typesetter fails for any chord.
            OSError: If an artifact file cannot be written or moved.
        """
        self.artifact_count = 0
        reader = LineReader(lines)
        dialect = self.config.dialect
        logger.debug("Transpiling in %s dialect", dialect.value)

        if dialect is TabDialect.GROUPED:
            self._transpile_grouped(reader, sink)
        elif dialect is TabDialect.PAIRED:
            self._transpile_paired(reader, sink)
        else:
            assert_never(dialect)

        logger.debug("Rendered %d chord image(s) from %d line(s)", self.artifact_count, reader.line_number)
        return self.artifact_count


def _writeln(sink: TextIO, text: str) -> None:
    sink.write(text)
    sink.write("\n")
