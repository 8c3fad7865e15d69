"""ChordParser: turns ``{name; left hand; right hand}`` tokens into Chord objects."""

from __future__ import annotations

import logging
import re
from typing import Final

from notate.errors import MalformedChordError
from notate.models import Chord

logger = logging.getLogger(__name__)

DEFAULT_DELIMITER: Final[str] = ";"
DEFAULT_SKIP_KEYWORD: Final[str] = "-"
CHORD_SEPARATOR: Final[str] = "|"

_TOKEN_PATTERN: Final[re.Pattern[str]] = re.compile(r"^\{(?P<body>.*)\}$", re.DOTALL)


class ChordParser:
    """
    Parse single chord tokens in the canonical dialect.

    A token looks like ``{Am; a,; c e a}``: a display name, the left-hand
    pitches and the right-hand pitches, separated by *delimiter*. Each field is
    whitespace-trimmed; hand fields are split on whitespace, and an empty hand
    field means that staff is omitted from the diagram.
    """

    FIELD_COUNT: Final[int] = 3

    def __init__(self, delimiter: str = DEFAULT_DELIMITER) -> None:
        if not delimiter or delimiter.isspace() or delimiter in "{}" + CHORD_SEPARATOR:
            raise ValueError(f"Unusable chord field delimiter: {delimiter!r}")
        self.delimiter = delimiter

    def parse(self, token: str) -> Chord:
        """
        Parse one chord token.

        Raises:
            MalformedChordError: If the token is not a braced triple, the name is
                empty, or both hands are empty.
        """
        stripped = token.strip()
        match = _TOKEN_PATTERN.match(stripped)
        if match is None:
            raise MalformedChordError(token)

        fields = [field.strip() for field in match.group("body").split(self.delimiter)]
        if len(fields) != self.FIELD_COUNT:
            raise MalformedChordError(
                token,
                f"expected {self.FIELD_COUNT} fields separated by '{self.delimiter}', got {len(fields)}",
            )

        name, left, right = fields
        if not name:
            raise MalformedChordError(token, "chord name is empty")

        left_hand = tuple(left.split())
        right_hand = tuple(right.split())
        if not left_hand and not right_hand:
            raise MalformedChordError(token, "both hands are empty")

        return Chord(name=name, left_hand=left_hand, right_hand=right_hand)


def parse_chord_line(
    line: str,
    parser: ChordParser | None = None,
    skip_keyword: str = DEFAULT_SKIP_KEYWORD,
) -> list[Chord]:
    """
    Split a chord-definition line on ``|`` and parse every token.

    A line whose braced body is just *skip_keyword* (``{-}`` by default)
    declares no chords and yields an empty list.
    """
    parser = parser or ChordParser()
    stripped = line.strip()

    match = _TOKEN_PATTERN.match(stripped)
    if match is not None and skip_keyword and match.group("body").strip() == skip_keyword:
        logger.debug("Skip line %r: no chords", line)
        return []

    return [parser.parse(token.strip()) for token in stripped.split(CHORD_SEPARATOR)]
