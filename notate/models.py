"""Data models shared by the classifier, parser and transpiler."""

from dataclasses import dataclass
from enum import Enum


class LineKind(Enum):
    """The five mutually exclusive kinds of tab line."""

    BLANK = "blank"
    TITLE = "title"
    SECTION = "section"
    CHORD_DEFINITION = "chord-definition"
    PLAIN = "plain"


@dataclass(frozen=True)
class Line:
    """One classified input line."""

    kind: LineKind
    text: str


class ChordLayout(Enum):
    """Which staves a chord diagram needs."""

    RIGHT_HAND = "right-hand"
    LEFT_HAND = "left-hand"
    BOTH_HANDS = "both-hands"


class TabDialect(Enum):
    """
    How chord-definition lines relate to the lines before them.

    - ``GROUPED``: any run of plain lines forms one block; a chord-definition
      line must come directly after such a block.
    - ``PAIRED``: every group is exactly a chord-name line, a lyric line and a
      chord-definition line, in that order.
    """

    GROUPED = "grouped"
    PAIRED = "paired"


@dataclass(frozen=True)
class Chord:
    """
    A single chord diagram to render.

    Attributes:
        name:       Display label printed above the staff, e.g. ``Am``.
        left_hand:  LilyPond pitch tokens for the bass staff (may be empty).
        right_hand: LilyPond pitch tokens for the treble staff (may be empty).
    """

    name: str
    left_hand: tuple[str, ...] = ()
    right_hand: tuple[str, ...] = ()

    @property
    def layout(self) -> ChordLayout:
        """Staff layout keyed purely on which hands have notes."""
        if self.left_hand and self.right_hand:
            return ChordLayout.BOTH_HANDS
        if self.left_hand:
            return ChordLayout.LEFT_HAND
        if self.right_hand:
            return ChordLayout.RIGHT_HAND
        raise ValueError(f"Chord '{self.name}' has no notes in either hand.")
