"""Renderers that turn a Chord into typesetter source text."""

from __future__ import annotations

from abc import ABC, abstractmethod
from math import gcd
from typing import Final, assert_never

from notate.models import Chord, ChordLayout

LILYPOND_VERSION: Final[str] = "2.24.0"


def _escape_lilypond_string(text: str) -> str:
    """Escape the two characters that are unsafe inside a LilyPond string."""
    return text.replace("\\", "\\\\").replace('"', '\\"')


class ChordSourceRenderer(ABC):
    """Abstract chord source renderer."""

    @property
    @abstractmethod
    def source_extension(self) -> str:
        """Filename extension of the generated source, including the dot."""

    @abstractmethod
    def to_source_text(self, chord: Chord) -> str:
        """Render *chord* into a complete typesetter source document."""


class LilypondChordRenderer(ChordSourceRenderer):
    """
    Render a chord as a one-beat LilyPond score.

    The score holds a chord-name line above one staff (treble for the right
    hand, bass for the left hand) or a two-staff piano system when both hands
    have notes. Every hand plays a single quarter-note chord, and the
    ``clip-regions`` layout setting restricts output to that first beat, so
    LilyPond's ``-dclip-systems`` mode emits a compact diagram.
    """

    # Rhythmic locations (bar, beat numerator, beat denominator) of the clip.
    CLIP_START: Final[tuple[int, int, int]] = (1, 0, 4)
    CLIP_END: Final[tuple[int, int, int]] = (1, 1, 4)

    @property
    def source_extension(self) -> str:
        return ".ly"

    def to_source_text(self, chord: Chord) -> str:
        layout = chord.layout
        if layout is ChordLayout.RIGHT_HAND:
            staves = self._staff("right", "treble", "c'", chord.right_hand)
        elif layout is ChordLayout.LEFT_HAND:
            staves = self._staff("left", "bass", "c", chord.left_hand)
        elif layout is ChordLayout.BOTH_HANDS:
            staves = self._piano_staff(chord)
        else:
            assert_never(layout)

        return f"""\\version "{LILYPOND_VERSION}"

\\score {{
  <<
{self._chord_name(chord)}
{staves}
  >>
{self._layout()}
}}
"""

    def _chord_name(self, chord: Chord) -> str:
        name = _escape_lilypond_string(chord.name)
        return f'    \\new Lyrics \\lyricmode {{ "{name}"4 }}'

    def _staff(self, staff_name: str, clef: str, relative_to: str, notes: tuple[str, ...], indent: int = 4) -> str:
        pad = " " * indent
        return (
            f'{pad}\\new Staff = "{staff_name}" {{\n'
            f'{pad}  \\clef "{clef}"\n'
            f"{pad}  \\relative {relative_to} {{\n"
            f"{pad}    \\once \\override Staff.TimeSignature.stencil = ##f\n"
            f"{pad}    <{' '.join(notes)}>4\n"
            f"{pad}  }}\n"
            f"{pad}}}"
        )

    def _piano_staff(self, chord: Chord) -> str:
        right = self._staff("right", "treble", "c'", chord.right_hand, indent=6)
        left = self._staff("left", "bass", "c", chord.left_hand, indent=6)
        return f"    \\new PianoStaff <<\n{right}\n{left}\n    >>"

    def _layout(self) -> str:
        start = " ".join(str(part) for part in self.CLIP_START)
        end = " ".join(str(part) for part in self.CLIP_END)
        return (
            "  \\layout {\n"
            "    clip-regions = #(list\n"
            "      (cons\n"
            f"        (make-rhythmic-location {start})\n"
            f"        (make-rhythmic-location {end})))\n"
            "  }"
        )

    def clip_suffix(self) -> str:
        """
        Filename suffix LilyPond appends to the clipped-region output.

        LilyPond names each clip ``<stem>-from-<bar>.<num>.<den>-to-...-clip``
        with the rhythmic fractions reduced, so ``1 0 4`` becomes ``1.0.1``.
        """
        return f"-from-{self._location(self.CLIP_START)}-to-{self._location(self.CLIP_END)}-clip"

    @staticmethod
    def _location(location: tuple[int, int, int]) -> str:
        bar, numerator, denominator = location
        divisor = gcd(numerator, denominator)
        return f"{bar}.{numerator // divisor}.{denominator // divisor}"
