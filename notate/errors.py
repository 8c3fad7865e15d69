"""Exception hierarchy raised by notate.

Filesystem failures are not wrapped: they surface as the builtin ``OSError``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from notate.models import Chord


class NotateError(Exception):
    """Base class for every error raised by notate itself."""


class MalformedChordError(NotateError):
    """A chord token does not match ``{name; left hand; right hand}``."""

    def __init__(self, token: str, reason: str = "expected '{name; left hand; right hand}'") -> None:
        self.token = token
        self.reason = reason
        super().__init__(f"malformed chord {token!r}: {reason}")


class MalformedTabError(NotateError):
    """The tab document is structurally invalid (e.g. missing companion lines)."""

    def __init__(self, message: str, line_number: int | None = None, line: str | None = None) -> None:
        self.line_number = line_number
        self.line = line
        location = f"line {line_number}: " if line_number is not None else ""
        detail = f" ({line!r})" if line is not None else ""
        super().__init__(f"malformed tab: {location}{message}{detail}")


class RenderError(NotateError):
    """The typesetter failed, timed out, or did not produce the expected image."""

    def __init__(
        self,
        message: str,
        index: int,
        chord: Chord | None = None,
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        self.index = index
        self.chord = chord
        self.returncode = returncode
        self.stderr = stderr
        label = f" '{chord.name}'" if chord is not None else ""
        super().__init__(f"could not render chord #{index}{label}: {message}")


class CompileError(NotateError):
    """The document compiler failed to produce the output document."""

    def __init__(self, message: str, returncode: int | None = None, stderr: str = "") -> None:
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


class ToolNotFoundError(NotateError):
    """A required external executable is not on PATH."""

    def __init__(self, tool: str) -> None:
        self.tool = tool
        super().__init__(f"required tool not found on PATH: {tool}")
