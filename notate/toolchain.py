"""Availability checks for the external executables notate drives."""

import shutil
from collections.abc import Iterable
from typing import Final

from notate.errors import ToolNotFoundError

REQUIRED_TOOLS: Final[tuple[str, ...]] = ("lilypond", "pandoc")


def missing_tools(tools: Iterable[str] = REQUIRED_TOOLS) -> list[str]:
    """Return the tools that cannot be found on PATH, in the order given."""
    return [tool for tool in tools if shutil.which(tool) is None]


def require_tools(tools: Iterable[str] = REQUIRED_TOOLS) -> None:
    """Raise ToolNotFoundError naming the first tool missing from PATH."""
    missing = missing_tools(tools)
    if missing:
        raise ToolNotFoundError(missing[0])
