"""Shared fixtures: a stand-in for the LilyPond executable."""

import subprocess
from pathlib import Path
from typing import Any

import pytest

from notate.artifacts import ArtifactOrchestrator, RenderSettings

CLIP_SUFFIX = "-from-1.0.1-to-1.1.4-clip"


class FakeLilypond:
    """
    Records every invocation and writes the files real LilyPond would write.

    Set ``returncode`` to simulate a failing run. Set ``produce_clip`` or
    ``produce_page`` to False to simulate a run that exits cleanly without the
    clipped or the full-page image.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[list[str], dict[str, Any]]] = []
        self.returncode = 0
        self.produce_clip = True
        self.produce_page = True
        self.stderr = ""

    def __call__(self, command: list[str], **kwargs: Any) -> "subprocess.CompletedProcess[str]":
        self.calls.append((command, kwargs))
        cwd = Path(kwargs["cwd"])
        stem = Path(command[-1]).stem
        if self.returncode == 0:
            if self.produce_page:
                (cwd / f"{stem}.svg").write_text("<svg>page</svg>", encoding="utf-8")
            if self.produce_clip:
                (cwd / f"{stem}{CLIP_SUFFIX}.svg").write_text(f"<svg>{stem}</svg>", encoding="utf-8")
        return subprocess.CompletedProcess(command, self.returncode, "", self.stderr)


@pytest.fixture
def fake_lilypond() -> FakeLilypond:
    return FakeLilypond()


@pytest.fixture
def orchestrator(tmp_path: Path, fake_lilypond: FakeLilypond) -> ArtifactOrchestrator:
    return ArtifactOrchestrator(RenderSettings(working_dir=tmp_path), runner=fake_lilypond)
