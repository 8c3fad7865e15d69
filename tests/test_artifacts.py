"""Unit tests for ArtifactOrchestrator using a fake LilyPond runner."""

import subprocess
from pathlib import Path
from typing import Any

import pytest

from notate.artifacts import ArtifactOrchestrator, RenderSettings
from notate.errors import RenderError
from notate.models import Chord

from conftest import CLIP_SUFFIX, FakeLilypond

AM = Chord(name="Am", right_hand=("c", "e", "a"))


def test_render_returns_relative_image_path(orchestrator: ArtifactOrchestrator) -> None:
    assert orchestrator.render(AM, 0, "lys", "svgs") == "svgs/0.svg"


def test_render_moves_files_into_directories(tmp_path: Path, orchestrator: ArtifactOrchestrator) -> None:
    orchestrator.render(AM, 3, "lys", "svgs")

    assert (tmp_path / "svgs" / "3.svg").read_text(encoding="utf-8") == "<svg>3</svg>"
    assert "<c e a>4" in (tmp_path / "lys" / "3.ly").read_text(encoding="utf-8")
    assert not (tmp_path / "3.ly").exists()
    assert not (tmp_path / "3.svg").exists()
    assert not (tmp_path / f"3{CLIP_SUFFIX}.svg").exists()


def test_render_invokes_lilypond_with_fixed_flags(
    tmp_path: Path, orchestrator: ArtifactOrchestrator, fake_lilypond: FakeLilypond
) -> None:
    orchestrator.render(AM, 7, "lys", "svgs")

    command, kwargs = fake_lilypond.calls[0]
    assert command == ["lilypond", "-dbackend=svg", "-dresolution=1200", "-dclip-systems", "--svg", "7.ly"]
    assert kwargs["cwd"] == str(tmp_path)
    assert kwargs["capture_output"] is True
    assert kwargs["timeout"] == 60.0


def test_render_accepts_absolute_directories(tmp_path: Path, orchestrator: ArtifactOrchestrator) -> None:
    images = tmp_path / "out" / "images"
    path = orchestrator.render(AM, 0, tmp_path / "sources", images)
    assert path == f"{images.as_posix()}/0.svg"
    assert (images / "0.svg").exists()


def test_nonzero_exit_raises_render_error(tmp_path: Path, orchestrator: ArtifactOrchestrator, fake_lilypond: FakeLilypond) -> None:
    fake_lilypond.returncode = 1
    fake_lilypond.stderr = "error: syntax error"

    with pytest.raises(RenderError) as excinfo:
        orchestrator.render(AM, 2, "lys", "svgs")

    assert excinfo.value.returncode == 1
    assert excinfo.value.index == 2
    assert excinfo.value.chord == AM
    assert "syntax error" in excinfo.value.stderr
    # The source is left behind for diagnosis.
    assert (tmp_path / "2.ly").exists()


def test_missing_clip_output_raises_render_error(orchestrator: ArtifactOrchestrator, fake_lilypond: FakeLilypond) -> None:
    fake_lilypond.produce_clip = False
    with pytest.raises(RenderError, match="was not produced"):
        orchestrator.render(AM, 0, "lys", "svgs")


def test_missing_executable_raises_render_error(tmp_path: Path) -> None:
    def runner(command: list[str], **kwargs: Any) -> "subprocess.CompletedProcess[str]":
        raise FileNotFoundError(command[0])

    orchestrator = ArtifactOrchestrator(RenderSettings(working_dir=tmp_path), runner=runner)
    with pytest.raises(RenderError, match="not found"):
        orchestrator.render(AM, 0, "lys", "svgs")


def test_timeout_raises_render_error(tmp_path: Path) -> None:
    def runner(command: list[str], **kwargs: Any) -> "subprocess.CompletedProcess[str]":
        raise subprocess.TimeoutExpired(command, kwargs["timeout"], stderr=b"still engraving")

    settings = RenderSettings(working_dir=tmp_path, timeout=5.0)
    orchestrator = ArtifactOrchestrator(settings, runner=runner)
    with pytest.raises(RenderError, match="timed out") as excinfo:
        orchestrator.render(AM, 0, "lys", "svgs")
    assert excinfo.value.stderr == "still engraving"


def test_negative_index_rejected(orchestrator: ArtifactOrchestrator) -> None:
    with pytest.raises(ValueError):
        orchestrator.render(AM, -1, "lys", "svgs")


def test_paths_for(tmp_path: Path, orchestrator: ArtifactOrchestrator) -> None:
    paths = orchestrator.paths_for(12)
    assert paths.source == tmp_path / "12.ly"
    assert paths.raw_image == tmp_path / "12.svg"
    assert paths.clip_image == tmp_path / f"12{CLIP_SUFFIX}.svg"
    assert paths.image_name == "12.svg"


@pytest.mark.integration
def test_real_lilypond_renders_chord(tmp_path: Path) -> None:
    """Smoke test against an installed LilyPond; skipped when it is absent."""
    import shutil

    if shutil.which("lilypond") is None:
        pytest.skip("LilyPond is not installed.")

    orchestrator = ArtifactOrchestrator(RenderSettings(working_dir=tmp_path, timeout=120.0))
    orchestrator.render(Chord(name="C", left_hand=("c",), right_hand=("e", "g", "c'")), 0, "lys", "svgs")
    assert (tmp_path / "svgs" / "0.svg").exists()


def test_leftover_clip_from_earlier_run_is_not_reused(
    tmp_path: Path, orchestrator: ArtifactOrchestrator, fake_lilypond: FakeLilypond
) -> None:
    (tmp_path / f"0{CLIP_SUFFIX}.svg").write_text("<svg>old</svg>", encoding="utf-8")
    (tmp_path / "0.svg").write_text("<svg>old page</svg>", encoding="utf-8")
    fake_lilypond.produce_clip = False

    with pytest.raises(RenderError, match="was not produced"):
        orchestrator.render(AM, 0, "lys", "svgs")

    assert not (tmp_path / "svgs" / "0.svg").exists()


def test_missing_page_image_raises_render_error(orchestrator: ArtifactOrchestrator, fake_lilypond: FakeLilypond) -> None:
    fake_lilypond.produce_page = False
    with pytest.raises(RenderError, match="'0.svg' was not produced"):
        orchestrator.render(AM, 0, "lys", "svgs")
