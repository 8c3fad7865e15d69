"""ArtifactOrchestrator: drives LilyPond to turn one Chord into one numbered image."""

from __future__ import annotations

import logging
import shutil
import subprocess
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path, PurePath
from typing import Any, Final

from notate.chord_renderers import LilypondChordRenderer
from notate.errors import RenderError
from notate.models import Chord

logger = logging.getLogger(__name__)

Runner = Callable[..., "subprocess.CompletedProcess[str]"]

DEFAULT_LILYPOND_FLAGS: Final[tuple[str, ...]] = (
    "-dbackend=svg",
    "-dresolution=1200",
    "-dclip-systems",
    "--svg",
)


@dataclass(frozen=True)
class RenderSettings:
    """
    How the typesetter is invoked.

    Attributes:
        executable:   LilyPond binary name or path.
        flags:        Backend, resolution, clip and format flags.
        image_ext:    Extension of the images LilyPond writes for *flags*.
        working_dir:  Directory the source is written to and LilyPond runs in.
        timeout:      Seconds to wait for one LilyPond run; None waits forever.
    """

    executable: str = "lilypond"
    flags: tuple[str, ...] = DEFAULT_LILYPOND_FLAGS
    image_ext: str = ".svg"
    working_dir: Path = field(default_factory=Path)
    timeout: float | None = 60.0


@dataclass(frozen=True)
class ArtifactPaths:
    """Every file involved in rendering the chord with artifact number *index*."""

    index: int
    working_dir: Path
    source_ext: str
    image_ext: str
    clip_suffix: str

    @property
    def stem(self) -> str:
        return str(self.index)

    @property
    def source(self) -> Path:
        return self.working_dir / f"{self.stem}{self.source_ext}"

    @property
    def raw_image(self) -> Path:
        return self.working_dir / f"{self.stem}{self.image_ext}"

    @property
    def clip_image(self) -> Path:
        return self.working_dir / f"{self.stem}{self.clip_suffix}{self.image_ext}"

    @property
    def image_name(self) -> str:
        return f"{self.stem}{self.image_ext}"

    @property
    def source_name(self) -> str:
        return f"{self.stem}{self.source_ext}"


class ArtifactOrchestrator:
    """
    Render chords to numbered image files.

    For artifact number *n* the orchestrator writes ``n.ly``, runs LilyPond on
    it, drops the full-page ``n.svg`` LilyPond also emits, renames the clipped
    ``n-from-...-clip.svg`` to ``<image_dir>/n.svg`` and moves ``n.ly`` into
    ``<ly_source_dir>``. Steps run strictly in that order and nothing is rolled
    back on failure, so partial files stay behind for diagnosis.

    The *runner* defaults to :func:`subprocess.run`; tests substitute a fake
    that writes the expected output files.
    """

    def __init__(
        self,
        settings: RenderSettings | None = None,
        renderer: LilypondChordRenderer | None = None,
        runner: Runner | None = None,
    ) -> None:
        self.settings = settings or RenderSettings()
        self.renderer = renderer or LilypondChordRenderer()
        self._runner: Runner = runner or subprocess.run

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _resolve(self, directory: str | PurePath) -> Path:
        path = Path(directory)
        if path.is_absolute():
            return path
        return self.settings.working_dir / path

    def _command(self, paths: ArtifactPaths) -> list[str]:
        return [self.settings.executable, *self.settings.flags, paths.source_name]

    def _run_typesetter(self, chord: Chord, paths: ArtifactPaths) -> None:
        command = self._command(paths)
        logger.debug("Running %s in %s", " ".join(command), paths.working_dir)

        kwargs: dict[str, Any] = {
            "cwd": str(paths.working_dir),
            "capture_output": True,
            "text": True,
            "timeout": self.settings.timeout,
        }
        try:
            result = self._runner(command, **kwargs)
        except FileNotFoundError as exc:
            raise RenderError(
                f"typesetter '{self.settings.executable}' not found", paths.index, chord
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise RenderError(
                f"typesetter timed out after {self.settings.timeout} s",
                paths.index,
                chord,
                stderr=_decode(exc.stderr),
            ) from exc

        if result.returncode != 0:
            raise RenderError(
                f"typesetter exited with status {result.returncode}",
                paths.index,
                chord,
                returncode=result.returncode,
                stderr=result.stderr or "",
            )

    def _clear_outputs(self, paths: ArtifactPaths) -> None:
        # Outputs left over from an aborted run must not pass for this run's.
        paths.raw_image.unlink(missing_ok=True)
        paths.clip_image.unlink(missing_ok=True)

    def _relocate(self, chord: Chord, paths: ArtifactPaths, ly_source_dir: Path, image_dir: Path) -> None:
        for expected in (paths.raw_image, paths.clip_image):
            if not expected.exists():
                raise RenderError(
                    f"expected output '{expected.name}' was not produced",
                    paths.index,
                    chord,
                    returncode=0,
                )

        ly_source_dir.mkdir(parents=True, exist_ok=True)
        image_dir.mkdir(parents=True, exist_ok=True)

        paths.raw_image.unlink()
        shutil.move(str(paths.clip_image), str(image_dir / paths.image_name))
        shutil.move(str(paths.source), str(ly_source_dir / paths.source_name))
        logger.debug("Stored artifact %d in %s and %s", paths.index, image_dir, ly_source_dir)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def paths_for(self, index: int) -> ArtifactPaths:
        """Return the working-directory paths used for artifact number *index*."""
        return ArtifactPaths(
            index=index,
            working_dir=self.settings.working_dir,
            source_ext=self.renderer.source_extension,
            image_ext=self.settings.image_ext,
            clip_suffix=self.renderer.clip_suffix(),
        )

    def render(
        self,
        chord: Chord,
        index: int,
        ly_source_dir: str | PurePath,
        image_dir: str | PurePath,
    ) -> str:
        """
        Render *chord* as artifact number *index*.

        Returns:
            The image path as written in the Markdown: *image_dir* joined with
            ``<index><image_ext>`` using forward slashes.

        Raises:
            RenderError: If LilyPond is missing, fails, times out, or does not
                produce both the page image and the clipped image.
            OSError: If a file cannot be written, moved or removed.
        """
        if index < 0:
            raise ValueError(f"Artifact index must be non-negative, got {index}.")

        paths = self.paths_for(index)
        paths.source.write_text(self.renderer.to_source_text(chord), encoding="utf-8")

        self._clear_outputs(paths)
        self._run_typesetter(chord, paths)
        self._relocate(chord, paths, self._resolve(ly_source_dir), self._resolve(image_dir))

        return PurePath(image_dir, paths.image_name).as_posix()


def _decode(output: bytes | str | None) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return output
