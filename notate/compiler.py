"""DocumentCompiler: turns the generated Markdown into a PDF with pandoc."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from notate.artifacts import Runner
from notate.errors import CompileError

logger = logging.getLogger(__name__)


class DocumentCompiler:
    """
    Thin wrapper around the pandoc executable.

    Image references in the transpiled Markdown are relative to the directory
    the artifacts were rendered in, so pandoc runs there (by default, the
    Markdown file's own directory).
    """

    def __init__(self, executable: str = "pandoc", timeout: float | None = 300.0, runner: Runner | None = None) -> None:
        self.executable = executable
        self.timeout = timeout
        self._runner: Runner = runner or subprocess.run

    def compile(
        self,
        input_path: str | Path,
        output_path: str | Path,
        working_dir: str | Path | None = None,
    ) -> Path:
        """
        Compile *input_path* into *output_path*.

        Returns:
            The absolute path of the compiled document.

        Raises:
            CompileError: If pandoc is missing, fails or times out.
        """
        source = Path(input_path).resolve()
        target = Path(output_path).resolve()
        cwd = Path(working_dir) if working_dir is not None else source.parent
        command = [self.executable, str(source), "-o", str(target)]
        logger.debug("Running %s in %s", " ".join(command), cwd)

        try:
            result = self._runner(
                command,
                cwd=str(cwd),
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as exc:
            raise CompileError(f"document compiler '{self.executable}' not found") from exc
        except subprocess.TimeoutExpired as exc:
            raise CompileError(f"document compiler timed out after {self.timeout} s") from exc

        if result.returncode != 0:
            raise CompileError(
                f"document compiler exited with status {result.returncode}",
                returncode=result.returncode,
                stderr=result.stderr or "",
            )
        return target
