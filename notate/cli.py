"""notate CLI entry point."""

import logging
import shutil
import sys
from pathlib import Path
from typing import NoReturn, TextIO

import click

from notate import __version__
from notate.artifacts import ArtifactOrchestrator, RenderSettings
from notate.compiler import DocumentCompiler
from notate.errors import CompileError, MalformedChordError, MalformedTabError, RenderError, ToolNotFoundError
from notate.models import TabDialect
from notate.toolchain import REQUIRED_TOOLS, missing_tools, require_tools
from notate.transpiler import Transpiler, TranspileConfig

DEFAULT_LY_DIR = "lys"
DEFAULT_SVG_DIR = "svgs"


def _setup_logging(verbose: bool) -> None:
    """Send library log records to stderr; DEBUG when --verbose is given."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def _remove_artifacts(*directories: str) -> None:
    """Delete artifact directories, ignoring ones that do not exist."""
    for directory in directories:
        shutil.rmtree(directory, ignore_errors=True)


def _fail(message: str, stderr: str = "") -> NoReturn:
    click.echo(f"  ERROR: {message}", err=True)
    if stderr.strip():
        click.echo(stderr.rstrip(), err=True)
    sys.exit(1)


# ── CLI group ──────────────────────────────────────────────────────────────────

@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="notate")
def main() -> None:
    """notate — guitar tabs annotated with piano chords, to Markdown."""


# ── transpile subcommand ───────────────────────────────────────────────────────

@main.command()
@click.argument("tab_file", type=click.File("r", encoding="utf-8"), default="-")
@click.option(
    "--output",
    "-o",
    default=None,
    metavar="PATH",
    help="Destination Markdown file. Defaults to standard output.",
)
@click.option(
    "--ly-dir",
    "-l",
    default=DEFAULT_LY_DIR,
    show_default=True,
    metavar="DIR",
    help="Directory for generated LilyPond source files.",
)
@click.option(
    "--svg-dir",
    "-s",
    default=DEFAULT_SVG_DIR,
    show_default=True,
    metavar="DIR",
    help="Directory for generated chord SVG files.",
)
@click.option(
    "--dialect",
    type=click.Choice([dialect.value for dialect in TabDialect], case_sensitive=False),
    default=TabDialect.GROUPED.value,
    show_default=True,
    help=(
        "grouped: any run of lyric lines followed by one chord line. "
        "paired: chord-name line, lyric line, chord line."
    ),
)
@click.option(
    "--timeout",
    type=click.FloatRange(min=1.0),
    default=60.0,
    show_default=True,
    metavar="SECS",
    help="Maximum time LilyPond may spend rendering a single chord.",
)
@click.option(
    "--pdf",
    "pdf_path",
    default=None,
    metavar="PATH",
    help="Also compile the Markdown to PDF with pandoc (requires --output).",
)
@click.option(
    "--remove-artifacts",
    "-r",
    is_flag=True,
    default=False,
    help="Remove the generated LilyPond and SVG directories afterwards.",
)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log every step to stderr.")
def transpile(
    tab_file: TextIO,
    output: str | None,
    ly_dir: str,
    svg_dir: str,
    dialect: str,
    timeout: float,
    pdf_path: str | None,
    remove_artifacts: bool,
    verbose: bool,
) -> None:
    """
    Transpile a tab into Markdown with one inline SVG per chord.

    TAB_FILE is the tab to read; omit it or pass - to read standard input.

    \b
    Examples:
      notate transpile song.tab -o song.md
      notate transpile song.tab -o song.md --pdf song.pdf --remove-artifacts
      cat song.tab | notate transpile --dialect paired > song.md
    """
    _setup_logging(verbose)
    if pdf_path is not None and output is None:
        raise click.UsageError("--pdf needs --output so pandoc has a Markdown file to read.")
    if pdf_path is not None:
        try:
            require_tools(("pandoc",))
        except ToolNotFoundError as exc:
            _fail(str(exc))

    config = TranspileConfig(
        ly_source_dir=ly_dir,
        image_dir=svg_dir,
        dialect=TabDialect(dialect.lower()),
    )
    orchestrator = ArtifactOrchestrator(RenderSettings(timeout=timeout))
    transpiler = Transpiler(config, orchestrator)

    click.echo(f"notate v{__version__}", err=True)
    click.echo(f"[1/2] Rendering chords → '{svg_dir}/'...", err=True)
    try:
        if output is None:
            count = transpiler.transpile(tab_file, sys.stdout)
        else:
            with open(output, "w", encoding="utf-8") as fh:
                count = transpiler.transpile(tab_file, fh)
    except (MalformedChordError, MalformedTabError) as exc:
        _fail(str(exc))
    except UnicodeDecodeError as exc:
        _fail(f"Input is not valid UTF-8 — {exc}")
    except RenderError as exc:
        _fail(str(exc), exc.stderr)
    except OSError as exc:
        _fail(f"Could not write artifacts — {exc}")
    click.echo(f"      Rendered {count} chord(s)", err=True)

    if pdf_path is not None and output is not None:
        click.echo(f"[2/2] Compiling PDF → '{pdf_path}'...", err=True)
        try:
            DocumentCompiler().compile(output, pdf_path, working_dir=Path.cwd())
        except CompileError as exc:
            _fail(str(exc), exc.stderr)

    if remove_artifacts:
        _remove_artifacts(ly_dir, svg_dir)
        click.echo("      Removed generated artifacts", err=True)


# ── compile subcommand ─────────────────────────────────────────────────────────

@main.command(name="compile")
@click.argument("markdown_file", type=click.Path(exists=True, dir_okay=False, readable=True))
@click.argument("output", type=click.Path(dir_okay=False, writable=True))
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log every step to stderr.")
def compile_document(markdown_file: str, output: str, verbose: bool) -> None:
    """
    Compile a transpiled Markdown file into a document with pandoc.

    Image paths are resolved relative to MARKDOWN_FILE's directory.
    """
    _setup_logging(verbose)
    try:
        target = DocumentCompiler().compile(markdown_file, output)
    except CompileError as exc:
        _fail(str(exc), exc.stderr)
    click.echo(f"Done!  Wrote '{target}'.")


# ── check subcommand ───────────────────────────────────────────────────────────

@main.command()
def check() -> None:
    """Check that LilyPond and pandoc are installed."""
    missing = missing_tools()
    for tool in REQUIRED_TOOLS:
        status = "missing" if tool in missing else "ok"
        click.echo(f"  {tool:<10}{status}")
    if missing:
        sys.exit(1)


# ── clean subcommand ───────────────────────────────────────────────────────────

@main.command()
@click.option("--ly-dir", "-l", default=DEFAULT_LY_DIR, show_default=True, metavar="DIR")
@click.option("--svg-dir", "-s", default=DEFAULT_SVG_DIR, show_default=True, metavar="DIR")
def clean(ly_dir: str, svg_dir: str) -> None:
    """Remove the generated LilyPond and SVG directories."""
    _remove_artifacts(ly_dir, svg_dir)
    click.echo(f"Removed '{ly_dir}' and '{svg_dir}'.")
