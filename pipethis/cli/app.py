"""Main Typer application.

Entry point: ``pipethis`` (configured via pyproject.toml console_scripts).

Options come before the script location; everything after the location is
handed to the script untouched.
"""

from __future__ import annotations

import logging
import signal
from types import FrameType

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from pipethis.config import PipethisConfig
from pipethis.core.pipeline import Pipeline, PipelineOptions
from pipethis.errors import PipethisError
from pipethis.lookup.base import ServiceName

app = typer.Typer(
    name="pipethis",
    help="Stop piping the internet into your shell: verify who wrote a script, then run it.",
    rich_markup_mode="rich",
    add_completion=False,
)

err_console = Console(stderr=True)


def configure_logging(level: str) -> None:
    """Send log records to standard error through Rich."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.command(context_settings={"allow_interspersed_args": False})
def run_cmd(
    location: str = typer.Argument(
        "",
        metavar="SCRIPT",
        help="Local path or URL of the script.  Read from standard input when omitted.",
        show_default=False,
    ),
    args: list[str] | None = typer.Argument(
        None, metavar="[ARGS]...", help="Arguments passed on to the script."
    ),
    target: str | None = typer.Option(
        None, "--target", help="Executable to run the script (default: $SHELL)."
    ),
    inspect: bool = typer.Option(
        False, "--inspect", help="Open an editor to inspect the script before running it."
    ),
    editor: str | None = typer.Option(
        None, "--editor", help="Editor to inspect the script (default: $EDITOR)."
    ),
    no_verify: bool = typer.Option(
        False, "--no-verify", help="Don't verify the author or signature."
    ),
    signature: str = typer.Option(
        "",
        "--signature",
        help="Detached signature to verify (default: <script location>.sig).",
        show_default=False,
    ),
    lookup_with: ServiceName | None = typer.Option(
        None, "--lookup-with", help="Key lookup service to use (default: keybase)."
    ),
    log_level: str | None = typer.Option(
        None, "--log-level", help="Logging level (default: INFO)."
    ),
) -> None:
    """Verify a script's author and signature, then run it."""
    config = PipethisConfig()
    configure_logging(log_level or config.log_level)

    options = PipelineOptions(
        target=target or config.target,
        location=location,
        args=tuple(args or ()),
        inspect=inspect,
        editor=editor or config.editor,
        verify=not no_verify,
        signature_source=signature,
        lookup_with=lookup_with.value if lookup_with else config.lookup_with,
    )

    try:
        Pipeline(options, config=config).run()
    except (PipethisError, OSError) as exc:
        err_console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc


def _terminate(signum: int, frame: FrameType | None) -> None:
    raise SystemExit(128 + signum)


def main() -> None:
    """CLI entry point."""
    # unwind through the pipeline's cleanup on SIGTERM too
    signal.signal(signal.SIGTERM, _terminate)
    app()


if __name__ == "__main__":
    main()
