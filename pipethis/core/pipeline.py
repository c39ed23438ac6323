"""The provenance pipeline — acquire, inspect, verify, then run.

Steps run strictly in order and any failure ends the run.  Every temporary
file created along the way is registered on an ``ExitStack`` as soon as it
exists, so it is removed on success, on failure, and on interruption.
"""

from __future__ import annotations

import logging
import shutil
import sys
from contextlib import ExitStack
from pathlib import Path
from typing import BinaryIO, TextIO

import httpx
from pydantic import BaseModel, ConfigDict
from rich.console import Console

from pipethis.config import PipethisConfig
from pipethis.core.script import Script
from pipethis.core.signature import Signature
from pipethis.errors import InspectionDeclinedError, TargetNotFoundError
from pipethis.lookup.base import new_key_service
from pipethis.lookup.selection import resolve_author_key

logger = logging.getLogger(__name__)


class PipelineOptions(BaseModel):
    """Everything one run needs from the command line.

    ``location`` is empty when the script arrives on standard input.
    ``args`` are passed to the script after its own path.
    """

    model_config = ConfigDict(frozen=True)

    target: str
    location: str = ""
    args: tuple[str, ...] = ()
    inspect: bool = False
    editor: str = "vi"
    verify: bool = True
    signature_source: str = ""
    lookup_with: str = "keybase"


def resolve_target(target: str) -> str:
    """Return *target* if it names an existing file or a command on PATH."""
    if target and Path(target).exists():
        return target
    found = shutil.which(target) if target else None
    if found is None:
        raise TargetNotFoundError(f"Script executable {target!r} does not exist")
    return found


class Pipeline:
    """One run of the pipeline.

    Parameters
    ----------
    options:
        The run's options.
    config:
        Settings for key services and network access.
    stdin:
        Binary stream a piped script is read from.  Defaults to
        ``sys.stdin.buffer``.
    console:
        Console for candidate lists and prompts.
    prompt_stream:
        Text stream prompts read answers from.  ``None`` reads the terminal.
    client:
        Optional ``httpx.Client`` for every network fetch.
    """

    def __init__(
        self,
        options: PipelineOptions,
        *,
        config: PipethisConfig | None = None,
        stdin: BinaryIO | None = None,
        console: Console | None = None,
        prompt_stream: TextIO | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._options = options
        self._config = config if config is not None else PipethisConfig()
        self._stdin = stdin
        self._console = console if console is not None else Console()
        self._prompt_stream = prompt_stream
        self._client = client

    def run(self) -> None:
        options = self._options

        with ExitStack() as stack:
            target = resolve_target(options.target)
            logger.info("Using script executable %s", target)

            script = self._acquire()
            stack.callback(script.cleanup)
            logger.info("Script saved to %s", script.name)

            if not script.inspect(
                options.inspect,
                options.editor,
                console=self._console,
                stream=self._prompt_stream,
            ):
                raise InspectionDeclinedError(f"Exiting without running {script.name}")

            if options.verify:
                self._verify(script, stack)

            args = [options.location, *options.args] if options.location else []
            script.run(target, args)

    def _acquire(self) -> Script:
        if self._options.location:
            return Script.from_location(
                self._options.location,
                client=self._client,
                timeout=self._config.http_timeout,
            )

        stdin = self._stdin if self._stdin is not None else sys.stdin.buffer
        return Script.from_stream(stdin)

    def _verify(self, script: Script, stack: ExitStack) -> None:
        author = script.author()
        service = new_key_service(
            self._options.lookup_with,
            script.is_piped,
            config=self._config,
            client=self._client,
        )

        key = resolve_author_key(
            service,
            author,
            script.is_piped,
            console=self._console,
            stream=self._prompt_stream,
        )

        signature = Signature(
            key,
            script,
            self._options.signature_source,
            client=self._client,
            timeout=self._config.http_timeout,
        )
        stack.callback(signature.cleanup)

        signature.verify()
        logger.info("Signature %s verified!", signature.source or signature.name)
