"""pipethis CLI — Typer-based command-line interface.

Provides the ``pipethis`` command.  Progress is logged to standard error
through Rich; candidate identities and prompts use a Rich console.
"""
