"""pipethis: Stop piping the internet into your shell.

Replaces the ``curl <script> | bash`` installation pattern.  Script authors
identify themselves with a ``PIPETHIS_AUTHOR`` token and sign their scripts;
pipethis fetches the script, resolves the author's public key through
Keybase or the local GnuPG keyring, verifies the signature, and only then
runs it.
"""

__version__ = "0.1.0"
__description__ = "Verify who wrote a script before piping it into your shell"

from pipethis.core.pipeline import Pipeline, PipelineOptions
from pipethis.cli.app import app as cli

__all__ = ["Pipeline", "PipelineOptions", "cli", "__version__"]
