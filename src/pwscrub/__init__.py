"""pwscrub package entrypoints."""

from pwscrub.cli import app
from pwscrub.constants import PACKAGE_VERSION
from pwscrub.engine.orchestrator import ResultScrubber, ScrubOptions, scrub_results

__all__ = [
    "ResultScrubber",
    "ScrubOptions",
    "__version__",
    "app",
    "main",
    "scrub_results",
]
__version__ = PACKAGE_VERSION


def main() -> None:
    """Launch the CLI."""
    app()
