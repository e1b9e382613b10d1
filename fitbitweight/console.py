import logging

from rich.console import Console
from rich.logging import RichHandler

# stdout carries the exported measurements, everything else goes to stderr.
console = Console(stderr=True)


def configure_logging(verbose=False):
    """Configure logging once for the whole tool."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        format="%(message)s",
        datefmt="[%X]",
        level=level,
        handlers=[RichHandler(console=console, show_path=verbose)],
        force=True,
    )
    if not verbose:
        logging.getLogger("urllib3").setLevel(logging.WARNING)
        logging.getLogger("requests_oauthlib").setLevel(logging.WARNING)
        logging.getLogger("oauthlib").setLevel(logging.WARNING)
