"""Logging setup shared by the web service and the CLI."""
import logging

from rich.logging import RichHandler


def configure_logging(level: str = "INFO") -> None:
    """Route the standard logging tree through rich. Safe to call twice."""
    root = logging.getLogger()
    if any(isinstance(handler, RichHandler) for handler in root.handlers):
        root.setLevel(level.upper())
        return
    logging.basicConfig(
        level=level.upper(),
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
