# logging_setup.py
import logging
import sys

LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def setup_logging(level: str = "INFO") -> None:
    """
    Configure console logging for the server and the CLI.

    Call this once, before the first log line is emitted. An unknown level
    name falls back to INFO.
    """
    root = logging.getLogger()
    level_name = str(level).upper()
    root.setLevel(level_name if level_name in LEVELS else logging.INFO)

    # Remove any pre-existing handlers to avoid duplicates.
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    root.addHandler(handler)

    if level_name not in LEVELS:
        logging.getLogger(__name__).warning("Unknown log level %r, using INFO", level)

    # Request lines are already covered by our own route logging.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
