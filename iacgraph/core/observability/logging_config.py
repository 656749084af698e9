"""
Logging configuration — one setup call per process.

The CLI and the web server both call ``setup_logging()`` before doing
anything else; every module then logs through
``logging.getLogger(__name__)``.

Level precedence:
    --debug / --verbose / --quiet  >  IACGRAPH_LOG_LEVEL  >  WARNING

A second, optional sink is a log file (IACGRAPH_LOG_FILE) with its own
level (IACGRAPH_LOG_FILE_LEVEL).  Generator stdout is logged under
``iacgraph.generators`` so it can be silenced or routed on its own.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

ENV_LEVEL = "IACGRAPH_LOG_LEVEL"
ENV_FILE = "IACGRAPH_LOG_FILE"
ENV_FILE_LEVEL = "IACGRAPH_LOG_FILE_LEVEL"

GENERATOR_LOGGER = "iacgraph.generators"

_FORMATS: dict[int, tuple[str, str | None]] = {
    logging.DEBUG: ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s", "%H:%M:%S"),
    logging.INFO: ("%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
}
_FMT_QUIET = ("%(message)s", None)
_FMT_FILE = ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s", "%Y-%m-%d %H:%M:%S")

# werkzeug logs every request line at INFO
_NOISY_LOGGERS = ("werkzeug", "urllib3")


def level_from_flags(
    *,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
) -> str:
    """Pick the console level from CLI flags, falling back to the env var."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return os.environ.get(ENV_LEVEL, "WARNING")


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
) -> None:
    """Configure the root logger for the whole process.

    Args:
        level: Console level name.
        log_file: Optional log file path (defaults to IACGRAPH_LOG_FILE).
        log_file_level: Level for the file sink; defaults to ``level``.
        quiet_third_party: Keep werkzeug/urllib3 at WARNING unless DEBUG.
    """
    console_level = _parse_level(level)
    log_file = log_file or os.environ.get(ENV_FILE)
    log_file_level = log_file_level or os.environ.get(ENV_FILE_LEVEL)

    fmt, datefmt = _FMT_QUIET
    for threshold in sorted(_FORMATS):
        if console_level <= threshold:
            fmt, datefmt = _FORMATS[threshold]
            break

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    root_level = console_level

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        root_level = min(root_level, file_level)

        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FMT_FILE[0], datefmt=_FMT_FILE[1]))
        root.addHandler(fh)

    root.setLevel(root_level)

    if quiet_third_party and console_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    """Convert a level name to its numeric value; unknown names mean WARNING."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    return numeric if isinstance(numeric, int) else logging.WARNING
