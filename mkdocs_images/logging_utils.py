from __future__ import annotations

import logging
from pathlib import Path
from typing import List

DEFAULT_LOG_PATH = "logs/mkdocs-images.log"
FALLBACK_LOG_NAME = "mkdocs-images.log"

_FORMAT = logging.Formatter(
    fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S%z",
)

_installed: List[logging.Handler] = []
_requested: tuple | None = None
_actual: str | None = None


def _file_handler(log_path: str) -> tuple[logging.Handler, str]:
    try:
        Path(log_path).parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(log_path, encoding="utf-8"), log_path
    except OSError:
        fallback = str(Path.cwd() / FALLBACK_LOG_NAME)
        return logging.FileHandler(fallback, encoding="utf-8"), fallback


def configure_logging(
    log_path: str = DEFAULT_LOG_PATH,
    console_level: int = logging.INFO,
    also_console: bool = True,
) -> str:
    """Route build logs to ``log_path`` and, optionally, the console.

    The file always receives DEBUG records, which carry the captured
    stdout/stderr of pip, git and docker. The console only shows
    ``console_level`` and above, so buildx output stays out of CI logs
    unless asked for.

    Calling again with the same arguments is a no-op; anything else replaces
    the handlers installed by the previous call. Returns the file actually
    written (a file in the working directory when ``log_path`` is not
    writable).
    """

    global _requested, _actual

    root = logging.getLogger()
    requested = (log_path, console_level, also_console)
    if _installed and _requested == requested and _actual:
        return _actual

    for h in _installed:
        root.removeHandler(h)
        h.close()
    _installed.clear()

    file_handler, chosen_path = _file_handler(log_path)
    file_handler.setLevel(logging.DEBUG)
    _installed.append(file_handler)

    if also_console:
        console = logging.StreamHandler()
        console.setLevel(console_level)
        _installed.append(console)

    for h in _installed:
        h.setFormatter(_FORMAT)
        root.addHandler(h)
    root.setLevel(logging.DEBUG)
    _requested, _actual = requested, chosen_path

    logging.getLogger(__name__).info(
        "Logging initialized (requested=%s, actual=%s)", log_path, chosen_path
    )
    return chosen_path
