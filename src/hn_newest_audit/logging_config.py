import logging
import os
from pathlib import Path
from typing import Iterable, Optional, Union


PACKAGE_LOGGER = "hn_newest_audit"
LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"

# Playwright's driver chatter drowns out the per-page progress lines.
NOISY_LOGGERS = ("playwright", "asyncio")


def _to_level(value: Union[str, int, None], default: int) -> int:
    if isinstance(value, int):
        return value
    level = logging.getLevelName((value or "").strip().upper())
    return level if isinstance(level, int) else default


def configure_logging(
    level: str = "INFO",
    file_path: Optional[str] = None,
    *,
    package_level: Optional[str] = None,
    quiet: Iterable[str] = NOISY_LOGGERS,
) -> None:
    """
    Set up root logging for a run.

    `package_level` lets the audit's own loggers run more (or less) verbose than the
    root level, e.g. root at WARNING with `hn_newest_audit.*` at DEBUG. Unset means
    the package follows the root level. Loggers named in `quiet` are capped at
    NOISY_LOG_LEVEL (default WARNING).
    """
    handlers: list[logging.Handler] = [logging.StreamHandler()]

    if file_path:
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))

    logging.basicConfig(
        level=_to_level(level, logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,  # the CLI reconfigures once the YAML/env config is loaded
    )

    logging.getLogger(PACKAGE_LOGGER).setLevel(_to_level(package_level, logging.NOTSET))

    noisy_level = _to_level(os.getenv("NOISY_LOG_LEVEL"), logging.WARNING)
    for name in quiet:
        logging.getLogger(name).setLevel(noisy_level)
