"""Logging setup shared by the CLI and any application embedding the engine.

Every engine module logs through ``logging.getLogger(__name__)``; this
module only decides levels and the output format. Subpackages can be tuned
on their own with ``LOG_LEVEL_<SUBPACKAGE>``, for example
``LOG_LEVEL_SCAN=DEBUG``.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping

LOG_FORMAT: str = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
DEFAULT_LEVEL: int = logging.INFO

# LOG_LEVEL_<key> -> logger of the subpackage
SUBPACKAGE_LOGGERS: dict[str, str] = {
    "INDICATORS": "Market_Health.indicators",
    "ANALYSIS": "Market_Health.analysis",
    "SCAN": "Market_Health.scan",
    "MODELS": "Market_Health.models",
    "DATA": "Market_Health.data",
}


def _parse_level(name: str | None) -> int | None:
    """Numeric level of a level name such as ``"debug"``, None if unknown."""
    if not name:
        return None
    return logging.getLevelNamesMapping().get(name.strip().upper())


def _root_level(level: str, verbose: bool, quiet: bool, environ: Mapping[str, str]) -> int:
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    for candidate in (level, environ.get("LOG_LEVEL")):
        parsed = _parse_level(candidate)
        if parsed is not None:
            return parsed
    return DEFAULT_LEVEL


def configure_logging(
    *,
    level: str = "",
    verbose: bool = False,
    quiet: bool = False,
    environ: Mapping[str, str] | None = None,
) -> dict[str, int]:
    """Configure the root logger and the subpackage loggers.

    Root level priority: verbose > quiet > *level* > ``LOG_LEVEL`` > INFO.
    Unknown level names are ignored. The root handler is replaced
    (``force=True``) so an earlier ``basicConfig`` of a host application
    does not win.

    Returns:
        The subpackage loggers whose level was overridden, with that level.
    """
    env = os.environ if environ is None else environ
    logging.basicConfig(
        level=_root_level(level, verbose, quiet, env), format=LOG_FORMAT, force=True
    )

    overrides: dict[str, int] = {}
    for key, logger_name in SUBPACKAGE_LOGGERS.items():
        subpackage_level = _parse_level(env.get(f"LOG_LEVEL_{key}"))
        if subpackage_level is None:
            continue
        logging.getLogger(logger_name).setLevel(subpackage_level)
        overrides[logger_name] = subpackage_level
    return overrides
