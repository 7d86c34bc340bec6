"""Launching of the external I/O statistics reporter."""

from __future__ import annotations

import logging
import subprocess

log = logging.getLogger(__name__)

DEFAULT_SCRIPT = "read_io_stats.sh"


def _is_enabled(enabled: bool | str) -> bool:
    if isinstance(enabled, str):
        return enabled == "true"
    return bool(enabled)


def invoke_io_reporter(
    enabled: bool | str = False, script: str = DEFAULT_SCRIPT
) -> subprocess.Popen | None:
    """Start the reporter script in the background when enabled.

    enabled may be a bool or the setting's text ("true" enables it). Returns
    the started process, or None when disabled or when the script cannot run.
    """
    if not _is_enabled(enabled):
        return None
    try:
        return subprocess.Popen([script])
    except OSError as exc:
        log.error("Error has happened: %s", exc)
        return None