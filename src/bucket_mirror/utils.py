"""Utility functions for bucket-mirror."""

import posixpath
import sys
from pathlib import Path
from typing import Optional
from urllib.parse import quote

import logfire
from loguru import logger


def setup_logging(level: str = "INFO", log_file: Optional[Path] = None) -> None:
    """
    Configure loguru sinks for the process:
    - stderr at the given level
    - optional rotating log file
    - logfire export when a token is present in the environment
    """
    logger.remove()
    logger.add(sys.stderr, level=level, colorize=True)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_file),
            level=level,
            rotation="10 MB",
            retention="10 days",
            backtrace=True,
            diagnose=False,
            enqueue=True,
        )

    logfire.configure(send_to_logfire="if-token-present", console=False)
    logger.debug(f"Logging configured: level={level} file={log_file}")


def normalize_key(path: str) -> str:
    """Comparison key for a path on either side: no leading slash, lower case."""
    return path.lstrip("/").lower()


def to_bucket_key(path: str) -> str:
    """Convert a path to one the bucket expects (no leading slash)."""
    return path.lstrip("/")


def to_dropbox_path(path: str) -> str:
    """Convert a path to one Dropbox expects (leading slash, root is empty)."""
    if not path or path == "/":
        return ""
    return path if path.startswith("/") else f"/{path}"


def file_name(path: str) -> str:
    """Base name of a slash separated path."""
    return posixpath.basename(path.rstrip("/"))


def content_disposition(kind: str, path: str) -> str:
    """Content-Disposition header value naming the file at path.

    Names that are not plain printable ASCII get an RFC 6266 ``filename*``
    parameter next to an ASCII fallback.
    """
    name = file_name(path)
    fallback = "".join(c if " " <= c <= "~" and c not in '"\\' else "_" for c in name)
    value = f'{kind}; filename="{fallback}"'
    if fallback != name:
        value += f"; filename*=UTF-8''{quote(name, safe='')}"
    return value
