"""
Prebuilt database acquisition.

When the configured database location is an http(s) URL, the artifact is
downloaded once to a local path; later runs reuse the cached file.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

import requests

from broadband.config import DOWNLOAD_CHUNK_BYTES, DOWNLOAD_TIMEOUT_SEC
from broadband.errors import DownloadFailure

logger = logging.getLogger(__name__)


def is_remote(location: str) -> bool:
    return location.startswith(("http://", "https://"))


def download_file(
    url: str,
    dest: Union[str, Path],
    timeout: float = DOWNLOAD_TIMEOUT_SEC,
) -> Path:
    """
    Stream *url* to *dest*.

    The body is written to a ``.part`` file that is renamed on success, so
    an interrupted download never leaves a truncated database behind.

    Raises
    ------
    DownloadFailure
        On connection errors, timeouts, or a non-2xx response.
    """
    dest = Path(dest)
    dest.parent.mkdir(parents=True, exist_ok=True)
    tmp = dest.with_name(dest.name + ".part")

    logger.info("Downloading database from %s…", url)
    try:
        with requests.get(url, stream=True, timeout=timeout) as resp:
            resp.raise_for_status()
            with open(tmp, "wb") as f:
                for chunk in resp.iter_content(chunk_size=DOWNLOAD_CHUNK_BYTES):
                    f.write(chunk)
    except requests.RequestException as exc:
        tmp.unlink(missing_ok=True)
        raise DownloadFailure(f"Failed to download database from {url}: {exc}") from exc

    tmp.replace(dest)
    logger.info("Database downloaded successfully: %s", dest)
    return dest


def ensure_local_database(
    location: str,
    local_path: Union[str, Path],
    force: bool = False,
) -> Path:
    """
    Resolve *location* to a local database path.

    Plain paths are returned unchanged.  URLs are downloaded to
    *local_path* unless that file already exists (or *force* is set).
    """
    if not is_remote(location):
        return Path(location)

    local_path = Path(local_path)
    if local_path.exists() and not force:
        logger.info("Using cached database: %s", local_path)
        return local_path
    return download_file(location, local_path)
