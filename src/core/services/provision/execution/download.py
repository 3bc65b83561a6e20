"""
L4 Execution — HTTP access for artifact resolution and download.

JSON metadata lookups, redirect resolution, and streamed file
downloads.  Every failure, including a connection dropped mid-body,
surfaces as ``NetworkError``; nothing is retried.
"""

from __future__ import annotations

import http.client
import json
import logging
import shutil
import urllib.error
import urllib.request
from pathlib import Path
from typing import Any

from src import __version__
from src.core.services.provision.domain.errors import NetworkError

logger = logging.getLogger(__name__)

USER_AGENT = f"workstation-provision/{__version__}"

_CHUNK = 64 * 1024


def _request(url: str, *, method: str = "GET", accept: str = "*/*") -> urllib.request.Request:
    return urllib.request.Request(
        url,
        method=method,
        headers={"Accept": accept, "User-Agent": USER_AGENT},
    )


def fetch_text(url: str, *, timeout: float | None = None, accept: str = "application/json") -> str:
    """GET ``url`` and return the decoded body.

    Raises:
        NetworkError: HTTP error status or connection failure.
    """
    logger.debug("GET %s", url)
    try:
        with urllib.request.urlopen(_request(url, accept=accept), timeout=timeout) as resp:
            charset = resp.headers.get_content_charset() or "utf-8"
            return resp.read().decode(charset, errors="replace")
    except urllib.error.HTTPError as e:
        raise NetworkError(url, f"HTTP {e.code} {e.reason}") from e
    except (urllib.error.URLError, http.client.HTTPException, OSError) as e:
        raise NetworkError(url, str(getattr(e, "reason", e))) from e


def fetch_json(url: str, *, timeout: float | None = None) -> tuple[Any, str]:
    """GET ``url`` and parse it as JSON.

    Returns:
        ``(document, raw_text)``; the raw text is kept for diagnostics.

    Raises:
        NetworkError: request failed or the body is not JSON.
    """
    raw = fetch_text(url, timeout=timeout)
    try:
        return json.loads(raw), raw
    except json.JSONDecodeError as e:
        raise NetworkError(url, f"invalid JSON response: {e}") from e


def resolve_redirect(url: str, *, timeout: float | None = None) -> str:
    """Follow redirects from ``url`` and return the final location.

    Uses HEAD so the artifact itself is not transferred.
    """
    logger.debug("HEAD %s", url)
    try:
        with urllib.request.urlopen(_request(url, method="HEAD"), timeout=timeout) as resp:
            return resp.geturl()
    except urllib.error.HTTPError as e:
        raise NetworkError(url, f"HTTP {e.code} {e.reason}") from e
    except (urllib.error.URLError, http.client.HTTPException, OSError) as e:
        raise NetworkError(url, str(getattr(e, "reason", e))) from e


def download_file(url: str, dest: Path, *, timeout: float | None = None) -> Path:
    """Stream ``url`` into ``dest``.

    A partially written file is removed when the transfer fails.

    Raises:
        NetworkError: request or transfer failed.
    """
    logger.info("Downloading %s → %s", url, dest)
    dest.parent.mkdir(parents=True, exist_ok=True)
    try:
        with urllib.request.urlopen(_request(url), timeout=timeout) as resp, open(dest, "wb") as out:
            shutil.copyfileobj(resp, out, _CHUNK)
    except urllib.error.HTTPError as e:
        dest.unlink(missing_ok=True)
        raise NetworkError(url, f"HTTP {e.code} {e.reason}") from e
    except (urllib.error.URLError, http.client.HTTPException, OSError) as e:
        dest.unlink(missing_ok=True)
        raise NetworkError(url, str(getattr(e, "reason", e))) from e
    return dest
