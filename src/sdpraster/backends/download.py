"""HTTP implementation of :class:`DownloadService`."""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath
from typing import Sequence
from urllib.parse import urlparse

import requests

from sdpraster.backends.base import DownloadResult, DownloadService
from sdpraster.config import ensure_dir, get_http_timeout

LOGGER = logging.getLogger("sdpraster.backends")

CHUNK_SIZE = 1 << 20


def local_path_for(locator: str, destination: Path) -> Path:
    """
    Return where ``locator`` is stored inside ``destination``.

    The host and full URL path are mirrored below ``destination`` so that
    locators differing only by directory never share a local file.
    """

    parsed = urlparse(locator)
    relative = PurePosixPath(parsed.path.lstrip("/"))
    if not relative.name or ".." in relative.parts:
        raise ValueError(f"Cannot derive a local file name from {locator}")
    return destination.joinpath(parsed.netloc, *relative.parts)


def _remote_size(response: requests.Response) -> int | None:
    length = response.headers.get("Content-Length")
    if length is None:
        return None
    try:
        return int(length)
    except ValueError:
        return None


class HttpDownloader(DownloadService):
    """
    Download service built on ``requests``.

    Existing files are skipped when their size equals the remote
    ``Content-Length``; this is a size check only, not a checksum. Partial
    files are resumed with an HTTP ``Range`` request when ``resume`` is set.
    """

    def __init__(self, *, timeout: float | None = None) -> None:
        self.timeout = timeout if timeout is not None else get_http_timeout()

    def download(
        self,
        locators: Sequence[str],
        destination: Path,
        *,
        overwrite: bool,
        resume: bool,
    ) -> list[DownloadResult]:
        ensure_dir(destination)
        results: list[DownloadResult] = []
        for index, locator in enumerate(locators, start=1):
            path = local_path_for(locator, destination)
            try:
                result = self._fetch(locator, path, overwrite=overwrite, resume=resume)
            except requests.RequestException as exc:
                LOGGER.warning("Download of %s failed: %s", locator, exc)
                result = DownloadResult(locator=locator, local_path=path, success=False)
            LOGGER.info("[%d/%d] %s -> %s", index, len(locators), locator, "ok" if result.success else "failed")
            results.append(result)
        return results

    def _fetch(self, locator: str, path: Path, *, overwrite: bool, resume: bool) -> DownloadResult:
        ensure_dir(path.parent)
        existing = path.stat().st_size if path.exists() else 0
        headers = {}
        if existing and not overwrite and resume:
            headers["Range"] = f"bytes={existing}-"

        response = requests.get(locator, headers=headers, stream=True, timeout=self.timeout)
        with response:
            status = response.status_code
            if status == 416 and existing:
                # Range starts at the end of the file: nothing left to fetch.
                return DownloadResult(locator, path, success=True, status_code=status, skipped=True)
            if status >= 400:
                return DownloadResult(locator, path, success=False, status_code=status)

            if existing and not overwrite:
                if status == 206:
                    mode = "ab"
                elif _remote_size(response) == existing:
                    return DownloadResult(locator, path, success=True, status_code=status, skipped=True)
                else:
                    mode = "wb"
            else:
                mode = "wb"

            with path.open(mode) as handle:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        handle.write(chunk)
        return DownloadResult(locator, path, success=True, status_code=status)
