"""
Handles the downloading of dependency artifacts over HTTP.

An artifact is fetched at most once: a file that already exists in the
target directory is returned as-is, without any freshness check.
"""

import asyncio
import logging
import sys
from contextlib import suppress
from pathlib import Path
from typing import TextIO
from urllib.parse import urlsplit

import aiofiles
import aiohttp

from modbuild.exceptions import DownloadError
from modbuild.utils.path import create_dir

log = logging.getLogger(__name__)


def file_name_from_uri(uri: str) -> str:
    """Returns the last path segment of `uri`, without query string or fragment."""
    path = urlsplit(uri).path
    file_name = path[path.rfind("/") + 1 :].split("?")[0].split("#")[0]
    if not file_name:
        raise DownloadError(f"download failed for: {uri}", ValueError("no file name"))
    return file_name


class Downloader:
    """A sequential file downloader backed by a lazily created aiohttp session."""

    CHUNK_SIZE = 131072  # 128 KB

    def __init__(
        self,
        session: aiohttp.ClientSession | None = None,
        dry_run: bool = False,
        stdout: TextIO | None = None,
    ):
        self._session = session
        self._owns_session = session is None
        self.dry_run = dry_run
        self.stdout = stdout
        self.fetched = 0
        self.cached = 0
        self.bytes_fetched = 0

    async def __aenter__(self) -> "Downloader":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            # No overall deadline: a stalled transfer blocks the build.
            timeout = aiohttp.ClientTimeout(total=None)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
            log.debug("Created download session.")
        return self._session

    async def close(self) -> None:
        """Closes the session if this downloader created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
            log.debug("Download session closed.")
        self._session = None

    def _notify(self, message: str) -> None:
        print(message, file=self.stdout or sys.stdout, flush=True)

    async def download(self, uri: str, directory: Path) -> Path:
        """
        Downloads the resource at `uri` into `directory` and returns its path.

        Raises:
            DownloadError: If the resource cannot be fetched or written.
            FileSystemError: If `directory` cannot be created.
        """
        file_name = file_name_from_uri(uri)
        target = directory / file_name
        if target.exists():
            log.debug(f"Using cached artifact [dim]{target}[/dim]")
            self.cached += 1
            return target

        host = urlsplit(uri).hostname or uri
        if self.dry_run:
            self._notify(f"Would load {file_name} from {host}")
            return target

        create_dir(directory)
        try:
            session = await self._get_session()
            async with session.get(uri, allow_redirects=True) as response:
                response.raise_for_status()
                self._notify(f"Loading {file_name} from {host}...")
                bytes_written = 0
                async with aiofiles.open(target, "wb") as f:
                    async for chunk in response.content.iter_chunked(self.CHUNK_SIZE):
                        await f.write(chunk)
                        bytes_written += len(chunk)
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            with suppress(OSError):
                target.unlink(missing_ok=True)
            raise DownloadError(f"download failed for: {uri}", e) from e

        self.fetched += 1
        self.bytes_fetched += bytes_written
        log.debug(f"Stored {bytes_written} bytes at [dim]{target}[/dim]")
        return target
