"""HTTP transport for mirror downloads.

Performs one blocking GET per call and streams the body into a local
file, rendering a progress bar on stderr.
"""

import os
from pathlib import Path
from typing import Optional, Union

import httpx
from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TextColumn,
    TransferSpeedColumn,
)

from ..common.errors import NotFoundError
from ..common.logger import get_logger

logger = get_logger("transport")

DEFAULT_TIMEOUT = 5.0
CHUNK_SIZE = 8192


class Transport:
    """Downloads remote files into the local filesystem.

    Read and write operations are bounded by ``timeout`` seconds. There
    is no retry: a failed request raises and the caller decides whether
    to try another mirror.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        show_progress: bool = True,
        client: Optional[httpx.Client] = None,
        console: Optional[Console] = None,
    ):
        """Initialize transport.

        Args:
            timeout: Connect/read/write timeout in seconds
            show_progress: Render a progress bar while downloading
            client: Optional preconfigured httpx client (used by tests)
            console: Console for the progress bar (stderr by default)
        """
        self.timeout = timeout
        self.show_progress = show_progress
        self.client = client or httpx.Client(
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
        )
        self.console = console or Console(stderr=True)

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self.client.close()

    def __enter__(self) -> "Transport":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def download(self, remote_path: str, local_path: Union[str, Path]) -> None:
        """Download ``remote_path`` into ``local_path``.

        The local file is only created once the server answered 200 and
        is overwritten if it exists.

        Args:
            remote_path: Full URL of the remote file
            local_path: Destination file

        Raises:
            NotFoundError: If the server answers with a non-200 status
            httpx.HTTPError: On connection failures and timeouts
            OSError: If the local file cannot be written
        """
        logger.info(f"Requesting {remote_path}")

        with self.client.stream("GET", remote_path) as response:
            if response.status_code != httpx.codes.OK:
                logger.warning(f"Failure {response.status_code} {response.reason_phrase}")
                raise NotFoundError(f"{remote_path} not found")

            length = int(response.headers.get("Content-Length", 0) or 0)

            with open(local_path, "wb") as f:
                if self.show_progress:
                    self._stream_with_progress(response, f, length, remote_path)
                else:
                    for chunk in response.iter_bytes(CHUNK_SIZE):
                        f.write(chunk)
                f.flush()
                os.fsync(f.fileno())

    def _stream_with_progress(self, response, f, length: int, remote_path: str) -> None:
        """Copy the response body to ``f`` while updating a progress bar."""
        name = remote_path.rsplit("/", 1)[-1]
        columns = (
            TextColumn("* {task.description}"),
            BarColumn(bar_width=50),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            DownloadColumn(),
            TransferSpeedColumn(),
        )
        with Progress(*columns, console=self.console, transient=False) as progress:
            task = progress.add_task(name, total=length or None)
            received = 0
            for chunk in response.iter_bytes(CHUNK_SIZE):
                f.write(chunk)
                received += len(chunk)
                progress.update(task, advance=len(chunk))
            if not length:
                progress.update(task, total=received)
