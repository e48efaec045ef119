"""Download manager with progress tracking."""

from pathlib import Path
from typing import Any, Callable

import requests
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TaskID,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)

from .api import ModPortalAPI
from .settings import ServiceCredentials


class DownloadError(Exception):
    """Raised when a download fails."""

    pass


class Downloader:
    """Downloads mod releases from the portal, one at a time."""

    def __init__(self, api: ModPortalAPI):
        self.api = api
        self.session = api.session

    def download_release(
        self,
        release: dict[str, Any],
        credentials: ServiceCredentials,
        target_dir: Path,
        progress: Progress | None = None,
        task_id: TaskID | None = None,
        on_progress: Callable[[int, int], None] | None = None,
    ) -> Path:
        """
        Stream a release archive into target_dir.

        Blocks until the transfer finishes. The file is written under the
        release's declared file name; on failure the partial file is
        removed and DownloadError is raised.

        Args:
            on_progress: Optional callback(bytes_downloaded, total_bytes).

        Returns path to the downloaded file.
        """
        filename = Path(release["file_name"]).name
        download_url = self.api.url_for(release["download_url"])

        target_dir.mkdir(parents=True, exist_ok=True)
        final_path = target_dir / filename
        opened = False

        try:
            response = self.session.get(
                download_url, params=credentials.as_params(), stream=True
            )
            response.raise_for_status()

            total_size = int(response.headers.get("content-length", 0))

            if progress and task_id is not None:
                progress.update(task_id, total=total_size)

            bytes_downloaded = 0
            with open(final_path, "wb") as f:
                opened = True
                for chunk in response.iter_content(chunk_size=8192):
                    if chunk:
                        f.write(chunk)
                        bytes_downloaded += len(chunk)
                        if progress and task_id is not None:
                            progress.update(task_id, advance=len(chunk))
                        if on_progress:
                            on_progress(bytes_downloaded, total_size)

            return final_path

        except (requests.RequestException, OSError) as e:
            # only a file this call started writing is removed
            if opened and final_path.exists():
                final_path.unlink()
            raise DownloadError(f"Failed to download {filename}: {e}")

    def download_with_progress(
        self,
        release: dict[str, Any],
        credentials: ServiceCredentials,
        target_dir: Path,
        progress: Progress,
        on_progress: Callable[[int, int], None] | None = None,
    ) -> Path:
        """Download a release while showing it as a task on a progress display."""
        task_id = progress.add_task(
            "download",
            filename=Path(release["file_name"]).name[:40],
            total=None,
        )
        return self.download_release(
            release,
            credentials,
            target_dir,
            progress=progress,
            task_id=task_id,
            on_progress=on_progress,
        )


def create_download_progress(console=None) -> Progress:
    """Create a progress bar for downloads."""
    return Progress(
        TextColumn("[bold blue]{task.fields[filename]}", justify="right"),
        BarColumn(bar_width=30),
        "[progress.percentage]{task.percentage:>3.0f}%",
        DownloadColumn(),
        TransferSpeedColumn(),
        TimeRemainingColumn(),
        console=console,
    )
