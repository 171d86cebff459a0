"""Mirror remote images into a local directory."""

import re
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from pathlib import Path
from urllib.parse import unquote

import requests
from loguru import logger

from docgraph.config import DOWNLOAD_CHUNK_SIZE, DOWNLOAD_CONCURRENCY, DOWNLOAD_TIMEOUT
from docgraph.errors import DownloadError
from docgraph.models.node import ImageRegistration


def get_filename(url: str) -> str:
    """Return the local filename for an image URL.

    Encoded slashes count as path separators (storage buckets encode object
    paths that way), query and fragment are dropped.
    """
    last = re.sub("%2F", "/", url, flags=re.IGNORECASE).split("/")[-1]
    last = last.split("#", 1)[0].split("?", 1)[0]
    return unquote(last)


def get_full_path(directory: str | Path, filename: str) -> str:
    return str(Path(directory).resolve() / filename)


class ImageDownloadQueue:
    """Bounded pool of image transfers.

    - At most ``concurrency`` transfers run at once.
    - Each transfer has ``timeout`` seconds in total, after which it is
      abandoned and reported as failed. Nothing is retried.
    - Registrations are deduplicated by id, so enqueueing the same image twice
      returns the same future.
    - Files already on disk are never fetched again.
    """

    def __init__(
        self,
        directory: str | Path,
        *,
        concurrency: int = DOWNLOAD_CONCURRENCY,
        timeout: float = DOWNLOAD_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self.directory = Path(directory).resolve()
        self.timeout = timeout
        self.sess = session or requests.Session()
        self._pool = ThreadPoolExecutor(
            max_workers=concurrency, thread_name_prefix="image-download"
        )
        self._lock = threading.Lock()
        self._tasks: dict[str, Future[bool]] = {}

        logger.debug(
            "Download queue ready: directory {!r}, concurrency {}, timeout {}s",
            str(self.directory), concurrency, timeout,
        )

    @property
    def registered(self) -> int:
        return len(self._tasks)

    @property
    def pending(self) -> int:
        with self._lock:
            return sum(1 for task in self._tasks.values() if not task.done())

    def enqueue(self, image: ImageRegistration) -> Future[bool]:
        """Schedule a transfer, unless this image is already registered.

        The returned future resolves to True once the file is in place and to
        False when the transfer failed.
        """
        with self._lock:
            task = self._tasks.get(image.id)
            if task is not None:
                return task
            self.directory.mkdir(parents=True, exist_ok=True)
            task = self._pool.submit(self._transfer, image)
            self._tasks[image.id] = task
        logger.debug("In queue: {}", self.pending)
        return task

    def wait(self, tasks: list[Future[bool]]) -> int:
        """Block until the given transfers settle. Returns how many failed."""
        done, _ = wait(tasks)
        return sum(1 for task in done if not task.result())

    def drain(self) -> int:
        """Block until every registered transfer settles, including ones
        enqueued while waiting. Returns the number of failed transfers."""
        while True:
            with self._lock:
                tasks = list(self._tasks.values())
            self.wait(tasks)
            with self._lock:
                if len(self._tasks) == len(tasks):
                    return sum(1 for task in tasks if not task.result())

    def close(self) -> None:
        self._pool.shutdown(wait=True)
        self.sess.close()

    def _transfer(self, image: ImageRegistration) -> bool:
        target = Path(image.local_path)
        if target.exists():
            logger.debug("{} already exists", target.name)
            return True

        # The stream runs on its own thread so the deadline holds even while a
        # single read blocks; an abandoned stream cleans up after itself.
        partial = target.with_name(f"{target.name}.{image.id}.part")
        cancelled = threading.Event()
        errors: list[Exception] = []
        stream = threading.Thread(
            target=self._stream,
            args=(image.url, partial, cancelled, errors),
            name=f"image-stream-{image.id[:8]}",
            daemon=True,
        )
        stream.start()
        stream.join(self.timeout)

        if stream.is_alive():
            cancelled.set()
            errors.append(DownloadError(f"timed out after {self.timeout}s"))
        elif not errors:
            try:
                partial.replace(target)
            except OSError as e:
                errors.append(e)

        if errors:
            logger.warning("Download failed: {!r} -> {!r}: {}", image.url, str(target), errors[-1])
            if not stream.is_alive():
                partial.unlink(missing_ok=True)
            return False

        logger.debug("Downloaded {}", target.name)
        return True

    def _stream(
        self, url: str, dest: Path, cancelled: threading.Event, errors: list[Exception]
    ) -> None:
        logger.debug("Downloading: {}", url)
        try:
            r = self.sess.get(url, stream=True, timeout=self.timeout)
            try:
                r.raise_for_status()
                with open(dest, "wb") as f:
                    for chunk in r.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                        if cancelled.is_set():
                            break
                        f.write(chunk)
            finally:
                r.close()
        except Exception as e:
            errors.append(e)
        finally:
            if cancelled.is_set():
                dest.unlink(missing_ok=True)
