"""Folder upload orchestration.

Uploads every regular file under a source directory, either one file at a
time or split across a fixed number of worker threads.

Sequential mode walks the tree lazily and uploads as it goes. Concurrent
mode materializes the file list, cuts it into ``workers`` contiguous chunks
of ``ceil(len / workers)`` files, and gives each chunk to its own thread
with its own storage client and progress sink. Each worker counts into a
local ``BatchResult``; the partial results are merged after every worker
has finished.

A failed file is counted and logged but never stops the batch.
"""

import logging
import math
import os
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Iterator, Optional, Sequence, TypeVar

from bkt.models import BatchResult, ResolvedTarget, UploadTask, WorkerChunk
from bkt.progress.base import NullProgressDisplay, ProgressDisplay, ProgressSink
from bkt.s3_client import build_s3_client
from bkt.upload import SourceNotFound, UploadError, upload_file

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Above this many workers per CPU a warning is emitted
OVERSUBSCRIPTION_RATIO = 100

ClientFactory = Callable[[ResolvedTarget], Any]


def rebase_key(path: str, source_root: str, destination_root: str) -> str:
    """Move a file path from under ``source_root`` to under ``destination_root``.

    The path must be ``source_root`` itself or lie below it; the remainder is
    appended to ``destination_root`` with ``/`` separators.

    >>> rebase_key("/a/b/c/d.txt", "/a/b", "s3://x/y")
    's3://x/y/c/d.txt'

    Both paths are normalised first, so doubled or trailing separators in
    the root never reach the key.

    Raises:
        ValueError: If ``path`` is not under ``source_root``.
    """
    remainder = os.path.relpath(path, source_root)
    if remainder == os.pardir or remainder.startswith(os.pardir + os.sep):
        raise ValueError(f"{path} is not under {source_root}")
    if remainder == os.curdir:
        remainder = ""

    remainder = remainder.replace(os.sep, "/")
    if not destination_root:
        return remainder
    if not remainder:
        return destination_root
    return f"{destination_root.rstrip('/')}/{remainder}"


def iter_files(
    root: str,
    on_error: Optional[Callable[[OSError], None]] = None,
) -> Iterator[str]:
    """Yield the path of every regular file under ``root``.

    Order follows ``os.walk`` and is not sorted. Directories that cannot be
    listed are passed to ``on_error`` and skipped.
    """
    for dirpath, _dirnames, filenames in os.walk(root, onerror=on_error):
        for name in filenames:
            path = os.path.join(dirpath, name)
            if os.path.isfile(path):
                yield path


def collect_files(root: str, limit: Optional[int] = None) -> list[str]:
    """Materialize the file list under ``root``, keeping at most ``limit``."""
    files = []
    for path in iter_files(root, on_error=_log_walk_error):
        if limit is not None and len(files) >= limit:
            break
        files.append(path)
    return files


def count_files(root: str) -> int:
    """Count regular files under ``root``."""
    return sum(1 for _ in iter_files(root, on_error=_log_walk_error))


def partition(items: Sequence[T], workers: int) -> list[list[T]]:
    """Split ``items`` into exactly ``workers`` contiguous chunks.

    Every chunk holds ``ceil(len(items) / workers)`` items except the tail:
    the last non-empty chunk may be shorter and any remaining chunks are
    empty. Concatenating the chunks gives back ``items``.

    Raises:
        ValueError: If ``workers`` is less than 1.
    """
    if workers < 1:
        raise ValueError(f"workers must be at least 1, got {workers}")

    size = math.ceil(len(items) / workers) if items else 0
    if size == 0:
        return [[] for _ in range(workers)]
    return [list(items[i * size : (i + 1) * size]) for i in range(workers)]


def is_oversubscribed(workers: int, cpus: int) -> bool:
    return workers // max(cpus, 1) > OVERSUBSCRIPTION_RATIO


def _log_walk_error(error: OSError) -> None:
    logger.error("Cannot list %s: %s", error.filename, error.strerror or error)


class BatchUploader:
    """Uploads a directory tree to a resolved target.

    Args:
        target: Bucket, region or endpoint, and credentials. Shared read-only
            by all workers.
        client_factory: Builds a storage client for the target. Called once
            per worker.
        progress: Display that hands out one progress sink per stream.
    """

    def __init__(
        self,
        target: ResolvedTarget,
        client_factory: ClientFactory = build_s3_client,
        progress: Optional[ProgressDisplay] = None,
    ):
        self.target = target
        self.client_factory = client_factory
        self.progress = progress or NullProgressDisplay()

    def upload_folder(
        self,
        source_root: str,
        destination_root: str,
        workers: Optional[int] = None,
        limit: Optional[int] = None,
        content_type: Optional[str] = None,
    ) -> BatchResult:
        """Upload every file under ``source_root``.

        Args:
            source_root: Local directory to upload.
            destination_root: Key prefix replacing ``source_root`` in each
                file's path.
            workers: Number of concurrent workers. ``None`` uploads
                sequentially.
            limit: Upload at most this many files.
            content_type: Content type applied to every file.

        Returns:
            BatchResult with succeeded, failed and total counts.

        Raises:
            SourceNotFound: If ``source_root`` is not an existing directory.
            ValueError: If ``workers`` or ``limit`` is not positive.
        """
        if not os.path.isdir(source_root):
            raise SourceNotFound("Folder not found with provided path", source_root)
        if workers is not None and workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")
        if limit is not None and limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")

        start_time = time.time()
        if workers is None:
            result = self._upload_sequential(
                source_root, destination_root, limit, content_type
            )
        else:
            result = self._upload_concurrent(
                source_root, destination_root, workers, limit, content_type
            )
        result.elapsed_seconds = time.time() - start_time

        logger.info(
            "Uploaded %d of %d file(s) from %s in %.2fs (%d failed)",
            result.succeeded,
            result.total,
            source_root,
            result.elapsed_seconds,
            result.failed,
        )
        return result

    def _upload_sequential(
        self,
        source_root: str,
        destination_root: str,
        limit: Optional[int],
        content_type: Optional[str],
    ) -> BatchResult:
        result = BatchResult()

        def on_walk_error(error: OSError) -> None:
            _log_walk_error(error)
            result.record_failure()

        total = count_files(source_root)
        if limit is not None:
            total = min(total, limit)

        client = self.client_factory(self.target)
        sink = self.progress.sink("Uploading")
        sink.begin(total)

        uploaded = 0
        for path in iter_files(source_root, on_error=on_walk_error):
            if limit is not None and uploaded >= limit:
                break
            self._upload_one(client, path, source_root, destination_root, content_type, result)
            uploaded += 1
            sink.increment(1)

        sink.finish("done")
        return result

    def _upload_concurrent(
        self,
        source_root: str,
        destination_root: str,
        workers: int,
        limit: Optional[int],
        content_type: Optional[str],
    ) -> BatchResult:
        cpus = os.cpu_count() or 1
        if is_oversubscribed(workers, cpus):
            logger.warning(
                "Running %d workers on %d cpu(s); you might be running too many threads",
                workers,
                cpus,
            )

        files = collect_files(source_root, limit)
        chunks = [
            WorkerChunk(index=i, files=tuple(chunk))
            for i, chunk in enumerate(partition(files, workers))
        ]
        logger.info(
            "Uploading %d file(s) with %d worker(s), %d per chunk",
            len(files),
            workers,
            len(chunks[0]) if chunks else 0,
        )

        sinks = [self.progress.sink(f"worker {chunk.index + 1}") for chunk in chunks]

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(
                    self._run_worker,
                    chunk,
                    sink,
                    source_root,
                    destination_root,
                    content_type,
                )
                for chunk, sink in zip(chunks, sinks)
            ]
            partials = [future.result() for future in futures]

        result = BatchResult()
        for partial in partials:
            result.merge(partial)
        return result

    def _run_worker(
        self,
        chunk: WorkerChunk,
        sink: ProgressSink,
        source_root: str,
        destination_root: str,
        content_type: Optional[str],
    ) -> BatchResult:
        """Upload one chunk in order and return the worker's own counts."""
        result = BatchResult()
        total = len(chunk)
        sink.begin(total)
        if total == 0:
            sink.finish("100%")
            return result

        client = self.client_factory(self.target)
        start_time = time.time()
        for index, path in enumerate(chunk.files, start=1):
            self._upload_one(client, path, source_root, destination_root, content_type, result)
            sink.increment(1)
            sink.set_label(f"[{index}/{total}] {time.time() - start_time:.2f}s")

        sink.finish("100%")
        return result

    def _upload_one(
        self,
        client: Any,
        path: str,
        source_root: str,
        destination_root: str,
        content_type: Optional[str],
        result: BatchResult,
    ) -> None:
        try:
            task = UploadTask(
                source_path=path,
                destination_key=rebase_key(path, source_root, destination_root),
                content_type=content_type,
            )
            upload_file(client, self.target, task)
        except (UploadError, ValueError) as e:
            logger.error("Put file error for %s: %s", path, e)
            result.record_failure()
        except Exception:
            logger.exception("Unexpected error uploading %s", path)
            result.record_failure()
        else:
            result.record_success()
