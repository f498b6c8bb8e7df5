"""Progress reporting interfaces."""

from abc import ABC, abstractmethod


class ProgressSink(ABC):
    """Receives progress events for one stream of uploads.

    The batch uploader calls ``begin`` with the file count, ``increment``
    after every file, and ``finish`` once the stream is done. In concurrent
    mode each worker owns its own sink.
    """

    @abstractmethod
    def begin(self, total: int) -> None:
        """Called before the first file with the number of files."""
        pass

    @abstractmethod
    def increment(self, by: int = 1) -> None:
        """Called after each processed file."""
        pass

    @abstractmethod
    def set_label(self, text: str) -> None:
        """Called to update the status text shown next to the stream."""
        pass

    @abstractmethod
    def finish(self, text: str) -> None:
        """Called once the stream has processed all its files."""
        pass


class ProgressDisplay(ABC):
    """Hands out progress sinks and owns their rendering lifetime."""

    def __enter__(self) -> "ProgressDisplay":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def start(self) -> None:
        pass

    def stop(self) -> None:
        pass

    @abstractmethod
    def sink(self, name: str) -> ProgressSink:
        """Create a new sink shown under ``name``."""
        pass


class NullProgress(ProgressSink):
    """Sink that discards every event."""

    def begin(self, total: int) -> None:
        pass

    def increment(self, by: int = 1) -> None:
        pass

    def set_label(self, text: str) -> None:
        pass

    def finish(self, text: str) -> None:
        pass


class NullProgressDisplay(ProgressDisplay):
    """Display that renders nothing."""

    def sink(self, name: str) -> ProgressSink:
        return NullProgress()
