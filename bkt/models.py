"""Data models for the bkt uploader."""

from dataclasses import dataclass, field
from typing import Optional, Union

# Sentinel stored in the profile for an endpoint or region that is not set
UNSET = "-"


@dataclass(frozen=True)
class Profile:
    """Persisted connection profile.

    Exactly one of ``endpoint`` and ``region`` holds a real value, the other
    holds the ``UNSET`` sentinel.
    """

    access_key: str
    secret_key: str
    bucket: str
    endpoint: str = UNSET
    region: str = UNSET

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        return {
            "access_key": self.access_key,
            "secret_key": self.secret_key,
            "bucket": self.bucket,
            "endpoint": self.endpoint,
            "region": self.region,
        }


@dataclass(frozen=True)
class Credentials:
    """Access key pair used to sign requests."""

    access_key: str
    secret_key: str


@dataclass(frozen=True)
class NamedRegion:
    """A known AWS region identifier such as ``us-east-1``."""

    name: str


@dataclass(frozen=True)
class CustomEndpoint:
    """An S3-compatible endpoint URL. Carries no named region."""

    url: str
    region: str = ""


RegionSpec = Union[NamedRegion, CustomEndpoint]


@dataclass(frozen=True)
class ResolvedTarget:
    """Bucket, region or endpoint, and credentials ready for a storage client."""

    bucket: str
    region: RegionSpec
    credentials: Credentials


@dataclass(frozen=True)
class UploadTask:
    """One file to upload and the key it is stored under."""

    source_path: str
    destination_key: str
    content_type: Optional[str] = None


@dataclass
class BatchResult:
    """Success and failure counts for a batch of uploads.

    Each worker fills its own instance; the orchestrator merges them after
    all workers have finished.
    """

    succeeded: int = 0
    failed: int = 0
    elapsed_seconds: float = 0.0

    @property
    def total(self) -> int:
        """Number of files processed."""
        return self.succeeded + self.failed

    @property
    def all_succeeded(self) -> bool:
        return self.failed == 0

    def record_success(self) -> None:
        self.succeeded += 1

    def record_failure(self) -> None:
        self.failed += 1

    def merge(self, other: "BatchResult") -> "BatchResult":
        """Add another partial result into this one and return self."""
        self.succeeded += other.succeeded
        self.failed += other.failed
        return self


@dataclass(frozen=True)
class WorkerChunk:
    """Contiguous slice of the file list handed to one worker."""

    index: int
    files: tuple[str, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.files)
