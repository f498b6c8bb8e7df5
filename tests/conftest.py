"""Shared fixtures for bkt tests."""

import threading
from pathlib import Path
from typing import Callable, Optional

import pytest
from botocore.exceptions import ClientError

from bkt.models import Credentials, NamedRegion, ResolvedTarget


class FakeS3Client:
    """In-memory stand-in for a boto3 S3 client.

    Records every put_object call and raises a ClientError for keys matching
    ``fail_when``. Safe to share between threads.
    """

    def __init__(self, fail_when: Optional[Callable[[str], bool]] = None):
        self.fail_when = fail_when or (lambda key: False)
        self.calls: list[dict] = []
        self._lock = threading.Lock()

    def put_object(self, **kwargs):
        with self._lock:
            self.calls.append(kwargs)
        if self.fail_when(kwargs["Key"]):
            raise ClientError(
                {
                    "Error": {"Code": "InternalError", "Message": "injected failure"},
                    "ResponseMetadata": {"HTTPStatusCode": 500},
                },
                "PutObject",
            )
        return {"ETag": '"etag"', "ResponseMetadata": {"HTTPStatusCode": 200}}

    @property
    def keys(self) -> list[str]:
        return [call["Key"] for call in self.calls]


@pytest.fixture
def target() -> ResolvedTarget:
    """Create a resolved target for testing."""
    return ResolvedTarget(
        bucket="mybucket",
        region=NamedRegion("us-east-1"),
        credentials=Credentials("AK", "SK"),
    )


@pytest.fixture
def fake_client() -> FakeS3Client:
    return FakeS3Client()


@pytest.fixture
def make_tree(tmp_path: Path) -> Callable[..., Path]:
    """Build a directory of files under tmp_path.

    ``make_tree({"a.txt": "x", "sub/b.txt": "y"})`` returns the root.
    """

    def _make(files: dict, root_name: str = "src") -> Path:
        root = tmp_path / root_name
        root.mkdir(parents=True, exist_ok=True)
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        return root

    return _make
