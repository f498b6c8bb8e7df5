"""Upload a single file to the resolved target.

The whole file is read into memory and sent with one PutObject call. Large
files are not streamed or split into parts.
"""

import logging
from typing import Any, Optional

from botocore.exceptions import BotoCoreError, ClientError

from bkt.models import ResolvedTarget, UploadTask

logger = logging.getLogger(__name__)


class UploadError(Exception):
    """Raised when a single file fails to upload."""

    def __init__(self, message: str, source_path: str):
        super().__init__(message)
        self.source_path = source_path


class SourceNotFound(UploadError):
    """Raised when the source path is missing or unreadable."""

    pass


class TransferError(UploadError):
    """Raised when the storage service or network rejects the upload."""

    def __init__(
        self,
        message: str,
        source_path: str,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, source_path)
        self.status_code = status_code


def read_source(path: str) -> bytes:
    """Read the full content of a source file.

    Raises:
        SourceNotFound: If the file does not exist or cannot be read.
    """
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        raise SourceNotFound(f"Cannot read {path}: {e.strerror or e}", path) from e


def _status_code(response: dict[str, Any]) -> int:
    return response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)


def upload_file(client: Any, target: ResolvedTarget, task: UploadTask) -> int:
    """Upload one file.

    Args:
        client: boto3 S3 client for ``target``.
        target: Resolved target supplying the bucket.
        task: Source path, destination key, and optional content type.

    Returns:
        HTTP status code returned by the storage service.

    Raises:
        SourceNotFound: If the source cannot be read.
        TransferError: If PutObject fails.
    """
    body = read_source(task.source_path)

    params: dict[str, Any] = {
        "Bucket": target.bucket,
        "Key": task.destination_key,
        "Body": body,
    }
    if task.content_type:
        params["ContentType"] = task.content_type

    try:
        response = client.put_object(**params)
    except ClientError as e:
        status = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        code = e.response.get("Error", {}).get("Code", "Unknown")
        raise TransferError(
            f"Put {task.destination_key} failed ({code}): {e}",
            task.source_path,
            status_code=status,
        ) from e
    except BotoCoreError as e:
        raise TransferError(
            f"Put {task.destination_key} failed: {e}", task.source_path
        ) from e

    status_code = _status_code(response)
    logger.debug(
        "Put %s -> s3://%s/%s (%d bytes, status %s)",
        task.source_path,
        target.bucket,
        task.destination_key,
        len(body),
        status_code,
    )
    return status_code
