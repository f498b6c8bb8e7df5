"""S3 client factory for bkt.

Creates boto3 S3 clients for a resolved target. Named regions let boto3
pick the AWS endpoint; custom endpoints are addressed path-style, which
S3-compatible services such as MinIO expect.
"""

import boto3
from botocore.client import Config

from bkt.models import CustomEndpoint, ResolvedTarget
from bkt.target import InvalidEndpoint


def build_s3_client(target: ResolvedTarget):
    """Build a boto3 S3 client for the given target.

    Args:
        target: Resolved bucket, region or endpoint, and credentials.

    Returns:
        A boto3 S3 client. Build one per thread.

    Raises:
        InvalidEndpoint: If botocore rejects the endpoint URL.
    """
    if isinstance(target.region, CustomEndpoint):
        endpoint_url = target.region.url
        region_name = target.region.region or None
        addressing_style = "path"
    else:
        endpoint_url = None
        region_name = target.region.name
        addressing_style = "auto"

    boto_config = Config(
        signature_version="s3v4",
        s3={"addressing_style": addressing_style},
    )

    try:
        return boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=target.credentials.access_key,
            aws_secret_access_key=target.credentials.secret_key,
            region_name=region_name,
            config=boto_config,
        )
    except ValueError as e:
        raise InvalidEndpoint(str(e)) from e
