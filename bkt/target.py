"""Resolve a saved profile into a storage target.

A profile names either an AWS region or a custom S3-compatible endpoint,
never both. Resolution picks the matching ``RegionSpec`` and rejects any
profile where the choice is ambiguous, since a request must never carry
contradictory endpoint and region hints.
"""

from functools import lru_cache
from typing import Optional
from urllib.parse import urlsplit

import boto3

from bkt.models import (
    UNSET,
    Credentials,
    CustomEndpoint,
    NamedRegion,
    Profile,
    RegionSpec,
    ResolvedTarget,
)

# Partitions whose S3 regions are accepted as named regions
PARTITIONS = ("aws", "aws-cn", "aws-us-gov")


class TargetError(Exception):
    """Raised when a profile cannot be turned into a storage target."""

    pass


class AmbiguousRegionConfig(TargetError):
    """Raised when both or neither of endpoint/region are set."""

    pass


class InvalidRegion(TargetError):
    """Raised when the region is not a known S3 region identifier."""

    pass


class InvalidEndpoint(TargetError):
    """Raised when the endpoint is not an http or https URL."""

    pass


class InvalidCredentials(TargetError):
    """Raised when the access key or secret key is empty."""

    pass


@lru_cache(maxsize=1)
def known_regions() -> frozenset[str]:
    """Region identifiers botocore knows for S3.

    Read from the endpoint data bundled with botocore, no network access.
    """
    session = boto3.session.Session()
    regions: set[str] = set()
    for partition in PARTITIONS:
        regions.update(session.get_available_regions("s3", partition_name=partition))
    return frozenset(regions)


def validate_endpoint(endpoint: str) -> str:
    """Check that a custom endpoint is an absolute http(s) URL.

    Raises:
        InvalidEndpoint: If the scheme or host is missing.
    """
    parts = urlsplit(endpoint)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise InvalidEndpoint(
            f"Invalid endpoint: '{endpoint}', expected a URL such as "
            "https://minio.local:9000"
        )
    return endpoint


def resolve_region(endpoint: str, region: str) -> RegionSpec:
    """Choose between a custom endpoint and a named region.

    Raises:
        AmbiguousRegionConfig: If both or neither value is set.
        InvalidEndpoint: If the custom endpoint is not a URL.
        InvalidRegion: If the named region is unknown.
    """
    has_endpoint = endpoint != UNSET
    has_region = region != UNSET

    if has_endpoint and not has_region:
        return CustomEndpoint(url=validate_endpoint(endpoint))

    if has_region and not has_endpoint:
        if region not in known_regions():
            raise InvalidRegion(f"Unknown S3 region: '{region}'")
        return NamedRegion(name=region)

    raise AmbiguousRegionConfig(
        "s3 region is not correctly configured: set exactly one of endpoint "
        f"or region and use '{UNSET}' for the other"
    )


def build_credentials(access_key: str, secret_key: str) -> Credentials:
    """Build credentials, rejecting blank keys."""
    if not access_key or not access_key.strip():
        raise InvalidCredentials("Access key is empty")
    if not secret_key or not secret_key.strip():
        raise InvalidCredentials("Secret key is empty")
    return Credentials(access_key=access_key, secret_key=secret_key)


def resolve_target(
    profile: Profile,
    bucket_override: Optional[str] = None,
) -> ResolvedTarget:
    """Turn a profile into a concrete storage target.

    Args:
        profile: Saved profile.
        bucket_override: Bucket name that replaces the profile's bucket for
            this invocation only.

    Returns:
        ResolvedTarget for the storage client.

    Raises:
        AmbiguousRegionConfig, InvalidEndpoint, InvalidRegion, InvalidCredentials
    """
    bucket = bucket_override if bucket_override else profile.bucket
    region = resolve_region(profile.endpoint, profile.region)
    credentials = build_credentials(profile.access_key, profile.secret_key)

    return ResolvedTarget(bucket=bucket, region=region, credentials=credentials)
