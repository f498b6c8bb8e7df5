"""
bkt: upload files and folders to S3-compatible object storage.

Reads a saved profile (credentials, bucket, and either an AWS region or a
custom endpoint) and uploads single files or whole directory trees, one
file at a time or across a pool of worker threads.
"""

__version__ = "0.1.0"

from bkt.cli import main

__all__ = ["main", "__version__"]
