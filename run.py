#!/usr/bin/env python3
"""
bkt: S3 upload tool

Run this script to upload files or folders using the saved profile.

Usage:
    python run.py set -c <access-key> <secret-key> <bucket> <endpoint> <region>
    python run.py list-config
    python run.py put -s photo.jpg -d images/photo.jpg -t image/jpeg
    python run.py put -f ./site -d www             # sequential
    python run.py put -f ./site -d www -w 8        # 8 workers
    python run.py count -f ./site
"""

import sys
from bkt.cli import main

if __name__ == "__main__":
    sys.exit(main())
