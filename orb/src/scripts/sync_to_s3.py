#!/usr/bin/env python3
"""
sync_to_s3.py

Sync the s3LocalPath directory to the stack's S3 bucket, deleting remote files missing locally.

"""
import sys

from site_sync import loggy
from site_sync.hooks import run

loggy.info("sync_to_s3(): BEGIN")

sys.exit(run('syncToS3'))
