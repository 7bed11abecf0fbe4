#!/usr/bin/env python3
"""
bucket_info.py

Print the S3 bucket of the deployed stack.

"""
import sys

from site_sync import loggy
from site_sync.hooks import run

loggy.info("bucket_info(): BEGIN")

sys.exit(run('bucketInfo'))
