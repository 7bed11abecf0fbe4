#!/usr/bin/env python3
"""
remove_cleanup.py

Run before a stack is removed: empty the S3 bucket so CloudFormation can delete it.

"""
import sys

from site_sync import loggy
from site_sync.hooks import run

loggy.info("remove_cleanup(): BEGIN")

sys.exit(run('before:remove:remove'))
