#!/usr/bin/env python3
"""
deploy_finalize.py

Run after a stack deploy: sync the site to S3, then invalidate the CloudFront cache.
The invalidation runs even when the sync reports a failure.

"""
import sys

from site_sync import loggy
from site_sync.hooks import run

loggy.info("deploy_finalize(): BEGIN")

sys.exit(run('aws:deploy:finalize:cleanup'))
